"""
Request schemas

JSON bodies arrive with camelCase keys; each model maps them onto the
snake_case column names through field aliases.
"""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from .errors import ValidationError

ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")
ROLES = ("user", "admin")


class CarInput(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    make: str = Field(..., min_length=1, description="Manufacturer, e.g. Toyota")
    model: str = Field(..., min_length=1, description="Model, e.g. Camry")
    year: int = Field(..., ge=1900, le=2100)
    color: str = Field(..., min_length=1)
    transmission: Literal["automatic", "manual"]
    fuel_type: Literal["petrol", "diesel", "electric", "hybrid"] = Field(..., alias="fuelType")
    daily_rate: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, alias="dailyRate")
    image_url: str = Field(..., min_length=1, alias="imageUrl")
    status: Literal["available", "rented", "maintenance"] = "available"
    features: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class BookingRequest(BaseModel):
    """Client-supplied booking fields; price, owner and status are server-side."""

    car_id: int = Field(..., alias="carId")
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")


class BookingStatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "completed", "cancelled"]


class Claims(BaseModel):
    """Identity attributes asserted by the external identity provider."""

    sub: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


def parse(schema, data):
    """Validate ``data`` against ``schema``, reporting only the first problem."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except SchemaError as err:
        first = err.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(first["msg"], field=field) from None
