from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from car_rental.errors import Conflict, NotFound, ValidationError
from car_rental.models import Booking, Car, db
from car_rental.services import (
    create_booking,
    create_car,
    delete_car,
    get_car,
    list_cars,
    update_car,
)

from conftest import make_user

NEW_CAR = {
    "make": "Honda",
    "model": "Civic",
    "year": 2022,
    "color": "Red",
    "transmission": "manual",
    "fuelType": "petrol",
    "dailyRate": "42.50",
    "imageUrl": "https://example.com/civic.jpg",
    "features": ["Bluetooth"],
}


def test_seeded_fleet(app_ctx):
    cars = list_cars()
    assert [c.model for c in cars] == ["Camry", "Model 3", "Explorer", "M4"]


def test_status_and_search_filters_combine(app_ctx):
    explorer = Car.query.filter_by(model="Explorer").one()
    explorer.status = "maintenance"
    db.session.commit()

    assert [c.model for c in list_cars(status="available", search="cam")] == ["Camry"]
    assert [c.model for c in list_cars(status="maintenance")] == ["Explorer"]
    assert list_cars(status="maintenance", search="cam") == []


def test_search_matches_make_or_model_case_insensitively(app_ctx):
    assert [c.make for c in list_cars(search="TESLA")] == ["Tesla"]
    assert [c.model for c in list_cars(search="m")] == ["Camry", "Model 3", "M4"]


def test_get_car(app_ctx):
    assert get_car(1).make == "Toyota"
    with pytest.raises(NotFound):
        get_car(404)


def test_create_car_applies_defaults(app_ctx):
    car = create_car(NEW_CAR)
    assert car.id is not None
    assert car.status == "available"
    assert car.daily_rate == Decimal("42.50")
    assert car.description is None
    assert car.created_at is not None


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"dailyRate": 0}, "dailyRate"),
        ({"dailyRate": "-5"}, "dailyRate"),
        ({"transmission": "cvt"}, "transmission"),
        ({"fuelType": "steam"}, "fuelType"),
        ({"status": "stolen"}, "status"),
        ({"year": "new"}, "year"),
        ({"features": "Bluetooth"}, "features"),
    ],
)
def test_create_car_names_offending_field(app_ctx, overrides, field):
    with pytest.raises(ValidationError) as exc:
        create_car({**NEW_CAR, **overrides})
    assert exc.value.field == field
    assert exc.value.message


def test_create_car_requires_fields(app_ctx):
    data = dict(NEW_CAR)
    del data["imageUrl"]
    with pytest.raises(ValidationError) as exc:
        create_car(data)
    assert exc.value.field == "imageUrl"


def test_update_car_is_partial(app_ctx):
    car = update_car(1, {"dailyRate": "60.00", "status": "maintenance"})
    assert car.daily_rate == Decimal("60.00")
    assert car.status == "maintenance"
    assert car.make == "Toyota"
    assert car.features == ["Bluetooth", "Backup Camera", "Lane Assist"]


def test_update_car_validates_provided_fields(app_ctx):
    with pytest.raises(ValidationError) as exc:
        update_car(1, {"dailyRate": -1})
    assert exc.value.field == "dailyRate"
    assert get_car(1).daily_rate == Decimal("55.00")


def test_update_missing_car(app_ctx):
    with pytest.raises(NotFound):
        update_car(404, {"color": "Green"})


def test_delete_car_without_bookings(app_ctx):
    delete_car(4)
    assert db.session.get(Car, 4) is None
    with pytest.raises(NotFound):
        delete_car(4)


def test_delete_car_with_bookings_is_forbidden(app_ctx):
    make_user("u1")
    start = datetime(2030, 1, 1)
    create_booking(1, "u1", start, start + timedelta(days=2))

    with pytest.raises(Conflict):
        delete_car(1)
    assert db.session.get(Car, 1) is not None
    assert Booking.query.count() == 1


def test_delete_car_with_bookings_cascades_when_configured(app_ctx):
    app_ctx.config["CAR_DELETE_POLICY"] = "cascade"
    make_user("u1")
    start = datetime(2030, 1, 1)
    create_booking(1, "u1", start, start + timedelta(days=2))
    create_booking(2, "u1", start, start + timedelta(days=2))

    delete_car(1)
    assert db.session.get(Car, 1) is None
    assert [b.car_id for b in Booking.query.all()] == [2]
