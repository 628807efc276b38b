import logging
import math
import threading
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app

from .errors import AvailabilityConflict, Conflict, NotFound, ValidationError
from .models import Booking, Car, db
from .schemas import ACTIVE_BOOKING_STATUSES, BookingStatusUpdate, CarInput, parse

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
CENT = Decimal("0.01")

# Held across check-then-insert so one process cannot double-book a car.
_booking_lock = threading.Lock()


def to_utc_naive(value):
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_instant(value):
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if not isinstance(value, str) or not value:
        raise ValueError(f"not a timestamp: {value!r}")
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(value))


# ======================== AVAILABILITY ========================
def is_available(car_id, start_date, end_date):
    """True when no pending/confirmed booking of the car overlaps [start, end)."""
    start_date, end_date = to_utc_naive(start_date), to_utc_naive(end_date)
    conflict = Booking.query.filter(
        Booking.car_id == car_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.start_date < end_date,
        Booking.end_date > start_date,
    ).first()
    return conflict is None


def rental_days(start_date, end_date):
    seconds = (end_date - start_date).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def compute_price(daily_rate, start_date, end_date):
    days = rental_days(start_date, end_date)
    return (Decimal(days) * Decimal(daily_rate)).quantize(CENT, rounding=ROUND_HALF_UP)


# ======================== BOOKINGS ========================
def create_booking(car_id, user_id, start_date, end_date):
    try:
        start, end = parse_instant(start_date), parse_instant(end_date)
    except ValueError:
        raise ValidationError("Invalid date range", field="startDate") from None
    if start >= end:
        raise ValidationError("Invalid date range", field="startDate")

    with _booking_lock:
        car = db.session.get(Car, car_id)
        if car is None:
            raise NotFound("Car not found")

        if not is_available(car.id, start, end):
            logger.info("Rejected booking of car %s for %s: %s - %s", car.id, user_id, start, end)
            raise AvailabilityConflict("Car is not available for the selected dates")

        auto_confirm = current_app.config.get("BOOKING_AUTO_CONFIRM", False)
        booking = Booking(
            user_id=user_id,
            car_id=car.id,
            start_date=start,
            end_date=end,
            total_price=compute_price(car.daily_rate, start, end),
            status="confirmed" if auto_confirm else "pending",
            payment_status="pending",
        )
        db.session.add(booking)
        db.session.commit()

    logger.info(
        "Booking %s created: car %s, user %s, %s - %s, total %s",
        booking.id, car.id, user_id, start, end, booking.total_price,
    )
    return booking


def update_booking_status(booking_id, status):
    update = parse(BookingStatusUpdate, {"status": status})
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    booking.status = update.status
    db.session.commit()
    logger.info("Booking %s moved to %s", booking.id, booking.status)
    return booking


def list_bookings(identity):
    if identity is None:
        return []
    query = Booking.query.join(Car)
    if not identity.is_admin:
        query = query.filter(Booking.user_id == identity.subject_id)
    return query.order_by(Booking.id).all()


# ======================== FLEET ========================
def list_cars(status=None, search=None):
    query = Car.query
    if status:
        query = query.filter(Car.status == status)
    cars = query.order_by(Car.id).all()
    if search:
        needle = search.lower()
        cars = [c for c in cars if needle in c.make.lower() or needle in c.model.lower()]
    return cars


def get_car(car_id):
    car = db.session.get(Car, car_id)
    if car is None:
        raise NotFound("Car not found")
    return car


def create_car(data):
    car_input = parse(CarInput, data)
    car = Car(**car_input.model_dump())
    db.session.add(car)
    db.session.commit()
    logger.info("Car %s added: %s %s", car.id, car.make, car.model)
    return car


def update_car(car_id, data):
    car = get_car(car_id)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    # Stored values are already valid, so any error names a provided field.
    car_input = parse(CarInput, {**car.to_dict(), **data})
    for name, value in car_input.model_dump().items():
        setattr(car, name, value)
    db.session.commit()
    logger.info("Car %s updated", car.id)
    return car


def delete_car(car_id):
    car = get_car(car_id)
    if car.bookings:
        if current_app.config.get("CAR_DELETE_POLICY", "forbid") != "cascade":
            raise Conflict("Car has existing bookings and cannot be deleted")
        logger.info("Deleting %d bookings of car %s", len(car.bookings), car.id)
        for booking in list(car.bookings):
            db.session.delete(booking)
    db.session.delete(car)
    db.session.commit()
    logger.info("Car %s deleted", car_id)
