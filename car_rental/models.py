import logging
from datetime import datetime, timezone
from decimal import Decimal

from flask_sqlalchemy import SQLAlchemy

logger = logging.getLogger(__name__)

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat()


def _money(value):
    return f"{Decimal(value):.2f}"


# ======================== MODELS ========================
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(255), primary_key=True)  # subject id from the identity provider
    email = db.Column(db.String(255))
    first_name = db.Column(db.String(255))
    last_name = db.Column(db.String(255))
    profile_image_url = db.Column(db.String(1024))
    role = db.Column(db.String(20), nullable=False, default="user")  # user, admin
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profileImageUrl": self.profile_image_url,
            "role": self.role,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class AdminBootstrap(db.Model):
    """Single-row table; whoever inserts row 1 first becomes the first admin."""

    __tablename__ = "admin_bootstrap"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    user_id = db.Column(db.String(255), nullable=False)
    claimed_at = db.Column(db.DateTime, default=utcnow)


class Car(db.Model):
    __tablename__ = "cars"

    id = db.Column(db.Integer, primary_key=True)
    make = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    color = db.Column(db.String(50), nullable=False)
    transmission = db.Column(db.String(20), nullable=False)  # automatic, manual
    fuel_type = db.Column(db.String(20), nullable=False)  # petrol, diesel, electric, hybrid
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(1024), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="available")  # available, rented, maintenance
    features = db.Column(db.JSON, nullable=False, default=list)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    bookings = db.relationship("Booking", back_populates="car")

    def to_dict(self):
        return {
            "id": self.id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "color": self.color,
            "transmission": self.transmission,
            "fuelType": self.fuel_type,
            "dailyRate": _money(self.daily_rate),
            "imageUrl": self.image_url,
            "status": self.status,
            "features": list(self.features or []),
            "description": self.description,
            "createdAt": _iso(self.created_at),
        }


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), db.ForeignKey("users.id"), nullable=False)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending")  # pending, confirmed, completed, cancelled
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=utcnow)

    car = db.relationship("Car", back_populates="bookings")
    user = db.relationship("User")

    def to_dict(self, include_car=False):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "carId": self.car_id,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "totalPrice": _money(self.total_price),
            "status": self.status,
            "paymentStatus": self.payment_status,
            "createdAt": _iso(self.created_at),
        }
        if include_car:
            data["car"] = self.car.to_dict()
        return data


# ======================== DATABASE INITIALIZATION ========================
SAMPLE_CARS = [
    {
        "make": "Toyota",
        "model": "Camry",
        "year": 2024,
        "color": "Silver",
        "transmission": "automatic",
        "fuel_type": "hybrid",
        "daily_rate": Decimal("55.00"),
        "image_url": "https://images.unsplash.com/photo-1621007947382-bb3c3968e3bb?auto=format&fit=crop&q=80&w=1000",
        "status": "available",
        "features": ["Bluetooth", "Backup Camera", "Lane Assist"],
        "description": "Reliable and fuel-efficient sedan, perfect for city driving and long trips.",
    },
    {
        "make": "Tesla",
        "model": "Model 3",
        "year": 2023,
        "color": "White",
        "transmission": "automatic",
        "fuel_type": "electric",
        "daily_rate": Decimal("85.00"),
        "image_url": "https://images.unsplash.com/photo-1560958089-b8a1929cea89?auto=format&fit=crop&q=80&w=1000",
        "status": "available",
        "features": ["Autopilot", "Long Range", "Premium Audio"],
        "description": "Experience the future of driving with this high-performance electric vehicle.",
    },
    {
        "make": "Ford",
        "model": "Explorer",
        "year": 2023,
        "color": "Blue",
        "transmission": "automatic",
        "fuel_type": "petrol",
        "daily_rate": Decimal("95.00"),
        "image_url": "https://images.unsplash.com/photo-1533473359331-0135ef1b58bf?auto=format&fit=crop&q=80&w=1000",
        "status": "available",
        "features": ["AWD", "7 Seats", "Navigation"],
        "description": "Spacious SUV with plenty of room for family and luggage.",
    },
    {
        "make": "BMW",
        "model": "M4",
        "year": 2024,
        "color": "Black",
        "transmission": "automatic",
        "fuel_type": "petrol",
        "daily_rate": Decimal("150.00"),
        "image_url": "https://images.unsplash.com/photo-1617788138017-80ad40651399?auto=format&fit=crop&q=80&w=1000",
        "status": "available",
        "features": ["Sport Mode", "Leather Seats", "Sunroof"],
        "description": "Luxury sports coupe delivering exhilarating performance and style.",
    },
]


def seed_cars():
    if Car.query.first() is not None:
        return
    logger.info("Seeding database with %d cars", len(SAMPLE_CARS))
    db.session.add_all([Car(**data) for data in SAMPLE_CARS])
    db.session.commit()


def setup_db(app):
    db.init_app(app)
    with app.app_context():
        db.create_all()
        if app.config.get("SEED_DATABASE"):
            seed_cars()
