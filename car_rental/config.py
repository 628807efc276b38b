import os


def _flag(name, default):
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///car_rental.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SEED_DATABASE = _flag("SEED_DATABASE", "true")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Booking policy
    BOOKING_AUTO_CONFIRM = _flag("BOOKING_AUTO_CONFIRM", "false")

    # Some deployments leave these two endpoints open
    REQUIRE_ADMIN_FOR_CAR_DELETE = _flag("REQUIRE_ADMIN_FOR_CAR_DELETE", "true")
    REQUIRE_ADMIN_FOR_BOOKING_STATUS = _flag("REQUIRE_ADMIN_FOR_BOOKING_STATUS", "true")

    # forbid | cascade
    CAR_DELETE_POLICY = os.getenv("CAR_DELETE_POLICY", "forbid")

    # Identity provider seam
    # Accepts self-asserted claims; enable only for development and tests
    CLAIMS_LOGIN_ENABLED = _flag("CLAIMS_LOGIN_ENABLED", "false")
    DEV_USER_ID = os.getenv("DEV_USER_ID") or None
