import logging

from flask import Flask, current_app, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from . import services
from .auth import (
    current_identity,
    get_user,
    require_login,
    require_role,
    resolve_identity,
    upsert_user,
)
from .config import Config
from .errors import ApiError, InternalError, NotFound, Unauthorized
from .models import db, setup_db
from .schemas import BookingRequest, Claims, parse

logger = logging.getLogger(__name__)


def _json_body():
    return request.get_json(silent=True)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    setup_db(app)
    register_error_handlers(app)
    register_routes(app)
    return app


# ======================== ERRORS ========================
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        internal = InternalError("Internal server error")
        return jsonify(internal.to_dict()), internal.status_code


# ======================== ROUTES ========================
def register_routes(app):
    @app.before_request
    def load_identity():
        g.identity = resolve_identity()

    # -------------------- AUTH --------------------
    @app.route("/api/login", methods=["POST"])
    def login():
        if not current_app.config["CLAIMS_LOGIN_ENABLED"]:
            raise NotFound("Not found")
        claims = parse(Claims, _json_body())
        user = upsert_user(claims)
        session.clear()
        session["user_id"] = user.id
        return jsonify(user.to_dict())

    @app.route("/api/logout", methods=["POST"])
    def logout():
        session.clear()
        return "", 204

    @app.route("/api/auth/user", methods=["GET"])
    def auth_user():
        identity = require_login(current_identity())
        user = get_user(identity.subject_id)
        if user is None:
            raise Unauthorized("Unauthorized")
        return jsonify(user.to_dict())

    # -------------------- CARS --------------------
    @app.route("/api/cars", methods=["GET"])
    def list_cars():
        cars = services.list_cars(
            status=request.args.get("status") or None,
            search=request.args.get("search") or None,
        )
        return jsonify([c.to_dict() for c in cars])

    @app.route("/api/cars/<int:car_id>", methods=["GET"])
    def get_car(car_id):
        return jsonify(services.get_car(car_id).to_dict())

    @app.route("/api/cars", methods=["POST"])
    def create_car():
        require_role(current_identity(), "admin")
        car = services.create_car(_json_body())
        return jsonify(car.to_dict()), 201

    @app.route("/api/cars/<int:car_id>", methods=["PUT"])
    def update_car(car_id):
        require_role(current_identity(), "admin")
        car = services.update_car(car_id, _json_body())
        return jsonify(car.to_dict())

    @app.route("/api/cars/<int:car_id>", methods=["DELETE"])
    def delete_car(car_id):
        if current_app.config["REQUIRE_ADMIN_FOR_CAR_DELETE"]:
            require_role(current_identity(), "admin")
        services.delete_car(car_id)
        return "", 204

    # -------------------- BOOKINGS --------------------
    @app.route("/api/bookings", methods=["GET"])
    def list_bookings():
        bookings = services.list_bookings(current_identity())
        return jsonify([b.to_dict(include_car=True) for b in bookings])

    @app.route("/api/bookings", methods=["POST"])
    def create_booking():
        identity = require_login(current_identity())
        payload = parse(BookingRequest, _json_body())
        booking = services.create_booking(
            payload.car_id, identity.subject_id, payload.start_date, payload.end_date
        )
        return jsonify(booking.to_dict()), 201

    @app.route("/api/bookings/<int:booking_id>/status", methods=["PATCH"])
    def update_booking_status(booking_id):
        if current_app.config["REQUIRE_ADMIN_FOR_BOOKING_STATUS"]:
            require_role(current_identity(), "admin")
        body = _json_body()
        status = body.get("status") if isinstance(body, dict) else None
        booking = services.update_booking_status(booking_id, status)
        return jsonify(booking.to_dict())
