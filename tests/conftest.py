import pytest

from car_rental import create_app
from car_rental.auth import upsert_user
from car_rental.schemas import Claims


@pytest.fixture
def config(tmp_path):
    """Overrides for a fresh app; tests tweak this dict before requesting ``app``."""
    return {
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "SEED_DATABASE": True,
        "BOOKING_AUTO_CONFIRM": False,
        "REQUIRE_ADMIN_FOR_CAR_DELETE": True,
        "REQUIRE_ADMIN_FOR_BOOKING_STATUS": True,
        "CAR_DELETE_POLICY": "forbid",
        "CLAIMS_LOGIN_ENABLED": True,
        "DEV_USER_ID": None,
    }


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(sub, role=None):
    return upsert_user(Claims(sub=sub, email=f"{sub}@example.com"), role=role)


def login(client, sub):
    resp = client.post("/api/login", json={"sub": sub, "email": f"{sub}@example.com"})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


@pytest.fixture
def admin_client(app):
    """Test client logged in as the first (and therefore admin) user."""
    c = app.test_client()
    assert login(c, "admin-1")["role"] == "admin"
    return c


@pytest.fixture
def user_client(app, admin_client):
    c = app.test_client()
    assert login(c, "user-1")["role"] == "user"
    return c
