import asyncio
import os
import tempfile
import uuid

import pytest

# Configure before anything imports foodie (settings are cached on first use)
_DB_DIR = tempfile.mkdtemp(prefix="foodie-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'foodie.db')}"
os.environ["ENV_MODE"] = "development"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SOCKET_REDIS_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"

from fastapi.testclient import TestClient  # noqa: E402

from foodie.core.security import hash_password  # noqa: E402
from foodie.database import async_session_maker, drop_db  # noqa: E402
from foodie.main import app  # noqa: E402
from foodie.models import User, UserRole  # noqa: E402
from foodie.realtime.server import get_event_emitter  # noqa: E402
from foodie.services.geo import MockGeoService, get_geo_service  # noqa: E402
from foodie.services.payment import MockPaymentGateway, get_payment_gateway  # noqa: E402

PASSWORD = "secret-pass"
KEY_SECRET = "test_key_secret"


class RecordingEmitter:
    """Stands in for the socket.io server and keeps every emitted event."""

    def __init__(self):
        self.events = []

    async def emit(self, event, data=None, to=None, **kwargs):
        self.events.append((event, data))

    def names(self):
        return [name for name, _ in self.events]

    def last(self, event):
        values = [data for name, data in self.events if name == event]
        return values[-1] if values else None


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def gateway():
    return MockPaymentGateway(failure_rate=0, min_latency=0, max_latency=0, key_secret=KEY_SECRET)


@pytest.fixture()
def client(emitter, gateway):
    """A TestClient over a freshly created, empty database."""
    asyncio.run(drop_db())

    app.dependency_overrides[get_event_emitter] = lambda: emitter
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_geo_service] = lambda: MockGeoService(min_latency=0, max_latency=0)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def unique_email(prefix="user"):
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def auth(token):
    return {"Authorization": f"Bearer {token}"}


async def _create_admin(email):
    async with async_session_maker() as db:
        admin = User(email=email, name="Root", hashed_password=hash_password(PASSWORD), role=UserRole.ADMIN)
        db.add(admin)
        await db.commit()
        return admin.id


def create_admin(client, email=None):
    """Seed an admin straight into the database and log it in."""
    email = email or unique_email("admin")
    asyncio.run(_create_admin(email))
    response = client.post("/api/admin/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


def register_user(client, email=None, username="jane"):
    email = email or unique_email()
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


def register_restaurant(client, email=None, name="Spice Route"):
    email = email or unique_email("restaurant")
    response = client.post(
        "/api/restaurant/register",
        json={
            "username": name.lower().replace(" ", "-"),
            "name": name,
            "email": email,
            "password": PASSWORD,
            "description": "South Indian classics",
        },
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/restaurant/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture()
def admin(client):
    return create_admin(client)


@pytest.fixture()
def admin_headers(admin):
    return auth(admin["token"])


@pytest.fixture()
def customer(client):
    return register_user(client)


@pytest.fixture()
def customer_headers(customer):
    return auth(customer["token"])


@pytest.fixture()
def restaurant(client):
    return register_restaurant(client)


@pytest.fixture()
def restaurant_headers(restaurant):
    return auth(restaurant["token"])


@pytest.fixture()
def category(client, admin_headers):
    response = client.post(
        "/api/products/categories/create",
        json={"name": f"Mains {uuid.uuid4().hex[:4]}"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["category"]


@pytest.fixture()
def make_product(client, admin_headers, category):
    def _make(name="Masala Dosa", price=120.0, status="ACTIVE", **extra):
        response = client.post(
            "/api/products/create",
            json={
                "name": name,
                "price": price,
                "description": f"{name}, freshly made",
                "ingredients": ["rice", "lentils"],
                "images": [],
                "status": status,
                "category_id": category["id"],
                **extra,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["product"]

    return _make


@pytest.fixture()
def address(client, customer_headers):
    response = client.post(
        "/api/address/create",
        json={
            "address": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "country": "India",
            "postal_code": "560001",
        },
        headers=customer_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["address"]
