"""
Pytest configuration for booking API tests
"""

import json
import os
from datetime import date
from decimal import Decimal

import httpx
import pytest

# Configure the environment BEFORE importing any app modules
# config.py reads these at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["PAYSTACK_CURRENCY"] = "GHS"
os.environ["FRONTEND_URL"] = "http://localhost:5173"

from app.auth import create_access_token  # noqa: E402
from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.models import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_PROVIDER, ProviderService, User  # noqa: E402
from app.services.notification_service import NotificationDispatcher  # noqa: E402
from app.services.paystack_service import PaystackService  # noqa: E402
from app.services.realtime import ConnectionManager  # noqa: E402

BOOKING_DAY = date(2030, 1, 15)
PAYSTACK_SECRET = "sk_test_secret"


class RecordingManager(ConnectionManager):
    """Connection manager that records emitted events instead of sending them"""

    def __init__(self):
        super().__init__()
        self.events = []

    async def emit(self, room, event, payload):
        self.events.append((room, event, payload))
        return 1


class FakePaystack:
    """httpx.MockTransport handler imitating the Paystack REST API"""

    def __init__(self):
        self.requests = []
        self.verify_status = "success"
        self.fail_with = None

    def payloads(self, path):
        return [json.loads(r.content) for r in self.requests if r.url.path == path and r.content]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"status": False, "message": "Gateway unavailable"})

        if path == "/transaction/initialize":
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": f"https://checkout.paystack.com/{body['reference']}",
                        "access_code": "ac_test",
                        "reference": body["reference"],
                    },
                },
            )
        if path.startswith("/transaction/verify/"):
            reference = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Verification successful",
                    "data": {"status": self.verify_status, "channel": "card", "reference": reference},
                },
            )
        if path == "/subaccount" and request.method == "POST":
            return httpx.Response(201, json={"status": True, "data": {"subaccount_code": "ACCT_new"}})
        if path.startswith("/subaccount/") and request.method == "PUT":
            code = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"status": True, "data": {"subaccount_code": code}})

        return httpx.Response(404, json={"status": False, "message": "Not found"})


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def manager():
    return RecordingManager()


@pytest.fixture
def dispatcher(manager):
    return NotificationDispatcher(manager)


@pytest.fixture
def fake_paystack():
    return FakePaystack()


@pytest.fixture
def gateway(fake_paystack):
    return PaystackService(
        secret_key=PAYSTACK_SECRET,
        base_url="https://api.paystack.co",
        currency="GHS",
        transport=httpx.MockTransport(fake_paystack),
    )


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=ROLE_CUSTOMER, name=None, email=None, subaccount=None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            role=role,
            paystack_subaccount_code=subaccount,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(ROLE_CUSTOMER, name="Ama Mensah")


@pytest.fixture
def provider(make_user):
    return make_user(ROLE_PROVIDER, name="Kofi Barber", subaccount="ACCT_provider")


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN, name="Admin")


@pytest.fixture
def make_service(db):
    def _make_service(provider, price="100.00", duration=60, name="Haircut"):
        service = ProviderService(provider_id=provider.id, name=name, price=Decimal(price), duration=duration)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make_service


@pytest.fixture
def haircut(provider, make_service):
    return make_service(provider, price="100.00", duration=60)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def client(db, dispatcher, gateway):
    """TestClient sharing the test session, gateway mock and recording dispatcher"""
    from fastapi.testclient import TestClient

    from app.main import app
    from app.services.notification_service import get_notification_dispatcher
    from app.services.paystack_service import get_paystack_service

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_paystack_service] = lambda: gateway
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth():
    return auth_headers
