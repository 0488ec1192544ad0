"""
Pytest configuration and fixtures.

The app runs against an in-memory SQLite database; Razorpay HTTP calls and
email dispatch are replaced per test.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("MAIL_DRY_RUN", "true")

import uuid
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from travelify.api.deps import get_razorpay_client
from travelify.core.security import create_access_token, hash_password
from travelify.db.session import Base, get_db
from travelify.main import app
from travelify.models.tour import Tour
from travelify.models.user import User
from travelify.services import email_service
from travelify.services.razorpay_client import RazorpayClient, RazorpayConfig, payment_signature

# Models register themselves on Base.metadata when imported
import travelify.models.booking  # noqa: F401
import travelify.models.review  # noqa: F401
import travelify.models.email_log  # noqa: F401
import travelify.models.audit_log  # noqa: F401

RAZORPAY_SECRET = "rzp_test_secret"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeResponse:
    def __init__(self, status_code: int, payload: dict):
        self.status_code = status_code
        self._payload = payload
        self.text = "{}" if payload is not None else ""

    def json(self) -> dict:
        return self._payload


class FakeRazorpayAPI:
    """Stands in for requests.request inside the Razorpay client."""

    def __init__(self):
        self.calls: list[dict[str, Any]] = []
        self.fail_with: tuple[int, dict] | None = None

    def __call__(self, method, url, json=None, auth=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "auth": auth})
        if self.fail_with:
            return FakeResponse(*self.fail_with)
        return FakeResponse(200, {
            "id": "order_" + uuid.uuid4().hex[:14],
            "entity": "order",
            "amount": json["amount"],
            "currency": json["currency"],
            "receipt": json["receipt"],
            "status": "created",
            "notes": json.get("notes", []),
        })


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def razorpay_api(monkeypatch) -> FakeRazorpayAPI:
    fake = FakeRazorpayAPI()
    monkeypatch.setattr("travelify.services.razorpay_client.requests.request", fake)
    return fake


@pytest.fixture
def dispatched(monkeypatch) -> list[str]:
    sent: list[str] = []
    monkeypatch.setattr(email_service, "dispatch_email", sent.append)
    return sent


@pytest.fixture
def client(db, razorpay_api, dispatched):
    def _get_db():
        s = TestingSession()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_razorpay_client] = lambda: RazorpayClient(
        RazorpayConfig(key_id="rzp_test_key", key_secret=RAZORPAY_SECRET)
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db, email: str, name: str, is_admin: bool = False) -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        password_hash=hash_password("password123"),
        is_admin=is_admin,
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def user(db) -> User:
    return _make_user(db, "asha@example.com", "Asha")


@pytest.fixture
def other_user(db) -> User:
    return _make_user(db, "ravi@example.com", "Ravi")


@pytest.fixture
def admin(db) -> User:
    return _make_user(db, "admin@travelify.com", "Admin", is_admin=True)


def auth_headers(u: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(u.id)}"}


@pytest.fixture
def tour(db) -> Tour:
    t = Tour(
        id="T1",
        title="Goa Beach Escape",
        description="Sun and sand",
        location="Goa, India",
        category="Domestic",
        subcategory="Goa",
        price=5000,
        available_slots=10,
    )
    db.add(t)
    db.commit()
    return t


def sign(order_id: str, payment_id: str, secret: str = RAZORPAY_SECRET) -> str:
    return payment_signature(secret, order_id, payment_id)


def verify_payload(order_id="order_abc", payment_id="pay_123", tour_id="T1", signature=None, **extra) -> dict:
    body = {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature if signature is not None else sign(order_id, payment_id),
        "tourId": tour_id,
    }
    body.update(extra)
    return body
