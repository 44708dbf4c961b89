import os

# Settings are read at import time
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("APP_URL", "https://shop.example.com")

import hashlib
import hmac
import json
import time
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.config import settings
from core.database import Base
from models.users import User
from utils.deps import get_db
from utils.hashing import get_password_hash

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

TEST_PASSWORD = "TestPassword123!"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(session: Session):
    """
    Async HTTP client bound to the app, with get_db pointing at the test session.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def create_test_user(session, email="customer@example.com", password=TEST_PASSWORD, role="customer", name="Test Customer"):
    """Helper to insert a user directly; password=None gives a checkout-provisioned account."""
    user = User(
        email=email,
        name=name,
        phone="+16502530000",
        password_hash=get_password_hash(password) if password else None,
        role=role,
        is_active=True
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def verified_user(session):
    return create_test_user(session)


@pytest.fixture
def passwordless_user(session):
    return create_test_user(session, email="guest@example.com", password=None, name="Guest Buyer")


@pytest.fixture
def admin_user(session):
    return create_test_user(session, email="admin@example.com", role="admin", name="Admin")


@pytest.fixture
def sent_emails(monkeypatch):
    """Captures outgoing emails instead of sending them."""
    outbox = []

    def fake_send_email(to_email: str, subject: str, body: str):
        outbox.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr("services.email_service.send_email", fake_send_email)
    return outbox


def sign_payload(payload: str, secret: str | None = None, timestamp: int | None = None) -> str:
    """Builds a Stripe-Signature header for the payload."""
    secret = secret or settings.STRIPE_WEBHOOK_SECRET
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def payment_intent_event(payment_intent_id="pi_1", email="new@x.com", amount=8900,
                         currency="usd", name="New Customer", phone=None, event_id="evt_1"):
    return {
        "id": event_id,
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": payment_intent_id,
                "object": "payment_intent",
                "amount": amount,
                "currency": currency,
                "receipt_email": email,
                "shipping": {"name": name, "phone": phone},
                "metadata": {}
            }
        }
    }


def checkout_session_event(payment_intent_id="pi_cs_1", email="checkout@x.com", amount_total=4500,
                           currency="eur", name="Checkout Customer", event_id="evt_cs_1"):
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_1",
                "object": "checkout.session",
                "payment_intent": payment_intent_id,
                "amount_total": amount_total,
                "currency": currency,
                "customer_details": {"email": email, "name": name, "phone": None}
            }
        }
    }


async def post_webhook(client, event: dict, signature: str | None = None):
    body = json.dumps(event)
    headers = {"Content-Type": "application/json"}
    headers["Stripe-Signature"] = signature if signature is not None else sign_payload(body)
    return await client.post("/webhooks/payment", content=body, headers=headers)
