from tests.conftest import create_test_user, TEST_PASSWORD
from models.orders import Order
from jose import jwt
from core.config import settings
from decimal import Decimal


async def test_login_success(client, verified_user):
    """Test successful user login."""

    response = await client.post("/auth/token", data={
        "username": verified_user.email,
        "password": TEST_PASSWORD
    })

    assert response.status_code == 200

    data = response.json()
    assert data["token_type"] == "bearer"
    assert isinstance(data["refresh_token"], str) and len(data["refresh_token"]) > 0

    payload = jwt.decode(data["access_token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

    assert payload["sub"] == verified_user.email
    assert payload["id"] == verified_user.id
    assert payload["role"] == verified_user.role
    assert payload["type"] == "access"


async def test_login_email_case_insensitive(client, verified_user):
    response = await client.post("/auth/token", data={
        "username": "  Customer@Example.COM ",
        "password": TEST_PASSWORD
    })

    assert response.status_code == 200


async def test_login_wrong_password(client, verified_user):
    """Test login with incorrect password."""

    response = await client.post("/auth/token", data={
        "username": verified_user.email,
        "password": "WrongPassword123!"
    })

    assert response.status_code == 401
    assert "invalid email or password" in response.json()["detail"].lower()


async def test_login_nonexistent_user(client):
    """Test login with non-existent email."""
    response = await client.post("/auth/token", data={
        "username": "nonexistent@example.com",
        "password": "Password123!"
    })

    assert response.status_code == 401


async def test_login_passwordless_account(client, passwordless_user):
    """Accounts created at checkout must finish the setup link first."""
    response = await client.post("/auth/token", data={
        "username": passwordless_user.email,
        "password": "Anything123!"
    })

    assert response.status_code == 401
    assert "password not set" in response.json()["detail"].lower()


async def test_login_inactive_user(client, session):
    """Test login for an inactive user"""
    user = create_test_user(session, email="inactive@example.com")
    user.is_active = False
    session.commit()

    response = await client.post("/auth/token", data={
        "username": "inactive@example.com",
        "password": TEST_PASSWORD
    })

    assert response.status_code == 401


async def test_login_links_guest_orders(client, verified_user, session):
    """Guest orders placed under the same email are attached at login."""
    session.add(Order(
        email_snapshot="CUSTOMER@example.com",
        total=Decimal("25.00"),
        currency="USD",
        payment_intent_id="pi_guest_login"
    ))
    session.commit()

    response = await client.post("/auth/token", data={
        "username": verified_user.email,
        "password": TEST_PASSWORD
    })
    assert response.status_code == 200

    order = session.query(Order).filter(Order.payment_intent_id == "pi_guest_login").one()
    assert order.user_id == verified_user.id
