import pytest
from decimal import Decimal
from models.users import User
from models.orders import Order
from schemas.auth_schemas import CreateUserRequest
from services.auth_service import AuthService
from fastapi import HTTPException
from tests.conftest import create_test_user


def make_request(email="test@example.com", password="SecurePass123!"):
    return CreateUserRequest(
        email=email,
        name="Test User",
        password=password,
        phone="+16502530000"
    )


def test_create_user(session):
    """Test creating a user in the database."""
    created_user = AuthService.create_user(make_request(), session)

    assert created_user.id is not None
    assert created_user.email == "test@example.com"
    assert created_user.name == "Test User"
    assert created_user.password_hash is not None
    assert created_user.role == "customer"

    db_user = session.query(User).filter(User.email == "test@example.com").first()
    assert db_user is not None
    assert db_user.id == created_user.id


def test_create_user_normalizes_email(session):
    created_user = AuthService.create_user(make_request(email="Mixed.Case@Example.COM"), session)

    assert created_user.email == "mixed.case@example.com"


def test_create_user_duplicate_email(session):
    """Test that duplicate email registration fails."""
    AuthService.create_user(make_request(email="duplicate@example.com"), session)

    with pytest.raises(HTTPException) as exc_info:
        AuthService.create_user(make_request(email="duplicate@example.com"), session)

    assert exc_info.value.status_code == 400
    assert "already registered" in exc_info.value.detail.lower()


def test_create_user_links_guest_orders(session):
    session.add(Order(email_snapshot="test@example.com", total=Decimal("5.00"),
                      currency="USD", payment_intent_id="pi_guest"))
    session.commit()

    created_user = AuthService.create_user(make_request(), session)

    order = session.query(Order).filter(Order.payment_intent_id == "pi_guest").one()
    assert order.user_id == created_user.id


def test_authenticate_user_success(session):
    created_user = AuthService.create_user(make_request(), session)

    authenticated_user = AuthService.authenticate_user("TEST@example.com", "SecurePass123!", session)
    assert authenticated_user.id == created_user.id


def test_authenticate_passwordless_user(session):
    """Accounts provisioned at checkout cannot log in until a password is set."""
    create_test_user(session, email="nopass@example.com", password=None)

    with pytest.raises(HTTPException) as exc_info:
        AuthService.authenticate_user("nopass@example.com", "SecurePass123!", session)

    assert exc_info.value.status_code == 401
    assert "password not set" in exc_info.value.detail.lower()


def test_get_active_user_by_id(session):
    user = create_test_user(session)

    assert AuthService.get_active_user_by_id(session, user.id).id == user.id

    user.is_active = False
    session.commit()

    assert AuthService.get_active_user_by_id(session, user.id) is None
