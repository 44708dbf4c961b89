from models.users import User
from models.orders import Order
from decimal import Decimal


def register_payload(**overrides):
    payload = {
        "email": "newuser@example.com",
        "name": "New User",
        "password": "SecurePass123!",
        "phone": "+16502530000"
    }
    payload.update(overrides)
    return payload


async def test_register_success(client, session):
    """Test successful user registration."""
    response = await client.post("/auth/", json=register_payload())

    assert response.status_code == 201
    assert "registration successful" in response.json()["message"].lower()

    user = session.query(User).filter(User.email == "newuser@example.com").first()
    assert user is not None
    assert user.password_hash is not None
    assert user.phone == "+16502530000"


async def test_register_duplicate(client, session):
    """Test duplicate email registration is declined."""
    await client.post("/auth/", json=register_payload(email="duplicateuser@example.com"))
    response = await client.post("/auth/", json=register_payload(email="duplicateuser@example.com"))

    assert response.status_code == 400

    users = session.query(User).filter(User.email == "duplicateuser@example.com").all()
    assert len(users) == 1


async def test_register_email_case_insensitive(client, session):
    """Test that email is case-insensitive."""
    await client.post("/auth/", json=register_payload(email="CaseSensitive@Example.COM"))
    response = await client.post("/auth/", json=register_payload(email="casesensitive@example.com"))

    assert response.status_code == 400


async def test_register_existing_checkout_account(client, passwordless_user):
    """An account provisioned at checkout cannot be claimed by registering."""
    response = await client.post("/auth/", json=register_payload(email=passwordless_user.email))

    assert response.status_code == 400


async def test_register_email_with_whitespace(client, session):
    """Test that leading/trailing whitespace in email is stripped."""
    response = await client.post("/auth/", json=register_payload(email="  whitespace@example.com  "))

    assert response.status_code == 201

    user = session.query(User).filter(User.email == "whitespace@example.com").first()
    assert user is not None


async def test_register_without_phone(client, session):
    response = await client.post("/auth/", json=register_payload(phone=None))

    assert response.status_code == 201
    user = session.query(User).filter(User.email == "newuser@example.com").first()
    assert user.phone is None


async def test_register_invalid_email(client, session):
    response = await client.post("/auth/", json=register_payload(email="@incorrectemail.wrong"))

    assert response.status_code == 422


async def test_register_weak_password(client, session):
    response = await client.post("/auth/", json=register_payload(password="wp"))

    assert response.status_code == 422
    assert session.query(User).count() == 0


async def test_register_invalid_phone(client, session):
    response = await client.post("/auth/", json=register_payload(phone="12345"))

    assert response.status_code == 422


async def test_register_links_guest_orders(client, session):
    session.add(Order(
        email_snapshot="newuser@example.com",
        total=Decimal("10.00"),
        currency="USD",
        payment_intent_id="pi_before_register"
    ))
    session.commit()

    response = await client.post("/auth/", json=register_payload(email="NewUser@example.com"))
    assert response.status_code == 201

    order = session.query(Order).filter(Order.payment_intent_id == "pi_before_register").one()
    assert order.user_id == response.json()["user_id"]
