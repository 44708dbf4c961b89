import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
import stripe
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette import status
from core.config import settings
from models.orders import Order
from models.users import User
from services.order_service import OrderService, AlreadyProcessed
from services.user_service import UserService
from services.password_token_service import PasswordTokenService
from services import email_service
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)

HANDLED_EVENTS = ("payment_intent.succeeded", "checkout.session.completed")

# Stripe amounts are in minor units except for these currencies
ZERO_DECIMAL_CURRENCIES = {"BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
                           "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}


class IntakeState(str, Enum):
    RECEIVED = "received"
    ALREADY_PROCESSED = "already_processed"
    ORDER_CREATED = "order_created"
    USER_RESOLVED = "user_resolved"
    TOKEN_ISSUED = "token_issued"
    NO_TOKEN_NEEDED = "no_token_needed"
    DONE = "done"


@dataclass
class PaymentDetails:
    payment_intent_id: str
    email: str
    name: str
    phone: str | None
    amount: Decimal
    currency: str


@dataclass
class IntakeOutcome:
    order: Order
    user: User | None = None
    token_issued: bool = False
    email_sent: bool = False
    warnings: list[str] = field(default_factory=list)
    history: list[IntakeState] = field(default_factory=lambda: [IntakeState.RECEIVED])

    @property
    def state(self) -> IntakeState:
        return self.history[-1]

    def advance(self, new_state: IntakeState):
        self.history.append(new_state)


def event_object(event: dict) -> dict:
    """The event's data.object, or {} when the payload does not have that shape."""
    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def _mapping(value) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _to_major_units(amount: int | None, currency: str) -> Decimal:
    if amount is not None and (not isinstance(amount, int) or isinstance(amount, bool)):
        raise ValueError(f"amount must be an integer, got {type(amount).__name__}")
    if currency in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount or 0)
    return Decimal(amount or 0) / 100


class WebhookService:
    """
    Turns a payment-completed event into an order, an account and, for
    accounts without a password, a password-setup email.
    """

    @staticmethod
    def verify_event(payload: bytes, signature: str | None) -> dict:
        """
        Checks the provider signature and parses the event body.

        Without a configured webhook secret, unsigned events are accepted
        outside production only.
        """
        body = payload.decode("utf-8", errors="replace")
        secret = settings.STRIPE_WEBHOOK_SECRET

        if secret:
            if not signature:
                logger.warning("Webhook rejected - missing signature header")
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing payment signature")
            try:
                stripe.WebhookSignature.verify_header(
                    body, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
                )
            except stripe.SignatureVerificationError as e:
                logger.warning(
                    "Webhook rejected - signature verification failed",
                    extra={"error": str(e)}
                )
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid payment signature")
        elif settings.ENV == "production":
            logger.error("STRIPE_WEBHOOK_SECRET is not configured")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook not configured")
        else:
            logger.warning("Accepting unsigned webhook event", extra={"env": settings.ENV})

        try:
            event = json.loads(body)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload")

        if not isinstance(event, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload")

        return event

    @staticmethod
    def extract_payment_details(event: dict) -> PaymentDetails | None:
        """
        Reads customer and payment fields from a handled event type.

        Returns None for other event types and for payloads whose object or
        amount does not have the provider's shape; the router answers 400.
        """
        event_type = event.get("type")
        if event_type not in HANDLED_EVENTS:
            return None

        obj = event_object(event)
        if not obj:
            return None

        currency = _text(obj.get("currency")).upper() or "USD"

        try:
            if event_type == "payment_intent.succeeded":
                metadata = _mapping(obj.get("metadata"))
                shipping = _mapping(obj.get("shipping"))
                customer = _mapping(obj.get("customer"))

                return PaymentDetails(
                    payment_intent_id=_text(obj.get("id")),
                    email=_text(obj.get("receipt_email")) or _text(customer.get("email")) or _text(metadata.get("email")),
                    name=_text(shipping.get("name")) or _text(metadata.get("name")),
                    phone=_text(shipping.get("phone")) or _text(metadata.get("phone")) or None,
                    amount=_to_major_units(obj.get("amount"), currency),
                    currency=currency
                )

            details = _mapping(obj.get("customer_details"))
            payment_intent = obj.get("payment_intent")
            if isinstance(payment_intent, dict):
                payment_intent = payment_intent.get("id")

            return PaymentDetails(
                payment_intent_id=_text(payment_intent),
                email=_text(details.get("email")) or _text(obj.get("customer_email")),
                name=_text(details.get("name")),
                phone=_text(details.get("phone")) or None,
                amount=_to_major_units(obj.get("amount_total"), currency),
                currency=currency
            )
        except ValueError as e:
            logger.warning("Malformed payment event", extra={"event_type": event_type, "error": str(e)})
            return None

    @staticmethod
    def process_payment(details: PaymentDetails, db: Session) -> IntakeOutcome:
        """
        Runs the post-purchase lifecycle for one payment.

        Flow:
        1. Record the order (idempotency gate); a replay stops here
        2. Find or create the account and link the order to it
        3. Issue a password-setup token if the account has no password
        4. Email the order confirmation and the setup link

        The order commit is never undone. Failures in steps 2-4 are logged
        and returned as warnings; the customer can request a new link later.
        """
        existing_user = UserService.get_by_email(details.email, db)

        recorded = OrderService.record_order(
            payment_intent_id=details.payment_intent_id,
            email_snapshot=details.email,
            total=details.amount,
            currency=details.currency,
            db=db,
            user_id=existing_user.id if existing_user else None
        )

        if isinstance(recorded, AlreadyProcessed):
            outcome = IntakeOutcome(order=recorded.order)
            outcome.advance(IntakeState.ALREADY_PROCESSED)
            logger.info(
                "Payment already processed",
                extra={"payment_intent_id": details.payment_intent_id, "order_id": recorded.order.id}
            )
            return outcome

        outcome = IntakeOutcome(order=recorded)
        outcome.advance(IntakeState.ORDER_CREATED)

        raw_token = None
        try:
            provision = UserService.find_or_create(details.email, details.name, details.phone, db)
            if recorded.user_id is None:
                OrderService.link_guest_orders(provision.user.id, details.email, db)
                db.refresh(recorded)

            outcome.user = provision.user
            outcome.advance(IntakeState.USER_RESOLVED)

            if provision.needs_password:
                raw_token = PasswordTokenService.issue_token(provision.user.id, db)
                outcome.token_issued = True
                outcome.advance(IntakeState.TOKEN_ISSUED)
            else:
                outcome.advance(IntakeState.NO_TOKEN_NEEDED)

        except SQLAlchemyError:
            db.rollback()
            logger.error(
                "Account provisioning failed after order was recorded",
                extra={"order_id": recorded.id, "email": mask_email(details.email)},
                exc_info=True
            )
            outcome.warnings.append("account_setup_delayed")

        confirmation_sent = email_service.send_order_confirmation_email(
            recorded.email_snapshot, recorded.id, recorded.total, recorded.currency
        )
        setup_sent = True
        if raw_token:
            setup_sent = email_service.send_password_setup_email(
                recorded.email_snapshot, details.name, raw_token
            )

        outcome.email_sent = confirmation_sent and setup_sent
        if not outcome.email_sent:
            outcome.warnings.append("email_delayed")

        outcome.advance(IntakeState.DONE)

        logger.info(
            "Payment processed",
            extra={
                "order_id": recorded.id,
                "user_id": outcome.user.id if outcome.user else None,
                "token_issued": outcome.token_issued,
                "warnings": outcome.warnings
            }
        )
        return outcome
