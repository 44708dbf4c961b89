from dataclasses import dataclass
from decimal import Decimal
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette import status
from models.orders import Order, ORDER_STATUSES
from services.user_service import normalize_email
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)


@dataclass
class AlreadyProcessed:
    """Returned by record_order when the payment intent already has an order."""
    order: Order


class OrderService:
    """
    Order creation (idempotent per payment intent) and order-to-account linking.
    """

    @staticmethod
    def get_order(order_id: str, db: Session) -> Order | None:
        return db.query(Order).filter(Order.id == order_id).one_or_none()

    @staticmethod
    def get_by_payment_intent(payment_intent_id: str, db: Session) -> Order | None:
        return db.query(Order).filter(Order.payment_intent_id == payment_intent_id).one_or_none()

    @staticmethod
    def list_user_orders(user_id: str, db: Session) -> list[Order]:
        return db.query(Order).filter(Order.user_id == user_id).order_by(Order.created_at.desc()).all()

    @staticmethod
    def record_order(payment_intent_id: str, email_snapshot: str, total: Decimal, currency: str,
                     db: Session, user_id: str | None = None, payment_provider: str = "stripe"):
        """
        Creates the order for a payment intent, at most once.

        Returns the new Order, or AlreadyProcessed wrapping the existing one.
        The unique constraint on payment_intent_id settles concurrent
        deliveries: the loser rolls back and re-reads.
        """
        existing = OrderService.get_by_payment_intent(payment_intent_id, db)
        if existing:
            logger.info(
                "Order already recorded for payment intent",
                extra={"order_id": existing.id, "payment_intent_id": payment_intent_id}
            )
            return AlreadyProcessed(order=existing)

        model = Order(
            user_id=user_id,
            email_snapshot=email_snapshot.strip(),
            total=total,
            currency=currency.upper(),
            status="gathering",
            payment_provider=payment_provider,
            payment_intent_id=payment_intent_id
        )

        try:
            db.add(model)
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = OrderService.get_by_payment_intent(payment_intent_id, db)
            if existing is None:
                raise
            logger.info(
                "Concurrent delivery already recorded order",
                extra={"order_id": existing.id, "payment_intent_id": payment_intent_id}
            )
            return AlreadyProcessed(order=existing)

        db.refresh(model)

        logger.info(
            "Order recorded",
            extra={
                "order_id": model.id,
                "payment_intent_id": payment_intent_id,
                "user_id": user_id,
                "email": mask_email(model.email_snapshot)
            }
        )
        return model

    @staticmethod
    def link_guest_orders(user_id: str, email: str, db: Session) -> int:
        """
        Attaches every unlinked order placed under this email to the user.

        Matching is case-insensitive. The returned count is informational.
        """
        linked = db.query(Order).filter(
            Order.user_id.is_(None),
            func.lower(Order.email_snapshot) == normalize_email(email)
        ).update({"user_id": user_id}, synchronize_session=False)
        db.commit()

        if linked:
            logger.info(
                "Guest orders linked to account",
                extra={"user_id": user_id, "count": linked}
            )
        return linked

    @staticmethod
    def advance_status(order: Order, new_status: str, db: Session) -> Order:
        """Moves an order forward through gathering -> shipped -> delivered."""
        if new_status not in ORDER_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown order status '{new_status}'")

        if ORDER_STATUSES.index(new_status) <= ORDER_STATUSES.index(order.status):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot move order from '{order.status}' to '{new_status}'")

        previous = order.status
        order.status = new_status
        db.commit()
        db.refresh(order)

        logger.info(
            "Order status updated",
            extra={"order_id": order.id, "from_status": previous, "to_status": new_status}
        )
        return order
