from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, String, ForeignKey, Numeric, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin, generate_id

# Forward-only lifecycle
ORDER_STATUSES = ("gathering", "shipped", "delivered")


class Order(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "orders"

    #pk
    id = Column(String(36), primary_key=True, default=generate_id)

    #fk (NULL until the order is linked to an account)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    #relationships
    user = relationship("User", back_populates="orders")

    email_snapshot = Column(String(320), nullable=False, index=True)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(Enum(*ORDER_STATUSES, name="order_status"), default="gathering", nullable=False)
    payment_provider = Column(String(32), nullable=False, default="stripe")
    # Idempotency key for webhook deliveries
    payment_intent_id = Column(String(255), unique=True, nullable=False, index=True)
