from datetime import datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, ConfigDict


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email_snapshot: str
    total: Decimal
    currency: str
    status: str
    payment_provider: str
    payment_intent_id: str
    created_at: datetime | None = None


class OrderStatusUpdate(BaseModel):
    status: Literal["gathering", "shipped", "delivered"]


class PostPurchaseStatus(BaseModel):
    has_account: bool
    needs_password: bool
    masked_email: str
