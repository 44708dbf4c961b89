from fastapi import APIRouter, HTTPException, Request, Query
from starlette import status
from utils.deps import db_dependency, admin_dependency
from schemas.order_schemas import OrderResponse, OrderStatusUpdate, PostPurchaseStatus
from services.order_service import OrderService
from services.auth_service import AuthService
from services.user_service import UserService
from middleware.rate_limiter import limiter, ACCOUNT_READ_LIMIT
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)


@router.get("/post-purchase-status", response_model=PostPurchaseStatus)
@limiter.limit(ACCOUNT_READ_LIMIT)
async def post_purchase_status(request: Request, db: db_dependency,
    order_id: str | None = Query(default=None), payment_intent_id: str | None = Query(default=None)):
    """
    Account state shown on the order confirmation page
    ("secure your account" vs "go to account").
    """
    if not order_id and not payment_intent_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
        detail="order_id or payment_intent_id required")

    if order_id:
        order = OrderService.get_order(order_id, db)
    else:
        order = OrderService.get_by_payment_intent(payment_intent_id, db)

    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    masked = mask_email(order.email_snapshot)
    user = AuthService.get_active_user_by_id(db, order.user_id) if order.user_id else None

    if not user:
        return {"has_account": False, "needs_password": False, "masked_email": masked}

    return {
        "has_account": True,
        "needs_password": not UserService.has_password(user.id, db),
        "masked_email": masked
    }


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(request: Request, order_id: str, body: OrderStatusUpdate,
    admin: admin_dependency, db: db_dependency):
    order = OrderService.get_order(order_id, db)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    order = OrderService.advance_status(order, body.status, db)

    logger.info(
        "Order status changed by admin",
        extra={"order_id": order.id, "status": order.status, "admin_id": admin.get("user_id")}
    )
    return order
