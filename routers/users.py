from fastapi import APIRouter, HTTPException, status, Request
from utils.deps import user_dependency, db_dependency
from models.users import User
from schemas.order_schemas import OrderResponse
from schemas.user_schemas import UpdateProfileRequest
from services.auth_service import AuthService
from services.order_service import OrderService
from services.user_service import UserService
from middleware.rate_limiter import limiter, ACCOUNT_READ_LIMIT, ACCOUNT_WRITE_LIMIT
from utils.logger import get_logger

# Setup logger
logger = get_logger(__name__)


router = APIRouter(
    prefix="/users",
    tags=["users"]
)


def _profile(model: User) -> dict:
    return {
        "id": model.id,
        "email": model.email,
        "name": model.name,
        "phone": model.phone,
        "has_password": model.password_hash is not None
    }


@router.get("/me", status_code=status.HTTP_200_OK)
@limiter.limit(ACCOUNT_READ_LIMIT)
async def get_user_info(request: Request, user: user_dependency, db: db_dependency):
    """
    Get current user info (protected endpoint).
    """
    model = AuthService.get_active_user_by_id(db=db, user_id=user.get("user_id"))

    if not model:
        raise HTTPException(status_code=404, detail="User not found")

    return _profile(model)


@router.patch("/me", status_code=status.HTTP_200_OK)
@limiter.limit(ACCOUNT_WRITE_LIMIT)
async def update_user_info(request: Request, body: UpdateProfileRequest, user: user_dependency, db: db_dependency):
    """
    Update name and/or phone. The email is the account's identity and cannot be changed here.
    """
    model = AuthService.get_active_user_by_id(db=db, user_id=user.get("user_id"))

    if not model:
        raise HTTPException(status_code=404, detail="User not found")

    model = UserService.update_profile(model, body.model_dump(exclude_unset=True), db)

    return _profile(model)


@router.get("/me/orders", response_model=list[OrderResponse])
@limiter.limit(ACCOUNT_READ_LIMIT)
async def get_user_orders(request: Request, user: user_dependency, db: db_dependency):
    model = AuthService.get_active_user_by_id(db=db, user_id=user.get("user_id"))

    if not model:
        raise HTTPException(status_code=404, detail="User not found")

    orders = OrderService.list_user_orders(model.id, db)

    logger.debug("Orders listed", extra={"user_id": model.id, "count": len(orders)})

    return orders
