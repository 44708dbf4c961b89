from fastapi import APIRouter, HTTPException, Request, Query
from starlette.concurrency import run_in_threadpool
from starlette import status
from utils.deps import db_dependency
from schemas.password_setup_schemas import TokenStatusResponse, SetPasswordRequest, ResendPasswordSetupRequest
from services.auth_service import AuthService
from services.user_service import UserService
from services.order_service import OrderService
from services.token_service import TokenService
from services.password_token_service import PasswordTokenService, INVALID, EXPIRED, ALREADY_USED
from services.email_service import send_password_setup_email
from middleware.rate_limiter import limiter, SETUP_LINK_CHECK_LIMIT, SET_PASSWORD_LIMIT, RESEND_LIMIT
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)


router = APIRouter(
    prefix="/password-setup",
    tags=["password-setup"]
)

# End users only ever see this message, whatever the reason
INVALID_LINK_DETAIL = "Invalid or expired link"

FAILURE_STATUS_CODES = {
    INVALID: status.HTTP_400_BAD_REQUEST,
    EXPIRED: status.HTTP_410_GONE,
    ALREADY_USED: status.HTTP_409_CONFLICT,
}

RESEND_MESSAGE = "If your account still needs a password, a new link has been sent."


def _reject(reason: str):
    raise HTTPException(
        status_code=FAILURE_STATUS_CODES.get(reason, status.HTTP_400_BAD_REQUEST),
        detail=INVALID_LINK_DETAIL
    )


@router.get("", response_model=TokenStatusResponse)
@limiter.limit(SETUP_LINK_CHECK_LIMIT)
async def check_password_setup_link(request: Request, db: db_dependency, token: str = Query(...)):
    """
    Validates a setup link without consuming it and shows whose account it is for.
    """
    result = PasswordTokenService.inspect(token, db)
    if not result.valid:
        logger.info("Password setup link check failed", extra={"reason": result.reason})
        _reject(result.reason)

    user = AuthService.get_active_user_by_id(db, result.user_id)
    if not user:
        _reject(INVALID)

    return {"valid": True, "masked_email": mask_email(user.email)}


@router.post("", status_code=status.HTTP_200_OK)
@limiter.limit(SET_PASSWORD_LIMIT)
async def set_password(request: Request, body: SetPasswordRequest, db: db_dependency):
    """
    Consumes a setup link, stores the password and signs the customer in.
    """
    result, user = UserService.complete_password_setup(body.token, body.password, db)

    if not result.valid:
        _reject(result.reason)

    # Sessions opened before the password changed are no longer trusted
    TokenService.revoke_all_user_tokens(user.id, db)
    OrderService.link_guest_orders(user.id, user.email, db)

    session = TokenService.create_session(user, db)

    logger.info(
        "Password setup completed",
        extra={"user_id": user.id, "email": mask_email(user.email)}
    )

    return {"message": "Password set successfully", **session}


@router.post("/resend", status_code=status.HTTP_200_OK)
@limiter.limit(RESEND_LIMIT)
async def resend_password_setup(request: Request, body: ResendPasswordSetupRequest, db: db_dependency):
    """
    Issues a fresh setup link for an account that still has no password.

    Older links are not revoked; they expire on their own. When the order is
    still a guest order (its account could not be created at checkout) the
    account is provisioned and linked first.
    """
    if body.order_id:
        order = OrderService.get_order(body.order_id, db)
        if not order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found")

        if order.user_id is None:
            provision = UserService.find_or_create(order.email_snapshot, None, None, db)
            OrderService.link_guest_orders(provision.user.id, order.email_snapshot, db)
            user = provision.user
        else:
            user = AuthService.get_active_user_by_id(db, order.user_id)

        if user and user.password_hash is not None:
            return {"message": "Account already has a password", "already_secured": True}
    else:
        user = UserService.get_by_email(body.email, db)

    if not user or not user.is_active or user.password_hash is not None:
        logger.info(
            "Password setup resend skipped",
            extra={"email": mask_email(body.email) if body.email else None, "order_id": body.order_id}
        )
        return {"message": RESEND_MESSAGE}

    raw_token = PasswordTokenService.issue_token(user.id, db)
    sent = await run_in_threadpool(send_password_setup_email, user.email, user.name, raw_token)

    logger.info(
        "Password setup link re-issued",
        extra={"user_id": user.id, "email_sent": sent}
    )

    response = {"message": RESEND_MESSAGE}
    if not sent:
        response["warning"] = "Email delivery may be delayed"
    return response
