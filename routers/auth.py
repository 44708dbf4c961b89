from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from utils.deps import db_dependency
from starlette import status
from schemas.auth_schemas import Token, CreateUserRequest, RevokeTokenRequest, RefreshTokenRequest
from services.auth_service import AuthService
from services.token_service import TokenService
from services.order_service import OrderService
from middleware.rate_limiter import limiter, LOGIN_LIMIT, REGISTER_LIMIT, SESSION_LIMIT
from utils.logger import get_logger, mask_email

# Setup logger
logger = get_logger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)



@router.post("/token", response_model=Token)
@limiter.limit(LOGIN_LIMIT)
async def login_for_access_token(request: Request, db: db_dependency, form_data: OAuth2PasswordRequestForm = Depends()):
    user = AuthService.authenticate_user(form_data.username, form_data.password, db)

    # Orders placed as a guest under this email since the last login
    OrderService.link_guest_orders(user.id, user.email, db)

    token = TokenService.create_session(user, db)

    logger.info(
        "User logged in successfully",
        extra={"user_id": user.id, "email": mask_email(user.email)}
    )

    return token


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def create_user(request: Request, body: CreateUserRequest, db: db_dependency):
    user = AuthService.create_user(body, db)

    logger.info(
        "User registered successfully",
        extra={"user_id": user.id, "email": mask_email(user.email)}
    )

    return {"message": "Registration successful.", "user_id": user.id}



@router.post("/refresh", response_model=Token)
@limiter.limit(SESSION_LIMIT)
async def refresh_token(request: Request, body: RefreshTokenRequest, db: db_dependency):
    """
    Get new access token using refresh token.
    """
    token = TokenService.refresh_access_token(body.refresh_token, db)

    logger.info("Access token refreshed")

    return token


@router.post("/logout", status_code=status.HTTP_200_OK)
@limiter.limit(SESSION_LIMIT)
async def logout(request: Request, body: RevokeTokenRequest, db: db_dependency):
    """
    Revoke refresh token (logout).
    """
    TokenService.revoke_token(body.refresh_token, db)

    logger.info("User logged out")

    return {"message": "Logged out successfully"}
