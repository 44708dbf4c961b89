from utils.hashing import verify_password, get_password_hash
from models.users import User
from schemas.auth_schemas import CreateUserRequest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from services.user_service import UserService, normalize_email
from services.order_service import OrderService
from fastapi import HTTPException
from starlette import status
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)

class AuthService:

    @staticmethod
    def create_user(request: CreateUserRequest, db: Session):
        """
        Registers an account with a password.

        Flow:
        1. Reject emails that already have an account (including ones
           auto-provisioned at checkout; those use the setup link instead)
        2. Create the user with a bcrypt hash
        3. Link any guest orders placed under the same email
        """
        email = normalize_email(request.email)

        if UserService.get_by_email(email, db):
            logger.warning(
                "Registration attempt with existing email",
                extra={"email": mask_email(email)}
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        model = User(
            email=email,
            name=request.name.strip(),
            phone=request.phone,
            password_hash=get_password_hash(request.password)
        )

        try:
            db.add(model)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        db.refresh(model)
        OrderService.link_guest_orders(model.id, model.email, db)
        db.refresh(model)
        return model


    @staticmethod
    def authenticate_user(email: str, password: str, db: Session):
        user = UserService.get_by_email(email, db)

        if not user:
            logger.warning(
            "Login failed - user not found",
            extra={"email": mask_email(email)}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password")

        if not user.is_active:
            logger.warning(
            "Login failed - inactive account",
            extra={"user_id": user.id}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password")

        if user.password_hash is None:
            logger.info(
                "Login attempt on account without password",
                extra={"user_id": user.id}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Password not set. Please set your password first.")

        if not verify_password(password, user.password_hash):
            logger.warning(
                "Login failed - invalid password",
                extra={"user_id": user.id}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password")

        logger.debug(
            "User authenticated successfully",
            extra={"user_id": user.id}
        )

        return user

    @staticmethod
    def get_active_user_by_id(db: Session, user_id: str) -> User | None:
        model = db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()

        return model
