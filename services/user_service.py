from dataclasses import dataclass
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.users import User
from services.password_token_service import PasswordTokenService, TokenVerification, INVALID
from utils.hashing import get_password_hash
from utils.logger import get_logger, mask_email

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class ProvisionResult:
    user: User
    is_new: bool
    needs_password: bool


class UserService:

    @staticmethod
    def get_by_email(email: str, db: Session) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).one_or_none()

    @staticmethod
    def find_or_create(email: str, name: str | None, phone: str | None, db: Session) -> ProvisionResult:
        """
        Resolves a checkout email to an account, creating a passwordless one if needed.

        Flow:
        1. Look up by normalized email
        2. Existing account: refresh name/phone from checkout details
        3. Otherwise insert with password_hash NULL
        4. Unique-email violation on insert means a concurrent checkout won;
           roll back and return that account instead
        """
        normalized = normalize_email(email)
        name = (name or "").strip()

        user = UserService.get_by_email(normalized, db)
        if user:
            changed = False
            if name and user.name != name:
                user.name = name
                changed = True
            if phone and user.phone != phone:
                user.phone = phone
                changed = True
            if changed:
                db.commit()
                db.refresh(user)

            return ProvisionResult(user=user, is_new=False, needs_password=user.password_hash is None)

        model = User(
            email=normalized,
            name=name,
            phone=phone,
            password_hash=None
        )

        try:
            db.add(model)
            db.commit()
        except IntegrityError:
            db.rollback()
            user = UserService.get_by_email(normalized, db)
            if user is None:
                raise
            logger.info(
                "Account created concurrently, using existing row",
                extra={"user_id": user.id, "email": mask_email(normalized)}
            )
            return ProvisionResult(user=user, is_new=False, needs_password=user.password_hash is None)

        db.refresh(model)

        logger.info(
            "Account auto-provisioned",
            extra={"user_id": model.id, "email": mask_email(normalized)}
        )
        return ProvisionResult(user=model, is_new=True, needs_password=True)

    @staticmethod
    def has_password(user_id: str, db: Session) -> bool:
        password_hash = db.query(User.password_hash).filter(User.id == user_id).scalar()
        return password_hash is not None

    @staticmethod
    def complete_password_setup(raw_token: str, password: str, db: Session) -> tuple[TokenVerification, User | None]:
        """
        Redeems a setup token and stores the new password in the same transaction.

        If anything fails before the commit the token stays unused.
        """
        result = PasswordTokenService.verify_and_consume(raw_token, db, commit=False)
        if not result.valid:
            db.rollback()
            return result, None

        user = db.query(User).filter(User.id == result.user_id).one_or_none()
        if user is None or not user.is_active:
            db.rollback()
            logger.warning(
                "Password setup token belongs to a missing or inactive account",
                extra={"user_id": result.user_id}
            )
            return TokenVerification(valid=False, reason=INVALID), None

        user.password_hash = get_password_hash(password)
        db.commit()
        db.refresh(user)

        logger.info("Password set via setup link", extra={"user_id": user.id})
        return result, user

    @staticmethod
    def update_profile(user: User, changes: dict, db: Session) -> User:
        """Applies the provided name/phone changes; keys absent from changes are untouched."""
        updated = []
        for field_name in ("name", "phone"):
            if field_name in changes and getattr(user, field_name) != changes[field_name]:
                setattr(user, field_name, changes[field_name])
                updated.append(field_name)

        if updated:
            db.commit()
            db.refresh(user)
            logger.info("Profile updated", extra={"user_id": user.id, "fields": updated})

        return user
