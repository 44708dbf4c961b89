from dataclasses import dataclass
from datetime import datetime, timezone
from sqlalchemy import update
from sqlalchemy.orm import Session
from models.password_setup_tokens import PasswordSetupToken
from core.config import settings
from utils.hashing import hash_token
from utils.verification import generate_raw_token, get_token_expiry_time, as_utc
from utils.logger import get_logger

logger = get_logger(__name__)

# Failure reasons, logged internally; callers collapse them for end users
INVALID = "invalid"
EXPIRED = "expired"
ALREADY_USED = "already_used"


@dataclass
class TokenVerification:
    valid: bool
    user_id: str | None = None
    reason: str | None = None


class PasswordTokenService:
    """
    Issues and redeems single-use password-setup tokens.

    The raw token only ever leaves the process in the emailed link; the
    database holds its SHA-256 hash, so read access to the table is not
    enough to set anyone's password.
    """

    @staticmethod
    def issue_token(user_id: str, db: Session, commit: bool = True) -> str:
        """
        Creates a new token row for the user and returns the raw token.

        Outstanding tokens for the same user are left untouched; each one
        stays independently redeemable until it expires.
        """
        raw_token = generate_raw_token()

        db_token = PasswordSetupToken(
            user_id=user_id,
            token_hash=hash_token(raw_token),
            expires_at=get_token_expiry_time(hours=settings.PASSWORD_SETUP_TOKEN_EXPIRE_HOURS),
            used_at=None
        )
        db.add(db_token)
        if commit:
            db.commit()
        else:
            db.flush()

        logger.info(
            "Password setup token issued",
            extra={"user_id": user_id, "token_id": db_token.id}
        )
        return raw_token

    @staticmethod
    def verify_and_consume(raw_token: str, db: Session, commit: bool = True) -> TokenVerification:
        """
        Redeems a token exactly once.

        The validity check and the used_at write are one conditional UPDATE,
        so two concurrent submissions of the same token cannot both succeed.
        Pass commit=False to keep the consumption inside the caller's
        transaction (rolled back together with whatever the caller does next).
        """
        if not raw_token:
            return TokenVerification(valid=False, reason=INVALID)

        token_hash = hash_token(raw_token)
        now = datetime.now(timezone.utc)

        user_id = db.execute(
            update(PasswordSetupToken)
            .where(
                PasswordSetupToken.token_hash == token_hash,
                PasswordSetupToken.used_at.is_(None),
                PasswordSetupToken.expires_at > now
            )
            .values(used_at=now)
            .returning(PasswordSetupToken.user_id)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

        if user_id is None:
            reason = PasswordTokenService._classify_failure(token_hash, now, db)
            logger.warning(
                "Password setup token rejected",
                extra={"reason": reason}
            )
            return TokenVerification(valid=False, reason=reason)

        if commit:
            db.commit()

        logger.info("Password setup token consumed", extra={"user_id": user_id})
        return TokenVerification(valid=True, user_id=user_id)

    @staticmethod
    def inspect(raw_token: str, db: Session) -> TokenVerification:
        """Read-only validity check (used to render the set-password page)."""
        if not raw_token:
            return TokenVerification(valid=False, reason=INVALID)

        now = datetime.now(timezone.utc)
        db_token = db.query(PasswordSetupToken).filter(
            PasswordSetupToken.token_hash == hash_token(raw_token)
        ).first()

        reason = PasswordTokenService._reason_for(db_token, now)
        if reason:
            return TokenVerification(valid=False, reason=reason)

        return TokenVerification(valid=True, user_id=db_token.user_id)

    @staticmethod
    def _classify_failure(token_hash: str, now: datetime, db: Session) -> str:
        db_token = db.query(PasswordSetupToken).filter(
            PasswordSetupToken.token_hash == token_hash
        ).first()
        # A row that looks valid here lost a race to a concurrent redemption
        return PasswordTokenService._reason_for(db_token, now) or ALREADY_USED

    @staticmethod
    def _reason_for(db_token: PasswordSetupToken | None, now: datetime) -> str | None:
        if db_token is None:
            return INVALID
        # Expiry wins over used_at
        if now >= as_utc(db_token.expires_at):
            return EXPIRED
        if db_token.used_at is not None:
            return ALREADY_USED
        return None
