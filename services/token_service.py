import secrets
from datetime import datetime, timezone, timedelta
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from jose import jwt, JWTError
from models.refresh_tokens import RefreshToken
from models.users import User
from core.config import settings
from utils.hashing import hash_token
from utils.verification import as_utc
from utils.logger import get_logger

logger = get_logger(__name__)


class TokenService:
    """
    Session tokens: short-lived JWT access tokens plus DB-backed refresh tokens.

    A session is established at login and when a customer finishes the
    password-setup flow.
    """

    @staticmethod
    def create_access_token(email: str, user_id: str, role: str, expires_delta: timedelta = None):
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload = {
            "sub": email,
            "id": user_id,
            "role": role,
            "type": "access",
            "exp": datetime.now(timezone.utc) + expires_delta
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_refresh_token(email: str, user_id: str, role: str):
        """
        Returns:
            Tuple of (refresh_token_string, jti, expires_at)
        """
        jti = secrets.token_urlsafe(32)
        expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

        payload = {
            "sub": email,
            "id": user_id,
            "role": role,
            "jti": jti,
            "type": "refresh",
            "exp": expire
        }

        refresh_token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        return refresh_token, jti, expire

    @staticmethod
    def create_tokens(email: str, user_id: str, role: str, db: Session):
        """
        Creates an access + refresh token pair and stores the refresh JTI hash.
        """
        access_token = TokenService.create_access_token(email, user_id, role)
        refresh_token, jti, expires_at = TokenService.create_refresh_token(email, user_id, role)

        db.add(RefreshToken(
            user_id=user_id,
            token_hash=hash_token(jti),
            expires_at=expires_at
        ))
        db.commit()

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer"
        }

    @staticmethod
    def create_session(user: User, db: Session):
        return TokenService.create_tokens(user.email, user.id, user.role, db)

    @staticmethod
    def refresh_access_token(refresh_token: str, db: Session):
        """
        Validates a refresh token and rotates it (old one revoked, new pair issued).

        Raises:
            HTTPException: If token is invalid, expired, or revoked
        """
        try:
            payload = jwt.decode(
                refresh_token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )

        if payload.get("type") != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type"
            )

        user_id = payload.get("id")
        jti = payload.get("jti")
        if not all([payload.get("sub"), user_id, jti]):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token payload"
            )

        db_token = db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(jti),
            RefreshToken.revoked == False
        ).first()

        if not db_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token not found or revoked"
            )

        if as_utc(db_token.expires_at) < datetime.now(timezone.utc):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )

        user = db.query(User).filter(User.id == user_id).one_or_none()
        if user is None or not user.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

        db_token.revoked = True
        db.commit()

        return TokenService.create_session(user, db)

    @staticmethod
    def revoke_token(refresh_token: str, db: Session):
        try:
            payload = jwt.decode(
                refresh_token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except JWTError:
            # Already unusable, nothing to revoke
            logger.debug("Logout with undecodable refresh token")
            return

        jti = payload.get("jti")
        if not jti:
            return

        db_token = db.query(RefreshToken).filter(
            RefreshToken.token_hash == hash_token(jti)
        ).first()

        if db_token:
            db_token.revoked = True
            db.commit()

    @staticmethod
    def revoke_all_user_tokens(user_id: str, db: Session):
        """Logs the user out everywhere (used after a password is (re)set)."""
        db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked == False
        ).update({"revoked": True})
        db.commit()
