from core.database import Base
from sqlalchemy import Column, DateTime, String, ForeignKey
from sqlalchemy.orm import relationship
from models.mixins import CreatedAtMixin, generate_id

class PasswordSetupToken(Base, CreatedAtMixin):
    """
    Single-use, expiring credential emailed to auto-provisioned customers.

    Only the SHA-256 hash of the raw token is stored. A token is valid while
    used_at is NULL and expires_at is in the future. Rows are never deleted;
    expired and used tokens stay as an audit trail.
    """
    __tablename__ = "password_setup_tokens"

    #pk
    id = Column(String(36), primary_key=True, default=generate_id)

    #fk
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="password_setup_tokens")

    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
