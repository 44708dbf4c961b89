from core.database import Base
from sqlalchemy import (Column, String, Boolean)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, generate_id

class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(String(36), primary_key=True, default=generate_id)

    #relationships
    orders = relationship("Order", back_populates="user")
    refresh_tokens = relationship("RefreshToken", back_populates="user")
    password_setup_tokens = relationship("PasswordSetupToken", back_populates="user")
    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")

    # Always stored trimmed and lowercased; uniqueness is case-insensitive through that
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    phone = Column(String(32), nullable=True)
    # NULL means the account was auto-provisioned at checkout and has no password yet
    password_hash = Column(String(255), nullable=True)
    role = Column(String, default="customer", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
