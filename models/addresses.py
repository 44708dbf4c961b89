from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, String, ForeignKey, Enum)
from .mixins import CreatedAtMixin, generate_id

ADDRESS_TYPES = ("shipping", "billing")


class Address(Base, CreatedAtMixin):
    __tablename__ = "addresses"

    #pk
    id = Column(String(36), primary_key=True, default=generate_id)

    #fk
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="addresses")

    type = Column(Enum(*ADDRESS_TYPES, name="address_type"), nullable=False)
    line1 = Column(String(255), nullable=False)
    line2 = Column(String(255), nullable=True)
    city = Column(String(120), nullable=False)
    region = Column(String(120), nullable=True)
    postal_code = Column(String(32), nullable=False)
    country = Column(String(64), nullable=False)
