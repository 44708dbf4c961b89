from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status
from models.addresses import Address
from schemas.address_schemas import CreateAddressRequest, UpdateAddressRequest
from utils.logger import get_logger

logger = get_logger(__name__)


class AddressService:
    """Saved shipping and billing addresses, always scoped to their owner."""

    @staticmethod
    def list_addresses(user_id: str, db: Session) -> list[Address]:
        return db.query(Address).filter(Address.user_id == user_id).order_by(Address.created_at.desc()).all()

    @staticmethod
    def get_address(address_id: str, user_id: str, db: Session) -> Address:
        """Another user's address is reported the same way as a missing one."""
        model = db.query(Address).filter(
            Address.id == address_id,
            Address.user_id == user_id
        ).one_or_none()

        if not model:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
            detail="Address not found")
        return model

    @staticmethod
    def create_address(user_id: str, body: CreateAddressRequest, db: Session) -> Address:
        model = Address(user_id=user_id, **body.model_dump())
        db.add(model)
        db.commit()
        db.refresh(model)

        logger.info("Address saved", extra={"user_id": user_id, "address_id": model.id, "type": model.type})
        return model

    @staticmethod
    def update_address(address_id: str, user_id: str, body: UpdateAddressRequest, db: Session) -> Address:
        model = AddressService.get_address(address_id, user_id, db)

        for field_name, value in body.model_dump().items():
            setattr(model, field_name, value)

        db.commit()
        db.refresh(model)

        logger.info("Address updated", extra={"user_id": user_id, "address_id": model.id})
        return model

    @staticmethod
    def delete_address(address_id: str, user_id: str, db: Session) -> None:
        model = AddressService.get_address(address_id, user_id, db)
        db.delete(model)
        db.commit()

        logger.info("Address deleted", extra={"user_id": user_id, "address_id": address_id})
