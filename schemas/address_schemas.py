from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class UpdateAddressRequest(BaseModel):
    """Full replacement of an address; the type is fixed at creation."""
    line1: str = Field(min_length=1, max_length=255)
    line2: str | None = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=120)
    region: str | None = Field(default=None, max_length=120)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = Field(min_length=1, max_length=64)

    @field_validator('line1', 'city', 'postal_code', 'country', mode='before')
    @classmethod
    def strip_required(cls, value):
        return _strip(value)

    @field_validator('line2', 'region', mode='before')
    @classmethod
    def strip_optional(cls, value):
        return _blank_to_none(value)


class CreateAddressRequest(UpdateAddressRequest):
    type: Literal["shipping", "billing"]


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    line1: str
    line2: str | None = None
    city: str
    region: str | None = None
    postal_code: str
    country: str
    created_at: datetime | None = None
