from pydantic import BaseModel, Field, field_validator
from schemas.auth_schemas import normalize_phone


class UpdateProfileRequest(BaseModel):
    """
    Partial profile update. Omitted fields are left alone; an empty or null
    phone clears it. The name can be changed but not cleared.
    """
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, value):
        if value is None:
            raise ValueError('Name cannot be empty')
        return value.strip() if isinstance(value, str) else value

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)
