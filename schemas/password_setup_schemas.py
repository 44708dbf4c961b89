from pydantic import BaseModel, EmailStr, field_validator, model_validator
from schemas.auth_schemas import validate_password_strength


class TokenStatusResponse(BaseModel):
    valid: bool
    masked_email: str


class SetPasswordRequest(BaseModel):
    token: str
    password: str

    @field_validator('token')
    @classmethod
    def validate_token(cls, value):
        if not value or not value.strip():
            raise ValueError('Token cannot be empty')
        return value.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)


class ResendPasswordSetupRequest(BaseModel):
    order_id: str | None = None
    email: EmailStr | None = None

    @model_validator(mode='after')
    def require_order_or_email(self):
        if not self.order_id and not self.email:
            raise ValueError('order_id or email required')
        return self
