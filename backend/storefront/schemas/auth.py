"""Auth-related schemas (login, password recovery)."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from storefront.core.sanitize import clean_email, clean_single_line
from storefront.schemas.user import UserOut, validate_password_value


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ForgotPasswordRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    email: EmailStr

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return clean_single_line(value).lower()

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class ForgotPasswordResponse(BaseModel):
    message: str


class ResetTokenStatus(BaseModel):
    token_id: int
    valid: bool = True


class ResetPasswordRequest(BaseModel):
    token_id: int = Field(gt=0)
    # Compared byte for byte with the stored value, so it is never normalized.
    token: str = Field(min_length=1, max_length=256)
    new_password: str = Field(min_length=1, max_length=128)
    confirm_password: str = Field(min_length=1, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return validate_password_value(value)


class ResetPasswordResponse(BaseModel):
    message: str
