"""Pydantic schemas for user accounts, the profile page and admin user management."""

from __future__ import annotations

import datetime as dt
import re
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from storefront.core.config import settings
from storefront.core.sanitize import clean_email, clean_optional, clean_phone, clean_single_line, clean_zip_code, has_control_chars
from storefront.models.enums import UserRole
from storefront.schemas.address import AddressOut

MAX_NAME_LEN = 80
MAX_USERNAME_LEN = 64
USERNAME_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


def validate_password_value(value: str) -> str:
    if has_control_chars(value):
        raise ValueError("password_contains_control_chars")
    if not value.strip():
        raise ValueError("password_required")
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError("password_too_short")
    return value


def clean_username(value: str | None) -> str:
    username = clean_single_line(value).lower()
    if username and not USERNAME_RE.fullmatch(username):
        raise ValueError("invalid_username")
    return username


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=MAX_USERNAME_LEN)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    birth_date: dt.date | None = None
    phone: str = Field(default="", max_length=32)
    zip_code: str | None = Field(default=None, max_length=16)
    address: str | None = Field(default=None, max_length=255)
    address_detail: str | None = Field(default=None, max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return clean_username(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, value: str | None) -> str:
        return clean_phone(value)

    @field_validator("zip_code", mode="before")
    @classmethod
    def normalize_zip_code(cls, value: str | None) -> str | None:
        return clean_zip_code(value) or None

    @field_validator("address", "address_detail", mode="before")
    @classmethod
    def normalize_address(cls, value: str | None) -> str | None:
        return clean_optional(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_value(value)

    @property
    def has_address(self) -> bool:
        return bool(self.address or self.zip_code)


class UserLogin(BaseModel):
    username: str = Field(min_length=1, max_length=MAX_USERNAME_LEN)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return clean_single_line(value).lower()


class UserOut(BaseModel):
    id: UUID
    username: str
    email: EmailStr
    name: str
    role: UserRole
    is_active: bool
    created_at: dt.datetime
    deleted_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class MyPageOut(BaseModel):
    username: str
    name: str
    birth_date: dt.date | None = None
    phone: str
    email: EmailStr
    addresses: list[AddressOut] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    birth_date: dt.date | None = None
    phone: str = Field(min_length=1, max_length=32)
    email: EmailStr

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("phone", mode="before")
    @classmethod
    def normalize_phone(cls, value: str | None) -> str:
        return clean_phone(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)
    confirm_new_password: str = Field(min_length=1, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return validate_password_value(value)


class AccountDeleteRequest(BaseModel):
    password: str = Field(min_length=1, max_length=128)


class FindIdRequest(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    email: EmailStr

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class FindIdResponse(BaseModel):
    masked_username: str


class UserRoleUpdate(BaseModel):
    role: UserRole
