"""Pydantic schemas for shipping addresses."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from storefront.core.sanitize import clean_optional, clean_single_line, clean_zip_code


class AddressOut(BaseModel):
    id: int
    zip_code: str
    address: str
    address_detail: str | None = None
    is_default: bool

    class Config:
        from_attributes = True


class AddressIn(BaseModel):
    zip_code: str = Field(min_length=1, max_length=16)
    address: str = Field(min_length=1, max_length=255)
    address_detail: str | None = Field(default=None, max_length=255)
    is_default: bool = False

    @field_validator("zip_code", mode="before")
    @classmethod
    def normalize_zip_code(cls, value: str) -> str:
        return clean_zip_code(value)

    @field_validator("address", mode="before")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("address_detail", mode="before")
    @classmethod
    def normalize_detail(cls, value: str | None) -> str | None:
        return clean_optional(value)
