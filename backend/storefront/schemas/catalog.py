"""Pydantic schemas for categories, products and product media."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from storefront.core.sanitize import clean_multiline, clean_optional, clean_single_line
from storefront.models.enums import MediaType

MAX_CATEGORY_NAME_LEN = 100
MAX_PRODUCT_NAME_LEN = 200


class MediaOut(BaseModel):
    id: int
    media_type: MediaType
    file_url: str
    sort_order: int

    class Config:
        from_attributes = True


class MediaAdminOut(MediaOut):
    product_id: int
    is_active: bool
    created_at: dt.datetime
    deleted_at: dt.datetime | None = None


class MediaCreate(BaseModel):
    media_type: MediaType
    file_url: str = Field(min_length=1, max_length=512)
    sort_order: int = Field(default=0, ge=0)

    @field_validator("file_url", mode="before")
    @classmethod
    def normalize_url(cls, value: str) -> str:
        return clean_single_line(value)


class MediaUpdate(BaseModel):
    media_type: MediaType | None = None
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductListItemOut(BaseModel):
    id: int
    category_id: int
    name: str
    price: int
    discount_rate: int | None = None
    final_price: int
    is_visible: bool
    created_at: dt.datetime
    main_image: str | None = None
    media: list[MediaOut] = Field(default_factory=list)


class ProductPageOut(BaseModel):
    items: list[ProductListItemOut]
    current_page: int
    total_pages: int
    total_count: int
    page_size: int
    category_id: int | None = None
    search: str | None = None


class ProductDetailOut(BaseModel):
    id: int
    category_id: int
    name: str
    description: str | None = None
    price: int
    discount_rate: int | None = None
    final_price: int
    is_visible: bool
    created_at: dt.datetime
    updated_at: dt.datetime | None = None
    breadcrumb: str
    category_levels: list[int | None]
    main_image: str | None = None
    thumbs: list[MediaOut] = Field(default_factory=list)
    images: list[MediaOut] = Field(default_factory=list)
    details: list[MediaOut] = Field(default_factory=list)
    videos: list[MediaOut] = Field(default_factory=list)


class ProductAdminOut(BaseModel):
    id: int
    category_id: int
    name: str
    description: str | None = None
    price: int
    discount_rate: int | None = None
    final_price: int
    is_visible: bool
    created_at: dt.datetime
    updated_at: dt.datetime | None = None
    deleted_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    category_id: int = Field(ge=1)
    name: str = Field(min_length=1, max_length=MAX_PRODUCT_NAME_LEN)
    description: str | None = Field(default=None, max_length=20000)
    price: int = Field(ge=0)
    discount_rate: int | None = Field(default=None, ge=0, le=100)
    is_visible: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        cleaned = clean_multiline(value)
        return cleaned or None


class ProductUpdate(BaseModel):
    category_id: int | None = Field(default=None, ge=1)
    name: str | None = Field(default=None, min_length=1, max_length=MAX_PRODUCT_NAME_LEN)
    description: str | None = Field(default=None, max_length=20000)
    price: int | None = Field(default=None, ge=0)
    discount_rate: int | None = Field(default=None, ge=0, le=100)
    is_visible: bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return clean_single_line(value)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        cleaned = clean_multiline(value)
        return cleaned or None


class CategoryOptionOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CategoryMenuNodeOut(BaseModel):
    id: int
    name: str
    children: list[CategoryMenuNodeOut] = Field(default_factory=list)


class CategoryPathOut(BaseModel):
    id: int
    breadcrumb: str
    chain: list[CategoryOptionOut]
    levels: list[int | None]


class CategoryOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    parent_id: int | None = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_CATEGORY_NAME_LEN)
    description: str | None = Field(default=None, max_length=2000)
    parent_id: int | None = Field(default=None, ge=1)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return clean_single_line(value)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        return clean_optional(value)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=MAX_CATEGORY_NAME_LEN)
    description: str | None = Field(default=None, max_length=2000)
    parent_id: int | None = Field(default=None, ge=1)
    is_active: bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return clean_single_line(value)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value: str | None) -> str | None:
        return clean_optional(value)
