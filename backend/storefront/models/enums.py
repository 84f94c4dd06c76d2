"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    user = "user"


class MediaType(str, enum.Enum):
    thumb = "thumb"
    image = "image"
    detail = "detail"
    video = "video"
