"""Common FastAPI dependencies for authentication, authorization and shared services."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.exceptions import AuthenticationException, ExpiredTokenError, InsufficientPermissionsError
from storefront.core.security import ACCESS_TOKEN_TYPE, decode_token
from storefront.db.session import get_db
from storefront.models.enums import UserRole
from storefront.models.user import User
from storefront.services.menu_cache import MenuCache


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def _request_token(request: Request) -> str | None:
    return _extract_bearer_token(request) or request.cookies.get(settings.COOKIE_NAME)


def _resolve_user(db: Session, token: str) -> User:
    try:
        payload = decode_token(token)
    except ValueError as exc:
        if str(exc) == "expired_token":
            raise ExpiredTokenError("access_token_expired")
        raise AuthenticationException("invalid_token", error_code="INVALID_TOKEN", status_code=401)
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise AuthenticationException("invalid_token", error_code="INVALID_TOKEN", status_code=401)
    try:
        user_id = UUID(str(payload.get("sub") or ""))
    except ValueError:
        raise AuthenticationException("invalid_token", error_code="INVALID_TOKEN", status_code=401)

    user = db.get(User, user_id)
    # Soft-deleted or deactivated accounts lose their sessions immediately.
    if not user or not user.is_usable:
        raise AuthenticationException("user_not_found", error_code="USER_NOT_FOUND", status_code=401)
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = _request_token(request)
    if not token:
        raise AuthenticationException("not_authenticated", error_code="NOT_AUTHENTICATED", status_code=401)
    return _resolve_user(db, token)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    token = _request_token(request)
    if not token:
        return None
    try:
        return _resolve_user(db, token)
    except AuthenticationException:
        return None


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.admin:
        raise InsufficientPermissionsError("forbidden")
    return user


def get_menu_cache(request: Request) -> MenuCache:
    return request.app.state.menu_cache
