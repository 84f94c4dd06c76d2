"""Security helpers for hashing passwords, issuing JWTs and reset token material."""

from __future__ import annotations

import datetime as dt
import hmac
import secrets
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from storefront.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_BYTES = 48


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict[str, Any], expires_minutes: int | None = None) -> str:
    to_encode = data.copy()
    now = dt.datetime.now(dt.timezone.utc)
    expire = now + dt.timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"type": ACCESS_TOKEN_TYPE, "iat": int(now.timestamp()), "exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, *, verify_exp: bool = True) -> dict[str, Any]:
    options = {"verify_exp": verify_exp}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
        )
    except ExpiredSignatureError as exc:
        raise ValueError("expired_token") from exc
    except JWTError as exc:
        raise ValueError("invalid_token") from exc


def generate_reset_token_material() -> str:
    return secrets.token_urlsafe(RESET_TOKEN_BYTES)


def tokens_match(stored: str, presented: str) -> bool:
    # Exact byte equality: no case folding, no trimming.
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))
