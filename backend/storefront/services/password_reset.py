"""Password reset token lifecycle: issue, validate, consume.

A token row moves from issued to consumed exactly once, or is found expired
at validation time. Rows are never deleted. Consumption is always sequenced
after the new password hash has been committed, so a failed password update
leaves the token usable.
"""

from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.security import generate_reset_token_material, tokens_match
from storefront.models.password_reset_token import PasswordResetToken
from storefront.models.user import User
from storefront.services.auth import find_user_by_username, set_password
from storefront.services.email import build_password_reset_email, send_email

logger = logging.getLogger(__name__)

RESET_REQUEST_MESSAGE = "password_reset_sent_if_account_exists"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def _reset_candidate(db: Session, username: str, email: str) -> tuple[User | None, str | None]:
    user = find_user_by_username(db, username)
    if not user:
        return None, "no_such_user"
    if (user.email or "").lower() != email.strip().lower():
        return None, "email_mismatch"
    if not user.is_usable:
        return None, "inactive_account"
    return user, None


def issue_reset_token(db: Session, user: User, *, now: dt.datetime | None = None) -> PasswordResetToken:
    now = now or _utcnow()
    token = PasswordResetToken(
        user_id=user.id,
        token=generate_reset_token_material(),
        created_at=now,
        expire_at=now + dt.timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        is_used=False,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    logger.info("Password reset token issued: user=%s token_id=%s", user.username, token.id)
    return token


def request_password_reset(db: Session, username: str, email: str) -> str:
    """Issue a token and mail the link when the account matches.

    The returned message is the same whatever the outcome, so the endpoint
    cannot be used to find out which accounts exist. A failed send is logged
    and otherwise looks like success to the caller.
    """
    user, reason = _reset_candidate(db, username, email)
    if user is None:
        logger.warning("Password reset request ignored: %s (%s)", reason, username)
        return RESET_REQUEST_MESSAGE

    token = issue_reset_token(db, user)
    subject, body, html_body = build_password_reset_email(user.name, token.id, token.token)
    if not send_email(user.email, subject, body, html_body=html_body):
        if settings.smtp_ready:
            logger.error("Password reset email delivery failed: token_id=%s", token.id)
        else:
            logger.warning("Password reset email not delivered (SMTP disabled): token_id=%s", token.id)
    return RESET_REQUEST_MESSAGE


def validate_reset_token(
    db: Session,
    token_id: int,
    token_value: str,
    *,
    now: dt.datetime | None = None,
) -> tuple[PasswordResetToken, User]:
    """Return the token row and its user, or raise ``ValueError`` with the failure code.

    Checks run in order: missing or used (``invalid_token``), expired
    (``expired_token``), value mismatch (``token_mismatch``), then the owning
    account (``invalid_token``).
    """
    row = db.get(PasswordResetToken, token_id)
    if row is None or row.is_used:
        logger.warning("Password reset token rejected: missing or used (token_id=%s)", token_id)
        raise ValueError("invalid_token")
    if _as_utc(row.expire_at) <= (now or _utcnow()):
        logger.warning("Password reset token rejected: expired (token_id=%s)", token_id)
        raise ValueError("expired_token")
    if not tokens_match(row.token, token_value):
        logger.warning("Password reset token rejected: value mismatch (token_id=%s)", token_id)
        raise ValueError("token_mismatch")

    user = db.get(User, row.user_id)
    if user is None or not user.is_usable:
        logger.warning("Password reset token rejected: account unavailable (token_id=%s)", token_id)
        raise ValueError("invalid_token")
    return row, user


def consume_reset_token(db: Session, row: PasswordResetToken) -> PasswordResetToken:
    row.is_used = True
    db.add(row)
    db.commit()
    logger.info("Password reset token consumed: token_id=%s", row.id)
    return row


def reset_password_with_token(
    db: Session,
    token_id: int,
    token_value: str,
    new_password: str,
    confirm_password: str,
) -> User:
    if new_password != confirm_password:
        raise ValueError("password_mismatch")

    row, user = validate_reset_token(db, token_id, token_value)
    set_password(db, user, new_password)
    consume_reset_token(db, row)
    logger.info("Password reset success: %s", user.username)
    return user
