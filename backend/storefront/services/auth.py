"""Service helpers for registration, login, id lookup and the profile page."""

from __future__ import annotations

import datetime as dt
import logging
from uuid import uuid4

from sqlalchemy.orm import Session

from storefront.core.security import create_access_token, hash_password, verify_password
from storefront.models.enums import UserRole
from storefront.models.user import User
from storefront.models.user_address import UserAddress
from storefront.schemas.user import ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def find_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username.strip().lower()).first()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def mask_username(username: str) -> str:
    if not username:
        return ""
    if len(username) <= 2:
        return username[0] + "*"
    return username[:2] + "*" * (len(username) - 2)


def register_user(db: Session, data: RegisterRequest) -> User:
    if find_user_by_username(db, data.username):
        raise ValueError("username_exists")
    if find_user_by_email(db, data.email):
        raise ValueError("email_exists")

    user = User(
        id=uuid4(),
        username=data.username,
        email=data.email.lower(),
        name=data.name,
        birth_date=data.birth_date,
        phone=data.phone,
        role=UserRole.user,
        password_hash=hash_password(data.password),
        is_active=True,
        created_at=_utcnow(),
    )
    db.add(user)
    db.flush()

    if data.has_address:
        db.add(
            UserAddress(
                user_id=user.id,
                zip_code=data.zip_code or "",
                address=data.address or "",
                address_detail=data.address_detail,
                is_default=True,
            )
        )
    db.commit()
    db.refresh(user)
    logger.info("User registered: %s", user.username)
    return user


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    user = find_user_by_username(db, username)
    if not user:
        logger.warning("Login failed: user not found (%s)", username)
        return None
    if not user.is_usable:
        logger.warning("Login failed: inactive account (%s)", username)
        return None
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: invalid password (%s)", username)
        return None
    logger.info("User authenticated: %s", user.username)
    return user


def issue_access_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role.value})


def find_username(db: Session, name: str, email: str) -> str | None:
    user = (
        db.query(User)
        .filter(
            User.name == name,
            User.email == email.lower(),
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        )
        .first()
    )
    if not user:
        logger.info("Id lookup matched no active account")
        return None
    return mask_username(user.username)


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    if data.email != user.email:
        existing = find_user_by_email(db, data.email)
        if existing and existing.id != user.id:
            raise ValueError("email_exists")
        user.email = data.email
    user.name = data.name
    user.birth_date = data.birth_date
    user.phone = data.phone
    user.updated_at = _utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Profile updated: %s", user.username)
    return user


def set_password(db: Session, user: User, new_password: str) -> User:
    user.password_hash = hash_password(new_password)
    user.updated_at = _utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str, confirm_password: str) -> User:
    if new_password != confirm_password:
        raise ValueError("password_mismatch")
    if not verify_password(current_password, user.password_hash):
        logger.warning("Password change failed: invalid current password (%s)", user.username)
        raise ValueError("invalid_current_password")
    set_password(db, user, new_password)
    logger.info("Password changed: %s", user.username)
    return user


def deactivate_account(db: Session, user: User, password: str) -> User:
    if not verify_password(password, user.password_hash):
        logger.warning("Account deletion failed: invalid password (%s)", user.username)
        raise ValueError("invalid_password")
    return soft_delete_user(db, user)


def soft_delete_user(db: Session, user: User) -> User:
    now = _utcnow()
    user.is_active = False
    user.deleted_at = now
    user.updated_at = now
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User soft-deleted: %s", user.username)
    return user
