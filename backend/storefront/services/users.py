"""Service helpers for admin user management."""

from __future__ import annotations

from uuid import UUID
import logging

from sqlalchemy.orm import Session

from storefront.core.rbac import can_delete_user
from storefront.models.user import User
from storefront.models.enums import UserRole
from storefront.services.auth import soft_delete_user

logger = logging.getLogger(__name__)


def _parse_user_id(user_id: str) -> UUID | None:
    try:
        return UUID(user_id)
    except ValueError:
        return None


def list_users(db: Session, *, include_deleted: bool = False) -> list[User]:
    query = db.query(User)
    if not include_deleted:
        query = query.filter(User.deleted_at.is_(None))
    return query.order_by(User.created_at.desc()).all()


def update_role(db: Session, user_id: str, role: UserRole) -> User | None:
    user_uuid = _parse_user_id(user_id)
    if user_uuid is None:
        return None
    user = db.get(User, user_uuid)
    if not user or user.deleted_at is not None:
        logger.warning("User role update failed (not found): %s", user_id)
        return None
    user.role = role
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User role updated: %s -> %s", user.username, role.value)
    return user


def delete_user(db: Session, actor: User, user_id: str) -> bool:
    """Soft-delete ``user_id`` on behalf of an admin.

    Returns False when the user does not exist. Raises ``ValueError
    ("cannot_delete_self")`` when the admin targets their own account.
    """
    user_uuid = _parse_user_id(user_id)
    if user_uuid is None:
        return False
    user = db.get(User, user_uuid)
    if not user or user.deleted_at is not None:
        logger.warning("User delete failed (not found): %s", user_id)
        return False
    if not can_delete_user(actor, user):
        logger.warning("User delete refused: %s tried to delete own account", actor.username)
        raise ValueError("cannot_delete_self")
    soft_delete_user(db, user)
    return True
