"""Shipping address book for a user account.

Invariant: a user with at least one address has exactly one default address.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from storefront.core.rbac import owns_address
from storefront.models.user import User
from storefront.models.user_address import UserAddress
from storefront.schemas.address import AddressIn

logger = logging.getLogger(__name__)


def list_addresses(db: Session, user: User) -> list[UserAddress]:
    return (
        db.query(UserAddress)
        .filter(UserAddress.user_id == user.id)
        .order_by(UserAddress.is_default.desc(), UserAddress.id.desc())
        .all()
    )


def get_address(db: Session, user: User, address_id: int) -> UserAddress | None:
    """Return the address when it exists, raising ``ValueError("forbidden")`` for another user's row."""
    address = db.get(UserAddress, address_id)
    if not address:
        return None
    if not owns_address(user, address):
        logger.warning("Address access refused: user=%s address=%s", user.username, address_id)
        raise ValueError("forbidden")
    return address


def _clear_default(db: Session, user: User, *, keep_id: int | None = None) -> None:
    query = db.query(UserAddress).filter(
        UserAddress.user_id == user.id,
        UserAddress.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(UserAddress.id != keep_id)
    for row in query.all():
        row.is_default = False
        db.add(row)


def add_address(db: Session, user: User, data: AddressIn) -> UserAddress:
    has_any = db.query(UserAddress.id).filter(UserAddress.user_id == user.id).first() is not None
    make_default = data.is_default or not has_any
    if make_default:
        _clear_default(db, user)

    address = UserAddress(
        user_id=user.id,
        zip_code=data.zip_code,
        address=data.address,
        address_detail=data.address_detail,
        is_default=make_default,
    )
    db.add(address)
    db.commit()
    db.refresh(address)
    logger.info("Address added: user=%s address=%s default=%s", user.username, address.id, make_default)
    return address


def update_address(db: Session, user: User, address_id: int, data: AddressIn) -> UserAddress | None:
    address = get_address(db, user, address_id)
    if not address:
        return None

    address.zip_code = data.zip_code
    address.address = data.address
    address.address_detail = data.address_detail
    # Unsetting the flag on the current default is ignored; a new default must be chosen instead.
    if data.is_default and not address.is_default:
        _clear_default(db, user, keep_id=address.id)
        address.is_default = True
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


def set_default_address(db: Session, user: User, address_id: int) -> UserAddress | None:
    address = get_address(db, user, address_id)
    if not address:
        return None
    _clear_default(db, user, keep_id=address.id)
    address.is_default = True
    db.add(address)
    db.commit()
    db.refresh(address)
    logger.info("Default address changed: user=%s address=%s", user.username, address.id)
    return address


def delete_address(db: Session, user: User, address_id: int) -> bool:
    address = get_address(db, user, address_id)
    if not address:
        return False
    if address.is_default:
        raise ValueError("default_address_locked")
    db.delete(address)
    db.commit()
    logger.info("Address deleted: user=%s address=%s", user.username, address_id)
    return True
