"""Ownership and role checks shared by the account, catalog and Q&A endpoints."""

from __future__ import annotations

from storefront.models.enums import UserRole
from storefront.models.product_qna import ProductQnA
from storefront.models.user import User
from storefront.models.user_address import UserAddress


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == UserRole.admin


def owns_address(user: User, address: UserAddress) -> bool:
    return address.user_id == user.id


def owns_question(user: User | None, qna: ProductQnA) -> bool:
    return user is not None and qna.user_id is not None and qna.user_id == user.id


def can_view_secret_question(user: User | None, qna: ProductQnA) -> bool:
    if not qna.is_secret:
        return True
    return is_admin(user) or owns_question(user, qna)


def can_edit_question(user: User, qna: ProductQnA) -> bool:
    return owns_question(user, qna)


def can_delete_question(user: User, qna: ProductQnA) -> bool:
    return is_admin(user) or owns_question(user, qna)


def can_answer_question(user: User) -> bool:
    return is_admin(user)


def can_view_hidden_products(user: User | None) -> bool:
    return is_admin(user)


def can_self_delete(user: User) -> bool:
    # Admin accounts are never removed through self-service.
    return not is_admin(user)


def can_delete_user(actor: User, target: User) -> bool:
    return is_admin(actor) and actor.id != target.id
