"""Admin endpoints for user management."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from storefront.core.deps import require_admin
from storefront.core.rate_limit import rate_limit
from storefront.core.exceptions import InsufficientPermissionsError, NotFoundError
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.user import UserOut, UserRoleUpdate
from storefront.services.users import delete_user, list_users, update_role

router = APIRouter(dependencies=[Depends(rate_limit()), Depends(require_admin)])


@router.get("/", response_model=list[UserOut])
def get_users(include_deleted: bool = False, db: Session = Depends(get_db)) -> list[UserOut]:
    return [UserOut.model_validate(u) for u in list_users(db, include_deleted=include_deleted)]


@router.patch("/{user_id}/role", response_model=UserOut)
def set_role(user_id: str, payload: UserRoleUpdate, db: Session = Depends(get_db)) -> UserOut:
    user = update_role(db, user_id, payload.role)
    if not user:
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return UserOut.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def remove_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)) -> Response:
    try:
        deleted = delete_user(db, admin, user_id)
    except ValueError:
        raise InsufficientPermissionsError("cannot_delete_self")
    if not deleted:
        raise NotFoundError("user_not_found", details={"user_id": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
