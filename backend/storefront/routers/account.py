"""Profile page, password change, self-service deletion and the address book."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_current_user
from storefront.core.exceptions import BadRequestError, ConflictError, InsufficientPermissionsError, NotFoundError
from storefront.core.rate_limit import rate_limit
from storefront.core.rbac import can_self_delete
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.address import AddressIn, AddressOut
from storefront.schemas.user import AccountDeleteRequest, MyPageOut, PasswordChangeRequest, ProfileUpdate
from storefront.services.addresses import (
    add_address,
    delete_address,
    list_addresses,
    set_default_address,
    update_address,
)
from storefront.services.auth import change_password, deactivate_account, update_profile

router = APIRouter(dependencies=[Depends(rate_limit())])


def _my_page(db: Session, user: User) -> MyPageOut:
    return MyPageOut(
        username=user.username,
        name=user.name,
        birth_date=user.birth_date,
        phone=user.phone,
        email=user.email,
        addresses=[AddressOut.model_validate(a) for a in list_addresses(db, user)],
    )


@router.get("/", response_model=MyPageOut)
def my_page(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> MyPageOut:
    return _my_page(db, current_user)


@router.patch("/", response_model=MyPageOut)
def edit_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MyPageOut:
    try:
        user = update_profile(db, current_user, payload)
    except ValueError:
        raise ConflictError("email_exists", details={"field": "email"})
    return _my_page(db, user)


@router.post("/password")
def edit_password(
    payload: PasswordChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    try:
        change_password(
            db,
            current_user,
            payload.current_password,
            payload.new_password,
            payload.confirm_new_password,
        )
    except ValueError as exc:
        code = str(exc)
        field = "confirm_new_password" if code == "password_mismatch" else "current_password"
        raise BadRequestError(code, details={"field": field})
    return {"message": "password_changed"}


@router.post("/delete")
def delete_account(
    payload: AccountDeleteRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    if not can_self_delete(current_user):
        raise InsufficientPermissionsError("admin_account_cannot_be_deleted")
    try:
        deactivate_account(db, current_user, payload.password)
    except ValueError:
        raise BadRequestError("invalid_password", details={"field": "password"})
    response.delete_cookie(settings.COOKIE_NAME, path="/")
    return {"message": "account_deleted"}


@router.get("/addresses", response_model=list[AddressOut])
def get_addresses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> list[AddressOut]:
    return [AddressOut.model_validate(a) for a in list_addresses(db, current_user)]


@router.post("/addresses", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressOut:
    return AddressOut.model_validate(add_address(db, current_user, payload))


@router.put("/addresses/{address_id}", response_model=AddressOut)
def edit_address(
    address_id: int,
    payload: AddressIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressOut:
    try:
        address = update_address(db, current_user, address_id, payload)
    except ValueError:
        raise InsufficientPermissionsError("address_forbidden")
    if not address:
        raise NotFoundError("address_not_found", details={"address_id": address_id})
    return AddressOut.model_validate(address)


@router.post("/addresses/{address_id}/default", response_model=AddressOut)
def make_default_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressOut:
    try:
        address = set_default_address(db, current_user, address_id)
    except ValueError:
        raise InsufficientPermissionsError("address_forbidden")
    if not address:
        raise NotFoundError("address_not_found", details={"address_id": address_id})
    return AddressOut.model_validate(address)


@router.delete(
    "/addresses/{address_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    response_model=None,
)
def remove_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    try:
        deleted = delete_address(db, current_user, address_id)
    except ValueError as exc:
        if str(exc) == "default_address_locked":
            raise BadRequestError("default_address_locked", details={"address_id": address_id})
        raise InsufficientPermissionsError("address_forbidden")
    if not deleted:
        raise NotFoundError("address_not_found", details={"address_id": address_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
