"""Authentication endpoints (register, login, id lookup, password recovery)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_current_user
from storefront.core.exceptions import (
    AuthenticationException,
    BadRequestError,
    ConflictError,
    ExpiredTokenError,
    NotFoundError,
)
from storefront.core.rate_limit import rate_limit
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginResponse,
    ResetPasswordRequest,
    ResetPasswordResponse,
    ResetTokenStatus,
)
from storefront.schemas.user import FindIdRequest, FindIdResponse, RegisterRequest, UserLogin, UserOut
from storefront.services.auth import authenticate_user, find_username, issue_access_token, register_user
from storefront.services.password_reset import request_password_reset, reset_password_with_token, validate_reset_token

router = APIRouter(dependencies=[Depends(rate_limit("auth"))])
logger = logging.getLogger(__name__)


def _set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        settings.COOKIE_NAME,
        access_token,
        httponly=True,
        samesite="lax",
        secure=settings.ENV != "development",
        path="/",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _raise_reset_error(code: str) -> None:
    if code == "expired_token":
        raise ExpiredTokenError("expired_token", status_code=400)
    if code == "password_mismatch":
        raise BadRequestError("password_mismatch", details={"field": "confirm_password"})
    if code == "token_mismatch":
        raise BadRequestError("token_mismatch")
    raise BadRequestError("invalid_token")


@router.post("/register", response_model=UserOut, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserOut:
    try:
        user = register_user(db, payload)
    except ValueError as exc:
        code = str(exc)
        field = "username" if code == "username_exists" else "email"
        raise ConflictError(code, details={"field": field})
    return UserOut.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login_user(payload: UserLogin, response: Response, db: Session = Depends(get_db)) -> LoginResponse:
    user = authenticate_user(db, payload.username, payload.password)
    if not user:
        raise AuthenticationException("invalid_credentials", error_code="INVALID_CREDENTIALS", status_code=401)
    access_token = issue_access_token(user)
    _set_auth_cookie(response, access_token)
    return LoginResponse(access_token=access_token, user=UserOut.model_validate(user))


@router.post("/logout")
def logout_user(response: Response) -> dict[str, str]:
    response.delete_cookie(settings.COOKIE_NAME, path="/")
    return {"message": "logged_out"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(current_user)


@router.post("/find-id", response_model=FindIdResponse)
def find_id(payload: FindIdRequest, db: Session = Depends(get_db)) -> FindIdResponse:
    masked = find_username(db, payload.name, payload.email)
    if not masked:
        raise NotFoundError("account_not_found")
    return FindIdResponse(masked_username=masked)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)) -> ForgotPasswordResponse:
    return ForgotPasswordResponse(message=request_password_reset(db, payload.username, payload.email))


@router.get("/reset-password", response_model=ResetTokenStatus)
def check_reset_token(
    token_id: int = Query(gt=0),
    token: str = Query(min_length=1, max_length=256),
    db: Session = Depends(get_db),
) -> ResetTokenStatus:
    try:
        validate_reset_token(db, token_id, token)
    except ValueError as exc:
        _raise_reset_error(str(exc))
    return ResetTokenStatus(token_id=token_id)


@router.post("/reset-password", response_model=ResetPasswordResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)) -> ResetPasswordResponse:
    try:
        reset_password_with_token(
            db,
            payload.token_id,
            payload.token,
            payload.new_password,
            payload.confirm_password,
        )
    except ValueError as exc:
        _raise_reset_error(str(exc))
    return ResetPasswordResponse(message="password_reset_success")
