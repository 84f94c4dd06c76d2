"""Admin endpoints for categories, products and product media."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_menu_cache, require_admin
from storefront.core.exceptions import BadRequestError, ConflictError, InvalidMediaError, NotFoundError
from storefront.core.rate_limit import rate_limit
from storefront.db.session import get_db
from storefront.models.enums import MediaType
from storefront.models.user import User
from storefront.routers.catalog import page_out
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    MediaAdminOut,
    MediaCreate,
    MediaUpdate,
    ProductAdminOut,
    ProductCreate,
    ProductPageOut,
    ProductUpdate,
)
from storefront.services import catalog_admin
from storefront.services.catalog import list_products
from storefront.services.menu_cache import MenuCache

router = APIRouter(dependencies=[Depends(rate_limit()), Depends(require_admin)])

_MEDIA_ERRORS = {"empty_file", "file_too_large", "unsupported_file_type", "invalid_media_type"}


def _raise_mutation_error(exc: ValueError) -> None:
    code = str(exc)
    if code in _MEDIA_ERRORS:
        raise InvalidMediaError(code, field="file")
    if code == "thumb_limit_reached":
        raise ConflictError(code, details={"limit": settings.PRODUCT_THUMB_LIMIT})
    raise BadRequestError(code)


@router.get("/categories", response_model=list[CategoryOut])
def get_categories(db: Session = Depends(get_db)) -> list[CategoryOut]:
    return [CategoryOut.model_validate(c) for c in catalog_admin.list_categories(db)]


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> CategoryOut:
    try:
        category = catalog_admin.create_category(db, cache, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    return CategoryOut.model_validate(category)


@router.patch("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> CategoryOut:
    try:
        category = catalog_admin.update_category(db, cache, category_id, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    if not category:
        raise NotFoundError("category_not_found", details={"category_id": category_id})
    return CategoryOut.model_validate(category)


@router.delete("/categories/{category_id}", response_model=CategoryOut)
def deactivate_category(
    category_id: int,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> CategoryOut:
    category = catalog_admin.deactivate_category(db, cache, category_id)
    if not category:
        raise NotFoundError("category_not_found", details={"category_id": category_id})
    return CategoryOut.model_validate(category)


@router.get("/products", response_model=ProductPageOut)
def get_products(
    page: int = 1,
    category_id: int | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ProductPageOut:
    result = list_products(db, page=page, category_id=category_id, search=search, include_hidden=True, viewer=admin)
    return page_out(result, category_id=category_id, search=search)


@router.post("/products", response_model=ProductAdminOut, status_code=201)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> ProductAdminOut:
    try:
        product = catalog_admin.create_product(db, cache, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    return ProductAdminOut.model_validate(product)


@router.patch("/products/{product_id}", response_model=ProductAdminOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> ProductAdminOut:
    try:
        product = catalog_admin.update_product(db, cache, product_id, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    if not product:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return ProductAdminOut.model_validate(product)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> Response:
    if not catalog_admin.delete_product(db, cache, product_id):
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/products/{product_id}/media", response_model=list[MediaAdminOut])
def get_product_media(product_id: int, db: Session = Depends(get_db)) -> list[MediaAdminOut]:
    if not catalog_admin.get_product(db, product_id):
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return [MediaAdminOut.model_validate(m) for m in catalog_admin.list_product_media(db, product_id)]


@router.post("/products/{product_id}/media", response_model=MediaAdminOut, status_code=201)
def register_media(
    product_id: int,
    payload: MediaCreate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> MediaAdminOut:
    try:
        media = catalog_admin.add_media(db, cache, product_id, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    if not media:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return MediaAdminOut.model_validate(media)


@router.post("/products/{product_id}/media/upload", response_model=MediaAdminOut, status_code=201)
def upload_media(
    product_id: int,
    file: UploadFile = File(...),
    media_type: MediaType = Form(...),
    sort_order: int = Form(default=0, ge=0),
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> MediaAdminOut:
    # One byte past the cap is enough to reject oversize uploads without reading them whole.
    data = file.file.read(settings.UPLOAD_MAX_BYTES + 1)
    try:
        media = catalog_admin.upload_media(
            db,
            cache,
            product_id,
            media_type=media_type,
            sort_order=sort_order,
            data=data,
            filename=file.filename or "",
        )
    except ValueError as exc:
        _raise_mutation_error(exc)
    finally:
        file.file.close()
    if not media:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return MediaAdminOut.model_validate(media)


@router.patch("/media/{media_id}", response_model=MediaAdminOut)
def update_media(
    media_id: int,
    payload: MediaUpdate,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> MediaAdminOut:
    try:
        media = catalog_admin.update_media(db, cache, media_id, payload)
    except ValueError as exc:
        _raise_mutation_error(exc)
    if not media:
        raise NotFoundError("media_not_found", details={"media_id": media_id})
    return MediaAdminOut.model_validate(media)


@router.delete("/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def delete_media(
    media_id: int,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> Response:
    if not catalog_admin.delete_media(db, cache, media_id):
        raise NotFoundError("media_not_found", details={"media_id": media_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/products/{product_id}/media/{media_id}/thumbnail", response_model=MediaAdminOut)
def promote_thumbnail(
    product_id: int,
    media_id: int,
    db: Session = Depends(get_db),
    cache: MenuCache = Depends(get_menu_cache),
) -> MediaAdminOut:
    try:
        media = catalog_admin.promote_to_thumbnail(db, cache, product_id, media_id)
    except ValueError as exc:
        _raise_mutation_error(exc)
    if not media:
        raise NotFoundError("media_not_found", details={"media_id": media_id})
    return MediaAdminOut.model_validate(media)
