"""Admin mutations for categories, products and product media.

Every mutation drops the cached category menu before returning, so the next
menu read reflects it.
"""

from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models.category import Category
from storefront.models.enums import MediaType
from storefront.models.product import Media, Product
from storefront.schemas.catalog import CategoryCreate, CategoryUpdate, MediaCreate, MediaUpdate, ProductCreate, ProductUpdate
from storefront.services.catalog import live_media_filter
from storefront.services.category_tree import CategoryNode, CategoryTree
from storefront.services.media_storage import remove_media_file, store_media_file
from storefront.services.menu_cache import MenuCache, invalidate_menu

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).filter(Category.deleted_at.is_(None)).order_by(Category.id.asc()).all()


def _get_category(db: Session, category_id: int) -> Category | None:
    category = db.get(Category, category_id)
    if not category or category.deleted_at is not None:
        return None
    return category


def would_create_cycle(db: Session, category_id: int, new_parent_id: int) -> bool:
    if category_id == new_parent_id:
        return True
    # Inactive rows still hold parent links, so the walk covers every stored category.
    rows = db.query(Category.id, Category.name, Category.parent_id).filter(Category.deleted_at.is_(None)).all()
    tree = CategoryTree(CategoryNode(id=row.id, name=row.name, parent_id=row.parent_id) for row in rows)
    return category_id in tree.ancestor_chain(new_parent_id)


def create_category(db: Session, cache: MenuCache, data: CategoryCreate) -> Category:
    if data.parent_id is not None and not _get_category(db, data.parent_id):
        raise ValueError("parent_not_found")
    category = Category(
        name=data.name,
        description=data.description,
        parent_id=data.parent_id,
        is_active=True,
        created_at=_utcnow(),
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    invalidate_menu(cache)
    logger.info("Category created: %s (%s)", category.id, category.name)
    return category


def update_category(db: Session, cache: MenuCache, category_id: int, data: CategoryUpdate) -> Category | None:
    category = _get_category(db, category_id)
    if not category:
        return None

    changes = data.model_dump(exclude_unset=True)
    if "parent_id" in changes:
        parent_id = changes["parent_id"]
        if parent_id is not None:
            if not _get_category(db, parent_id):
                raise ValueError("parent_not_found")
            if would_create_cycle(db, category.id, parent_id):
                logger.warning("Category parent change refused (cycle): %s -> %s", category.id, parent_id)
                raise ValueError("category_cycle")
        category.parent_id = parent_id
    if changes.get("name") is not None:
        category.name = changes["name"]
    if "description" in changes:
        category.description = changes["description"]
    if changes.get("is_active") is not None:
        category.is_active = changes["is_active"]

    category.updated_at = _utcnow()
    db.add(category)
    db.commit()
    db.refresh(category)
    invalidate_menu(cache)
    logger.info("Category updated: %s", category.id)
    return category


def deactivate_category(db: Session, cache: MenuCache, category_id: int) -> Category | None:
    category = _get_category(db, category_id)
    if not category:
        return None
    category.is_active = False
    category.updated_at = _utcnow()
    db.add(category)
    db.commit()
    db.refresh(category)
    invalidate_menu(cache)
    logger.info("Category deactivated: %s", category.id)
    return category


def get_product(db: Session, product_id: int) -> Product | None:
    product = db.get(Product, product_id)
    if not product or product.deleted_at is not None:
        return None
    return product


def _require_active_category(db: Session, category_id: int) -> None:
    category = _get_category(db, category_id)
    if not category or not category.is_active:
        raise ValueError("category_not_found")


def create_product(db: Session, cache: MenuCache, data: ProductCreate) -> Product:
    _require_active_category(db, data.category_id)
    product = Product(
        category_id=data.category_id,
        name=data.name,
        description=data.description,
        price=data.price,
        discount_rate=data.discount_rate,
        is_visible=data.is_visible,
        created_at=_utcnow(),
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    invalidate_menu(cache)
    logger.info("Product created: %s (%s)", product.id, product.name)
    return product


def update_product(db: Session, cache: MenuCache, product_id: int, data: ProductUpdate) -> Product | None:
    product = get_product(db, product_id)
    if not product:
        return None

    changes = data.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None and changes["category_id"] != product.category_id:
        _require_active_category(db, changes["category_id"])
        product.category_id = changes["category_id"]
    for field in ("name", "price", "is_visible"):
        if changes.get(field) is not None:
            setattr(product, field, changes[field])
    # Both may be cleared explicitly with null.
    for field in ("description", "discount_rate"):
        if field in changes:
            setattr(product, field, changes[field])

    product.updated_at = _utcnow()
    db.add(product)
    db.commit()
    db.refresh(product)
    invalidate_menu(cache)
    logger.info("Product updated: %s", product.id)
    return product


def delete_product(db: Session, cache: MenuCache, product_id: int) -> bool:
    product = get_product(db, product_id)
    if not product:
        return False
    now = _utcnow()
    product.deleted_at = now
    product.updated_at = now
    db.add(product)
    db.commit()
    invalidate_menu(cache)
    logger.info("Product soft-deleted: %s", product_id)
    return True


def list_product_media(db: Session, product_id: int) -> list[Media]:
    return (
        db.query(Media)
        .filter(Media.product_id == product_id, *live_media_filter())
        .order_by(Media.media_type.asc(), Media.sort_order.asc(), Media.id.asc())
        .all()
    )


def _get_media(db: Session, media_id: int) -> Media | None:
    media = db.get(Media, media_id)
    if not media or not media.is_live:
        return None
    return media


def _live_thumb_count(db: Session, product_id: int, *, exclude_id: int | None = None) -> int:
    query = db.query(Media).filter(
        Media.product_id == product_id,
        Media.media_type == MediaType.thumb,
        *live_media_filter(),
    )
    if exclude_id is not None:
        query = query.filter(Media.id != exclude_id)
    return query.count()


def _ensure_thumb_capacity(db: Session, product_id: int, *, exclude_id: int | None = None) -> None:
    if _live_thumb_count(db, product_id, exclude_id=exclude_id) >= settings.PRODUCT_THUMB_LIMIT:
        raise ValueError("thumb_limit_reached")


def add_media(db: Session, cache: MenuCache, product_id: int, data: MediaCreate) -> Media | None:
    if not get_product(db, product_id):
        return None
    if data.media_type == MediaType.thumb:
        _ensure_thumb_capacity(db, product_id)

    media = Media(
        product_id=product_id,
        media_type=data.media_type,
        file_url=data.file_url,
        sort_order=data.sort_order,
        is_active=True,
        created_at=_utcnow(),
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    invalidate_menu(cache)
    logger.info("Media added: product=%s media=%s type=%s", product_id, media.id, media.media_type.value)
    return media


def upload_media(
    db: Session,
    cache: MenuCache,
    product_id: int,
    *,
    media_type: MediaType,
    sort_order: int,
    data: bytes,
    filename: str,
) -> Media | None:
    if not get_product(db, product_id):
        return None
    file_url = store_media_file(data, filename, media_type)
    try:
        return add_media(
            db,
            cache,
            product_id,
            MediaCreate(media_type=media_type, file_url=file_url, sort_order=sort_order),
        )
    except ValueError:
        remove_media_file(file_url)
        raise


def update_media(db: Session, cache: MenuCache, media_id: int, data: MediaUpdate) -> Media | None:
    media = _get_media(db, media_id)
    if not media:
        return None

    changes = data.model_dump(exclude_unset=True)
    new_type = changes.get("media_type")
    if new_type is not None and new_type != media.media_type:
        if new_type == MediaType.thumb:
            _ensure_thumb_capacity(db, media.product_id, exclude_id=media.id)
        media.media_type = new_type
    if changes.get("sort_order") is not None:
        media.sort_order = changes["sort_order"]
    if changes.get("is_active") is not None:
        media.is_active = changes["is_active"]

    db.add(media)
    db.commit()
    db.refresh(media)
    invalidate_menu(cache)
    return media


def delete_media(db: Session, cache: MenuCache, media_id: int) -> bool:
    media = _get_media(db, media_id)
    if not media:
        return False
    media.is_active = False
    media.deleted_at = _utcnow()
    db.add(media)
    db.commit()
    invalidate_menu(cache)
    logger.info("Media soft-deleted: %s", media_id)
    return True


def promote_to_thumbnail(db: Session, cache: MenuCache, product_id: int, media_id: int) -> Media | None:
    """Make an existing image of the product its first thumbnail."""
    media = _get_media(db, media_id)
    if not media or media.product_id != product_id:
        return None
    if media.media_type == MediaType.video:
        raise ValueError("invalid_media_type")
    if media.media_type != MediaType.thumb:
        _ensure_thumb_capacity(db, product_id, exclude_id=media.id)

    others = (
        db.query(Media)
        .filter(
            Media.product_id == product_id,
            Media.media_type == MediaType.thumb,
            Media.id != media.id,
            *live_media_filter(),
        )
        .all()
    )
    for other in others:
        other.sort_order += 1
        db.add(other)
    media.media_type = MediaType.thumb
    media.sort_order = 0
    db.add(media)
    db.commit()
    db.refresh(media)
    invalidate_menu(cache)
    logger.info("Media promoted to thumbnail: product=%s media=%s", product_id, media.id)
    return media
