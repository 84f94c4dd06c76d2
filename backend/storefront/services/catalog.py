"""Read side of the product catalog: listing, search, detail and category lookups."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.rbac import can_view_hidden_products
from storefront.core.sanitize import clean_single_line
from storefront.models.category import Category
from storefront.models.enums import MediaType
from storefront.models.product import Media, Product
from storefront.models.user import User
from storefront.services.category_tree import CategoryNode, CategoryTree, load_category_tree

logger = logging.getLogger(__name__)


@dataclass
class ProductCard:
    product: Product
    media: list[Media] = field(default_factory=list)

    @property
    def main_image(self) -> str | None:
        return self.media[0].file_url if self.media else None


@dataclass
class ProductPage:
    items: list[ProductCard]
    current_page: int
    total_pages: int
    total_count: int
    page_size: int


@dataclass
class ProductDetail:
    product: Product
    breadcrumb: str
    category_levels: list[int | None]
    thumbs: list[Media] = field(default_factory=list)
    images: list[Media] = field(default_factory=list)
    details: list[Media] = field(default_factory=list)
    videos: list[Media] = field(default_factory=list)

    @property
    def main_image(self) -> str | None:
        for group in (self.thumbs, self.images):
            if group:
                return group[0].file_url
        return None


@dataclass
class CategoryPath:
    id: int
    breadcrumb: str
    chain: list[CategoryNode]
    levels: list[int | None]


def live_media_filter():
    return (Media.is_active.is_(True), Media.deleted_at.is_(None))


def clamp_page(page: int, total_count: int, page_size: int) -> tuple[int, int]:
    """Return ``(current_page, total_pages)`` with the page forced into range."""
    total_pages = max(1, math.ceil(total_count / page_size))
    return min(max(page, 1), total_pages), total_pages


def matching_category_ids(db: Session, tree: CategoryTree, text: str) -> set[int]:
    """Active categories whose name contains ``text``, expanded to their whole subtrees."""
    rows = (
        db.query(Category.id)
        .filter(
            Category.is_active.is_(True),
            Category.deleted_at.is_(None),
            Category.name.contains(text, autoescape=True),
        )
        .all()
    )
    return tree.subtree_union(row.id for row in rows)


def listing_media(db: Session, product_ids: Sequence[int], *, limit: int | None = None) -> dict[int, list[Media]]:
    """Thumbnails per product, falling back to gallery images when a product has none."""
    if not product_ids:
        return {}
    cap = limit or settings.PRODUCT_THUMB_LIMIT
    rows = (
        db.query(Media)
        .filter(
            Media.product_id.in_(list(product_ids)),
            Media.media_type.in_([MediaType.thumb, MediaType.image]),
            *live_media_filter(),
        )
        .order_by(Media.product_id.asc(), Media.sort_order.asc(), Media.id.asc())
        .all()
    )
    thumbs: dict[int, list[Media]] = defaultdict(list)
    images: dict[int, list[Media]] = defaultdict(list)
    for row in rows:
        bucket = thumbs if row.media_type == MediaType.thumb else images
        bucket[row.product_id].append(row)
    return {product_id: (thumbs.get(product_id) or images.get(product_id) or [])[:cap] for product_id in product_ids}


def list_products(
    db: Session,
    *,
    page: int = 1,
    category_id: int | None = None,
    search: str | None = None,
    include_hidden: bool = False,
    viewer: User | None = None,
    page_size: int | None = None,
) -> ProductPage:
    size = page_size or settings.PRODUCT_PAGE_SIZE
    query = db.query(Product).filter(Product.deleted_at.is_(None))
    if not (include_hidden and can_view_hidden_products(viewer)):
        query = query.filter(Product.is_visible.is_(True))

    tree: CategoryTree | None = None
    if category_id is not None:
        tree = load_category_tree(db)
        query = query.filter(Product.category_id.in_(tree.descendants_inclusive(category_id)))

    text = clean_single_line(search)
    if text:
        tree = tree or load_category_tree(db)
        category_ids = matching_category_ids(db, tree, text)
        name_match = Product.name.contains(text, autoescape=True)
        if category_ids:
            query = query.filter(or_(name_match, Product.category_id.in_(category_ids)))
        else:
            query = query.filter(name_match)

    total_count = query.count()
    current_page, total_pages = clamp_page(page, total_count, size)
    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((current_page - 1) * size)
        .limit(size)
        .all()
    )
    media = listing_media(db, [product.id for product in products])
    return ProductPage(
        items=[ProductCard(product=product, media=media.get(product.id, [])) for product in products],
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
        page_size=size,
    )


def get_visible_product(db: Session, product_id: int, *, viewer: User | None = None) -> Product | None:
    product = db.get(Product, product_id)
    if not product or product.deleted_at is not None:
        return None
    if not product.is_visible and not can_view_hidden_products(viewer):
        return None
    return product


def get_product_detail(db: Session, product_id: int, *, viewer: User | None = None) -> ProductDetail | None:
    product = get_visible_product(db, product_id, viewer=viewer)
    if not product:
        return None

    tree = load_category_tree(db)
    rows = (
        db.query(Media)
        .filter(Media.product_id == product.id, *live_media_filter())
        .order_by(Media.sort_order.asc(), Media.id.asc())
        .all()
    )
    grouped: dict[MediaType, list[Media]] = defaultdict(list)
    for row in rows:
        grouped[row.media_type].append(row)

    return ProductDetail(
        product=product,
        breadcrumb=tree.breadcrumb(product.category_id),
        category_levels=tree.picker_levels(product.category_id, settings.CATEGORY_PICKER_DEPTH),
        thumbs=grouped[MediaType.thumb][: settings.PRODUCT_THUMB_LIMIT],
        images=grouped[MediaType.image],
        details=grouped[MediaType.detail],
        videos=grouped[MediaType.video],
    )


def category_children(db: Session, parent_id: int | None) -> list[CategoryNode]:
    return load_category_tree(db).children_of(parent_id)


def category_path(db: Session, category_id: int) -> CategoryPath | None:
    tree = load_category_tree(db)
    if category_id not in tree:
        return None
    chain = [tree.get(node_id) for node_id in tree.ancestor_chain(category_id)]
    return CategoryPath(
        id=category_id,
        breadcrumb=tree.breadcrumb(category_id),
        chain=[node for node in chain if node is not None],
        levels=tree.picker_levels(category_id, settings.CATEGORY_PICKER_DEPTH),
    )
