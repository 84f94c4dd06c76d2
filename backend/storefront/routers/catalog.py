"""Public catalog endpoints: product listing and detail, category menu and picker."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.core.deps import get_menu_cache, get_optional_user
from storefront.core.exceptions import NotFoundError
from storefront.core.rate_limit import rate_limit
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.catalog import (
    CategoryMenuNodeOut,
    CategoryOptionOut,
    CategoryPathOut,
    MediaOut,
    ProductDetailOut,
    ProductListItemOut,
    ProductPageOut,
)
from storefront.services.catalog import ProductCard, ProductPage, category_children, category_path, get_product_detail, list_products
from storefront.services.category_tree import CategoryMenuNode
from storefront.services.menu_cache import MenuCache, get_visible_menu

router = APIRouter(dependencies=[Depends(rate_limit())])


def _card_out(card: ProductCard) -> ProductListItemOut:
    product = card.product
    return ProductListItemOut(
        id=product.id,
        category_id=product.category_id,
        name=product.name,
        price=product.price,
        discount_rate=product.discount_rate,
        final_price=product.final_price,
        is_visible=product.is_visible,
        created_at=product.created_at,
        main_image=card.main_image,
        media=[MediaOut.model_validate(m) for m in card.media],
    )


def page_out(page: ProductPage, *, category_id: int | None = None, search: str | None = None) -> ProductPageOut:
    return ProductPageOut(
        items=[_card_out(card) for card in page.items],
        current_page=page.current_page,
        total_pages=page.total_pages,
        total_count=page.total_count,
        page_size=page.page_size,
        category_id=category_id,
        search=search or None,
    )


def _menu_out(node: CategoryMenuNode) -> CategoryMenuNodeOut:
    return CategoryMenuNodeOut(id=node.id, name=node.name, children=[_menu_out(child) for child in node.children])


@router.get("/products", response_model=ProductPageOut)
def get_products(
    page: int = 1,
    category_id: int | None = None,
    search: str | None = Query(default=None, max_length=100),
    include_hidden: bool = False,
    db: Session = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> ProductPageOut:
    result = list_products(
        db,
        page=page,
        category_id=category_id,
        search=search,
        include_hidden=include_hidden,
        viewer=viewer,
    )
    return page_out(result, category_id=category_id, search=search)


@router.get("/products/{product_id}", response_model=ProductDetailOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> ProductDetailOut:
    detail = get_product_detail(db, product_id, viewer=viewer)
    if not detail:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    product = detail.product
    return ProductDetailOut(
        id=product.id,
        category_id=product.category_id,
        name=product.name,
        description=product.description,
        price=product.price,
        discount_rate=product.discount_rate,
        final_price=product.final_price,
        is_visible=product.is_visible,
        created_at=product.created_at,
        updated_at=product.updated_at,
        breadcrumb=detail.breadcrumb,
        category_levels=detail.category_levels,
        main_image=detail.main_image,
        thumbs=[MediaOut.model_validate(m) for m in detail.thumbs],
        images=[MediaOut.model_validate(m) for m in detail.images],
        details=[MediaOut.model_validate(m) for m in detail.details],
        videos=[MediaOut.model_validate(m) for m in detail.videos],
    )


@router.get("/menu", response_model=list[CategoryMenuNodeOut])
def get_menu(db: Session = Depends(get_db), cache: MenuCache = Depends(get_menu_cache)) -> list[CategoryMenuNodeOut]:
    return [_menu_out(node) for node in get_visible_menu(db, cache)]


@router.get("/categories/children", response_model=list[CategoryOptionOut])
def get_category_children(parent_id: int | None = None, db: Session = Depends(get_db)) -> list[CategoryOptionOut]:
    return [CategoryOptionOut(id=node.id, name=node.name) for node in category_children(db, parent_id)]


@router.get("/categories/{category_id}/path", response_model=CategoryPathOut)
def get_category_path(category_id: int, db: Session = Depends(get_db)) -> CategoryPathOut:
    path = category_path(db, category_id)
    if not path:
        raise NotFoundError("category_not_found", details={"category_id": category_id})
    return CategoryPathOut(
        id=path.id,
        breadcrumb=path.breadcrumb,
        chain=[CategoryOptionOut(id=node.id, name=node.name) for node in path.chain],
        levels=path.levels,
    )
