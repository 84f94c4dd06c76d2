"""Seed a small category tree and demo products for local development."""

from __future__ import annotations

import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from storefront.db.session import SessionLocal  # noqa: E402
from storefront.models.category import Category  # noqa: E402
from storefront.models.enums import MediaType  # noqa: E402
from storefront.models.product import Media, Product  # noqa: E402
from storefront.services.category_tree import load_category_tree  # noqa: E402


CATEGORY_PATHS = [
    ["Fashion", "Shoes", "Sneakers"],
    ["Fashion", "Shoes", "Boots"],
    ["Fashion", "Bags"],
    ["Home", "Kitchen", "Cookware"],
    ["Home", "Living"],
]

PRODUCTS = [
    {"path": ["Fashion", "Shoes", "Sneakers"], "name": "Red Shoes", "price": 59000, "discount_rate": 10},
    {"path": ["Fashion", "Shoes", "Boots"], "name": "Widget", "price": 89000, "discount_rate": None},
    {"path": ["Fashion", "Bags"], "name": "Canvas Tote", "price": 24000, "discount_rate": 25},
    {"path": ["Home", "Kitchen", "Cookware"], "name": "Cast Iron Pan", "price": 45000, "discount_rate": None},
]


def _ensure_path(db, names: list[str]) -> Category:
    parent: Category | None = None
    for name in names:
        query = db.query(Category).filter(Category.name == name)
        if parent is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == parent.id)
        category = query.first()
        if category is None:
            category = Category(name=name, parent_id=parent.id if parent else None, is_active=True)
            db.add(category)
            db.flush()
        parent = category
    return parent


def seed() -> None:
    db = SessionLocal()
    try:
        for path in CATEGORY_PATHS:
            _ensure_path(db, path)

        inserted = 0
        for payload in PRODUCTS:
            category = _ensure_path(db, payload["path"])
            if db.query(Product).filter(Product.name == payload["name"]).first():
                continue
            product = Product(
                category_id=category.id,
                name=payload["name"],
                price=payload["price"],
                discount_rate=payload["discount_rate"],
                is_visible=True,
            )
            db.add(product)
            db.flush()
            db.add(Media(product_id=product.id, media_type=MediaType.thumb, file_url="/uploads/placeholder.png", sort_order=0))
            inserted += 1
        db.commit()

        tree = load_category_tree(db)
        print(f"inserted={inserted}")
        for product in db.query(Product).order_by(Product.id.asc()).all():
            print(f"{product.id}\t{product.name}\t{tree.breadcrumb(product.category_id)}\tfinal_price={product.final_price}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
