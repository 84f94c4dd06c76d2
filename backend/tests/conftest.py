from __future__ import annotations

import datetime as dt
import os
import sys
from pathlib import Path
from uuid import uuid4


BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

# Settings are read once at import time, so the test environment is fixed before any storefront import.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["SMTP_FROM"] = ""
os.environ["ALLOWED_HOSTS"] = "*"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import storefront.models  # noqa: E402,F401
from storefront.core.security import hash_password  # noqa: E402
from storefront.db.base import Base  # noqa: E402
from storefront.db.session import get_db  # noqa: E402
from storefront.models.category import Category  # noqa: E402
from storefront.models.enums import MediaType, UserRole  # noqa: E402
from storefront.models.product import Media, Product  # noqa: E402
from storefront.models.user import User  # noqa: E402
from storefront.services.auth import issue_access_token  # noqa: E402
from storefront.services.menu_cache import MenuCache  # noqa: E402

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def menu_cache() -> MenuCache:
    return MenuCache()


@pytest.fixture
def app(db):
    from storefront.main import create_app

    application = create_app()

    def _override_db():
        yield db

    application.dependency_overrides[get_db] = _override_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    def _make(
        username: str = "buyer",
        *,
        email: str | None = None,
        name: str = "Buyer",
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.user,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=uuid4(),
            username=username,
            email=email or f"{username}@example.com",
            name=name,
            phone="01012345678",
            role=role,
            password_hash=hash_password(password),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_access_token(user)}"}

    return _headers


@pytest.fixture
def make_category(db):
    def _make(name: str, parent: Category | None = None, *, is_active: bool = True) -> Category:
        category = Category(name=name, parent_id=parent.id if parent else None, is_active=is_active)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def make_product(db):
    base_time = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)
    counter = {"n": 0}

    def _make(
        category: Category,
        name: str,
        *,
        price: int = 10000,
        discount_rate: int | None = None,
        is_visible: bool = True,
        deleted: bool = False,
    ) -> Product:
        counter["n"] += 1
        created_at = base_time + dt.timedelta(minutes=counter["n"])
        product = Product(
            category_id=category.id,
            name=name,
            price=price,
            discount_rate=discount_rate,
            is_visible=is_visible,
            created_at=created_at,
            deleted_at=created_at if deleted else None,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_media(db):
    def _make(product: Product, media_type: MediaType, file_url: str, *, sort_order: int = 0, is_active: bool = True) -> Media:
        media = Media(
            product_id=product.id,
            media_type=media_type,
            file_url=file_url,
            sort_order=sort_order,
            is_active=is_active,
        )
        db.add(media)
        db.commit()
        db.refresh(media)
        return media

    return _make
