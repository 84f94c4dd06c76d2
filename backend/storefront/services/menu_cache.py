"""TTL cache service and the cached navigation menu of visible categories."""

from __future__ import annotations

import datetime as dt
import logging
from threading import Lock
from typing import Any

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.models.product import Product
from storefront.services.category_tree import CategoryMenuNode, load_category_tree

logger = logging.getLogger(__name__)

MENU_CACHE_KEY = "category_menu:v1"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class MenuCache:
    """Process-local key/value cache with per-entry expiry.

    Values are stored and returned as whole objects; callers must treat them
    as read-only and replace them with ``set`` instead of mutating in place.
    """

    def __init__(self, *, clock=_utcnow) -> None:
        self._entries: dict[str, tuple[dt.datetime, Any]] = {}
        self._lock = Lock()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        expires_at = self._clock() + dt.timedelta(seconds=max(ttl_seconds, 0))
        with self._lock:
            self._entries[key] = (expires_at, value)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def product_category_ids(db: Session) -> set[int]:
    rows = db.query(Product.category_id).filter(Product.deleted_at.is_(None)).distinct().all()
    return {row.category_id for row in rows}


def build_visible_menu(db: Session) -> tuple[CategoryMenuNode, ...]:
    tree = load_category_tree(db)
    visible = tree.with_ancestors(product_category_ids(db))
    return tuple(tree.build_forest(visible))


def get_visible_menu(db: Session, cache: MenuCache) -> tuple[CategoryMenuNode, ...]:
    cached = cache.get(MENU_CACHE_KEY)
    if cached is not None:
        return cached

    menu = build_visible_menu(db)
    cache.set(MENU_CACHE_KEY, menu, ttl_seconds=settings.CATEGORY_MENU_CACHE_SECONDS)
    logger.info("Category menu rebuilt: %d root(s)", len(menu))
    return menu


def invalidate_menu(cache: MenuCache) -> None:
    cache.invalidate(MENU_CACHE_KEY)
    logger.debug("Category menu cache invalidated")
