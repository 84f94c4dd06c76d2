from __future__ import annotations

import datetime as dt

from storefront.schemas.catalog import ProductCreate
from storefront.services import catalog_admin
from storefront.services.menu_cache import MENU_CACHE_KEY, MenuCache, get_visible_menu


class _Clock:
    def __init__(self) -> None:
        self.now = dt.datetime(2026, 5, 1, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += dt.timedelta(seconds=seconds)


def _names(nodes) -> list:  # noqa: ANN001
    return [(node.name, _names(node.children)) for node in nodes]


def test_cache_entry_expires_after_ttl() -> None:
    clock = _Clock()
    cache = MenuCache(clock=clock)
    cache.set("k", ("value",), ttl_seconds=300)

    clock.advance(299)
    assert cache.get("k") == ("value",)
    clock.advance(1)
    assert cache.get("k") is None


def test_invalidate_and_clear_drop_entries() -> None:
    cache = MenuCache()
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get("b") is None


def test_menu_lists_only_categories_with_products_and_their_ancestors(db, make_category, make_product) -> None:
    fashion = make_category("Fashion")
    shoes = make_category("Shoes", fashion)
    sneakers = make_category("Sneakers", shoes)
    make_category("Boots", shoes)
    home = make_category("Home")
    kitchen = make_category("Kitchen", home)
    make_product(sneakers, "Runner", is_visible=False)
    make_product(kitchen, "Old Pan", deleted=True)

    menu = get_visible_menu(db, MenuCache())

    # Hidden products still put their category in the menu; deleted ones do not.
    assert _names(menu) == [("Fashion", [("Shoes", [("Sneakers", [])])])]


def test_menu_skips_inactive_categories(db, make_category, make_product) -> None:
    root = make_category("Root")
    inactive = make_category("Hidden", root, is_active=False)
    leaf = make_category("Leaf", inactive)
    make_product(leaf, "Thing")

    menu = get_visible_menu(db, MenuCache())

    # The inactive middle level is dropped, so Leaf becomes a root of its own.
    assert _names(menu) == [("Leaf", [])]


def test_menu_is_served_from_cache_until_invalidated(db, make_category, make_product) -> None:
    cache = MenuCache()
    shoes = make_category("Shoes")
    bags = make_category("Bags")
    make_product(shoes, "Red Shoes")

    first = get_visible_menu(db, cache)
    assert cache.get(MENU_CACHE_KEY) is first
    assert _names(first) == [("Shoes", [])]

    catalog_admin.create_product(db, cache, ProductCreate(category_id=bags.id, name="Tote", price=1000))
    assert cache.get(MENU_CACHE_KEY) is None

    second = get_visible_menu(db, cache)
    assert _names(second) == [("Bags", []), ("Shoes", [])]
    assert get_visible_menu(db, cache) is second
