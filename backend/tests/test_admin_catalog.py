from __future__ import annotations

import pytest

from storefront.core.config import settings
from storefront.models.enums import MediaType, UserRole
from storefront.schemas.catalog import CategoryUpdate, MediaCreate
from storefront.services import catalog_admin
from storefront.services.menu_cache import MENU_CACHE_KEY, get_visible_menu


@pytest.fixture
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user("boss", role=UserRole.admin))


def test_admin_routes_reject_shoppers(client, make_user, auth_headers) -> None:
    shopper = make_user("shopper")

    assert client.get("/api/admin/catalog/categories").status_code == 401
    assert client.get("/api/admin/catalog/categories", headers=auth_headers(shopper)).status_code == 403


def test_reparenting_under_own_descendant_is_refused(db, menu_cache, make_category) -> None:
    fashion = make_category("Fashion")
    shoes = make_category("Shoes", fashion)
    boots = make_category("Boots", shoes)

    with pytest.raises(ValueError, match="category_cycle"):
        catalog_admin.update_category(db, menu_cache, fashion.id, CategoryUpdate(parent_id=boots.id))
    with pytest.raises(ValueError, match="category_cycle"):
        catalog_admin.update_category(db, menu_cache, shoes.id, CategoryUpdate(parent_id=shoes.id))

    moved = catalog_admin.update_category(db, menu_cache, boots.id, CategoryUpdate(parent_id=fashion.id))
    assert moved.parent_id == fashion.id


def test_cycle_guard_walks_through_inactive_categories(db, menu_cache, make_category) -> None:
    root = make_category("Root")
    hidden = make_category("Hidden", root, is_active=False)
    leaf = make_category("Leaf", hidden)

    with pytest.raises(ValueError, match="category_cycle"):
        catalog_admin.update_category(db, menu_cache, root.id, CategoryUpdate(parent_id=leaf.id))


def test_category_api_cycle_and_missing_parent(client, admin_headers, make_category) -> None:
    fashion = make_category("Fashion")
    shoes = make_category("Shoes", fashion)

    cycle = client.patch(
        f"/api/admin/catalog/categories/{fashion.id}",
        json={"parent_id": shoes.id},
        headers=admin_headers,
    )
    assert cycle.status_code == 400
    assert cycle.json()["message"] == "category_cycle"

    orphan = client.post("/api/admin/catalog/categories", json={"name": "Lost", "parent_id": 9999}, headers=admin_headers)
    assert orphan.status_code == 400
    assert orphan.json()["message"] == "parent_not_found"


def test_product_create_through_api_refreshes_menu(client, app, admin_headers, make_category) -> None:
    fashion = make_category("Fashion")
    shoes = make_category("Shoes", fashion)

    assert client.get("/api/catalog/menu").json() == []
    assert app.state.menu_cache.get(MENU_CACHE_KEY) is not None

    created = client.post(
        "/api/admin/catalog/products",
        json={"category_id": shoes.id, "name": "Red Shoes", "price": 59000, "discount_rate": 10},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert created.json()["final_price"] == 53100

    menu = client.get("/api/catalog/menu").json()
    assert menu == [{"id": fashion.id, "name": "Fashion", "children": [{"id": shoes.id, "name": "Shoes", "children": []}]}]


def test_deactivated_category_drops_out_of_menu(db, menu_cache, make_category, make_product) -> None:
    fashion = make_category("Fashion")
    shoes = make_category("Shoes", fashion)
    make_product(shoes, "Red Shoes")
    assert [node.id for node in get_visible_menu(db, menu_cache)] == [fashion.id]

    catalog_admin.deactivate_category(db, menu_cache, fashion.id)

    assert [node.id for node in get_visible_menu(db, menu_cache)] == [shoes.id]


def test_product_in_inactive_category_is_refused(client, admin_headers, make_category) -> None:
    closed = make_category("Closed", is_active=False)

    response = client.post(
        "/api/admin/catalog/products",
        json={"category_id": closed.id, "name": "Thing", "price": 1000},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "category_not_found"


def test_admin_listing_includes_hidden_products(client, admin_headers, make_category, make_product) -> None:
    category = make_category("Misc")
    make_product(category, "Shown")
    make_product(category, "Hidden", is_visible=False)

    admin_page = client.get("/api/admin/catalog/products", headers=admin_headers).json()
    public_page = client.get("/api/catalog/products").json()

    assert admin_page["total_count"] == 2
    assert public_page["total_count"] == 1


def test_thumbnail_limit_is_enforced(client, admin_headers, make_category, make_product, monkeypatch) -> None:
    monkeypatch.setattr(settings, "PRODUCT_THUMB_LIMIT", 2)
    product = make_product(make_category("Misc"), "Lamp")
    url = f"/api/admin/catalog/products/{product.id}/media"

    for index in range(2):
        added = client.post(url, json={"media_type": "thumb", "file_url": f"/t/{index}.png"}, headers=admin_headers)
        assert added.status_code == 201

    over = client.post(url, json={"media_type": "thumb", "file_url": "/t/extra.png"}, headers=admin_headers)
    assert over.status_code == 409
    assert over.json()["message"] == "thumb_limit_reached"

    image = client.post(url, json={"media_type": "image", "file_url": "/i/1.png"}, headers=admin_headers).json()
    retype = client.patch(f"/api/admin/catalog/media/{image['id']}", json={"media_type": "thumb"}, headers=admin_headers)
    assert retype.status_code == 409


def test_promote_to_thumbnail_moves_media_to_front(db, menu_cache, make_category, make_product, make_media) -> None:
    product = make_product(make_category("Misc"), "Lamp")
    first = make_media(product, MediaType.thumb, "/t/a.png", sort_order=0)
    second = make_media(product, MediaType.thumb, "/t/b.png", sort_order=1)
    image = make_media(product, MediaType.image, "/i/c.png", sort_order=5)
    video = make_media(product, MediaType.video, "/v/d.mp4")

    promoted = catalog_admin.promote_to_thumbnail(db, menu_cache, product.id, image.id)

    assert promoted.media_type == MediaType.thumb
    assert promoted.sort_order == 0
    db.refresh(first)
    db.refresh(second)
    assert (first.sort_order, second.sort_order) == (1, 2)

    with pytest.raises(ValueError, match="invalid_media_type"):
        catalog_admin.promote_to_thumbnail(db, menu_cache, product.id, video.id)
    assert catalog_admin.promote_to_thumbnail(db, menu_cache, product.id + 1, image.id) is None


def test_deleted_media_is_hidden_and_frees_thumb_slot(db, menu_cache, make_category, make_product, monkeypatch) -> None:
    monkeypatch.setattr(settings, "PRODUCT_THUMB_LIMIT", 1)
    product = make_product(make_category("Misc"), "Lamp")
    thumb = catalog_admin.add_media(db, menu_cache, product.id, MediaCreate(media_type=MediaType.thumb, file_url="/t/a.png"))

    with pytest.raises(ValueError, match="thumb_limit_reached"):
        catalog_admin.add_media(db, menu_cache, product.id, MediaCreate(media_type=MediaType.thumb, file_url="/t/b.png"))

    assert catalog_admin.delete_media(db, menu_cache, thumb.id) is True
    assert catalog_admin.list_product_media(db, product.id) == []
    assert catalog_admin.add_media(db, menu_cache, product.id, MediaCreate(media_type=MediaType.thumb, file_url="/t/b.png"))


def test_upload_stores_file_and_registers_media(client, admin_headers, make_category, make_product, monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    product = make_product(make_category("Misc"), "Lamp")
    url = f"/api/admin/catalog/products/{product.id}/media/upload"

    uploaded = client.post(
        url,
        files={"file": ("photo.PNG", b"\x89PNG fake bytes", "image/png")},
        data={"media_type": "image", "sort_order": "3"},
        headers=admin_headers,
    )
    assert uploaded.status_code == 201
    body = uploaded.json()
    assert body["media_type"] == "image"
    assert body["sort_order"] == 3
    assert body["file_url"].startswith("/uploads/")
    assert body["file_url"].endswith(".png")
    stored = tmp_path / body["file_url"].rsplit("/", 1)[-1]
    assert stored.read_bytes() == b"\x89PNG fake bytes"

    rejected = client.post(
        url,
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"media_type": "image"},
        headers=admin_headers,
    )
    assert rejected.status_code == 422
    assert rejected.json()["message"] == "unsupported_file_type"
    assert len(list(tmp_path.iterdir())) == 1


def test_upload_over_thumb_limit_leaves_no_file(client, admin_headers, make_category, make_product, make_media, monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "PRODUCT_THUMB_LIMIT", 1)
    product = make_product(make_category("Misc"), "Lamp")
    make_media(product, MediaType.thumb, "/t/a.png")

    response = client.post(
        f"/api/admin/catalog/products/{product.id}/media/upload",
        files={"file": ("thumb.jpg", b"jpeg bytes", "image/jpeg")},
        data={"media_type": "thumb"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert list(tmp_path.iterdir()) == []


def test_deleted_product_disappears_from_storefront(client, admin_headers, make_category, make_product) -> None:
    product = make_product(make_category("Misc"), "Lamp")

    assert client.delete(f"/api/admin/catalog/products/{product.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/catalog/products/{product.id}").status_code == 404
    assert client.delete(f"/api/admin/catalog/products/{product.id}", headers=admin_headers).status_code == 404
