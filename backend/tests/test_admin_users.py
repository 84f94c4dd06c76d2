from __future__ import annotations

from storefront.models.enums import UserRole


def test_admin_can_promote_and_soft_delete_users(client, db, make_user, auth_headers) -> None:
    admin = make_user("boss", role=UserRole.admin)
    shopper = make_user("shopper")
    headers = auth_headers(admin)

    promoted = client.patch(f"/api/admin/users/{shopper.id}/role", json={"role": "admin"}, headers=headers)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"

    assert client.delete(f"/api/admin/users/{shopper.id}", headers=headers).status_code == 204
    db.refresh(shopper)
    assert shopper.deleted_at is not None
    assert shopper.is_active is False

    listed = {u["username"] for u in client.get("/api/admin/users/", headers=headers).json()}
    assert listed == {"boss"}
    everyone = client.get("/api/admin/users/", params={"include_deleted": True}, headers=headers).json()
    assert {u["username"] for u in everyone} == {"boss", "shopper"}


def test_admin_cannot_delete_own_account(client, make_user, auth_headers) -> None:
    admin = make_user("boss", role=UserRole.admin)

    response = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))

    assert response.status_code == 403
    assert response.json()["message"] == "cannot_delete_self"


def test_unknown_user_ids_are_not_found(client, make_user, auth_headers) -> None:
    headers = auth_headers(make_user("boss", role=UserRole.admin))

    assert client.delete("/api/admin/users/not-a-uuid", headers=headers).status_code == 404
    missing = client.patch(
        "/api/admin/users/00000000-0000-0000-0000-000000000000/role",
        json={"role": "user"},
        headers=headers,
    )
    assert missing.status_code == 404


def test_shoppers_cannot_manage_users(client, make_user, auth_headers) -> None:
    shopper = make_user("shopper")

    assert client.get("/api/admin/users/", headers=auth_headers(shopper)).status_code == 403
