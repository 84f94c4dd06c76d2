from __future__ import annotations

import pytest

from storefront.schemas.address import AddressIn
from storefront.services.addresses import (
    add_address,
    delete_address,
    list_addresses,
    set_default_address,
    update_address,
)


def _address(label: str, *, is_default: bool = False) -> AddressIn:
    return AddressIn(zip_code="04524", address=f"{label} street", address_detail="101", is_default=is_default)


def _defaults(db, user) -> list[int]:  # noqa: ANN001
    return [a.id for a in list_addresses(db, user) if a.is_default]


def test_first_address_is_always_default(db, make_user) -> None:
    user = make_user("alice")

    first = add_address(db, user, _address("First", is_default=False))
    second = add_address(db, user, _address("Second"))

    assert first.is_default is True
    assert second.is_default is False
    assert _defaults(db, user) == [first.id]


def test_new_default_clears_previous_one(db, make_user) -> None:
    user = make_user("alice")
    first = add_address(db, user, _address("First"))
    second = add_address(db, user, _address("Second", is_default=True))

    assert _defaults(db, user) == [second.id]

    set_default_address(db, user, first.id)
    assert _defaults(db, user) == [first.id]

    update_address(db, user, second.id, _address("Second v2", is_default=True))
    assert _defaults(db, user) == [second.id]


def test_listing_puts_default_first_then_newest(db, make_user) -> None:
    user = make_user("alice")
    first = add_address(db, user, _address("First"))
    second = add_address(db, user, _address("Second"))
    third = add_address(db, user, _address("Third"))

    assert [a.id for a in list_addresses(db, user)] == [first.id, third.id, second.id]


def test_default_address_cannot_be_deleted(db, make_user) -> None:
    user = make_user("alice")
    first = add_address(db, user, _address("First"))
    second = add_address(db, user, _address("Second"))

    with pytest.raises(ValueError, match="default_address_locked"):
        delete_address(db, user, first.id)

    assert delete_address(db, user, second.id) is True
    assert delete_address(db, user, second.id) is False


def test_other_users_address_is_forbidden(db, make_user) -> None:
    alice = make_user("alice")
    mallory = make_user("mallory")
    address = add_address(db, alice, _address("Private"))

    with pytest.raises(ValueError, match="forbidden"):
        update_address(db, mallory, address.id, _address("Hijack"))
    with pytest.raises(ValueError, match="forbidden"):
        set_default_address(db, mallory, address.id)


def test_address_api_round_trip(client, make_user, auth_headers) -> None:
    user = make_user("alice")
    headers = auth_headers(user)

    created = client.post("/api/account/addresses", json={"zip_code": "04 524", "address": "Main st"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["is_default"] is True
    assert created.json()["zip_code"] == "04524"

    locked = client.delete(f"/api/account/addresses/{created.json()['id']}", headers=headers)
    assert locked.status_code == 400
    assert locked.json()["message"] == "default_address_locked"

    page = client.get("/api/account/", headers=headers)
    assert page.status_code == 200
    assert [a["id"] for a in page.json()["addresses"]] == [created.json()["id"]]
