from __future__ import annotations

from storefront.core.config import settings
from storefront.models.enums import UserRole
from storefront.models.password_reset_token import PasswordResetToken
from storefront.models.user_address import UserAddress
from storefront.services import password_reset
from storefront.services.auth import mask_username

REGISTER_PAYLOAD = {
    "username": "Alice_01",
    "email": "Alice@Example.com",
    "password": "secret123",
    "name": "Alice Kim",
    "phone": "010-1234-5678",
    "zip_code": "04524",
    "address": "1 Main st",
}


def test_mask_username_keeps_two_leading_chars() -> None:
    assert mask_username("a") == "a*"
    assert mask_username("ab") == "a*"
    assert mask_username("abc") == "ab*"
    assert mask_username("alice_01") == "al******"


def test_register_login_and_me(client, db) -> None:
    created = client.post("/api/auth/register", json=REGISTER_PAYLOAD)
    assert created.status_code == 201
    body = created.json()
    assert body["username"] == "alice_01"
    assert body["email"] == "alice@example.com"
    assert body["role"] == "user"
    assert db.query(UserAddress).one().is_default is True

    login = client.post("/api/auth/login", json={"username": "ALICE_01", "password": "secret123"})
    assert login.status_code == 200
    assert settings.COOKIE_NAME in login.cookies
    token = login.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "alice_01"


def test_duplicate_username_and_email_conflict(client) -> None:
    assert client.post("/api/auth/register", json=REGISTER_PAYLOAD).status_code == 201

    same_username = client.post("/api/auth/register", json={**REGISTER_PAYLOAD, "email": "x@example.com"})
    assert same_username.status_code == 409
    assert same_username.json()["message"] == "username_exists"

    same_email = client.post("/api/auth/register", json={**REGISTER_PAYLOAD, "username": "bob"})
    assert same_email.status_code == 409
    assert same_email.json()["message"] == "email_exists"


def test_login_failures_share_one_message(client, make_user) -> None:
    make_user("alice")
    make_user("ghost", is_active=False)

    wrong_password = client.post("/api/auth/login", json={"username": "alice", "password": "nope-nope"})
    unknown = client.post("/api/auth/login", json={"username": "nobody", "password": "secret123"})
    inactive = client.post("/api/auth/login", json={"username": "ghost", "password": "secret123"})

    for response in (wrong_password, unknown, inactive):
        assert response.status_code == 401
        assert response.json()["message"] == "invalid_credentials"


def test_find_id_returns_masked_username(client, make_user) -> None:
    make_user("alice", name="Alice Kim", email="alice@example.com")

    found = client.post("/api/auth/find-id", json={"name": "Alice Kim", "email": "ALICE@example.com"})
    assert found.status_code == 200
    assert found.json() == {"masked_username": "al***"}

    missing = client.post("/api/auth/find-id", json={"name": "Bob", "email": "alice@example.com"})
    assert missing.status_code == 404


def test_forgot_and_reset_password_flow(client, db, make_user, monkeypatch) -> None:
    make_user("alice", email="alice@example.com")
    monkeypatch.setattr(password_reset, "send_email", lambda *args, **kwargs: True)

    unknown = client.post("/api/auth/forgot-password", json={"username": "nobody", "email": "alice@example.com"})
    known = client.post("/api/auth/forgot-password", json={"username": "alice", "email": "alice@example.com"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()

    row = db.query(PasswordResetToken).one()
    check = client.get("/api/auth/reset-password", params={"token_id": row.id, "token": row.token})
    assert check.status_code == 200
    assert check.json() == {"token_id": row.id, "valid": True}

    mismatch = client.post(
        "/api/auth/reset-password",
        json={"token_id": row.id, "token": row.token + "x", "new_password": "newpass1", "confirm_password": "newpass1"},
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["message"] == "token_mismatch"

    done = client.post(
        "/api/auth/reset-password",
        json={"token_id": row.id, "token": row.token, "new_password": "newpass1", "confirm_password": "newpass1"},
    )
    assert done.status_code == 200

    reused = client.get("/api/auth/reset-password", params={"token_id": row.id, "token": row.token})
    assert reused.status_code == 400
    assert reused.json()["message"] == "invalid_token"

    login = client.post("/api/auth/login", json={"username": "alice", "password": "newpass1"})
    assert login.status_code == 200


def test_mail_outage_does_not_reveal_existing_accounts(client, make_user, monkeypatch) -> None:
    make_user("alice", email="alice@example.com")
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_FROM", "noreply@example.com")
    monkeypatch.setattr(password_reset, "send_email", lambda *args, **kwargs: False)

    existing = client.post("/api/auth/forgot-password", json={"username": "alice", "email": "alice@example.com"})
    missing = client.post("/api/auth/forgot-password", json={"username": "nobody", "email": "alice@example.com"})

    assert existing.status_code == missing.status_code == 200
    assert existing.json() == missing.json()


def test_change_password_requires_matching_confirmation(client, make_user, auth_headers) -> None:
    user = make_user("alice")
    headers = auth_headers(user)

    mismatch = client.post(
        "/api/account/password",
        json={"current_password": "secret123", "new_password": "another1", "confirm_new_password": "another2"},
        headers=headers,
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["message"] == "password_mismatch"

    wrong_current = client.post(
        "/api/account/password",
        json={"current_password": "wrong-one", "new_password": "another1", "confirm_new_password": "another1"},
        headers=headers,
    )
    assert wrong_current.status_code == 400
    assert wrong_current.json()["message"] == "invalid_current_password"

    ok = client.post(
        "/api/account/password",
        json={"current_password": "secret123", "new_password": "another1", "confirm_new_password": "another1"},
        headers=headers,
    )
    assert ok.status_code == 200


def test_profile_email_change_must_be_unique(client, make_user, auth_headers) -> None:
    alice = make_user("alice")
    make_user("bob", email="bob@example.com")

    response = client.patch(
        "/api/account/",
        json={"name": "Alice", "phone": "01000000000", "email": "bob@example.com"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 409


def test_self_delete_soft_deletes_and_blocks_admins(client, db, make_user, auth_headers) -> None:
    alice = make_user("alice")
    admin = make_user("boss", role=UserRole.admin)

    refused = client.post("/api/account/delete", json={"password": "secret123"}, headers=auth_headers(admin))
    assert refused.status_code == 403

    bad_password = client.post("/api/account/delete", json={"password": "wrong-one"}, headers=auth_headers(alice))
    assert bad_password.status_code == 400

    headers = auth_headers(alice)
    deleted = client.post("/api/account/delete", json={"password": "secret123"}, headers=headers)
    assert deleted.status_code == 200

    db.refresh(alice)
    assert alice.is_active is False
    assert alice.deleted_at is not None
    assert client.get("/api/auth/me", headers=headers).status_code == 401
    assert client.post("/api/auth/login", json={"username": "alice", "password": "secret123"}).status_code == 401
