from __future__ import annotations

import pytest

from storefront.models.enums import UserRole
from storefront.schemas.qna import AnswerRequest, QuestionCreate
from storefront.services.qna import ask_question, delete_answer, answer_question, list_admin_questions, unanswered_count


@pytest.fixture
def product(make_category, make_product):
    return make_product(make_category("Misc"), "Red Shoes")


def test_secret_questions_are_masked_for_outsiders(client, make_user, auth_headers, product) -> None:
    author = make_user("alice")
    outsider = make_user("bob")
    admin = make_user("boss", role=UserRole.admin)

    asked = client.post(
        f"/api/products/{product.id}/qna",
        json={"question": "Is it waterproof?", "is_secret": True},
        headers=auth_headers(author),
    )
    assert asked.status_code == 201
    assert asked.json()["user_name"] == "alice"

    anonymous = client.get(f"/api/products/{product.id}/qna").json()["items"][0]
    other = client.get(f"/api/products/{product.id}/qna", headers=auth_headers(outsider)).json()["items"][0]
    own = client.get(f"/api/products/{product.id}/qna", headers=auth_headers(author)).json()["items"][0]
    moderator = client.get(f"/api/products/{product.id}/qna", headers=auth_headers(admin)).json()["items"][0]

    for item in (anonymous, other):
        assert item["question"] is None
        assert item["can_view"] is False
        assert item["is_secret"] is True
    assert own["question"] == "Is it waterproof?"
    assert own["can_edit"] is True
    assert moderator["question"] == "Is it waterproof?"
    assert moderator["can_delete"] is True
    assert moderator["can_edit"] is False


def test_only_author_edits_and_admin_may_delete_any(client, make_user, auth_headers, product) -> None:
    author = make_user("alice")
    outsider = make_user("bob")
    admin = make_user("boss", role=UserRole.admin)
    qna_id = client.post(
        f"/api/products/{product.id}/qna",
        json={"question": "Sizes?"},
        headers=auth_headers(author),
    ).json()["id"]

    hijack = client.put(
        f"/api/products/{product.id}/qna/{qna_id}",
        json={"question": "Changed", "is_secret": False},
        headers=auth_headers(outsider),
    )
    assert hijack.status_code == 403
    assert client.delete(f"/api/products/{product.id}/qna/{qna_id}", headers=auth_headers(outsider)).status_code == 403

    edited = client.put(
        f"/api/products/{product.id}/qna/{qna_id}",
        json={"question": "Which sizes?", "is_secret": True},
        headers=auth_headers(author),
    )
    assert edited.status_code == 200
    assert edited.json()["question"] == "Which sizes?"

    assert client.delete(f"/api/products/{product.id}/qna/{qna_id}", headers=auth_headers(admin)).status_code == 204
    assert client.get(f"/api/products/{product.id}/qna").json()["total_count"] == 0


def test_answer_endpoints_require_admin(client, make_user, auth_headers, product) -> None:
    author = make_user("alice")
    admin = make_user("boss", role=UserRole.admin)
    qna_id = client.post(
        f"/api/products/{product.id}/qna",
        json={"question": "Restock date?"},
        headers=auth_headers(author),
    ).json()["id"]
    url = f"/api/products/{product.id}/qna/{qna_id}/answer"

    assert client.post(url, json={"answer": "Soon"}, headers=auth_headers(author)).status_code == 403
    assert client.put(url, json={"answer": "Soon"}, headers=auth_headers(admin)).status_code == 400

    answered = client.post(url, json={"answer": "Next week"}, headers=auth_headers(admin))
    assert answered.status_code == 200
    assert answered.json()["is_answered"] is True
    assert answered.json()["answered_at"] is not None

    edited = client.put(url, json={"answer": "Next Monday"}, headers=auth_headers(admin))
    assert edited.json()["answer"] == "Next Monday"

    removed = client.delete(url, headers=auth_headers(admin))
    assert removed.json()["answer"] is None
    assert removed.json()["is_answered"] is False


def test_qna_list_is_paginated_newest_first(client, db, make_user, product, monkeypatch) -> None:
    from storefront.core.config import settings

    monkeypatch.setattr(settings, "QNA_PAGE_SIZE", 2)
    author = make_user("alice")
    for index in range(3):
        ask_question(db, product.id, author, QuestionCreate(question=f"Question {index}"))

    first = client.get(f"/api/products/{product.id}/qna", params={"page": 1}).json()
    last = client.get(f"/api/products/{product.id}/qna", params={"page": 50}).json()

    assert first["total_pages"] == 2
    assert [item["question"] for item in first["items"]] == ["Question 2", "Question 1"]
    assert last["current_page"] == 2
    assert [item["question"] for item in last["items"]] == ["Question 0"]


def test_unanswered_count_ignores_deleted_and_blank_answers(db, make_user, product) -> None:
    author = make_user("alice")
    admin = make_user("boss", role=UserRole.admin)
    open_q = ask_question(db, product.id, author, QuestionCreate(question="Open"))
    answered = ask_question(db, product.id, author, QuestionCreate(question="Answered"))
    blank = ask_question(db, product.id, author, QuestionCreate(question="Blank answer"))
    deleted = ask_question(db, product.id, author, QuestionCreate(question="Deleted"))

    answer_question(db, admin, product.id, answered.id, AnswerRequest(answer="Yes"))
    blank.answer = "   "
    deleted.is_deleted = True
    db.commit()

    assert unanswered_count(db) == 2

    queue = list_admin_questions(db, unanswered_only=True)
    assert {qna.id for qna, _ in queue.items} == {open_q.id, blank.id}
    assert all(name == "Red Shoes" for _, name in queue.items)

    delete_answer(db, admin, product.id, answered.id)
    assert unanswered_count(db) == 3


def test_admin_qna_endpoints(client, make_user, auth_headers, db, product) -> None:
    author = make_user("alice")
    admin = make_user("boss", role=UserRole.admin)
    ask_question(db, product.id, author, QuestionCreate(question="Secret one", is_secret=True))

    assert client.get("/api/admin/qna/unanswered-count", headers=auth_headers(author)).status_code == 403

    count = client.get("/api/admin/qna/unanswered-count", headers=auth_headers(admin))
    assert count.json() == {"count": 1}

    queue = client.get("/api/admin/qna/", params={"unanswered_only": True}, headers=auth_headers(admin)).json()
    assert queue["total_count"] == 1
    assert queue["items"][0]["question"] == "Secret one"
    assert queue["items"][0]["product_name"] == "Red Shoes"
