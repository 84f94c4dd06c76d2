"""Product Q&A endpoints: list, ask, edit, delete and admin answers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from storefront.core.deps import get_current_user, get_optional_user, require_admin
from storefront.core.exceptions import BadRequestError, InsufficientPermissionsError, NotFoundError
from storefront.core.rate_limit import rate_limit
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.qna import AnswerRequest, QnAOut, QnAPageOut, QuestionCreate, QuestionUpdate
from storefront.services import qna as qna_service
from storefront.services.qna import QnAView

router = APIRouter(dependencies=[Depends(rate_limit("qna"))])


def qna_out(view: QnAView) -> QnAOut:
    qna = view.qna
    # Outsiders see that a secret question exists and whether it was answered, never its text.
    return QnAOut(
        id=qna.id,
        product_id=qna.product_id,
        user_name=qna.user_name,
        question=qna.question if view.can_view else None,
        answer=qna.answer if view.can_view else None,
        is_secret=qna.is_secret,
        is_answered=qna.is_answered,
        can_view=view.can_view,
        can_edit=view.can_edit,
        can_delete=view.can_delete,
        created_at=qna.created_at,
        updated_at=qna.updated_at,
        answered_at=qna.answered_at,
    )


def _not_found(qna_id: int) -> NotFoundError:
    return NotFoundError("qna_not_found", details={"qna_id": qna_id})


@router.get("/{product_id}/qna", response_model=QnAPageOut)
def list_questions(
    product_id: int,
    page: int = 1,
    db: Session = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> QnAPageOut:
    result = qna_service.list_questions(db, product_id, page=page, viewer=viewer)
    if result is None:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return QnAPageOut(
        items=[qna_out(view) for view in result.items],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total_count=result.total_count,
    )


@router.post("/{product_id}/qna", response_model=QnAOut, status_code=201)
def ask_question(
    product_id: int,
    payload: QuestionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> QnAOut:
    qna = qna_service.ask_question(db, product_id, current_user, payload)
    if not qna:
        raise NotFoundError("product_not_found", details={"product_id": product_id})
    return qna_out(QnAView(qna=qna, can_view=True, can_edit=True, can_delete=True))


@router.put("/{product_id}/qna/{qna_id}", response_model=QnAOut)
def edit_question(
    product_id: int,
    qna_id: int,
    payload: QuestionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> QnAOut:
    try:
        qna = qna_service.edit_question(db, current_user, product_id, qna_id, payload)
    except ValueError:
        raise InsufficientPermissionsError("qna_forbidden")
    if not qna:
        raise _not_found(qna_id)
    return qna_out(QnAView(qna=qna, can_view=True, can_edit=True, can_delete=True))


@router.delete("/{product_id}/qna/{qna_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response, response_model=None)
def delete_question(
    product_id: int,
    qna_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    try:
        deleted = qna_service.delete_question(db, current_user, product_id, qna_id)
    except ValueError:
        raise InsufficientPermissionsError("qna_forbidden")
    if not deleted:
        raise _not_found(qna_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{product_id}/qna/{qna_id}/answer", response_model=QnAOut)
def answer_question(
    product_id: int,
    qna_id: int,
    payload: AnswerRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> QnAOut:
    qna = qna_service.answer_question(db, admin, product_id, qna_id, payload)
    if not qna:
        raise _not_found(qna_id)
    return qna_out(QnAView(qna=qna, can_view=True, can_edit=False, can_delete=True))


@router.put("/{product_id}/qna/{qna_id}/answer", response_model=QnAOut)
def edit_answer(
    product_id: int,
    qna_id: int,
    payload: AnswerRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> QnAOut:
    try:
        qna = qna_service.edit_answer(db, admin, product_id, qna_id, payload)
    except ValueError:
        raise BadRequestError("answer_not_found", details={"qna_id": qna_id})
    if not qna:
        raise _not_found(qna_id)
    return qna_out(QnAView(qna=qna, can_view=True, can_edit=False, can_delete=True))


@router.delete("/{product_id}/qna/{qna_id}/answer", response_model=QnAOut)
def delete_answer(
    product_id: int,
    qna_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> QnAOut:
    qna = qna_service.delete_answer(db, admin, product_id, qna_id)
    if not qna:
        raise _not_found(qna_id)
    return qna_out(QnAView(qna=qna, can_view=True, can_edit=False, can_delete=True))
