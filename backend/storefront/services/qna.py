"""Product Q&A threads and their admin moderation queue."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.rbac import can_answer_question, can_delete_question, can_edit_question, can_view_secret_question
from storefront.models.product import Product
from storefront.models.product_qna import ProductQnA
from storefront.models.user import User
from storefront.schemas.qna import AnswerRequest, QuestionCreate, QuestionUpdate
from storefront.services.catalog import clamp_page, get_visible_product

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass
class QnAView:
    qna: ProductQnA
    can_view: bool
    can_edit: bool
    can_delete: bool


@dataclass
class QnAPage:
    items: list
    current_page: int
    total_pages: int
    total_count: int


def _view(qna: ProductQnA, viewer: User | None) -> QnAView:
    return QnAView(
        qna=qna,
        can_view=can_view_secret_question(viewer, qna),
        can_edit=viewer is not None and can_edit_question(viewer, qna),
        can_delete=viewer is not None and can_delete_question(viewer, qna),
    )


def _unanswered_filter():
    return or_(ProductQnA.answer.is_(None), func.trim(ProductQnA.answer) == "")


def list_questions(db: Session, product_id: int, *, page: int = 1, viewer: User | None = None) -> QnAPage | None:
    """Newest-first page of a product's questions; secret ones carry ``can_view=False`` for outsiders."""
    if not get_visible_product(db, product_id, viewer=viewer):
        return None
    query = db.query(ProductQnA).filter(
        ProductQnA.product_id == product_id,
        ProductQnA.is_deleted.is_(False),
    )
    size = settings.QNA_PAGE_SIZE
    total_count = query.count()
    current_page, total_pages = clamp_page(page, total_count, size)
    rows = (
        query.order_by(ProductQnA.created_at.desc(), ProductQnA.id.desc())
        .offset((current_page - 1) * size)
        .limit(size)
        .all()
    )
    return QnAPage(
        items=[_view(row, viewer) for row in rows],
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
    )


def get_question(db: Session, product_id: int, qna_id: int) -> ProductQnA | None:
    qna = db.get(ProductQnA, qna_id)
    if not qna or qna.is_deleted or qna.product_id != product_id:
        return None
    return qna


def ask_question(db: Session, product_id: int, user: User, data: QuestionCreate) -> ProductQnA | None:
    if not get_visible_product(db, product_id, viewer=user):
        return None
    qna = ProductQnA(
        product_id=product_id,
        user_id=user.id,
        user_name=user.username,
        question=data.question,
        is_secret=data.is_secret,
        is_deleted=False,
        created_at=_utcnow(),
    )
    db.add(qna)
    db.commit()
    db.refresh(qna)
    logger.info("Question asked: product=%s qna=%s user=%s", product_id, qna.id, user.username)
    return qna


def edit_question(db: Session, user: User, product_id: int, qna_id: int, data: QuestionUpdate) -> ProductQnA | None:
    qna = get_question(db, product_id, qna_id)
    if not qna:
        return None
    if not can_edit_question(user, qna):
        logger.warning("Question edit refused: qna=%s user=%s", qna_id, user.username)
        raise ValueError("forbidden")
    qna.question = data.question
    qna.is_secret = data.is_secret
    qna.updated_at = _utcnow()
    db.add(qna)
    db.commit()
    db.refresh(qna)
    return qna


def delete_question(db: Session, user: User, product_id: int, qna_id: int) -> bool:
    qna = get_question(db, product_id, qna_id)
    if not qna:
        return False
    if not can_delete_question(user, qna):
        logger.warning("Question delete refused: qna=%s user=%s", qna_id, user.username)
        raise ValueError("forbidden")
    qna.is_deleted = True
    qna.updated_at = _utcnow()
    db.add(qna)
    db.commit()
    logger.info("Question deleted: qna=%s by=%s", qna_id, user.username)
    return True


def answer_question(db: Session, actor: User, product_id: int, qna_id: int, data: AnswerRequest) -> ProductQnA | None:
    """Set or replace the answer; ``answered_at`` tracks the latest write."""
    if not can_answer_question(actor):
        raise ValueError("forbidden")
    qna = get_question(db, product_id, qna_id)
    if not qna:
        return None
    now = _utcnow()
    qna.answer = data.answer
    qna.answered_at = now
    qna.updated_at = now
    db.add(qna)
    db.commit()
    db.refresh(qna)
    logger.info("Question answered: qna=%s by=%s", qna.id, actor.username)
    return qna


def edit_answer(db: Session, actor: User, product_id: int, qna_id: int, data: AnswerRequest) -> ProductQnA | None:
    qna = get_question(db, product_id, qna_id)
    if qna and not qna.is_answered:
        raise ValueError("answer_not_found")
    return answer_question(db, actor, product_id, qna_id, data)


def delete_answer(db: Session, actor: User, product_id: int, qna_id: int) -> ProductQnA | None:
    if not can_answer_question(actor):
        raise ValueError("forbidden")
    qna = get_question(db, product_id, qna_id)
    if not qna:
        return None
    qna.answer = None
    qna.answered_at = None
    qna.updated_at = _utcnow()
    db.add(qna)
    db.commit()
    db.refresh(qna)
    logger.info("Answer deleted: qna=%s by=%s", qna.id, actor.username)
    return qna


def list_admin_questions(db: Session, *, page: int = 1, unanswered_only: bool = False) -> QnAPage:
    """Moderation queue across all products, newest first, with product names attached."""
    query = db.query(ProductQnA, Product.name).outerjoin(Product, Product.id == ProductQnA.product_id).filter(
        ProductQnA.is_deleted.is_(False)
    )
    if unanswered_only:
        query = query.filter(_unanswered_filter())
    size = settings.ADMIN_QNA_PAGE_SIZE
    total_count = query.count()
    current_page, total_pages = clamp_page(page, total_count, size)
    rows = (
        query.order_by(ProductQnA.created_at.desc(), ProductQnA.id.desc())
        .offset((current_page - 1) * size)
        .limit(size)
        .all()
    )
    return QnAPage(
        items=[(qna, product_name) for qna, product_name in rows],
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
    )


def unanswered_count(db: Session) -> int:
    return db.query(ProductQnA).filter(ProductQnA.is_deleted.is_(False), _unanswered_filter()).count()
