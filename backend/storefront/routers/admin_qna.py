"""Admin Q&A moderation queue."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.core.deps import require_admin
from storefront.core.rate_limit import rate_limit
from storefront.db.session import get_db
from storefront.schemas.qna import AdminQnAOut, AdminQnAPageOut, UnansweredCountOut
from storefront.services.qna import list_admin_questions, unanswered_count

router = APIRouter(dependencies=[Depends(rate_limit()), Depends(require_admin)])


@router.get("/", response_model=AdminQnAPageOut)
def get_questions(page: int = 1, unanswered_only: bool = False, db: Session = Depends(get_db)) -> AdminQnAPageOut:
    result = list_admin_questions(db, page=page, unanswered_only=unanswered_only)
    return AdminQnAPageOut(
        items=[
            AdminQnAOut(
                id=qna.id,
                product_id=qna.product_id,
                product_name=product_name,
                user_name=qna.user_name,
                question=qna.question,
                answer=qna.answer,
                is_secret=qna.is_secret,
                is_answered=qna.is_answered,
                created_at=qna.created_at,
                answered_at=qna.answered_at,
            )
            for qna, product_name in result.items
        ],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total_count=result.total_count,
        unanswered_only=unanswered_only,
    )


@router.get("/unanswered-count", response_model=UnansweredCountOut)
def get_unanswered_count(db: Session = Depends(get_db)) -> UnansweredCountOut:
    return UnansweredCountOut(count=unanswered_count(db))
