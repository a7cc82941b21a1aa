"""Coach question library API routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import require_coach
from app.models import CoachQuestion, User
from app.questions import schemas

router = APIRouter(prefix="/questions", tags=["Questions"])


async def _get_own_question(db: AsyncSession, coach: User, question_id: str) -> CoachQuestion:
    result = await db.execute(
        select(CoachQuestion).where(
            CoachQuestion.id == question_id,
            CoachQuestion.coach_id == coach.id,
        )
    )
    question = result.scalar_one_or_none()
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


@router.get("", response_model=List[schemas.QuestionResponse])
async def list_questions(
    category: Optional[str] = None,
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    """The coach's own questions, most used first."""
    query = select(CoachQuestion).where(CoachQuestion.coach_id == current_user.id)
    if category:
        query = query.where(CoachQuestion.category == category)

    result = await db.execute(
        query.order_by(CoachQuestion.use_count.desc(), CoachQuestion.created_at.desc())
    )
    return result.scalars().all()


@router.post("", response_model=schemas.QuestionResponse, status_code=201)
async def create_question(
    data: schemas.QuestionCreate,
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    question = CoachQuestion(coach_id=current_user.id, **data.model_dump())
    db.add(question)
    await db.commit()
    await db.refresh(question)
    return question


@router.patch("/{question_id}", response_model=schemas.QuestionResponse)
async def update_question(
    question_id: str,
    data: schemas.QuestionUpdate,
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    question = await _get_own_question(db, current_user, question_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(question, field, value)

    await db.commit()
    await db.refresh(question)
    return question


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    question = await _get_own_question(db, current_user, question_id)
    await db.delete(question)
    await db.commit()
    return {"message": "Question deleted successfully"}


@router.post("/{question_id}/use", response_model=schemas.QuestionResponse)
async def use_question(
    question_id: str,
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    """Record that the coach asked this question."""
    question = await _get_own_question(db, current_user, question_id)
    question.use_count = CoachQuestion.use_count + 1

    await db.commit()
    await db.refresh(question)
    return question
