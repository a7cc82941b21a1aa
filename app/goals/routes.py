"""Financial goal API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.businesses.access import BusinessAccess, get_business_access, require_edit
from app.models import BusinessFinancialGoals, User
from app.goals import schemas
from app.goals.service import goals_view

router = APIRouter(prefix="/businesses/{business_id}/goals", tags=["Goals"])

GOAL_FIELDS = tuple(schemas.GoalsUpdate.model_fields)


async def _get_goals(db: AsyncSession, business_id: str) -> Optional[BusinessFinancialGoals]:
    result = await db.execute(
        select(BusinessFinancialGoals).where(BusinessFinancialGoals.business_id == business_id)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=schemas.GoalsResponse)
async def get_goals(
    fiscal_year: Optional[int] = None,
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Year 1 goals as targets with derived margins. Empty defaults when none are set."""
    goals = await _get_goals(db, access.business_id)
    return schemas.GoalsResponse(goals=goals_view(access.business_id, goals, fiscal_year))


@router.put("", response_model=schemas.GoalsResponse)
async def upsert_goals(
    data: schemas.GoalsUpdate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_edit(access)
    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    updates = data.model_dump(exclude_unset=True)

    goals = await _get_goals(db, access.business_id)
    if goals is None:
        goals = BusinessFinancialGoals(business_id=access.business_id, **updates)
        db.add(goals)
        await db.flush()
        await audit.log_create("business_financial_goals", goals.id, updates)
    else:
        before = snapshot(goals, GOAL_FIELDS)
        for field, value in updates.items():
            setattr(goals, field, value)
        await audit.log_update("business_financial_goals", goals.id, calculate_diff(before, snapshot(goals, GOAL_FIELDS)))

    await db.commit()
    await db.refresh(goals)
    return schemas.GoalsResponse(goals=goals_view(access.business_id, goals))
