"""Coaching analytics API routes."""
from datetime import date, datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import require_coach
from app.businesses.access import BusinessAccess, get_business_access
from app.models import (
    Business,
    CoachingSession,
    Message,
    SessionAction,
    SessionStatus,
    ActionStatus,
    User,
)
from app.analytics import schemas

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/coach", response_model=schemas.CoachAnalyticsResponse)
async def get_coach_analytics(
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard numbers for each business the current user coaches."""
    result = await db.execute(
        select(Business)
        .where(Business.assigned_coach_id == current_user.id)
        .order_by(Business.name)
    )
    businesses = result.scalars().all()
    business_ids = [b.id for b in businesses]

    summaries = {
        b.id: schemas.CoachClientSummary(business_id=b.id, business_name=b.name, status=b.status)
        for b in businesses
    }

    if business_ids:
        pending = await db.execute(
            select(SessionAction.business_id, func.count(SessionAction.id))
            .where(
                SessionAction.business_id.in_(business_ids),
                SessionAction.status == ActionStatus.PENDING.value,
            )
            .group_by(SessionAction.business_id)
        )
        for business_id, count in pending.all():
            summaries[business_id].pending_actions = count

        overdue = await db.execute(
            select(SessionAction.business_id, func.count(SessionAction.id))
            .where(
                SessionAction.business_id.in_(business_ids),
                SessionAction.status == ActionStatus.PENDING.value,
                SessionAction.due_date < date.today(),
            )
            .group_by(SessionAction.business_id)
        )
        for business_id, count in overdue.all():
            summaries[business_id].overdue_actions = count

        unread = await db.execute(
            select(Message.business_id, func.count(Message.id))
            .where(
                Message.business_id.in_(business_ids),
                Message.recipient_id == current_user.id,
                Message.read.is_(False),
            )
            .group_by(Message.business_id)
        )
        for business_id, count in unread.all():
            summaries[business_id].unread_messages = count

        next_sessions = await db.execute(
            select(CoachingSession.business_id, func.min(CoachingSession.scheduled_at))
            .where(
                CoachingSession.business_id.in_(business_ids),
                CoachingSession.status == SessionStatus.SCHEDULED.value,
                CoachingSession.scheduled_at >= datetime.now(timezone.utc),
            )
            .group_by(CoachingSession.business_id)
        )
        for business_id, scheduled_at in next_sessions.all():
            summaries[business_id].next_session_at = scheduled_at

    clients = list(summaries.values())
    return schemas.CoachAnalyticsResponse(
        clients=clients,
        totals=schemas.CoachTotals(
            clients=len(clients),
            pending_actions=sum(c.pending_actions for c in clients),
            overdue_actions=sum(c.overdue_actions for c in clients),
            unread_messages=sum(c.unread_messages for c in clients),
            upcoming_sessions=sum(1 for c in clients if c.next_session_at is not None),
        ),
    )


@router.get("/businesses/{business_id}", response_model=schemas.BusinessAnalyticsResponse)
async def get_business_analytics(
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Engagement numbers for one business."""
    business_id = access.business_id

    action_counts = dict((await db.execute(
        select(SessionAction.status, func.count(SessionAction.id))
        .where(SessionAction.business_id == business_id)
        .group_by(SessionAction.status)
    )).all())
    total_actions = sum(action_counts.values())
    completed_actions = action_counts.get(ActionStatus.COMPLETED.value, 0)

    session_counts = dict((await db.execute(
        select(CoachingSession.status, func.count(CoachingSession.id))
        .where(CoachingSession.business_id == business_id)
        .group_by(CoachingSession.status)
    )).all())

    upcoming = (await db.execute(
        select(func.count(CoachingSession.id)).where(
            CoachingSession.business_id == business_id,
            CoachingSession.status == SessionStatus.SCHEDULED.value,
            CoachingSession.scheduled_at >= datetime.now(timezone.utc),
        )
    )).scalar() or 0

    last_session_at = (await db.execute(
        select(func.max(CoachingSession.scheduled_at)).where(
            CoachingSession.business_id == business_id,
            CoachingSession.status == SessionStatus.COMPLETED.value,
        )
    )).scalar()

    message_count = (await db.execute(
        select(func.count(Message.id)).where(Message.business_id == business_id)
    )).scalar() or 0

    completion_rate = round(completed_actions / total_actions * 100, 1) if total_actions else 0.0

    return schemas.BusinessAnalyticsResponse(
        business_id=business_id,
        total_actions=total_actions,
        completed_actions=completed_actions,
        action_completion_rate=completion_rate,
        total_sessions=sum(session_counts.values()),
        completed_sessions=session_counts.get(SessionStatus.COMPLETED.value, 0),
        upcoming_sessions=upcoming,
        message_count=message_count,
        last_session_at=last_session_at,
    )
