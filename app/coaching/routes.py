"""Coaching session and action API routes."""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user, require_coach
from app.audit.services import AuditService, calculate_diff, snapshot
from app.businesses.access import (
    BusinessAccess,
    get_business_access,
    resolve_business_access,
    require_edit,
)
from app.models import (
    Business,
    CoachingSession,
    SessionAction,
    SessionStatus,
    ActionStatus,
    User,
    NotificationType,
)
from app.notifications.service import get_notification_service
from app.coaching import schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Coaching"])

SESSION_FIELDS = (
    "title", "scheduled_at", "duration_minutes", "status",
    "meeting_url", "agenda", "notes", "summary",
)
ACTION_FIELDS = ("title", "description", "assigned_to", "due_date", "status")


def _require_coaching_role(access: BusinessAccess, user: User) -> None:
    if not (access.is_viewing_as_coach or user.is_admin):
        raise HTTPException(status_code=403, detail="Only the business's coach can manage sessions")


# ============================================================================
# SESSIONS
# ============================================================================

async def _get_session_with_access(db: AsyncSession, user: User, session_id: str):
    result = await db.execute(select(CoachingSession).where(CoachingSession.id == session_id))
    session = result.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    access = await resolve_business_access(db, user, session.business_id)
    return session, access


@router.get("/businesses/{business_id}/sessions", response_model=List[schemas.SessionResponse])
async def list_sessions(
    upcoming: bool = False,
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Sessions of a business.

    With upcoming=true only future scheduled sessions are returned, soonest
    first; otherwise all sessions, most recent first.
    """
    query = select(CoachingSession).where(CoachingSession.business_id == access.business_id)
    if upcoming:
        query = query.where(
            CoachingSession.status == SessionStatus.SCHEDULED.value,
            CoachingSession.scheduled_at >= datetime.now(timezone.utc),
        ).order_by(CoachingSession.scheduled_at.asc())
    else:
        query = query.order_by(CoachingSession.scheduled_at.desc())

    result = await db.execute(query)
    return result.scalars().all()


@router.post("/businesses/{business_id}/sessions", response_model=schemas.SessionResponse, status_code=201)
async def schedule_session(
    data: schemas.SessionCreate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Schedule a coaching session and notify the business owner."""
    _require_coaching_role(access, current_user)

    business = access.business
    session = CoachingSession(
        business_id=business.id,
        coach_id=business.assigned_coach_id or current_user.id,
        **data.model_dump(),
    )
    db.add(session)
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=business.id, request=request)
    await audit.log_create("coaching_sessions", session.id, {"title": session.title, "scheduled_at": session.scheduled_at})

    if business.owner_id and business.owner_id != current_user.id:
        await get_notification_service(db).notify(
            user_id=business.owner_id,
            notification_type=NotificationType.SESSION_SCHEDULED,
            title="Coaching session scheduled",
            message=f"{session.title} on {session.scheduled_at:%d %b %Y at %H:%M}",
            business_id=business.id,
            link="/sessions",
        )

    await db.commit()
    await db.refresh(session)

    logger.info(f"Scheduled session {session.id} for business {business.id}")
    return session


@router.get("/coaching/sessions", response_model=List[schemas.CoachSessionResponse])
async def list_coach_sessions(
    upcoming: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_coach),
    db: AsyncSession = Depends(get_db),
):
    """The current coach's sessions across all client businesses."""
    query = (
        select(CoachingSession, Business.name)
        .join(Business, Business.id == CoachingSession.business_id)
        .where(CoachingSession.coach_id == current_user.id)
    )
    if upcoming:
        query = query.where(
            CoachingSession.status == SessionStatus.SCHEDULED.value,
            CoachingSession.scheduled_at >= datetime.now(timezone.utc),
        ).order_by(CoachingSession.scheduled_at.asc())
    else:
        query = query.order_by(CoachingSession.scheduled_at.desc())

    result = await db.execute(query.limit(limit))
    return [
        schemas.CoachSessionResponse(
            **schemas.SessionResponse.model_validate(session).model_dump(),
            business_name=business_name,
        )
        for session, business_name in result.all()
    ]


@router.get("/sessions/{session_id}", response_model=schemas.SessionResponse)
async def get_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session, _ = await _get_session_with_access(db, current_user, session_id)
    return session


@router.patch("/sessions/{session_id}", response_model=schemas.SessionResponse)
async def update_session(
    session_id: str,
    data: schemas.SessionUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reschedule a session, record notes or change its status."""
    session, access = await _get_session_with_access(db, current_user, session_id)
    require_edit(access)

    before = snapshot(session, SESSION_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(session, field, value)

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_update("coaching_sessions", session.id, calculate_diff(before, snapshot(session, SESSION_FIELDS)))

    await db.commit()
    await db.refresh(session)
    return session


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a session. Coaches and those who may delete in the business only."""
    session, access = await _get_session_with_access(db, current_user, session_id)
    if not (access.is_viewing_as_coach or access.can_delete):
        raise HTTPException(status_code=403, detail="You don't have permission to delete this session")

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_delete("coaching_sessions", session.id, {"title": session.title})
    await db.delete(session)
    await db.commit()

    return {"message": "Session deleted successfully"}


# ============================================================================
# ACTIONS
# ============================================================================

async def _get_action_with_access(db: AsyncSession, user: User, action_id: str):
    result = await db.execute(select(SessionAction).where(SessionAction.id == action_id))
    action = result.scalar_one_or_none()
    if not action:
        raise HTTPException(status_code=404, detail="Action not found")
    access = await resolve_business_access(db, user, action.business_id)
    return action, access


@router.get("/businesses/{business_id}/actions", response_model=schemas.ActionListResponse)
async def list_actions(
    status: Optional[schemas.ActionStatusLiteral] = None,
    limit: int = Query(100, ge=1, le=500),
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Actions of a business, earliest due date first (undated last), then newest."""
    query = select(SessionAction).where(SessionAction.business_id == access.business_id)
    if status:
        query = query.where(SessionAction.status == status)

    result = await db.execute(
        query.order_by(
            SessionAction.due_date.is_(None),
            SessionAction.due_date.asc(),
            SessionAction.created_at.desc(),
        ).limit(limit)
    )
    return schemas.ActionListResponse(actions=result.scalars().all())


@router.post("/businesses/{business_id}/actions", response_model=schemas.ActionResponse, status_code=201)
async def create_action(
    data: schemas.ActionCreate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an action item and notify its assignee."""
    require_edit(access)

    if data.session_id:
        result = await db.execute(
            select(CoachingSession.id).where(
                CoachingSession.id == data.session_id,
                CoachingSession.business_id == access.business_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(status_code=404, detail="Session not found")

    action = SessionAction(
        business_id=access.business_id,
        created_by=current_user.id,
        **data.model_dump(),
    )
    db.add(action)
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_create("session_actions", action.id, {"title": action.title, "assigned_to": action.assigned_to})

    if action.assigned_to and action.assigned_to != current_user.id:
        due = f" (due {action.due_date:%d %b %Y})" if action.due_date else ""
        await get_notification_service(db).notify(
            user_id=action.assigned_to,
            notification_type=NotificationType.ACTION_ASSIGNED,
            title="New action assigned to you",
            message=f"{action.title}{due}",
            business_id=access.business_id,
            link="/actions",
        )

    await db.commit()
    await db.refresh(action)
    return action


@router.patch("/actions/{action_id}", response_model=schemas.ActionResponse)
async def update_action(
    action_id: str,
    data: schemas.ActionUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update an action. Completing it stamps completed_at; any other status clears it."""
    action, access = await _get_action_with_access(db, current_user, action_id)
    require_edit(access)

    before = snapshot(action, ACTION_FIELDS)
    updates = data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(action, field, value)

    if "status" in updates:
        if action.status == ActionStatus.COMPLETED.value:
            if action.completed_at is None:
                action.completed_at = datetime.now(timezone.utc)
        else:
            action.completed_at = None

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_update("session_actions", action.id, calculate_diff(before, snapshot(action, ACTION_FIELDS)))

    await db.commit()
    await db.refresh(action)
    return action


@router.delete("/actions/{action_id}")
async def delete_action(
    action_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    action, access = await _get_action_with_access(db, current_user, action_id)
    require_edit(access)

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_delete("session_actions", action.id, {"title": action.title})
    await db.delete(action)
    await db.commit()

    return {"message": "Action deleted successfully"}
