"""
Notification Routes

API endpoints for the notification inbox and delivery preferences.
"""

from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.models import User, Notification, NotificationPreference, NotificationType
from app.models.notification import EMAIL_BY_DEFAULT

router = APIRouter(prefix="/notifications", tags=["Notifications"])


# =============================================================================
# SCHEMAS
# =============================================================================

class NotificationResponse(BaseModel):
    """Response schema for a notification."""
    id: str
    user_id: str
    business_id: Optional[str] = None
    type: str
    title: str
    message: Optional[str] = None
    link: Optional[str] = None
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    count: int


class NotificationPreferenceResponse(BaseModel):
    """Response schema for notification preference."""
    notification_type: str
    in_app_enabled: bool
    email_enabled: bool


class NotificationPreferenceUpdate(BaseModel):
    """Request schema for updating notification preference."""
    in_app_enabled: Optional[bool] = None
    email_enabled: Optional[bool] = None


class AllPreferencesResponse(BaseModel):
    """Response with all notification preferences."""
    preferences: List[NotificationPreferenceResponse]


# =============================================================================
# HELPERS
# =============================================================================

async def _unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Notification.id))
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return result.scalar() or 0


async def _get_own_notification(db: AsyncSession, notification_id: str, user: User) -> Notification:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    notification = result.scalar_one_or_none()
    if not notification or notification.user_id != user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


# =============================================================================
# INBOX ENDPOINTS
# =============================================================================

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's notifications, newest first."""
    conditions = [Notification.user_id == current_user.id]
    if unread_only:
        conditions.append(Notification.read.is_(False))

    count_result = await db.execute(select(func.count(Notification.id)).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .offset(offset)
    )

    return NotificationListResponse(
        notifications=result.scalars().all(),
        total=total,
        unread_count=await _unread_count(db, current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Number of unread notifications."""
    return UnreadCountResponse(count=await _unread_count(db, current_user.id))


@router.post("/read-all", response_model=UnreadCountResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark every notification of the current user as read."""
    await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.read.is_(False))
        .values(read=True, read_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return UnreadCountResponse(count=0)


# =============================================================================
# PREFERENCE ENDPOINTS
# =============================================================================

def _preference_view(
    notification_type: NotificationType,
    pref: Optional[NotificationPreference],
) -> NotificationPreferenceResponse:
    if pref is None:
        return NotificationPreferenceResponse(
            notification_type=notification_type.value,
            in_app_enabled=True,
            email_enabled=notification_type in EMAIL_BY_DEFAULT,
        )
    return NotificationPreferenceResponse(
        notification_type=notification_type.value,
        in_app_enabled=pref.in_app_enabled,
        email_enabled=pref.email_enabled,
    )


@router.get("/preferences", response_model=AllPreferencesResponse)
async def get_notification_preferences(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every notification type with the user's setting, or the default where none is stored."""
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == current_user.id)
    )
    stored = {p.notification_type: p for p in result.scalars().all()}
    return AllPreferencesResponse(
        preferences=[_preference_view(t, stored.get(t.value)) for t in NotificationType]
    )


@router.put("/preferences/{notification_type}", response_model=NotificationPreferenceResponse)
async def update_notification_preference(
    notification_type: str,
    update_data: NotificationPreferenceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the in-app or email switch for one notification type."""
    try:
        notif_type = NotificationType(notification_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid notification type: {notification_type}")

    result = await db.execute(
        select(NotificationPreference).where(
            NotificationPreference.user_id == current_user.id,
            NotificationPreference.notification_type == notif_type.value,
        )
    )
    pref = result.scalar_one_or_none()
    if pref is None:
        defaults = _preference_view(notif_type, None)
        pref = NotificationPreference(
            user_id=current_user.id,
            notification_type=notif_type.value,
            in_app_enabled=defaults.in_app_enabled,
            email_enabled=defaults.email_enabled,
        )
        db.add(pref)

    for field, value in update_data.model_dump(exclude_none=True).items():
        setattr(pref, field, value)

    await db.commit()
    return _preference_view(notif_type, pref)


# =============================================================================
# SINGLE NOTIFICATION ENDPOINTS
# =============================================================================

@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    notification = await _get_own_notification(db, notification_id, current_user)
    if not notification.read:
        notification.read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(notification)
    return notification


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a notification."""
    notification = await _get_own_notification(db, notification_id, current_user)
    await db.delete(notification)
    await db.commit()
    return {"message": "Notification deleted"}
