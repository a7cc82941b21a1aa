"""Coach/client chat API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.auth.dependencies import get_current_user
from app.businesses.access import BusinessAccess, get_business_access, resolve_business_access
from app.middleware.rate_limit import limiter
from app.models import Message, User, SenderType, NotificationType
from app.notifications.service import get_notification_service
from app.messages import schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messages"])


@router.get("/businesses/{business_id}/messages", response_model=schemas.MessageListResponse)
async def list_messages(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Conversation of a business, oldest first.

    Messages addressed to the caller are marked as read.
    """
    total = (await db.execute(
        select(func.count(Message.id)).where(Message.business_id == access.business_id)
    )).scalar() or 0

    result = await db.execute(
        select(Message)
        .where(Message.business_id == access.business_id)
        .order_by(Message.created_at.asc(), Message.id)
        .limit(limit)
        .offset(offset)
    )
    messages = result.scalars().all()

    unread_ids = [m.id for m in messages if m.recipient_id == current_user.id and not m.read]
    if unread_ids:
        await db.execute(update(Message).where(Message.id.in_(unread_ids)).values(read=True))
        await db.commit()
        for message in messages:
            if message.id in unread_ids:
                message.read = True

    return schemas.MessageListResponse(messages=messages, total=total)


@router.post("/businesses/{business_id}/messages", response_model=schemas.MessageResponse, status_code=201)
@limiter.limit(settings.RATE_LIMIT_MESSAGES)
async def send_message(
    request: Request,
    data: schemas.MessageCreate,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Send a message.

    A client's message goes to the assigned coach; the coach's message
    goes to the business owner.
    """
    content = data.content.strip()
    if not content and not data.attachment_url:
        raise HTTPException(status_code=400, detail="Message content or attachment is required")

    business = access.business
    if access.is_viewing_as_coach:
        sender_type = SenderType.COACH.value
        recipient_id = business.owner_id
    else:
        sender_type = SenderType.CLIENT.value
        recipient_id = business.assigned_coach_id

    message = Message(
        business_id=business.id,
        sender_id=current_user.id,
        sender_type=sender_type,
        recipient_id=recipient_id,
        content=content,
        attachment_url=data.attachment_url,
        attachment_name=data.attachment_name,
        attachment_size=data.attachment_size,
        attachment_type=data.attachment_type,
    )
    db.add(message)

    if recipient_id and recipient_id != current_user.id:
        preview = content[:100] if content else f"Sent an attachment: {data.attachment_name or 'file'}"
        await get_notification_service(db).notify(
            user_id=recipient_id,
            notification_type=NotificationType.NEW_MESSAGE,
            title=f"New message from {current_user.full_name}",
            message=preview,
            business_id=business.id,
            link="/messages",
        )

    await db.commit()
    await db.refresh(message)
    return message


@router.get("/messages/unread-count", response_model=schemas.UnreadMessagesResponse)
async def get_unread_message_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unread messages addressed to the current user across all businesses."""
    result = await db.execute(
        select(func.count(Message.id)).where(
            Message.recipient_id == current_user.id,
            Message.read.is_(False),
        )
    )
    return schemas.UnreadMessagesResponse(count=result.scalar() or 0)


@router.post("/messages/{message_id}/read", response_model=schemas.MessageResponse)
async def mark_message_read(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a message addressed to the current user as read."""
    result = await db.execute(select(Message).where(Message.id == message_id))
    message = result.scalar_one_or_none()
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")

    await resolve_business_access(db, current_user, message.business_id)
    if message.recipient_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the recipient can mark a message as read")

    if not message.read:
        message.read = True
        await db.commit()
        await db.refresh(message)
    return message
