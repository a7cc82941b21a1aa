"""Team member API routes."""
import logging
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.models import BusinessUser, User, MemberRole, MemberStatus, NotificationType
from app.businesses.schemas import (
    TeamInviteRequest,
    TeamInviteResponse,
    TeamMemberResponse,
    TeamMemberUpdate,
)
from app.businesses.access import BusinessAccess, get_business_access, require_team_manager
from app.businesses.service import get_or_invite_user
from app.notifications.service import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses/{business_id}/team", tags=["Team"])

MEMBER_FIELDS = ("role", "position", "section_permissions", "status")


def _member_response(member: BusinessUser, user: User) -> TeamMemberResponse:
    return TeamMemberResponse(
        id=member.id,
        business_id=member.business_id,
        user_id=member.user_id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=member.role,
        status=member.status,
        position=member.position,
        section_permissions=member.section_permissions or {},
        invited_at=member.invited_at,
        created_at=member.created_at,
    )


async def _get_member(db: AsyncSession, business_id: str, member_id: str):
    result = await db.execute(
        select(BusinessUser, User)
        .join(User, User.id == BusinessUser.user_id)
        .where(BusinessUser.id == member_id, BusinessUser.business_id == business_id)
    )
    row = result.first()
    if not row:
        raise HTTPException(status_code=404, detail="Team member not found")
    return row


@router.get("", response_model=List[TeamMemberResponse])
async def list_team(
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """List the business's team members with their user details."""
    result = await db.execute(
        select(BusinessUser, User)
        .join(User, User.id == BusinessUser.user_id)
        .where(
            BusinessUser.business_id == access.business_id,
            BusinessUser.status != MemberStatus.REMOVED.value,
        )
        .order_by(BusinessUser.created_at)
    )
    return [_member_response(member, user) for member, user in result.all()]


@router.post("/invite", response_model=TeamInviteResponse, status_code=201)
async def invite_team_member(
    data: TeamInviteRequest,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Invite someone to the business team.

    Existing users are added directly. A new email gets an invited account
    and an email with a link to set their password.
    """
    require_team_manager(access)
    business = access.business

    user, invited = await get_or_invite_user(db, data.email, data.first_name, data.last_name)

    result = await db.execute(
        select(BusinessUser).where(
            BusinessUser.business_id == business.id,
            BusinessUser.user_id == user.id,
        )
    )
    member = result.scalar_one_or_none()

    if member and member.status != MemberStatus.REMOVED.value:
        raise HTTPException(status_code=400, detail="User is already a member of this business")

    member_status = MemberStatus.INVITED.value if user.hashed_password is None else MemberStatus.ACTIVE.value
    now = datetime.now(timezone.utc)
    if member is None:
        member = BusinessUser(business_id=business.id, user_id=user.id)
        db.add(member)
    member.role = data.role
    member.status = member_status
    member.position = data.position
    member.section_permissions = data.section_permissions
    member.invited_by = current_user.id
    member.invited_at = now
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=business.id, request=request)
    await audit.log_create("business_users", member.id, {"email": user.email, "role": member.role})

    notifications = get_notification_service(db)
    if user.hashed_password is None:
        # New account, or an earlier invite that was never accepted
        await notifications.send_invite_email(
            to=user.email,
            business_name=business.name,
            inviter_name=current_user.full_name,
            token=user.invite_token,
            role=member.role,
        )
    else:
        await notifications.notify(
            user_id=user.id,
            notification_type=NotificationType.TEAM_INVITE,
            title=f"You've been added to {business.name}",
            message=f"{current_user.full_name} added you as {member.role}.",
            business_id=business.id,
            link="/dashboard",
        )

    await db.commit()
    await db.refresh(member)

    logger.info(f"Invited {user.id} to business {business.id} as {member.role}")
    return TeamInviteResponse(member=_member_response(member, user), invited=invited)


@router.patch("/{member_id}", response_model=TeamMemberResponse)
async def update_team_member(
    member_id: str,
    data: TeamMemberUpdate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change a member's role, position or section permissions."""
    require_team_manager(access)
    member, user = await _get_member(db, access.business_id, member_id)

    if member.role == MemberRole.OWNER.value and "role" in data.model_fields_set:
        raise HTTPException(status_code=400, detail="The owner's role cannot be changed")

    before = snapshot(member, MEMBER_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(member, field, value)

    changes = calculate_diff(before, snapshot(member, MEMBER_FIELDS))
    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_update("business_users", member.id, changes)

    await db.commit()
    await db.refresh(member)
    return _member_response(member, user)


@router.delete("/{member_id}")
async def remove_team_member(
    member_id: str,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove a member from the team. The owner cannot be removed."""
    require_team_manager(access)
    member, user = await _get_member(db, access.business_id, member_id)

    if member.role == MemberRole.OWNER.value or member.user_id == access.business.owner_id:
        raise HTTPException(status_code=400, detail="The business owner cannot be removed")

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_delete("business_users", member.id, {"email": user.email, "role": member.role})

    await db.delete(member)
    await db.commit()

    return {"message": "Team member removed"}
