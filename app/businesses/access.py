"""
Business access resolution.

Works out how the current user relates to a business (owner, assigned
coach, team member or super admin) and what they may do with it. Every
business-scoped route resolves access through here before touching rows.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.models import Business, BusinessUser, User, MemberRole, MemberStatus


@dataclass
class BusinessAccess:
    """The current user's view of one business."""
    business: Business
    role: str
    is_viewing_as_coach: bool
    can_edit: bool
    can_delete: bool

    @property
    def business_id(self) -> str:
        return self.business.id

    @property
    def can_manage_team(self) -> bool:
        return self.role in ("owner", "admin")


def determine_access(
    business: Business,
    user: User,
    membership: Optional[BusinessUser] = None,
) -> Optional[BusinessAccess]:
    """
    Pure access rules.

    Returns None when the user has no relationship with the business.
    Only active memberships count.
    """
    if user.is_admin:
        return BusinessAccess(business, "admin", False, can_edit=True, can_delete=True)

    if business.owner_id == user.id:
        return BusinessAccess(business, MemberRole.OWNER.value, False, can_edit=True, can_delete=True)

    if business.assigned_coach_id == user.id:
        return BusinessAccess(business, "coach", True, can_edit=True, can_delete=False)

    if membership is not None and membership.status == MemberStatus.ACTIVE.value:
        role = membership.role
        return BusinessAccess(
            business,
            role,
            False,
            can_edit=role != MemberRole.VIEWER.value,
            can_delete=role in (MemberRole.OWNER.value, MemberRole.ADMIN.value),
        )

    return None


async def get_membership(db: AsyncSession, business_id: str, user_id: str) -> Optional[BusinessUser]:
    result = await db.execute(
        select(BusinessUser).where(
            BusinessUser.business_id == business_id,
            BusinessUser.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def resolve_business_access(db: AsyncSession, user: User, business_id: str) -> BusinessAccess:
    """
    Load a business and the user's access to it.

    Raises:
        HTTPException 404 when the business does not exist
        HTTPException 403 when the user has no access
    """
    result = await db.execute(select(Business).where(Business.id == business_id))
    business = result.scalar_one_or_none()
    if not business:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Business not found")

    membership = None
    if not user.is_admin and user.id not in (business.owner_id, business.assigned_coach_id):
        membership = await get_membership(db, business.id, user.id)

    access = determine_access(business, user, membership)
    if access is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this business")
    return access


async def resolve_active_business(
    db: AsyncSession,
    user: User,
    business_id: Optional[str] = None,
) -> Optional[BusinessAccess]:
    """
    Pick the business the user is currently working in.

    An explicit business_id is access-checked. Otherwise the user's first
    active membership wins, falling back to the first business they own.
    Returns None when neither exists.
    """
    if business_id:
        return await resolve_business_access(db, user, business_id)

    result = await db.execute(
        select(Business)
        .join(BusinessUser, BusinessUser.business_id == Business.id)
        .where(
            BusinessUser.user_id == user.id,
            BusinessUser.status == MemberStatus.ACTIVE.value,
        )
        .order_by(BusinessUser.created_at)
        .limit(1)
    )
    business = result.scalar_one_or_none()

    if business is None:
        result = await db.execute(
            select(Business)
            .where(Business.owner_id == user.id)
            .order_by(Business.created_at)
            .limit(1)
        )
        business = result.scalar_one_or_none()

    if business is None:
        return None

    return await resolve_business_access(db, user, business.id)


# =============================================================================
# DEPENDENCIES
# =============================================================================

async def get_business_access(
    business_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BusinessAccess:
    """Dependency for routes with a business_id path parameter."""
    return await resolve_business_access(db, current_user, business_id)


def require_edit(access: BusinessAccess) -> None:
    if not access.can_edit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have permission to edit this business")


def require_delete(access: BusinessAccess) -> None:
    if not access.can_delete:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have permission to delete in this business")


def require_team_manager(access: BusinessAccess) -> None:
    if not access.can_manage_team:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only owners and admins can manage the team")
