"""Business service helpers shared by business, team and admin routes."""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.utils import generate_token, get_invite_expiry
from app.models import (
    Business, BusinessUser, User, MemberRole, MemberStatus, SystemRole,
)

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_or_invite_user(
    db: AsyncSession,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    system_role: str = SystemRole.CLIENT.value,
) -> Tuple[User, bool]:
    """
    Find a user by email, or create an invited user with a fresh invite token.

    Users who never accepted an earlier invite get a new token and expiry.

    Returns:
        (user, invited) where invited is True when the user was created
    """
    user = await get_user_by_email(db, email)
    if user:
        if user.hashed_password is None:
            # Earlier invite never accepted; its token may have expired
            user.invite_token = generate_token()
            user.invite_expires = get_invite_expiry()
            await db.flush()
        return user, False

    user = User(
        email=email.lower(),
        first_name=first_name,
        last_name=last_name,
        system_role=system_role,
        invite_token=generate_token(),
        invite_expires=get_invite_expiry(),
    )
    db.add(user)
    await db.flush()
    logger.info(f"Created invited user {user.id}")
    return user, True


async def create_business(
    db: AsyncSession,
    name: str,
    owner: User,
    industry: Optional[str] = None,
    assigned_coach_id: Optional[str] = None,
    invited_by: Optional[str] = None,
) -> Business:
    """Create a business with its owner membership."""
    business = Business(
        name=name,
        owner_id=owner.id,
        industry=industry,
        assigned_coach_id=assigned_coach_id,
    )
    db.add(business)
    await db.flush()

    # Owners without a password have not accepted their invite yet
    member_status = MemberStatus.ACTIVE.value if owner.hashed_password else MemberStatus.INVITED.value
    db.add(BusinessUser(
        business_id=business.id,
        user_id=owner.id,
        role=MemberRole.OWNER.value,
        status=member_status,
        invited_by=invited_by,
        invited_at=datetime.now(timezone.utc) if invited_by else None,
    ))
    await db.flush()

    logger.info(f"Created business {business.id} owned by {owner.id}")
    return business


async def activate_pending_memberships(db: AsyncSession, user: User) -> None:
    """Turn the user's invited memberships into active ones once they have a password."""
    await db.execute(
        update(BusinessUser)
        .where(
            BusinessUser.user_id == user.id,
            BusinessUser.status == MemberStatus.INVITED.value,
        )
        .values(status=MemberStatus.ACTIVE.value)
    )
