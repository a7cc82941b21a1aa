"""Business API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.models import Business, BusinessProfile, BusinessUser, User, MemberStatus
from app.businesses import schemas
from app.businesses.access import (
    BusinessAccess,
    get_business_access,
    resolve_active_business,
    require_edit,
    require_delete,
)
from app.businesses.service import create_business, get_or_invite_user
from app.notifications.service import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses", tags=["Businesses"])

BUSINESS_FIELDS = ("name", "industry", "status")
PROFILE_FIELDS = (
    "company_name", "industry", "annual_revenue", "employee_count",
    "founded_date", "website", "description",
)


def _viewer(access: BusinessAccess) -> schemas.ViewerContext:
    return schemas.ViewerContext(
        role=access.role,
        is_viewing_as_coach=access.is_viewing_as_coach,
        can_edit=access.can_edit,
        can_delete=access.can_delete,
    )


def _with_access(access: BusinessAccess) -> schemas.BusinessWithAccessResponse:
    return schemas.BusinessWithAccessResponse(
        business=schemas.BusinessResponse.model_validate(access.business),
        viewer=_viewer(access),
    )


# ============================================================================
# BUSINESSES
# ============================================================================

@router.get("", response_model=schemas.BusinessListResponse)
async def list_businesses(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Businesses visible to the current user: owned, coached or member of (all for admins)."""
    query = select(Business)
    count_query = select(func.count(Business.id))

    if not current_user.is_admin:
        member_of = select(BusinessUser.business_id).where(
            BusinessUser.user_id == current_user.id,
            BusinessUser.status == MemberStatus.ACTIVE.value,
        )
        visible = or_(
            Business.owner_id == current_user.id,
            Business.assigned_coach_id == current_user.id,
            Business.id.in_(member_of),
        )
        query = query.where(visible)
        count_query = count_query.where(visible)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.order_by(Business.name).limit(limit).offset(offset))

    return schemas.BusinessListResponse(businesses=result.scalars().all(), total=total)


@router.post("", response_model=schemas.BusinessWithAccessResponse, status_code=201)
async def create_business_route(
    data: schemas.BusinessCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a business.

    The caller becomes the owner, unless a coach or admin names an
    owner_email; that user (invited if new) becomes the owner and a
    coach is assigned as the business's coach.
    """
    owner = current_user
    invited = False
    assigned_coach_id = None

    if data.owner_email:
        if not (current_user.is_coach or current_user.is_admin):
            raise HTTPException(status_code=403, detail="Only coaches can create businesses for other users")
        owner, invited = await get_or_invite_user(
            db, data.owner_email, data.owner_first_name, data.owner_last_name
        )
        if current_user.is_coach:
            assigned_coach_id = current_user.id

    business = await create_business(
        db,
        name=data.name,
        owner=owner,
        industry=data.industry,
        assigned_coach_id=assigned_coach_id,
        invited_by=current_user.id if owner.id != current_user.id else None,
    )

    audit = AuditService(db, user=current_user, business_id=business.id, request=request)
    await audit.log_create("businesses", business.id, snapshot(business, BUSINESS_FIELDS))

    await db.commit()
    await db.refresh(business)

    if invited:
        await get_notification_service(db).send_invite_email(
            to=owner.email,
            business_name=business.name,
            inviter_name=current_user.full_name,
            token=owner.invite_token,
            role="owner",
        )

    access = await resolve_active_business(db, current_user, business.id)
    return _with_access(access)


@router.get("/active", response_model=schemas.ActiveBusinessResponse)
async def get_active_business(
    business_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Resolve the business the current user is working in.

    Coaches pass the business_id of the client they are viewing; clients
    fall back to their membership or owned business.
    """
    access = await resolve_active_business(db, current_user, business_id)
    if access is None:
        return schemas.ActiveBusinessResponse()
    return schemas.ActiveBusinessResponse(
        business=schemas.BusinessResponse.model_validate(access.business),
        viewer=_viewer(access),
    )


@router.get("/{business_id}", response_model=schemas.BusinessWithAccessResponse)
async def get_business(access: BusinessAccess = Depends(get_business_access)):
    """Get a business and the caller's access to it."""
    return _with_access(access)


@router.patch("/{business_id}", response_model=schemas.BusinessWithAccessResponse)
async def update_business(
    data: schemas.BusinessUpdate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update business fields."""
    require_edit(access)
    business = access.business

    before = snapshot(business, BUSINESS_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(business, field, value)

    changes = calculate_diff(before, snapshot(business, BUSINESS_FIELDS))
    audit = AuditService(db, user=current_user, business_id=business.id, request=request)
    await audit.log_update("businesses", business.id, changes)

    await db.commit()
    await db.refresh(business)
    return _with_access(access)


@router.delete("/{business_id}")
async def delete_business(
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a business and everything that belongs to it."""
    require_delete(access)

    # Logged without a business so the entry outlives it
    audit = AuditService(db, user=current_user, request=request)
    await audit.log_delete("businesses", access.business_id, snapshot(access.business, BUSINESS_FIELDS))

    await db.delete(access.business)
    await db.commit()

    logger.info(f"Business {access.business_id} deleted by {current_user.id}")
    return {"message": "Business deleted successfully"}


# ============================================================================
# PROFILE
# ============================================================================

async def _get_profile(db: AsyncSession, business_id: str) -> Optional[BusinessProfile]:
    result = await db.execute(
        select(BusinessProfile).where(BusinessProfile.business_id == business_id)
    )
    return result.scalar_one_or_none()


@router.get("/{business_id}/profile", response_model=schemas.BusinessProfileResponse)
async def get_business_profile(
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Get the business profile; an empty profile is returned when none exists."""
    profile = await _get_profile(db, access.business_id)
    if not profile:
        return schemas.BusinessProfileResponse(business_id=access.business_id)
    return profile


@router.put("/{business_id}/profile", response_model=schemas.BusinessProfileResponse)
async def upsert_business_profile(
    data: schemas.BusinessProfileUpdate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the business profile. Changes are audited."""
    require_edit(access)
    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)

    profile = await _get_profile(db, access.business_id)
    values = data.model_dump(exclude_unset=True)

    if profile is None:
        profile = BusinessProfile(business_id=access.business_id, **values)
        db.add(profile)
        await db.flush()
        await audit.log_create("business_profiles", profile.id, snapshot(profile, PROFILE_FIELDS))
    else:
        before = snapshot(profile, PROFILE_FIELDS)
        for field, value in values.items():
            setattr(profile, field, value)
        changes = calculate_diff(before, snapshot(profile, PROFILE_FIELDS))
        await audit.log_update("business_profiles", profile.id, changes)

    await db.commit()
    await db.refresh(profile)
    return profile
