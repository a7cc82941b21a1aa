"""Super admin API routes."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select, func
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import require_admin
from app.audit.models import AuditLog
from app.audit.schemas import AuditLogListResponse
from app.audit.services import AuditService
from app.models import Business, User, SystemRole
from app.businesses.schemas import BusinessResponse
from app.businesses.service import create_business, get_or_invite_user
from app.notifications.service import get_notification_service
from app.admin import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_coach(db: AsyncSession, coach_id: str) -> User:
    result = await db.execute(select(User).where(User.id == coach_id))
    coach = result.scalar_one_or_none()
    if not coach or coach.system_role != SystemRole.COACH.value:
        raise HTTPException(status_code=400, detail="Coach not found")
    return coach


@router.get("/coaches", response_model=List[schemas.CoachSummary])
async def list_coaches(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All coaches with the number of businesses assigned to each."""
    client_counts = (
        select(Business.assigned_coach_id, func.count(Business.id).label("client_count"))
        .group_by(Business.assigned_coach_id)
        .subquery()
    )
    result = await db.execute(
        select(User, func.coalesce(client_counts.c.client_count, 0))
        .outerjoin(client_counts, client_counts.c.assigned_coach_id == User.id)
        .where(User.system_role == SystemRole.COACH.value)
        .order_by(User.email)
    )
    return [
        schemas.CoachSummary(
            id=coach.id,
            email=coach.email,
            first_name=coach.first_name,
            last_name=coach.last_name,
            is_active=coach.is_active,
            client_count=count,
            created_at=coach.created_at,
        )
        for coach, count in result.all()
    ]


@router.get("/clients", response_model=schemas.ClientListResponse)
async def list_clients(
    coach_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All client businesses with their owner and coach."""
    owner = aliased(User)
    coach = aliased(User)

    query = (
        select(Business, owner, coach)
        .outerjoin(owner, owner.id == Business.owner_id)
        .outerjoin(coach, coach.id == Business.assigned_coach_id)
    )
    count_query = select(func.count(Business.id))
    if coach_id:
        query = query.where(Business.assigned_coach_id == coach_id)
        count_query = count_query.where(Business.assigned_coach_id == coach_id)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.order_by(Business.name).limit(limit).offset(offset))

    clients = [
        schemas.ClientSummary(
            business=BusinessResponse.model_validate(business),
            owner_email=business_owner.email if business_owner else None,
            owner_name=business_owner.full_name if business_owner else None,
            owner_invite_pending=bool(business_owner and not business_owner.hashed_password),
            coach_name=business_coach.full_name if business_coach else None,
        )
        for business, business_owner, business_coach in result.all()
    ]
    return schemas.ClientListResponse(clients=clients, total=total)


@router.post("/clients", response_model=schemas.ClientCreateResponse, status_code=201)
async def create_client(
    data: schemas.ClientCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a business for a client, inviting the owner when they are new."""
    if data.coach_id:
        await _get_coach(db, data.coach_id)

    owner, invited = await get_or_invite_user(
        db, data.owner_email, data.owner_first_name, data.owner_last_name
    )
    business = await create_business(
        db,
        name=data.business_name,
        owner=owner,
        industry=data.industry,
        assigned_coach_id=data.coach_id,
        invited_by=current_user.id,
    )

    audit = AuditService(db, user=current_user, business_id=business.id, request=request, source="admin")
    await audit.log_create("businesses", business.id, {
        "name": business.name,
        "owner_id": owner.id,
        "assigned_coach_id": data.coach_id,
    })

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

    logger.info(f"Admin {current_user.id} created client business {business.id}")
    return schemas.ClientCreateResponse(
        business=BusinessResponse.model_validate(business),
        owner_id=owner.id,
        invited=invited,
    )


@router.post("/businesses/{business_id}/assign-coach", response_model=BusinessResponse)
async def assign_coach(
    business_id: str,
    data: schemas.AssignCoachRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Assign a coach to a business, or unassign with a null coach_id."""
    result = await db.execute(select(Business).where(Business.id == business_id))
    business = result.scalar_one_or_none()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    if data.coach_id:
        await _get_coach(db, data.coach_id)

    old_coach_id = business.assigned_coach_id
    business.assigned_coach_id = data.coach_id

    audit = AuditService(db, user=current_user, business_id=business.id, request=request, source="admin")
    await audit.log_update("businesses", business.id, {
        "assigned_coach_id": {"old": old_coach_id, "new": data.coach_id},
    })

    await db.commit()
    await db.refresh(business)
    return business


@router.patch("/users/{user_id}/role", response_model=schemas.UserRoleResponse)
async def update_user_role(
    user_id: str,
    data: schemas.UserRoleUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change a user's system role. Admins cannot change their own role."""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    old_role = user.system_role
    user.system_role = data.system_role

    audit = AuditService(db, user=current_user, request=request, source="admin")
    await audit.log_update("users", user.id, {"system_role": {"old": old_role, "new": data.system_role}})

    await db.commit()
    await db.refresh(user)

    logger.info(f"Changed role of user {user.id} from {old_role} to {data.system_role}")
    return user


@router.get("/activity", response_model=AuditLogListResponse)
async def get_activity(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Platform-wide audit log, newest first."""
    total = (await db.execute(select(func.count(AuditLog.id)))).scalar() or 0
    result = await db.execute(
        select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
    )
    return AuditLogListResponse(logs=result.scalars().all(), count=total)
