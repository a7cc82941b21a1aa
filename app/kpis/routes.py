"""KPI API routes."""
import logging
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.businesses.access import BusinessAccess, get_business_access, require_edit
from app.models import BusinessKPI, KPIHistory, User
from app.kpis import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses/{business_id}/kpis", tags=["KPIs"])

KPI_FIELDS = (
    "name", "friendly_name", "description", "category", "frequency", "unit",
    "target_value", "current_value", "notes", "why_it_matters", "what_to_do",
    "is_universal", "is_active",
)


def _definition(data: schemas.KPICreate) -> dict:
    values = data.model_dump(exclude={"kpi_id"})
    values["unit"] = data.unit.value
    values["friendly_name"] = data.friendly_name or data.name
    return values


async def _list_kpis(db: AsyncSession, business_id: str) -> List[BusinessKPI]:
    result = await db.execute(
        select(BusinessKPI)
        .where(BusinessKPI.business_id == business_id)
        .order_by(BusinessKPI.created_at.desc(), BusinessKPI.name)
    )
    return result.scalars().all()


async def _get_kpi(db: AsyncSession, business_id: str, kpi_id: str) -> BusinessKPI:
    result = await db.execute(
        select(BusinessKPI).where(BusinessKPI.business_id == business_id, BusinessKPI.kpi_id == kpi_id)
    )
    kpi = result.scalar_one_or_none()
    if not kpi:
        raise HTTPException(status_code=404, detail="KPI not found")
    return kpi


@router.get("", response_model=schemas.KPIListResponse)
async def list_kpis(
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    kpis = await _list_kpis(db, access.business_id)
    return schemas.KPIListResponse(kpis=kpis, count=len(kpis))


@router.post("", response_model=schemas.KPIResponse, status_code=201)
async def add_kpi(
    data: schemas.KPICreate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Start tracking one KPI."""
    require_edit(access)

    result = await db.execute(
        select(BusinessKPI.id).where(BusinessKPI.business_id == access.business_id, BusinessKPI.kpi_id == data.kpi_id)
    )
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"KPI '{data.kpi_id}' is already tracked")

    kpi = BusinessKPI(business_id=access.business_id, kpi_id=data.kpi_id, **_definition(data))
    db.add(kpi)
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_create("business_kpis", kpi.id, {"kpi_id": kpi.kpi_id, "name": kpi.name})

    await db.commit()
    await db.refresh(kpi)
    return kpi


@router.put("", response_model=schemas.KPIListResponse)
async def save_kpi_selection(
    data: schemas.KPISelection,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the tracked KPIs with the given selection.

    Listed KPIs are inserted or have their definitions updated. Recorded
    values are kept. KPIs missing from the selection are removed; their
    history stays so re-selecting one brings it back.
    """
    require_edit(access)
    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)

    existing = {kpi.kpi_id: kpi for kpi in await _list_kpis(db, access.business_id)}
    selected = {item.kpi_id for item in data.kpis}

    for item in data.kpis:
        values = _definition(item)
        kpi = existing.get(item.kpi_id)
        if kpi is None:
            kpi = BusinessKPI(business_id=access.business_id, kpi_id=item.kpi_id, is_active=True, **values)
            db.add(kpi)
            await db.flush()
            await audit.log_create("business_kpis", kpi.id, {"kpi_id": kpi.kpi_id, "name": kpi.name})
            continue

        before = snapshot(kpi, KPI_FIELDS)
        for field, value in values.items():
            setattr(kpi, field, value)
        kpi.is_active = True
        await audit.log_update("business_kpis", kpi.id, calculate_diff(before, snapshot(kpi, KPI_FIELDS)))

    for kpi_id, kpi in existing.items():
        if kpi_id not in selected:
            await audit.log_delete("business_kpis", kpi.id, {"kpi_id": kpi.kpi_id, "name": kpi.name})
            await db.delete(kpi)

    await db.commit()
    kpis = await _list_kpis(db, access.business_id)
    logger.info(f"Saved {len(kpis)} KPIs for business {access.business_id}")
    return schemas.KPIListResponse(kpis=kpis, count=len(kpis))


@router.patch("/{kpi_id}", response_model=schemas.KPIResponse)
async def record_kpi_value(
    kpi_id: str,
    data: schemas.KPIValueUpdate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a KPI's value, target or notes. Every current_value sent is added to its history."""
    require_edit(access)
    kpi = await _get_kpi(db, access.business_id, kpi_id)

    updates = data.model_dump(exclude_unset=True)
    before = snapshot(kpi, KPI_FIELDS)
    for field, value in updates.items():
        setattr(kpi, field, value)

    if "current_value" in updates:
        kpi.last_updated = datetime.now(timezone.utc)
        db.add(KPIHistory(
            business_id=access.business_id,
            kpi_id=kpi.kpi_id,
            value=updates["current_value"],
            notes=updates.get("notes"),
            recorded_by=current_user.id,
        ))

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_update("business_kpis", kpi.id, calculate_diff(before, snapshot(kpi, KPI_FIELDS)))

    await db.commit()
    await db.refresh(kpi)
    return kpi


@router.delete("/{kpi_id}")
async def remove_kpi(
    kpi_id: str,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stop tracking a KPI. Its history is kept."""
    require_edit(access)
    kpi = await _get_kpi(db, access.business_id, kpi_id)

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_delete("business_kpis", kpi.id, {"kpi_id": kpi.kpi_id, "name": kpi.name})
    await db.delete(kpi)
    await db.commit()

    return {"message": "KPI removed successfully"}


@router.get("/{kpi_id}/history", response_model=schemas.KPIHistoryResponse)
async def get_kpi_history(
    kpi_id: str,
    limit: int = Query(50, ge=1, le=500),
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Recorded values for a KPI, newest first."""
    result = await db.execute(
        select(KPIHistory)
        .where(KPIHistory.business_id == access.business_id, KPIHistory.kpi_id == kpi_id)
        .order_by(KPIHistory.recorded_at.desc())
        .limit(limit)
    )
    return schemas.KPIHistoryResponse(kpi_id=kpi_id, history=result.scalars().all())
