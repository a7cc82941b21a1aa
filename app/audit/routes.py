"""Audit log API routes."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService
from app.audit.schemas import AuditLogListResponse, AuditLogResponse
from app.businesses.access import BusinessAccess, get_business_access, resolve_business_access
from app.models import User

router = APIRouter(tags=["Audit"])


@router.get("/businesses/{business_id}/audit-log", response_model=AuditLogListResponse)
async def get_business_audit_log(
    table_name: Optional[str] = None,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recent changes in a business, newest first."""
    audit = AuditService(db, user=current_user, business_id=access.business_id)
    logs, total = await audit.get_business_log(
        access.business_id,
        limit=limit,
        offset=offset,
        table_name=table_name,
        user_id=user_id,
        action=action,
    )
    return AuditLogListResponse(logs=logs, count=total)


@router.get("/audit/{table_name}/{record_id}", response_model=List[AuditLogResponse])
async def get_record_history(
    table_name: str,
    record_id: str,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change history of a single record.

    Access is checked against the business the entries belong to; entries
    without a business are visible to super admins only.
    """
    audit = AuditService(db, user=current_user)
    logs = await audit.get_record_history(table_name, record_id, limit=limit)

    if current_user.is_admin:
        return logs

    for business_id in {log.business_id for log in logs}:
        if business_id is None:
            raise HTTPException(status_code=403, detail="Admin access required")
        await resolve_business_access(db, current_user, business_id)

    return logs
