"""Shared document API routes."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.businesses.access import (
    BusinessAccess,
    get_business_access,
    resolve_business_access,
    require_edit,
)
from app.models import SharedDocument, User, NotificationType
from app.notifications.service import get_notification_service
from app.documents import schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

DOCUMENT_FIELDS = ("file_name", "folder", "description")


async def _get_document_with_access(db: AsyncSession, user: User, document_id: str):
    result = await db.execute(select(SharedDocument).where(SharedDocument.id == document_id))
    document = result.scalar_one_or_none()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    access = await resolve_business_access(db, user, document.business_id)
    return document, access


@router.get("/businesses/{business_id}/documents", response_model=List[schemas.DocumentResponse])
async def list_documents(
    folder: Optional[str] = None,
    access: BusinessAccess = Depends(get_business_access),
    db: AsyncSession = Depends(get_db),
):
    """Documents shared in a business, newest first."""
    query = select(SharedDocument).where(SharedDocument.business_id == access.business_id)
    if folder is not None:
        query = query.where(SharedDocument.folder == folder)

    result = await db.execute(query.order_by(SharedDocument.created_at.desc()))
    return result.scalars().all()


@router.post("/businesses/{business_id}/documents", response_model=schemas.DocumentResponse, status_code=201)
async def share_document(
    data: schemas.DocumentCreate,
    request: Request,
    access: BusinessAccess = Depends(get_business_access),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Share a document and notify the other side of the coaching relationship."""
    require_edit(access)

    document = SharedDocument(
        business_id=access.business_id,
        uploaded_by=current_user.id,
        **data.model_dump(),
    )
    db.add(document)
    await db.flush()

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_create("shared_documents", document.id, {"file_name": document.file_name})

    business = access.business
    recipient_id = business.owner_id if access.is_viewing_as_coach else business.assigned_coach_id
    if recipient_id and recipient_id != current_user.id:
        await get_notification_service(db).notify(
            user_id=recipient_id,
            notification_type=NotificationType.DOCUMENT_SHARED,
            title="New document shared",
            message=f"{current_user.full_name} shared {document.file_name}",
            business_id=business.id,
            link="/documents",
        )

    await db.commit()
    await db.refresh(document)
    return document


@router.patch("/documents/{document_id}", response_model=schemas.DocumentResponse)
async def update_document(
    document_id: str,
    data: schemas.DocumentUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a document or move it to another folder."""
    document, access = await _get_document_with_access(db, current_user, document_id)
    require_edit(access)

    before = snapshot(document, DOCUMENT_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(document, field, value)

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_update("shared_documents", document.id, calculate_diff(before, snapshot(document, DOCUMENT_FIELDS)))

    await db.commit()
    await db.refresh(document)
    return document


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a document. Allowed for the uploader and for users who may delete."""
    document, access = await _get_document_with_access(db, current_user, document_id)
    if document.uploaded_by != current_user.id and not access.can_delete:
        raise HTTPException(status_code=403, detail="You don't have permission to delete this document")

    audit = AuditService(db, user=current_user, business_id=access.business_id, request=request)
    await audit.log_delete("shared_documents", document.id, {"file_name": document.file_name})
    await db.delete(document)
    await db.commit()

    return {"message": "Document deleted successfully"}
