"""Audit log response schemas."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: str
    business_id: Optional[str] = None
    forecast_id: Optional[str] = None
    table_name: str
    record_id: str
    action: str
    field_name: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    changes: Optional[Any] = None
    description: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    source: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogResponse]
    count: int
