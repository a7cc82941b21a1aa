"""KPI schemas."""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from app.models import KPIUnit

TARGET_LIMIT = Decimal("999999999")


class KPICreate(BaseModel):
    kpi_id: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    friendly_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = None
    frequency: str = "monthly"
    unit: KPIUnit = KPIUnit.NUMBER
    target_value: Optional[Decimal] = Field(None, ge=-TARGET_LIMIT, le=TARGET_LIMIT)
    why_it_matters: Optional[str] = None
    what_to_do: Optional[str] = None
    is_universal: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("KPI name is required")
        return value


class KPISelection(BaseModel):
    """The full set of KPIs a business tracks. Existing ones not listed are removed."""
    kpis: List[KPICreate]

    @field_validator("kpis")
    @classmethod
    def unique_ids(cls, value: List[KPICreate]) -> List[KPICreate]:
        ids = [kpi.kpi_id for kpi in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Each KPI can only be selected once")
        return value


class KPIValueUpdate(BaseModel):
    """Record a value. A new current_value is also written to the KPI history."""
    current_value: Optional[Decimal] = None
    target_value: Optional[Decimal] = Field(None, ge=-TARGET_LIMIT, le=TARGET_LIMIT)
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("is_active")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class KPIResponse(BaseModel):
    id: str
    business_id: str
    kpi_id: str
    name: str
    friendly_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: str
    unit: str
    target_value: Optional[float] = None
    current_value: Optional[float] = None
    notes: Optional[str] = None
    why_it_matters: Optional[str] = None
    what_to_do: Optional[str] = None
    is_universal: bool
    is_active: bool
    last_updated: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class KPIListResponse(BaseModel):
    kpis: List[KPIResponse]
    count: int


class KPIHistoryEntry(BaseModel):
    id: str
    kpi_id: str
    value: Optional[float] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None
    recorded_at: datetime

    model_config = {"from_attributes": True}


class KPIHistoryResponse(BaseModel):
    kpi_id: str
    history: List[KPIHistoryEntry]
