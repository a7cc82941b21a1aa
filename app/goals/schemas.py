"""Financial goal schemas."""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal


class GoalsUpdate(BaseModel):
    """Three-year targets. Omitted fields keep their stored values."""
    year_type: Optional[Literal["FY", "CY"]] = None
    revenue_year1: Optional[Decimal] = None
    revenue_year2: Optional[Decimal] = None
    revenue_year3: Optional[Decimal] = None
    gross_profit_year1: Optional[Decimal] = None
    gross_profit_year2: Optional[Decimal] = None
    gross_profit_year3: Optional[Decimal] = None
    net_profit_year1: Optional[Decimal] = None
    net_profit_year2: Optional[Decimal] = None
    net_profit_year3: Optional[Decimal] = None
    headcount_target: Optional[int] = Field(None, ge=0)
    key_objectives: Optional[List[str]] = None

    @field_validator("year_type", "key_objectives")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class GoalsView(BaseModel):
    """Goals as the forecast wizard reads them: year 1 values as targets."""
    id: Optional[str] = None
    business_id: str
    fiscal_year: int
    year_type: str = "FY"

    revenue_target: Optional[float] = None
    gross_profit_target: Optional[float] = None
    profit_target: Optional[float] = None
    gross_margin_percent: Optional[int] = None
    net_profit_percent: Optional[int] = None

    revenue_year2: Optional[float] = None
    revenue_year3: Optional[float] = None
    gross_profit_year2: Optional[float] = None
    gross_profit_year3: Optional[float] = None
    net_profit_year2: Optional[float] = None
    net_profit_year3: Optional[float] = None

    headcount_target: Optional[int] = None
    key_objectives: List[str] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GoalsResponse(BaseModel):
    goals: GoalsView
