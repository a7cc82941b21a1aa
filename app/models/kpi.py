"""
KPI Models

The metrics a business has chosen to track, and every value recorded
against them over time.
"""
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Boolean, Numeric, ForeignKey, Text, UniqueConstraint, Index,
)
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class KPIUnit(str, Enum):
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    NUMBER = "number"
    DAYS = "days"
    HOURS = "hours"
    MINUTES = "minutes"
    COUNT = "count"
    RATIO = "ratio"
    SCORE = "score"
    RATING = "rating"
    INDEX = "index"


class BusinessKPI(Base):
    """A KPI selected by a business. kpi_id is the library slug, unique per business."""

    __tablename__ = "business_kpis"

    id = Column(String, primary_key=True, default=lambda: generate_id("kpi"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    kpi_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    friendly_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    frequency = Column(String, nullable=False, default="monthly")
    unit = Column(String, nullable=False, default=KPIUnit.NUMBER.value)
    target_value = Column(Numeric(precision=18, scale=4), nullable=True)
    current_value = Column(Numeric(precision=18, scale=4), nullable=True)
    notes = Column(Text, nullable=True)
    why_it_matters = Column(Text, nullable=True)
    what_to_do = Column(Text, nullable=True)
    is_universal = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_updated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("business_id", "kpi_id", name="uq_business_kpi"),
    )


class KPIHistory(Base):
    """A value recorded for a KPI."""

    __tablename__ = "kpi_history"

    id = Column(String, primary_key=True, default=lambda: generate_id("kpih"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    kpi_id = Column(String, nullable=False)
    value = Column(Numeric(precision=18, scale=4), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_kpi_history_business_kpi", "business_id", "kpi_id", "recorded_at"),
    )
