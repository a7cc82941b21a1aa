"""
Forecast Models

Financial forecasts are profit-and-loss projections for one business and
fiscal year. Monthly values are stored as JSON maps keyed by "YYYY-MM".
"""
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Numeric, Boolean, Integer, ForeignKey, Text, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id, JSONBCompat


class PLCategory(str, Enum):
    REVENUE = "Revenue"
    COST_OF_SALES = "Cost of Sales"
    OPERATING_EXPENSES = "Operating Expenses"
    OTHER_INCOME = "Other Income"
    OTHER_EXPENSES = "Other Expenses"


class ForecastType(str, Enum):
    BUDGET = "budget"
    FORECAST = "forecast"


class YearType(str, Enum):
    FY = "FY"  # July to June
    CY = "CY"  # January to December


class ScenarioType(str, Enum):
    ACTIVE = "active"
    PLANNING = "planning"
    ARCHIVED = "archived"


class FinancialForecast(Base):
    """A named P&L projection for a business and fiscal year."""

    __tablename__ = "financial_forecasts"

    id = Column(String, primary_key=True, default=lambda: generate_id("fcst"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    fiscal_year = Column(Integer, nullable=False)
    year_type = Column(String, nullable=False, default=YearType.FY.value)
    currency = Column(String, nullable=False, default="AUD")

    # Month ranges ("YYYY-MM")
    baseline_start_month = Column(String, nullable=True)
    baseline_end_month = Column(String, nullable=True)
    actual_start_month = Column(String, nullable=False)
    actual_end_month = Column(String, nullable=False)
    forecast_start_month = Column(String, nullable=False)
    forecast_end_month = Column(String, nullable=False)

    # Versioning
    forecast_type = Column(String, nullable=False, default=ForecastType.FORECAST.value)
    version_number = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    is_locked = Column(Boolean, nullable=False, default=False)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    locked_by = Column(String, nullable=True)
    parent_forecast_id = Column(String, ForeignKey("financial_forecasts.id", ondelete="SET NULL"), nullable=True)
    version_notes = Column(Text, nullable=True)

    # Goals
    revenue_goal = Column(Numeric(precision=15, scale=2), nullable=True)
    gross_profit_goal = Column(Numeric(precision=15, scale=2), nullable=True)
    net_profit_goal = Column(Numeric(precision=15, scale=2), nullable=True)

    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    lines = relationship("ForecastPLLine", back_populates="forecast", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_forecasts_business_year", "business_id", "fiscal_year"),
    )


class ForecastPLLine(Base):
    """A single revenue or cost account row within a forecast."""

    __tablename__ = "forecast_pl_lines"

    id = Column(String, primary_key=True, default=lambda: generate_id("pll"))
    forecast_id = Column(
        String, ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_code = Column(String, nullable=True)
    account_name = Column(String, nullable=False)
    category = Column(String, nullable=True)  # See PLCategory
    subcategory = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    actual_months = Column(JSONBCompat, nullable=False, default=dict)
    forecast_months = Column(JSONBCompat, nullable=False, default=dict)

    is_from_xero = Column(Boolean, nullable=False, default=False)
    is_manual = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    forecast = relationship("FinancialForecast", back_populates="lines")


class ForecastEmployee(Base):
    """Planned headcount line used by payroll assumptions."""

    __tablename__ = "forecast_employees"

    id = Column(String, primary_key=True, default=lambda: generate_id("femp"))
    forecast_id = Column(
        String, ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_name = Column(String, nullable=False)
    position = Column(String, nullable=True)
    classification = Column(String, nullable=False, default="opex")  # "opex" | "cogs"
    annual_salary = Column(Numeric(precision=15, scale=2), nullable=True)
    start_month = Column(String, nullable=True)
    end_month = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ForecastScenario(Base):
    """
    What-if scenario expressed as category multipliers.

    1.00 = unchanged, 1.15 = +15%, 0.85 = -15%.
    """

    __tablename__ = "forecast_scenarios"

    id = Column(String, primary_key=True, default=lambda: generate_id("scn"))
    forecast_id = Column(
        String, ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    scenario_type = Column(String, nullable=False, default=ScenarioType.PLANNING.value)

    revenue_multiplier = Column(Numeric(precision=8, scale=4), nullable=False, default=1)
    cogs_multiplier = Column(Numeric(precision=8, scale=4), nullable=False, default=1)
    opex_multiplier = Column(Numeric(precision=8, scale=4), nullable=False, default=1)

    is_active = Column(Boolean, nullable=False, default=False)
    is_baseline = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ForecastDecision(Base):
    """A decision captured while building a forecast, kept for the audit trail."""

    __tablename__ = "forecast_decisions"

    id = Column(String, primary_key=True, default=lambda: generate_id("dec"))
    forecast_id = Column(
        String, ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    decision_type = Column(String, nullable=False)
    decision_data = Column(JSONBCompat, nullable=False, default=dict)
    user_reasoning = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
