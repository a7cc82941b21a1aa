"""Forecast request and response schemas."""
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, Dict, Any, List, Literal
from decimal import Decimal

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

CategoryLiteral = Literal[
    "Revenue", "Cost of Sales", "Operating Expenses", "Other Income", "Other Expenses"
]


# ============================================================================
# FORECASTS
# ============================================================================

class ForecastCreate(BaseModel):
    """Schema for creating a forecast. Month ranges default from the fiscal year."""
    business_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    fiscal_year: int = Field(..., ge=2000, le=2100)
    year_type: Literal["FY", "CY"] = "FY"
    currency: str = Field(default="AUD", pattern="^[A-Z]{3}$")
    forecast_type: Literal["budget", "forecast"] = "forecast"

    baseline_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    baseline_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    actual_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    actual_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    forecast_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    forecast_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)

    revenue_goal: Optional[Decimal] = None
    gross_profit_goal: Optional[Decimal] = None
    net_profit_goal: Optional[Decimal] = None


class ForecastUpdate(BaseModel):
    """Schema for updating a forecast."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    currency: Optional[str] = Field(None, pattern="^[A-Z]{3}$")

    baseline_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    baseline_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    actual_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    actual_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    forecast_start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    forecast_end_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)

    revenue_goal: Optional[Decimal] = None
    gross_profit_goal: Optional[Decimal] = None
    net_profit_goal: Optional[Decimal] = None
    version_notes: Optional[str] = None
    is_completed: Optional[bool] = None

    @field_validator(
        "name", "currency", "actual_start_month", "actual_end_month",
        "forecast_start_month", "forecast_end_month", "is_completed",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class ForecastResponse(BaseModel):
    """Schema for forecast response."""
    id: str
    business_id: str
    user_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    fiscal_year: int
    year_type: str
    currency: str

    baseline_start_month: Optional[str] = None
    baseline_end_month: Optional[str] = None
    actual_start_month: str
    actual_end_month: str
    forecast_start_month: str
    forecast_end_month: str

    forecast_type: str
    version_number: int
    is_active: bool
    is_locked: bool
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    parent_forecast_id: Optional[str] = None
    version_notes: Optional[str] = None

    revenue_goal: Optional[Decimal] = None
    gross_profit_goal: Optional[Decimal] = None
    net_profit_goal: Optional[Decimal] = None

    is_completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ForecastListResponse(BaseModel):
    forecasts: List[ForecastResponse]


class ForecastSummary(BaseModel):
    """P&L totals."""
    revenue: float
    cogs: float
    gross_profit: float
    gross_margin_percent: float
    opex: float
    other_income: float
    other_expenses: float
    net_profit: float
    net_margin_percent: float


class ForecastSummaryResponse(BaseModel):
    forecast_id: str
    months: List[str]
    forecast: ForecastSummary
    actual: ForecastSummary
    revenue_goal: Optional[Decimal] = None
    gross_profit_goal: Optional[Decimal] = None
    net_profit_goal: Optional[Decimal] = None


# ============================================================================
# P&L LINES
# ============================================================================

class PLLineCreate(BaseModel):
    """
    Schema for creating a P&L line.

    When annual_amount is given it is spread evenly over the forecast months
    from start_month, replacing forecast_months.
    """
    account_name: str = Field(..., min_length=1, max_length=255)
    account_code: Optional[str] = None
    category: CategoryLiteral
    subcategory: Optional[str] = None
    sort_order: int = 0
    actual_months: Dict[str, float] = {}
    forecast_months: Dict[str, float] = {}
    annual_amount: Optional[float] = None
    start_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    notes: Optional[str] = None


class PLLineUpdate(BaseModel):
    account_name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_code: Optional[str] = None
    category: Optional[CategoryLiteral] = None
    subcategory: Optional[str] = None
    sort_order: Optional[int] = None
    actual_months: Optional[Dict[str, float]] = None
    forecast_months: Optional[Dict[str, float]] = None
    notes: Optional[str] = None

    @field_validator("account_name", "sort_order", "actual_months", "forecast_months")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class PLLineResponse(BaseModel):
    id: str
    forecast_id: str
    account_code: Optional[str] = None
    account_name: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    sort_order: int
    actual_months: Dict[str, Any]
    forecast_months: Dict[str, Any]
    is_from_xero: bool
    is_manual: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ============================================================================
# SCENARIOS & VERSIONS
# ============================================================================

class WhatIfParameters(BaseModel):
    """Percentage changes per category (10 = +10%). No range is enforced."""
    revenue_change: float = 0
    cogs_change: float = 0
    opex_change: float = 0


class ApplyScenarioRequest(BaseModel):
    """Either explicit percentages or a saved scenario to apply."""
    revenue_change: Optional[float] = None
    cogs_change: Optional[float] = None
    opex_change: Optional[float] = None
    scenario_id: Optional[str] = None

    @model_validator(mode="after")
    def check_parameters(self):
        changes = (self.revenue_change, self.cogs_change, self.opex_change)
        if self.scenario_id is None and all(c is None for c in changes):
            raise ValueError("Provide scenario_id or at least one percentage change")
        return self


class ApplyScenarioResponse(BaseModel):
    forecast_id: str
    lines_updated: int
    parameters: WhatIfParameters
    summary: ForecastSummary


class VersionCreate(BaseModel):
    """Copy a forecast into a new version, optionally applying what-if parameters."""
    forecast_id: str
    version_name: str = Field(..., min_length=1, max_length=255)
    version_type: Literal["budget", "forecast"] = "forecast"
    parameters: Optional[WhatIfParameters] = None


class VersionCreateResponse(BaseModel):
    success: bool = True
    forecast: ForecastResponse
    lines_copied: int
    employees_copied: int


class VersionListResponse(BaseModel):
    versions: List[ForecastResponse]


class ScenarioCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scenario_type: Literal["active", "planning", "archived"] = "planning"
    revenue_multiplier: Decimal = Field(default=Decimal("1"), ge=0)
    cogs_multiplier: Decimal = Field(default=Decimal("1"), ge=0)
    opex_multiplier: Decimal = Field(default=Decimal("1"), ge=0)
    is_active: bool = False
    is_baseline: bool = False


class ScenarioUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    scenario_type: Optional[Literal["active", "planning", "archived"]] = None
    revenue_multiplier: Optional[Decimal] = Field(None, ge=0)
    cogs_multiplier: Optional[Decimal] = Field(None, ge=0)
    opex_multiplier: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_baseline: Optional[bool] = None

    @field_validator(
        "name", "scenario_type", "revenue_multiplier", "cogs_multiplier",
        "opex_multiplier", "is_active", "is_baseline",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class ScenarioResponse(BaseModel):
    id: str
    forecast_id: str
    user_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    scenario_type: str
    revenue_multiplier: Decimal
    cogs_multiplier: Decimal
    opex_multiplier: Decimal
    is_active: bool
    is_baseline: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ScenarioComparison(BaseModel):
    scenario_id: str
    name: str
    parameters: WhatIfParameters
    summary: ForecastSummary


class ScenarioCompareResponse(BaseModel):
    forecast_id: str
    baseline: ForecastSummary
    scenarios: List[ScenarioComparison]


# ============================================================================
# IMPORT & DECISIONS
# ============================================================================

class ImportCSVResponse(BaseModel):
    forecast_id: str
    lines_created: int
    lines_updated: int
    accounts: int
    months: List[str]


class DecisionCreate(BaseModel):
    decision_type: str = Field(..., min_length=1, max_length=100)
    decision_data: Dict[str, Any] = {}
    user_reasoning: Optional[str] = None


class DecisionResponse(BaseModel):
    id: str
    forecast_id: str
    business_id: str
    user_id: Optional[str] = None
    decision_type: str
    decision_data: Dict[str, Any]
    user_reasoning: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
