"""
Forecast calculation engine.

Pure functions over P&L lines: month key generation, spreading annual
amounts across months, what-if percentage adjustments and P&L totals.
Nothing here touches the database.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from dateutil.relativedelta import relativedelta

from app.models.forecast import PLCategory, YearType

MonthValues = Dict[str, float]


# =============================================================================
# Months
# =============================================================================

def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def parse_month_key(key: str) -> date:
    """Parse "YYYY-MM" into the first day of that month."""
    year, month = key.split("-")
    return date(int(year), int(month), 1)


def month_range(start: str, end: str) -> List[str]:
    """Inclusive list of month keys from start to end."""
    current = parse_month_key(start)
    last = parse_month_key(end)
    months = []
    while current <= last:
        months.append(month_key(current))
        current += relativedelta(months=1)
    return months


def generate_month_keys(fiscal_year: int, year_type: str = YearType.FY.value) -> List[str]:
    """
    Month keys of a fiscal year.

    FY runs July of the previous year to June of fiscal_year.
    CY runs January to December of fiscal_year.
    """
    if year_type == YearType.FY.value:
        start = date(fiscal_year - 1, 7, 1)
    else:
        start = date(fiscal_year, 1, 1)
    return [month_key(start + relativedelta(months=i)) for i in range(12)]


def default_month_ranges(fiscal_year: int, year_type: str = YearType.FY.value) -> Dict[str, str]:
    """
    Default month ranges for a new forecast.

    Actuals and forecast both start at the first month of the year; the
    baseline is the previous fiscal year.
    """
    months = generate_month_keys(fiscal_year, year_type)
    baseline = generate_month_keys(fiscal_year - 1, year_type)
    return {
        "baseline_start_month": baseline[0],
        "baseline_end_month": baseline[-1],
        "actual_start_month": months[0],
        "actual_end_month": months[0],
        "forecast_start_month": months[0],
        "forecast_end_month": months[-1],
    }


def _round_cents(value: float) -> float:
    """Round half up to cents."""
    return math.floor(value * 100 + 0.5) / 100


def distribute_annual_amount(
    annual_amount: float,
    months: List[str],
    start_month: Optional[str] = None,
) -> MonthValues:
    """
    Spread an annual amount evenly across months.

    Months before start_month are 0. When no month is on or after
    start_month, every month is used. Values are rounded to cents.
    """
    result = {m: 0 for m in months}
    if not months:
        return result

    start_index = 0
    if start_month:
        start_index = next((i for i, m in enumerate(months) if m >= start_month), 0)

    active_months = months[start_index:]
    monthly_amount = _round_cents(annual_amount / len(active_months))
    for m in active_months:
        result[m] = monthly_amount
    return result


# =============================================================================
# What-if adjustments
# =============================================================================

@dataclass
class WhatIfParams:
    """Percentage changes per P&L category (10 = +10%)."""
    revenue_change: float = 0
    cogs_change: float = 0
    opex_change: float = 0

    @classmethod
    def from_multipliers(cls, revenue: Any, cogs: Any, opex: Any) -> "WhatIfParams":
        """Build from scenario multipliers (1.15 = +15%)."""
        return cls(
            revenue_change=(float(revenue) - 1) * 100,
            cogs_change=(float(cogs) - 1) * 100,
            opex_change=(float(opex) - 1) * 100,
        )

    def change_for(self, category: Optional[str]) -> Optional[float]:
        """Percentage for a category, or None when the category is not adjusted."""
        if category == PLCategory.REVENUE.value:
            return self.revenue_change
        if category == PLCategory.COST_OF_SALES.value:
            return self.cogs_change
        if category == PLCategory.OPERATING_EXPENSES.value:
            return self.opex_change
        return None


def apply_percentage(months: Mapping[str, Any], percentage_change: float) -> MonthValues:
    """Apply value * (1 + pct / 100) to every month. Missing values count as 0."""
    factor = 1 + percentage_change / 100
    return {key: (value or 0) * factor for key, value in months.items()}


def _get(line: Any, attr: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(attr)
    return getattr(line, attr)


def apply_what_if(line: Any, params: WhatIfParams) -> MonthValues:
    """
    Adjusted forecast months for one P&L line.

    Lines outside Revenue, Cost of Sales and Operating Expenses come back
    unchanged.
    """
    months = dict(_get(line, "forecast_months") or {})
    change = params.change_for(_get(line, "category"))
    if change is None:
        return months
    return apply_percentage(months, change)


def _format_percent(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def version_notes(params: Optional[WhatIfParams]) -> str:
    """Notes stored on a forecast version describing how it was made."""
    if params is None:
        return "Manual version creation"
    return (
        f"Created from What-If: Revenue {_format_percent(params.revenue_change)}%, "
        f"COGS {_format_percent(params.cogs_change)}pp, "
        f"OpEx {_format_percent(params.opex_change)}%"
    )


# =============================================================================
# Summaries
# =============================================================================

def _sum_months(months: Optional[Mapping[str, Any]]) -> float:
    if not months:
        return 0.0
    return float(sum(float(v or 0) for v in months.values()))


def _percent(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def summarize_lines(
    lines: Iterable[Any],
    multipliers: Optional[WhatIfParams] = None,
    field: str = "forecast_months",
) -> Dict[str, float]:
    """
    P&L totals over a set of lines.

    Args:
        lines: ForecastPLLine rows or dicts with category and month maps
        multipliers: Optional what-if adjustment applied before totalling
        field: Which month map to total ("forecast_months" or "actual_months")
    """
    totals = {category.value: 0.0 for category in PLCategory}

    for line in lines:
        category = _get(line, "category") or PLCategory.OPERATING_EXPENSES.value
        if category not in totals:
            continue
        months = _get(line, field) or {}
        if multipliers is not None:
            change = multipliers.change_for(category)
            if change is not None:
                months = apply_percentage(months, change)
        totals[category] += _sum_months(months)

    revenue = totals[PLCategory.REVENUE.value]
    cogs = totals[PLCategory.COST_OF_SALES.value]
    opex = totals[PLCategory.OPERATING_EXPENSES.value]
    other_income = totals[PLCategory.OTHER_INCOME.value]
    other_expenses = totals[PLCategory.OTHER_EXPENSES.value]

    gross_profit = revenue - cogs
    net_profit = gross_profit - opex + other_income - other_expenses

    return {
        "revenue": revenue,
        "cogs": cogs,
        "gross_profit": gross_profit,
        "gross_margin_percent": _percent(gross_profit, revenue),
        "opex": opex,
        "other_income": other_income,
        "other_expenses": other_expenses,
        "net_profit": net_profit,
        "net_margin_percent": _percent(net_profit, revenue),
    }
