"""Mapping stored three-year goals to the targets the forecast wizard uses."""
import math
from datetime import date
from typing import Optional

from app.models import BusinessFinancialGoals
from app.goals.schemas import GoalsView


def _amount(value) -> Optional[float]:
    # Zero targets count as unset
    if value is None or value == 0:
        return None
    return float(value)


def margin_percent(part, revenue) -> Optional[int]:
    """Whole percentage of revenue, rounded half up. None without both values."""
    part, revenue = _amount(part), _amount(revenue)
    if part is None or revenue is None:
        return None
    return int(math.floor(part / revenue * 100 + 0.5))


def default_fiscal_year(today: Optional[date] = None) -> int:
    return (today or date.today()).year + 1


def goals_view(
    business_id: str,
    goals: Optional[BusinessFinancialGoals],
    fiscal_year: Optional[int] = None,
) -> GoalsView:
    fiscal_year = fiscal_year or default_fiscal_year()
    if goals is None:
        return GoalsView(business_id=business_id, fiscal_year=fiscal_year)

    return GoalsView(
        id=goals.id,
        business_id=goals.business_id,
        fiscal_year=fiscal_year,
        year_type=goals.year_type or "FY",
        revenue_target=_amount(goals.revenue_year1),
        gross_profit_target=_amount(goals.gross_profit_year1),
        profit_target=_amount(goals.net_profit_year1),
        gross_margin_percent=margin_percent(goals.gross_profit_year1, goals.revenue_year1),
        net_profit_percent=margin_percent(goals.net_profit_year1, goals.revenue_year1),
        revenue_year2=_amount(goals.revenue_year2),
        revenue_year3=_amount(goals.revenue_year3),
        gross_profit_year2=_amount(goals.gross_profit_year2),
        gross_profit_year3=_amount(goals.gross_profit_year3),
        net_profit_year2=_amount(goals.net_profit_year2),
        net_profit_year3=_amount(goals.net_profit_year3),
        headcount_target=goals.headcount_target,
        key_objectives=list(goals.key_objectives or []),
        created_at=goals.created_at,
        updated_at=goals.updated_at,
    )
