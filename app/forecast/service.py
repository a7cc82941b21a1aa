"""
Forecast service.

Database operations behind the forecast routes: access checks, scenario
application, version copies and CSV merges. Functions flush but never
commit; the request's session commits once the route returns, so a
failure part way through rolls back every line.
"""
import logging
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.audit.services import AuditService
from app.businesses.access import BusinessAccess, resolve_business_access
from app.forecast.csv_import import ParsedPL
from app.forecast.engine import WhatIfParams, apply_what_if, version_notes
from app.models import (
    FinancialForecast,
    ForecastPLLine,
    ForecastEmployee,
    ForecastScenario,
    ForecastType,
    User,
)

logger = logging.getLogger(__name__)

# Columns never copied into a new version
_VERSION_SKIP_COLUMNS = {"id", "created_at", "updated_at"}


# =============================================================================
# Loading and access
# =============================================================================

async def get_forecast_with_access(
    db: AsyncSession,
    user: User,
    forecast_id: str,
) -> Tuple[FinancialForecast, BusinessAccess]:
    """Load a forecast and check the user's access to its business."""
    result = await db.execute(
        select(FinancialForecast).where(FinancialForecast.id == forecast_id)
    )
    forecast = result.scalar_one_or_none()
    if not forecast:
        raise HTTPException(status_code=404, detail="Forecast not found")

    access = await resolve_business_access(db, user, forecast.business_id)
    return forecast, access


def ensure_unlocked(forecast: FinancialForecast) -> None:
    if forecast.is_locked:
        raise HTTPException(status_code=409, detail="Forecast is locked")


async def get_lines(db: AsyncSession, forecast_id: str) -> List[ForecastPLLine]:
    result = await db.execute(
        select(ForecastPLLine)
        .where(ForecastPLLine.forecast_id == forecast_id)
        .order_by(ForecastPLLine.sort_order, ForecastPLLine.account_name)
    )
    return list(result.scalars().all())


async def get_scenario(db: AsyncSession, scenario_id: str) -> ForecastScenario:
    result = await db.execute(
        select(ForecastScenario).where(ForecastScenario.id == scenario_id)
    )
    scenario = result.scalar_one_or_none()
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return scenario


def scenario_params(scenario: ForecastScenario) -> WhatIfParams:
    return WhatIfParams.from_multipliers(
        scenario.revenue_multiplier,
        scenario.cogs_multiplier,
        scenario.opex_multiplier,
    )


# =============================================================================
# Scenario application
# =============================================================================

async def apply_scenario(
    db: AsyncSession,
    forecast: FinancialForecast,
    params: WhatIfParams,
    audit: AuditService,
) -> List[ForecastPLLine]:
    """
    Apply percentage changes to every line's forecast months.

    Applying twice compounds, since each run starts from the stored values.
    """
    lines = await get_lines(db, forecast.id)
    for line in lines:
        line.forecast_months = apply_what_if(line, params)

    await audit.log(
        table_name="financial_forecasts",
        record_id=forecast.id,
        action="apply_scenario",
        new_value={
            "revenue_change": params.revenue_change,
            "cogs_change": params.cogs_change,
            "opex_change": params.opex_change,
            "lines_updated": len(lines),
        },
        description=(
            f"Applied scenario: Revenue {params.revenue_change:g}%, "
            f"COGS {params.cogs_change:g}%, OpEx {params.opex_change:g}%"
        ),
        forecast_id=forecast.id,
    )
    await db.flush()

    logger.info(f"Applied scenario to forecast {forecast.id} ({len(lines)} lines)")
    return lines


# =============================================================================
# Versions
# =============================================================================

async def next_version_number(
    db: AsyncSession,
    business_id: str,
    fiscal_year: int,
    forecast_type: str,
) -> int:
    result = await db.execute(
        select(func.max(FinancialForecast.version_number)).where(
            FinancialForecast.business_id == business_id,
            FinancialForecast.fiscal_year == fiscal_year,
            FinancialForecast.forecast_type == forecast_type,
        )
    )
    return (result.scalar() or 0) + 1


def _copy_columns(record, model, overrides: Dict) -> Dict:
    values = {
        column.name: getattr(record, column.name)
        for column in model.__table__.columns
        if column.name not in _VERSION_SKIP_COLUMNS
    }
    values.update(overrides)
    return values


async def create_version(
    db: AsyncSession,
    source: FinancialForecast,
    version_name: str,
    version_type: str,
    params: Optional[WhatIfParams],
    user: User,
    audit: AuditService,
) -> Tuple[FinancialForecast, int, int]:
    """
    Copy a forecast with its P&L lines and employees into a new version.

    Returns:
        (new_forecast, lines_copied, employees_copied)
    """
    version_number = await next_version_number(
        db, source.business_id, source.fiscal_year, version_type
    )

    new_forecast = FinancialForecast(**_copy_columns(source, FinancialForecast, {
        "user_id": user.id,
        "name": version_name,
        "forecast_type": version_type,
        "version_number": version_number,
        "is_active": True,
        "is_locked": False,
        "locked_at": None,
        "locked_by": None,
        "parent_forecast_id": source.id,
        "version_notes": version_notes(params),
    }))
    db.add(new_forecast)
    await db.flush()

    lines = await get_lines(db, source.id)
    for line in lines:
        forecast_months = apply_what_if(line, params) if params else dict(line.forecast_months or {})
        db.add(ForecastPLLine(**_copy_columns(line, ForecastPLLine, {
            "forecast_id": new_forecast.id,
            "actual_months": dict(line.actual_months or {}),
            "forecast_months": forecast_months,
        })))

    result = await db.execute(
        select(ForecastEmployee).where(ForecastEmployee.forecast_id == source.id)
    )
    employees = list(result.scalars().all())
    for employee in employees:
        db.add(ForecastEmployee(**_copy_columns(employee, ForecastEmployee, {
            "forecast_id": new_forecast.id,
        })))

    if version_type == ForecastType.FORECAST.value:
        source.is_active = False

    await audit.log(
        table_name="financial_forecasts",
        record_id=new_forecast.id,
        action="create_version",
        new_value={
            "parent_forecast_id": source.id,
            "version_number": version_number,
            "forecast_type": version_type,
        },
        description=f"Created {version_type} version {version_number} from {source.name}",
        forecast_id=new_forecast.id,
    )
    await db.flush()

    logger.info(
        f"Created {version_type} version {version_number} ({new_forecast.id}) "
        f"from forecast {source.id}"
    )
    return new_forecast, len(lines), len(employees)


async def activate_forecast(db: AsyncSession, forecast: FinancialForecast) -> None:
    """Make a forecast the active one of its business, fiscal year and type."""
    result = await db.execute(
        select(FinancialForecast).where(
            FinancialForecast.business_id == forecast.business_id,
            FinancialForecast.fiscal_year == forecast.fiscal_year,
            FinancialForecast.forecast_type == forecast.forecast_type,
            FinancialForecast.id != forecast.id,
            FinancialForecast.is_active.is_(True),
        )
    )
    for other in result.scalars().all():
        other.is_active = False
    forecast.is_active = True
    await db.flush()


# =============================================================================
# CSV import
# =============================================================================

async def import_actuals(
    db: AsyncSession,
    forecast: FinancialForecast,
    parsed_files: List[ParsedPL],
    audit: AuditService,
) -> Tuple[int, int, List[str]]:
    """
    Merge parsed CSV accounts into the forecast's actual months.

    Accounts are matched to existing lines by name; months from the file
    overwrite stored months, other months are kept.

    Returns:
        (lines_created, lines_updated, months)
    """
    lines = await get_lines(db, forecast.id)
    by_name = {line.account_name.strip().lower(): line for line in lines}
    next_sort = max((line.sort_order for line in lines), default=-1) + 1

    created_names = set()
    updated_names = set()
    months = set()

    for parsed in parsed_files:
        months.update(parsed.months)
        for account in parsed.accounts:
            key = account.name.strip().lower()
            line = by_name.get(key)
            if line is None:
                line = ForecastPLLine(
                    forecast_id=forecast.id,
                    account_name=account.name,
                    category=account.category,
                    sort_order=next_sort,
                    actual_months={},
                    forecast_months={},
                    is_manual=False,
                )
                next_sort += 1
                db.add(line)
                by_name[key] = line
                created_names.add(key)
            elif key not in created_names:
                updated_names.add(key)

            merged = dict(line.actual_months or {})
            merged.update(account.months)
            line.actual_months = merged

    sorted_months = sorted(months)
    await audit.log(
        table_name="forecast_pl_lines",
        record_id=forecast.id,
        action="import_csv",
        new_value={
            "lines_created": len(created_names),
            "lines_updated": len(updated_names),
            "months": sorted_months,
        },
        description=(
            f"Imported actuals from CSV: {len(created_names)} new, "
            f"{len(updated_names)} updated"
        ),
        forecast_id=forecast.id,
    )
    await db.flush()

    logger.info(
        f"Imported CSV into forecast {forecast.id}: "
        f"{len(created_names)} created, {len(updated_names)} updated"
    )
    return len(created_names), len(updated_names), sorted_months
