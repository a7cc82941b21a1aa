"""Forecast API routes."""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.auth.dependencies import get_current_user
from app.audit.services import AuditService, calculate_diff, snapshot
from app.audit.schemas import AuditLogResponse
from app.businesses.access import BusinessAccess, resolve_business_access, require_edit, require_delete
from app.middleware.rate_limit import limiter
from app.models import (
    FinancialForecast,
    ForecastPLLine,
    ForecastScenario,
    ForecastDecision,
    NotificationType,
    User,
)
from app.notifications.service import get_notification_service
from app.forecast import schemas, service
from app.forecast.csv_import import CSVParseError, decode_csv_bytes, parse_pl_csv
from app.forecast.engine import (
    WhatIfParams,
    default_month_ranges,
    distribute_annual_amount,
    month_range,
    summarize_lines,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forecasts", tags=["Forecasts"])

FORECAST_FIELDS = (
    "name", "description", "currency",
    "baseline_start_month", "baseline_end_month",
    "actual_start_month", "actual_end_month",
    "forecast_start_month", "forecast_end_month",
    "revenue_goal", "gross_profit_goal", "net_profit_goal",
    "version_notes", "is_completed",
)
LINE_FIELDS = (
    "account_name", "account_code", "category", "subcategory",
    "sort_order", "actual_months", "forecast_months", "notes",
)
SCENARIO_FIELDS = (
    "name", "description", "scenario_type",
    "revenue_multiplier", "cogs_multiplier", "opex_multiplier",
    "is_active", "is_baseline",
)


def _audit(db: AsyncSession, user: User, business_id: str, request: Optional[Request] = None) -> AuditService:
    return AuditService(db, user=user, business_id=business_id, request=request)


async def _notify_forecast_update(
    db: AsyncSession,
    access: BusinessAccess,
    forecast: FinancialForecast,
    actor: User,
    title: str,
) -> None:
    """Let the other side of the coaching relationship know a forecast changed."""
    business = access.business
    recipients = {business.owner_id, business.assigned_coach_id} - {None, actor.id}
    notifications = get_notification_service(db)
    for user_id in recipients:
        await notifications.notify(
            user_id=user_id,
            notification_type=NotificationType.FORECAST_UPDATED,
            title=title,
            message=f"{actor.full_name} updated {forecast.name}.",
            business_id=business.id,
            link=f"/finances/forecast?id={forecast.id}",
        )


def _summary(lines, field: str = "forecast_months", params: Optional[WhatIfParams] = None) -> schemas.ForecastSummary:
    return schemas.ForecastSummary(**summarize_lines(lines, multipliers=params, field=field))


# ============================================================================
# FORECASTS
# ============================================================================

@router.get("", response_model=schemas.ForecastListResponse)
async def list_forecasts(
    business_id: str,
    fiscal_year: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List a business's forecasts, newest fiscal year first."""
    await resolve_business_access(db, current_user, business_id)

    query = select(FinancialForecast).where(FinancialForecast.business_id == business_id)
    if fiscal_year is not None:
        query = query.where(FinancialForecast.fiscal_year == fiscal_year)

    result = await db.execute(
        query.order_by(
            FinancialForecast.fiscal_year.desc(),
            FinancialForecast.forecast_type,
            FinancialForecast.version_number.desc(),
        )
    )
    return schemas.ForecastListResponse(forecasts=result.scalars().all())


@router.post("", response_model=schemas.ForecastResponse, status_code=201)
async def create_forecast(
    data: schemas.ForecastCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a forecast. Unset month ranges default from the fiscal year."""
    access = await resolve_business_access(db, current_user, data.business_id)
    require_edit(access)

    values = data.model_dump()
    for field, default in default_month_ranges(data.fiscal_year, data.year_type).items():
        if values.get(field) is None:
            values[field] = default

    values["version_number"] = await service.next_version_number(
        db, data.business_id, data.fiscal_year, data.forecast_type
    )
    forecast = FinancialForecast(user_id=current_user.id, **values)
    db.add(forecast)
    await db.flush()

    await _audit(db, current_user, access.business_id, request).log_create(
        "financial_forecasts", forecast.id, {"name": forecast.name, "fiscal_year": forecast.fiscal_year},
        forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(forecast)
    return forecast


# ============================================================================
# VERSIONS
# ============================================================================

@router.get("/versions", response_model=schemas.VersionListResponse)
async def list_versions(
    business_id: Optional[str] = None,
    fiscal_year: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List all versions of a business's forecasts for a fiscal year."""
    if not business_id or fiscal_year is None:
        raise HTTPException(status_code=400, detail="business_id and fiscal_year required")

    await resolve_business_access(db, current_user, business_id)

    result = await db.execute(
        select(FinancialForecast)
        .where(
            FinancialForecast.business_id == business_id,
            FinancialForecast.fiscal_year == fiscal_year,
        )
        .order_by(FinancialForecast.forecast_type.asc(), FinancialForecast.version_number.desc())
    )
    return schemas.VersionListResponse(versions=result.scalars().all())


@router.post("/versions", response_model=schemas.VersionCreateResponse, status_code=201)
async def create_version(
    data: schemas.VersionCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new version of a forecast.

    The forecast, its P&L lines and employees are copied; what-if
    parameters, when given, are applied to the copied lines.
    """
    source, access = await service.get_forecast_with_access(db, current_user, data.forecast_id)
    require_edit(access)

    params = None
    if data.parameters is not None:
        params = WhatIfParams(**data.parameters.model_dump())

    new_forecast, lines_copied, employees_copied = await service.create_version(
        db,
        source=source,
        version_name=data.version_name,
        version_type=data.version_type,
        params=params,
        user=current_user,
        audit=_audit(db, current_user, source.business_id, request),
    )

    await db.commit()
    await db.refresh(new_forecast)

    return schemas.VersionCreateResponse(
        forecast=schemas.ForecastResponse.model_validate(new_forecast),
        lines_copied=lines_copied,
        employees_copied=employees_copied,
    )


# ============================================================================
# LINES BY ID
# ============================================================================

async def _get_line_with_access(db: AsyncSession, user: User, line_id: str):
    result = await db.execute(select(ForecastPLLine).where(ForecastPLLine.id == line_id))
    line = result.scalar_one_or_none()
    if not line:
        raise HTTPException(status_code=404, detail="P&L line not found")
    forecast, access = await service.get_forecast_with_access(db, user, line.forecast_id)
    return line, forecast, access


@router.patch("/lines/{line_id}", response_model=schemas.PLLineResponse)
async def update_line(
    line_id: str,
    data: schemas.PLLineUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a P&L line."""
    line, forecast, access = await _get_line_with_access(db, current_user, line_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    before = snapshot(line, LINE_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(line, field, value)

    await _audit(db, current_user, forecast.business_id, request).log_update(
        "forecast_pl_lines", line.id, calculate_diff(before, snapshot(line, LINE_FIELDS)),
        forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(line)
    return line


@router.delete("/lines/{line_id}")
async def delete_line(
    line_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a P&L line."""
    line, forecast, access = await _get_line_with_access(db, current_user, line_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    await _audit(db, current_user, forecast.business_id, request).log_delete(
        "forecast_pl_lines", line.id, {"account_name": line.account_name, "category": line.category},
        forecast_id=forecast.id,
    )
    await db.delete(line)
    await db.commit()

    return {"message": "P&L line deleted successfully"}


# ============================================================================
# SCENARIOS BY ID
# ============================================================================

async def _get_scenario_with_access(db: AsyncSession, user: User, scenario_id: str):
    scenario = await service.get_scenario(db, scenario_id)
    forecast, access = await service.get_forecast_with_access(db, user, scenario.forecast_id)
    return scenario, forecast, access


@router.patch("/scenarios/{scenario_id}", response_model=schemas.ScenarioResponse)
async def update_scenario(
    scenario_id: str,
    data: schemas.ScenarioUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a saved scenario."""
    scenario, forecast, access = await _get_scenario_with_access(db, current_user, scenario_id)
    require_edit(access)

    before = snapshot(scenario, SCENARIO_FIELDS)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(scenario, field, value)

    await _audit(db, current_user, forecast.business_id, request).log_update(
        "forecast_scenarios", scenario.id, calculate_diff(before, snapshot(scenario, SCENARIO_FIELDS)),
        forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(scenario)
    return scenario


@router.delete("/scenarios/{scenario_id}")
async def delete_scenario(
    scenario_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a saved scenario."""
    scenario, forecast, access = await _get_scenario_with_access(db, current_user, scenario_id)
    require_edit(access)

    await _audit(db, current_user, forecast.business_id, request).log_delete(
        "forecast_scenarios", scenario.id, {"name": scenario.name}, forecast_id=forecast.id,
    )
    await db.delete(scenario)
    await db.commit()

    return {"message": "Scenario deleted successfully"}


# ============================================================================
# SINGLE FORECAST
# ============================================================================

@router.get("/{forecast_id}", response_model=schemas.ForecastResponse)
async def get_forecast(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a forecast."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    return forecast


@router.patch("/{forecast_id}", response_model=schemas.ForecastResponse)
async def update_forecast(
    forecast_id: str,
    data: schemas.ForecastUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update forecast settings. Locked forecasts cannot be edited."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    before = snapshot(forecast, FORECAST_FIELDS)
    updates = data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(forecast, field, value)
    if updates.get("is_completed") and forecast.completed_at is None:
        forecast.completed_at = datetime.now(timezone.utc)

    await _audit(db, current_user, forecast.business_id, request).log_update(
        "financial_forecasts", forecast.id, calculate_diff(before, snapshot(forecast, FORECAST_FIELDS)),
        forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(forecast)
    return forecast


@router.delete("/{forecast_id}")
async def delete_forecast(
    forecast_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a forecast with its lines."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_delete(access)
    service.ensure_unlocked(forecast)

    await _audit(db, current_user, forecast.business_id, request).log_delete(
        "financial_forecasts", forecast.id, {"name": forecast.name, "fiscal_year": forecast.fiscal_year},
        forecast_id=forecast.id,
    )
    await db.delete(forecast)
    await db.commit()

    return {"message": "Forecast deleted successfully"}


@router.post("/{forecast_id}/lock", response_model=schemas.ForecastResponse)
async def lock_forecast(
    forecast_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Lock a forecast against further edits."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)

    if not forecast.is_locked:
        forecast.is_locked = True
        forecast.locked_at = datetime.now(timezone.utc)
        forecast.locked_by = current_user.id
        await _audit(db, current_user, forecast.business_id, request).log(
            "financial_forecasts", forecast.id, "lock", forecast_id=forecast.id,
            description=f"Locked {forecast.name}",
        )
        await db.commit()
        await db.refresh(forecast)
    return forecast


@router.post("/{forecast_id}/unlock", response_model=schemas.ForecastResponse)
async def unlock_forecast(
    forecast_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unlock a forecast."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)

    if forecast.is_locked:
        forecast.is_locked = False
        forecast.locked_at = None
        forecast.locked_by = None
        await _audit(db, current_user, forecast.business_id, request).log(
            "financial_forecasts", forecast.id, "unlock", forecast_id=forecast.id,
            description=f"Unlocked {forecast.name}",
        )
        await db.commit()
        await db.refresh(forecast)
    return forecast


@router.post("/{forecast_id}/activate", response_model=schemas.ForecastResponse)
async def activate_forecast(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Make this the active version for its fiscal year and type."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)

    await service.activate_forecast(db, forecast)
    await db.commit()
    await db.refresh(forecast)
    return forecast


@router.get("/{forecast_id}/summary", response_model=schemas.ForecastSummaryResponse)
async def get_forecast_summary(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """P&L totals of the forecast and of the actuals."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    lines = await service.get_lines(db, forecast.id)

    return schemas.ForecastSummaryResponse(
        forecast_id=forecast.id,
        months=month_range(forecast.forecast_start_month, forecast.forecast_end_month),
        forecast=_summary(lines),
        actual=_summary(lines, field="actual_months"),
        revenue_goal=forecast.revenue_goal,
        gross_profit_goal=forecast.gross_profit_goal,
        net_profit_goal=forecast.net_profit_goal,
    )


# ============================================================================
# P&L LINES
# ============================================================================

@router.get("/{forecast_id}/lines", response_model=List[schemas.PLLineResponse])
async def list_lines(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the forecast's P&L lines."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    return await service.get_lines(db, forecast.id)


@router.post("/{forecast_id}/lines", response_model=schemas.PLLineResponse, status_code=201)
async def create_line(
    forecast_id: str,
    data: schemas.PLLineCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a P&L line, optionally spreading an annual amount over the forecast months."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    values = data.model_dump(exclude={"annual_amount", "start_month"})
    if data.annual_amount is not None:
        months = month_range(forecast.forecast_start_month, forecast.forecast_end_month)
        values["forecast_months"] = distribute_annual_amount(data.annual_amount, months, data.start_month)

    line = ForecastPLLine(forecast_id=forecast.id, is_manual=True, **values)
    db.add(line)
    await db.flush()

    await _audit(db, current_user, forecast.business_id, request).log_create(
        "forecast_pl_lines", line.id, {"account_name": line.account_name, "category": line.category},
        forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(line)
    return line


# ============================================================================
# WHAT-IF
# ============================================================================

@router.post("/{forecast_id}/apply-scenario", response_model=schemas.ApplyScenarioResponse)
async def apply_scenario(
    forecast_id: str,
    data: schemas.ApplyScenarioRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Apply percentage changes to the forecast months of every P&L line.

    Revenue, Cost of Sales and Operating Expenses lines are multiplied by
    (1 + change / 100); other categories are untouched.
    """
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    if data.scenario_id:
        scenario = await service.get_scenario(db, data.scenario_id)
        if scenario.forecast_id != forecast.id:
            raise HTTPException(status_code=404, detail="Scenario not found")
        params = service.scenario_params(scenario)
    else:
        params = WhatIfParams(
            revenue_change=data.revenue_change or 0,
            cogs_change=data.cogs_change or 0,
            opex_change=data.opex_change or 0,
        )

    lines = await service.apply_scenario(
        db, forecast, params, _audit(db, current_user, forecast.business_id, request)
    )
    summary = _summary(lines)

    await _notify_forecast_update(db, access, forecast, current_user, "Forecast scenario applied")
    await db.commit()

    return schemas.ApplyScenarioResponse(
        forecast_id=forecast.id,
        lines_updated=len(lines),
        parameters=schemas.WhatIfParameters(
            revenue_change=params.revenue_change,
            cogs_change=params.cogs_change,
            opex_change=params.opex_change,
        ),
        summary=summary,
    )


@router.get("/{forecast_id}/scenarios", response_model=List[schemas.ScenarioResponse])
async def list_scenarios(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List saved scenarios of a forecast."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    result = await db.execute(
        select(ForecastScenario)
        .where(ForecastScenario.forecast_id == forecast.id)
        .order_by(ForecastScenario.is_baseline.desc(), ForecastScenario.created_at)
    )
    return result.scalars().all()


@router.post("/{forecast_id}/scenarios", response_model=schemas.ScenarioResponse, status_code=201)
async def create_scenario(
    forecast_id: str,
    data: schemas.ScenarioCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save a scenario as category multipliers."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)

    scenario = ForecastScenario(forecast_id=forecast.id, user_id=current_user.id, **data.model_dump())
    db.add(scenario)
    await db.flush()

    await _audit(db, current_user, forecast.business_id, request).log_create(
        "forecast_scenarios", scenario.id, {"name": scenario.name}, forecast_id=forecast.id,
    )

    await db.commit()
    await db.refresh(scenario)
    return scenario


@router.get("/{forecast_id}/scenarios/compare", response_model=schemas.ScenarioCompareResponse)
async def compare_scenarios(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Summaries of the forecast under each saved scenario. Nothing is written."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    lines = await service.get_lines(db, forecast.id)

    result = await db.execute(
        select(ForecastScenario)
        .where(
            ForecastScenario.forecast_id == forecast.id,
            ForecastScenario.scenario_type != "archived",
        )
        .order_by(ForecastScenario.created_at)
    )

    comparisons = []
    for scenario in result.scalars().all():
        params = service.scenario_params(scenario)
        comparisons.append(schemas.ScenarioComparison(
            scenario_id=scenario.id,
            name=scenario.name,
            parameters=schemas.WhatIfParameters(
                revenue_change=params.revenue_change,
                cogs_change=params.cogs_change,
                opex_change=params.opex_change,
            ),
            summary=_summary(lines, params=params),
        ))

    return schemas.ScenarioCompareResponse(
        forecast_id=forecast.id,
        baseline=_summary(lines),
        scenarios=comparisons,
    )


# ============================================================================
# CSV IMPORT
# ============================================================================

async def _read_csv_upload(upload: UploadFile) -> str:
    content = await upload.read()
    if len(content) > settings.MAX_IMPORT_BYTES:
        raise HTTPException(status_code=400, detail=f"{upload.filename} is too large")
    return decode_csv_bytes(content)


@router.post("/{forecast_id}/import-csv", response_model=schemas.ImportCSVResponse)
@limiter.limit(settings.RATE_LIMIT_IMPORT)
async def import_csv(
    request: Request,
    forecast_id: str,
    baseline: UploadFile = File(..., description="Prior year P&L export"),
    ytd: Optional[UploadFile] = File(None, description="Year-to-date P&L export"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Import actuals from P&L CSV exports.

    Accounts are merged into existing lines by name; new accounts become
    new lines.
    """
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)
    service.ensure_unlocked(forecast)

    uploads = [baseline] + ([ytd] if ytd is not None else [])
    parsed_files = []
    for upload in uploads:
        text = await _read_csv_upload(upload)
        try:
            parsed_files.append(parse_pl_csv(text))
        except CSVParseError as e:
            raise HTTPException(status_code=400, detail=f"{upload.filename}: {e}")

    created, updated, months = await service.import_actuals(
        db, forecast, parsed_files, _audit(db, current_user, forecast.business_id, request)
    )

    await _notify_forecast_update(db, access, forecast, current_user, "Actuals imported")
    await db.commit()

    return schemas.ImportCSVResponse(
        forecast_id=forecast.id,
        lines_created=created,
        lines_updated=updated,
        accounts=created + updated,
        months=months,
    )


# ============================================================================
# DECISIONS
# ============================================================================

@router.get("/{forecast_id}/decisions", response_model=List[schemas.DecisionResponse])
async def list_decisions(
    forecast_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List decisions recorded while building the forecast, newest first."""
    forecast, _ = await service.get_forecast_with_access(db, current_user, forecast_id)
    result = await db.execute(
        select(ForecastDecision)
        .where(ForecastDecision.forecast_id == forecast.id)
        .order_by(ForecastDecision.created_at.desc())
    )
    return result.scalars().all()


@router.post("/{forecast_id}/decisions", response_model=schemas.DecisionResponse, status_code=201)
async def create_decision(
    forecast_id: str,
    data: schemas.DecisionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a forecasting decision and the reasoning behind it."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)
    require_edit(access)

    decision = ForecastDecision(
        forecast_id=forecast.id,
        business_id=forecast.business_id,
        user_id=current_user.id,
        **data.model_dump(),
    )
    db.add(decision)
    await db.commit()
    await db.refresh(decision)
    return decision


# ============================================================================
# AUDIT LOG
# ============================================================================

DATE_RANGES = {
    "today": None,
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


@router.get("/{forecast_id}/audit-log", response_model=List[AuditLogResponse])
async def get_forecast_audit_log(
    forecast_id: str,
    action: Optional[str] = None,
    user_id: Optional[str] = None,
    date_range: Optional[Literal["today", "week", "month"]] = None,
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change history of a forecast and its lines, newest first."""
    forecast, access = await service.get_forecast_with_access(db, current_user, forecast_id)

    since = None
    if date_range:
        now = datetime.now(timezone.utc)
        window = DATE_RANGES[date_range]
        since = now.replace(hour=0, minute=0, second=0, microsecond=0) if window is None else now - window

    audit = _audit(db, current_user, access.business_id)
    return await audit.get_forecast_log(
        forecast.id, action=action, user_id=user_id, since=since, limit=limit
    )
