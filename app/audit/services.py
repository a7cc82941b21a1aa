"""
Audit Service for logging data changes.

This service provides a simple interface for logging data operations on
business records, plus the helpers that turn raw changes into the
human-readable descriptions shown in the change history.
"""
import json
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Iterable, Literal, Tuple

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, func

from app.audit.models import AuditLog


# Type aliases
ActionType = Literal[
    "create", "update", "delete", "apply_scenario", "import_csv",
    "create_version", "lock", "unlock",
]
SourceType = Literal["api", "system", "migration", "admin"]

# Fields never tracked in diffs
METADATA_FIELDS = {"id", "created_at", "updated_at", "business_id", "user_id"}

# Field labels for human-readable descriptions
FIELD_LABELS: Dict[str, str] = {
    # Goals & targets
    "revenue_target": "Revenue Target",
    "profit_target": "Profit Target",
    "revenue_year1": "Revenue Target",
    "gross_profit_year1": "Gross Profit Target",
    "net_profit_year1": "Net Profit Target",
    "target_value": "Target Value",
    "current_value": "Current Value",
    "due_date": "Due Date",
    "status": "Status",
    "priority": "Priority",

    # Financial
    "budget": "Budget",
    "forecast": "Forecast",
    "forecast_months": "Forecast",
    "actual_months": "Actual",
    "variance": "Variance",

    # General
    "name": "Name",
    "title": "Title",
    "description": "Description",
    "notes": "Notes",
    "completed": "Completed",
    "assigned_to": "Assigned To",
    "company_name": "Company Name",
    "industry": "Industry",
}

# Table labels for human-readable descriptions
TABLE_LABELS: Dict[str, str] = {
    "businesses": "Business Profile",
    "business_profiles": "Business Profile",
    "business_financial_goals": "Financial Goals",
    "business_users": "Team Member",
    "financial_forecasts": "Financial Forecast",
    "forecast_pl_lines": "P&L Line",
    "forecast_scenarios": "Scenario",
    "coaching_sessions": "Coaching Session",
    "session_actions": "Action",
    "shared_documents": "Document",
    "assessments": "Assessment",
    "business_kpis": "KPI",
}


# =============================================================================
# Descriptions
# =============================================================================

def _format_value(value: Any) -> str:
    if value is None:
        return "empty"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return f"{value:,}"
    if isinstance(value, str):
        if len(value) > 50:
            return f'"{value[:50]}..."'
        return f'"{value}"'
    return str(value)


def describe_change(
    table_name: str,
    action: str,
    field_name: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
) -> str:
    """Generate a human-readable description of a single change."""
    table_label = TABLE_LABELS.get(table_name, table_name)
    field_label = FIELD_LABELS.get(field_name, field_name) if field_name else ""

    if action == "create":
        return f"Created new {table_label}"
    if action == "delete":
        return f"Deleted {table_label}"
    if action != "update":
        return f"{action.replace('_', ' ').capitalize()} on {table_label}"

    if not field_name:
        return f"Updated {table_label}"
    if old_value is None:
        return f"Set {field_label} to {_format_value(new_value)}"
    if new_value is None:
        return f"Cleared {field_label}"
    return f"Changed {field_label} from {_format_value(old_value)} to {_format_value(new_value)}"


def describe_changes(table_name: str, changes: Dict[str, Dict[str, Any]]) -> str:
    """Generate a description covering several changed fields."""
    table_label = TABLE_LABELS.get(table_name, table_name)
    fields = list(changes.keys())

    if not fields:
        return f"Updated {table_label}"
    if len(fields) == 1:
        field = fields[0]
        return describe_change(table_name, "update", field, changes[field]["old"], changes[field]["new"])

    labels = [FIELD_LABELS.get(f, f) for f in fields]
    return f"Updated {', '.join(labels)} on {table_label}"


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def _normalise(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=_json_default)


def calculate_diff(
    old_data: Dict[str, Any],
    new_data: Dict[str, Any],
    fields_to_track: Optional[Iterable[str]] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Calculate the field-level diff between two records.

    Metadata fields are skipped. Values are compared by their JSON
    representation so nested dicts and lists compare deeply.
    """
    if fields_to_track is None:
        fields = list(dict.fromkeys([*old_data.keys(), *new_data.keys()]))
    else:
        fields = list(fields_to_track)

    changes: Dict[str, Dict[str, Any]] = {}
    for field in fields:
        if field in METADATA_FIELDS:
            continue
        old_value = old_data.get(field)
        new_value = new_data.get(field)
        if _normalise(old_value) != _normalise(new_value):
            changes[field] = {"old": old_value, "new": new_value}
    return changes


def snapshot(record: Any, fields: Iterable[str]) -> Dict[str, Any]:
    """Plain dict of the given attributes of a model instance."""
    return {field: getattr(record, field) for field in fields}


def _jsonable(value: Any) -> Any:
    """Round-trip through JSON so Decimals and dates fit a JSON column."""
    if value is None:
        return None
    return json.loads(json.dumps(value, default=_json_default))


# =============================================================================
# Service
# =============================================================================

class AuditService:
    """
    Service for logging audit events.

    Usage:
        audit = AuditService(db, user=current_user, business_id=business.id)
        await audit.log_create("coaching_sessions", session.id, {"title": "Kickoff"})
        await audit.log_update("business_profiles", profile.id, {"industry": {"old": None, "new": "Retail"}})
    """

    def __init__(
        self,
        db: AsyncSession,
        user=None,
        business_id: Optional[str] = None,
        source: SourceType = "api",
        request: Optional[Request] = None,
    ):
        self.db = db
        self.user_id = user.id if user is not None else None
        self.user_email = user.email if user is not None else None
        self.business_id = business_id
        self.source = source
        self.ip_address = None
        self.user_agent = None
        if request is not None:
            self.ip_address = request.client.host if request.client else None
            self.user_agent = request.headers.get("user-agent")

    # ==========================================================================
    # Core Logging Methods
    # ==========================================================================

    async def log(
        self,
        table_name: str,
        record_id: str,
        action: ActionType,
        field_name: Optional[str] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
        changes: Optional[Dict[str, Dict[str, Any]]] = None,
        description: Optional[str] = None,
        forecast_id: Optional[str] = None,
    ) -> AuditLog:
        """
        Log an audit event.

        A description is generated from the change when none is given.
        The caller owns the transaction; nothing is committed here.
        """
        if description is None:
            if changes:
                description = describe_changes(table_name, changes)
            else:
                description = describe_change(table_name, action, field_name, old_value, new_value)

        log = AuditLog(
            business_id=self.business_id,
            forecast_id=forecast_id,
            table_name=table_name,
            record_id=record_id,
            action=action,
            field_name=field_name,
            old_value=_jsonable(old_value),
            new_value=_jsonable(new_value),
            changes=_jsonable(changes),
            description=description,
            user_id=self.user_id,
            user_email=self.user_email,
            source=self.source,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
        )

        self.db.add(log)
        return log

    # ==========================================================================
    # Convenience Methods
    # ==========================================================================

    async def log_create(
        self,
        table_name: str,
        record_id: str,
        new_value: Dict[str, Any],
        forecast_id: Optional[str] = None,
    ) -> AuditLog:
        """Log a create operation."""
        return await self.log(
            table_name=table_name,
            record_id=record_id,
            action="create",
            new_value=new_value,
            forecast_id=forecast_id,
        )

    async def log_update(
        self,
        table_name: str,
        record_id: str,
        changes: Dict[str, Dict[str, Any]],
        forecast_id: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Log an update operation.

        Args:
            changes: Output of calculate_diff; nothing is logged when empty

        Returns:
            The AuditLog, or None when there was nothing to record
        """
        if not changes:
            return None
        field_name = next(iter(changes)) if len(changes) == 1 else None
        return await self.log(
            table_name=table_name,
            record_id=record_id,
            action="update",
            field_name=field_name,
            changes=changes,
            forecast_id=forecast_id,
        )

    async def log_delete(
        self,
        table_name: str,
        record_id: str,
        old_value: Optional[Dict[str, Any]] = None,
        forecast_id: Optional[str] = None,
    ) -> AuditLog:
        """Log a delete operation."""
        return await self.log(
            table_name=table_name,
            record_id=record_id,
            action="delete",
            old_value=old_value,
            forecast_id=forecast_id,
        )

    # ==========================================================================
    # Query Methods
    # ==========================================================================

    async def get_record_history(
        self,
        table_name: str,
        record_id: str,
        limit: int = 50,
    ) -> List[AuditLog]:
        """Get audit history for a single record, newest first."""
        query = (
            select(AuditLog)
            .where(
                and_(
                    AuditLog.table_name == table_name,
                    AuditLog.record_id == record_id,
                )
            )
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_business_log(
        self,
        business_id: str,
        limit: int = 50,
        offset: int = 0,
        table_name: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Tuple[List[AuditLog], int]:
        """Get the recent audit log of a business with its total count."""
        conditions = [AuditLog.business_id == business_id]
        if table_name:
            conditions.append(AuditLog.table_name == table_name)
        if user_id:
            conditions.append(AuditLog.user_id == user_id)
        if action:
            conditions.append(AuditLog.action == action)

        count_result = await self.db.execute(
            select(func.count(AuditLog.id)).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        query = (
            select(AuditLog)
            .where(and_(*conditions))
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_forecast_log(
        self,
        forecast_id: str,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        """Get the audit trail of a forecast and its lines."""
        conditions = [AuditLog.forecast_id == forecast_id]
        if action:
            conditions.append(AuditLog.action == action)
        if user_id:
            conditions.append(AuditLog.user_id == user_id)
        if since:
            conditions.append(AuditLog.created_at >= since)

        query = (
            select(AuditLog)
            .where(and_(*conditions))
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
