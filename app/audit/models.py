"""
Audit Log model for tracking data changes.

Every create, update and delete made through the API on business data is
recorded here, giving coaches and owners a change history per business,
per forecast and per record.
"""
from sqlalchemy import Column, String, DateTime, Text, Index, ForeignKey

from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id, JSONBCompat


class AuditLog(Base):
    """Audit Log - one row per recorded change."""

    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=lambda: generate_id("audit"))

    # Scope
    business_id = Column(String, ForeignKey("businesses.id", ondelete="SET NULL"), nullable=True, index=True)
    forecast_id = Column(String, nullable=True, index=True)

    # What changed?
    table_name = Column(String, nullable=False, index=True)
    record_id = Column(String, nullable=False, index=True)

    # What kind of change?
    action = Column(String, nullable=False, index=True)
    # Options:
    # - "create" / "update" / "delete"
    # - "apply_scenario": Scenario percentages applied to P&L lines
    # - "import_csv": Actuals imported from an accounting export
    # - "create_version": Forecast copied into a new version
    # - "lock" / "unlock"

    # What field changed? (single-field updates)
    field_name = Column(String, nullable=True)

    # What were the values?
    old_value = Column(JSONBCompat, nullable=True)
    new_value = Column(JSONBCompat, nullable=True)
    changes = Column(JSONBCompat, nullable=True)  # {field: {"old": ..., "new": ...}}

    description = Column(Text, nullable=True)

    # Who made the change?
    user_id = Column(String, nullable=True, index=True)
    user_email = Column(String, nullable=True)

    # What triggered the change?
    source = Column(String, nullable=False, default="api")
    # Options: "api", "system", "migration", "admin"

    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    # When?
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Indexes for common queries
    __table_args__ = (
        Index("ix_audit_log_record", "table_name", "record_id"),
        Index("ix_audit_log_business_time", "business_id", "created_at"),
        Index("ix_audit_log_forecast_time", "forecast_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<AuditLog {self.id}: "
            f"{self.action} on {self.table_name}/{self.record_id} "
            f"at {self.created_at}>"
        )
