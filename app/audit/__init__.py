"""Audit trail system for tracking data changes."""
from app.audit.models import AuditLog
from app.audit.services import (
    AuditService,
    calculate_diff,
    describe_change,
    describe_changes,
    snapshot,
)

__all__ = [
    "AuditLog",
    "AuditService",
    "calculate_diff",
    "describe_change",
    "describe_changes",
    "snapshot",
]
