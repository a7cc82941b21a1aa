"""
Consolidated models package.

IMPORTANT: Explicit imports only - no wildcards to prevent circular imports.
Use string-based forward references in relationships: relationship("Business", ...)
"""

# Base utilities
from app.models.base import generate_id, JSONBCompat

# User model
from app.models.user import User, SystemRole

# Business models
from app.models.business import (
    Business,
    BusinessProfile,
    BusinessUser,
    BusinessFinancialGoals,
    BusinessStatus,
    MemberRole,
    MemberStatus,
)

# Forecast models
from app.models.forecast import (
    FinancialForecast,
    ForecastPLLine,
    ForecastEmployee,
    ForecastScenario,
    ForecastDecision,
    PLCategory,
    ForecastType,
    YearType,
    ScenarioType,
)

# Messaging models
from app.models.messaging import Message, SharedDocument, SenderType

# Coaching models
from app.models.coaching import (
    CoachingSession,
    SessionAction,
    CoachQuestion,
    SessionStatus,
    ActionStatus,
)

# Assessment models
from app.models.assessment import Assessment, HealthStatus

# KPI models
from app.models.kpi import BusinessKPI, KPIHistory, KPIUnit

# Notification models
from app.models.notification import (
    Notification,
    NotificationPreference,
    NotificationType,
)

__all__ = [
    "generate_id",
    "JSONBCompat",
    "User",
    "SystemRole",
    "Business",
    "BusinessProfile",
    "BusinessUser",
    "BusinessFinancialGoals",
    "BusinessStatus",
    "MemberRole",
    "MemberStatus",
    "FinancialForecast",
    "ForecastPLLine",
    "ForecastEmployee",
    "ForecastScenario",
    "ForecastDecision",
    "PLCategory",
    "ForecastType",
    "YearType",
    "ScenarioType",
    "Message",
    "SharedDocument",
    "SenderType",
    "CoachingSession",
    "SessionAction",
    "CoachQuestion",
    "SessionStatus",
    "ActionStatus",
    "Assessment",
    "HealthStatus",
    "BusinessKPI",
    "KPIHistory",
    "KPIUnit",
    "Notification",
    "NotificationPreference",
    "NotificationType",
]
