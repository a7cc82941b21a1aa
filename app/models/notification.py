"""
Notification Models

In-app notifications and per-type delivery preferences.
"""

from enum import Enum

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text, UniqueConstraint, Index
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class NotificationType(str, Enum):
    """Types of notifications that can be sent."""
    # Conversation
    NEW_MESSAGE = "new_message"              # A chat message arrived
    DOCUMENT_SHARED = "document_shared"      # A document was shared with the business

    # Coaching
    SESSION_SCHEDULED = "session_scheduled"  # A coaching session was booked
    ACTION_ASSIGNED = "action_assigned"      # An action item was assigned to the user
    ASSESSMENT_COMPLETED = "assessment_completed"  # A client finished a business assessment

    # Team
    TEAM_INVITE = "team_invite"              # Added to a business team

    # Forecasts
    FORECAST_UPDATED = "forecast_updated"    # Scenario applied or data imported


# Types that are emailed unless the user opts out
EMAIL_BY_DEFAULT = {
    NotificationType.SESSION_SCHEDULED,
    NotificationType.TEAM_INVITE,
}


class Notification(Base):
    """A single in-app notification for a user."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: generate_id("ntf"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=True)

    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    link = Column(String, nullable=True)  # Frontend route to open

    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
    )


class NotificationPreference(Base):
    """
    User notification preferences.

    Each user has at most one preference record per notification type;
    missing records mean defaults.
    """

    __tablename__ = "notification_preferences"

    id = Column(String, primary_key=True, default=lambda: generate_id("npref"))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    notification_type = Column(String, nullable=False)

    in_app_enabled = Column(Boolean, nullable=False, default=True)
    email_enabled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "notification_type", name="uq_notification_pref_user_type"),
    )
