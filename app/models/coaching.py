"""Coaching sessions, the actions they produce, and the coach question library."""
from enum import Enum

from sqlalchemy import Column, String, DateTime, Date, Boolean, Integer, ForeignKey, Text
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CoachingSession(Base):
    """A scheduled coaching session with a client business."""

    __tablename__ = "coaching_sessions"

    id = Column(String, primary_key=True, default=lambda: generate_id("sess"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    coach_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    status = Column(String, nullable=False, default=SessionStatus.SCHEDULED.value)
    meeting_url = Column(String, nullable=True)
    agenda = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class SessionAction(Base):
    """A follow-up action item, usually agreed during a session."""

    __tablename__ = "session_actions"

    id = Column(String, primary_key=True, default=lambda: generate_id("act"))
    business_id = Column(String, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(String, ForeignKey("coaching_sessions.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    assigned_to = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default=ActionStatus.PENDING.value)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class CoachQuestion(Base):
    """A reusable coaching question in a coach's library."""

    __tablename__ = "coach_questions"

    id = Column(String, primary_key=True, default=lambda: generate_id("cq"))
    coach_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="discovery")
    subcategory = Column(String, nullable=True)
    is_template = Column(Boolean, nullable=False, default=False)
    use_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
