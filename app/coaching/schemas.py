"""Coaching session and action schemas."""
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List, Literal


SessionStatusLiteral = Literal["scheduled", "completed", "cancelled"]
ActionStatusLiteral = Literal["pending", "completed", "cancelled"]


# ============================================================================
# SESSIONS
# ============================================================================

class SessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    scheduled_at: datetime
    duration_minutes: int = Field(default=60, ge=5, le=480)
    meeting_url: Optional[str] = None
    agenda: Optional[str] = None


class SessionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    status: Optional[SessionStatusLiteral] = None
    meeting_url: Optional[str] = None
    agenda: Optional[str] = None
    notes: Optional[str] = None
    summary: Optional[str] = None

    @field_validator("title", "scheduled_at", "duration_minutes", "status")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class SessionResponse(BaseModel):
    id: str
    business_id: str
    coach_id: Optional[str] = None
    title: str
    scheduled_at: datetime
    duration_minutes: int
    status: str
    meeting_url: Optional[str] = None
    agenda: Optional[str] = None
    notes: Optional[str] = None
    summary: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CoachSessionResponse(SessionResponse):
    """A session in the coach's calendar, with the client's business name."""
    business_name: str


# ============================================================================
# ACTIONS
# ============================================================================

class ActionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    session_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None


class ActionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[ActionStatusLiteral] = None

    @field_validator("title", "status")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class ActionResponse(BaseModel):
    id: str
    business_id: str
    session_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    completed_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ActionListResponse(BaseModel):
    actions: List[ActionResponse]
