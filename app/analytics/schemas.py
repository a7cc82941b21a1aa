"""Analytics response schemas."""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List


class CoachClientSummary(BaseModel):
    business_id: str
    business_name: str
    status: str
    pending_actions: int = 0
    overdue_actions: int = 0
    unread_messages: int = 0
    next_session_at: Optional[datetime] = None


class CoachTotals(BaseModel):
    clients: int
    pending_actions: int
    overdue_actions: int
    unread_messages: int
    upcoming_sessions: int


class CoachAnalyticsResponse(BaseModel):
    clients: List[CoachClientSummary]
    totals: CoachTotals


class BusinessAnalyticsResponse(BaseModel):
    business_id: str
    total_actions: int
    completed_actions: int
    action_completion_rate: float
    total_sessions: int
    completed_sessions: int
    upcoming_sessions: int
    message_count: int
    last_session_at: Optional[datetime] = None
