"""Super admin schemas."""
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List, Literal

from app.businesses.schemas import BusinessResponse


class CoachSummary(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    client_count: int
    created_at: datetime


class ClientSummary(BaseModel):
    business: BusinessResponse
    owner_email: Optional[str] = None
    owner_name: Optional[str] = None
    owner_invite_pending: bool = False
    coach_name: Optional[str] = None


class ClientListResponse(BaseModel):
    clients: List[ClientSummary]
    total: int


class ClientCreate(BaseModel):
    """A new client: a business with an (invited) owner and optional coach."""
    business_name: str = Field(..., min_length=1, max_length=255)
    industry: Optional[str] = None
    owner_email: EmailStr
    owner_first_name: Optional[str] = None
    owner_last_name: Optional[str] = None
    coach_id: Optional[str] = None


class ClientCreateResponse(BaseModel):
    business: BusinessResponse
    owner_id: str
    invited: bool


class AssignCoachRequest(BaseModel):
    """coach_id of None unassigns the current coach."""
    coach_id: Optional[str] = None


class UserRoleUpdate(BaseModel):
    system_role: Literal["client", "coach", "super_admin"]


class UserRoleResponse(BaseModel):
    id: str
    email: str
    system_role: str

    model_config = {"from_attributes": True}
