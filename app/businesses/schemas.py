"""Pydantic schemas for businesses, profiles and team members."""
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime
from typing import Optional, Dict, Any, List, Literal
from decimal import Decimal


# ============================================================================
# BUSINESS
# ============================================================================

class BusinessCreate(BaseModel):
    """Schema for creating a business."""
    name: str = Field(..., min_length=1, max_length=255)
    industry: Optional[str] = None
    # Coaches and admins may create a business on behalf of a client
    owner_email: Optional[EmailStr] = None
    owner_first_name: Optional[str] = None
    owner_last_name: Optional[str] = None


class BusinessUpdate(BaseModel):
    """Schema for updating a business."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    industry: Optional[str] = None
    status: Optional[Literal["active", "onboarding", "paused", "archived"]] = None

    @field_validator("name", "status")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class BusinessResponse(BaseModel):
    """Schema for business response."""
    id: str
    name: str
    owner_id: Optional[str] = None
    assigned_coach_id: Optional[str] = None
    industry: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ViewerContext(BaseModel):
    """How the current user sees the business."""
    role: str
    is_viewing_as_coach: bool
    can_edit: bool
    can_delete: bool


class BusinessWithAccessResponse(BaseModel):
    business: BusinessResponse
    viewer: ViewerContext


class ActiveBusinessResponse(BaseModel):
    """Active business resolution; both fields are null when there is none."""
    business: Optional[BusinessResponse] = None
    viewer: Optional[ViewerContext] = None


class BusinessListResponse(BaseModel):
    businesses: List[BusinessResponse]
    total: int


# ============================================================================
# PROFILE
# ============================================================================

class BusinessProfileUpdate(BaseModel):
    """Schema for upserting a business profile."""
    company_name: Optional[str] = None
    industry: Optional[str] = None
    annual_revenue: Optional[Decimal] = Field(None, ge=0)
    employee_count: Optional[int] = Field(None, ge=0)
    founded_date: Optional[date] = None
    website: Optional[str] = None
    description: Optional[str] = None


class BusinessProfileResponse(BaseModel):
    id: Optional[str] = None
    business_id: str
    company_name: Optional[str] = None
    industry: Optional[str] = None
    annual_revenue: Optional[Decimal] = None
    employee_count: Optional[int] = None
    founded_date: Optional[date] = None
    website: Optional[str] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


# ============================================================================
# TEAM
# ============================================================================

class TeamInviteRequest(BaseModel):
    """Schema for inviting a team member."""
    email: EmailStr
    role: Literal["admin", "member", "viewer"] = "member"
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    section_permissions: Dict[str, Any] = {}


class TeamMemberUpdate(BaseModel):
    role: Optional[Literal["admin", "member", "viewer"]] = None
    position: Optional[str] = None
    section_permissions: Optional[Dict[str, Any]] = None

    @field_validator("role", "section_permissions")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class TeamMemberResponse(BaseModel):
    id: str
    business_id: str
    user_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    status: str
    position: Optional[str] = None
    section_permissions: Dict[str, Any] = {}
    invited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TeamInviteResponse(BaseModel):
    member: TeamMemberResponse
    invited: bool  # True when a new account was created and an invite emailed
