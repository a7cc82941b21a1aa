"""Authentication schemas."""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    """Schema for user signup."""
    email: EmailStr
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserAuthInfo(BaseModel):
    """User info returned after auth."""
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    system_role: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Schema for authentication response."""
    access_token: str
    token_type: str = "bearer"
    user: UserAuthInfo


class ForgotPasswordRequest(BaseModel):
    """Schema for forgot password request."""
    email: EmailStr


class MessageResponse(BaseModel):
    """Generic acknowledgement."""
    message: str


class ResetPasswordRequest(BaseModel):
    """Schema for reset password request."""
    token: str
    new_password: str = Field(..., min_length=8, description="Password must be at least 8 characters")


class ChangePasswordRequest(BaseModel):
    """Schema for change password request (authenticated users)."""
    current_password: str
    new_password: str = Field(..., min_length=8, description="Password must be at least 8 characters")


class AcceptInviteRequest(BaseModel):
    """Schema for accepting a team or client invite."""
    token: str
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    first_name: str | None = None
    last_name: str | None = None
