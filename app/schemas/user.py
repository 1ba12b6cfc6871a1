"""User schemas."""
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Literal, Optional
from datetime import datetime

from app.models.user import UserRole


# Authentication schemas
class UserLoginResponse(BaseModel):
    """User data in login response."""
    id: int
    email: str
    full_name: str
    role: UserRole
    organization: Optional[str] = None
    created_at: datetime


class LoginResponse(BaseModel):
    """Complete login response with token and user data."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user: UserLoginResponse


# Registration
class ResearcherRegister(BaseModel):
    """Self-registration request for researchers."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    organization: str = Field(..., min_length=1)
    research_area: str = Field(..., min_length=1)
    purpose: str = Field(..., min_length=1)


class RegistrationResponse(BaseModel):
    message: str
    user: "UserResponse"


class EmailVerificationRequest(BaseModel):
    email: EmailStr
    verification_code: str = Field(..., min_length=6, max_length=6)


# User management
class UserResponse(BaseModel):
    """User response."""
    id: int
    email: str
    full_name: str
    role: UserRole
    organization: Optional[str] = None
    research_area: Optional[str] = None
    is_active: bool
    is_email_verified: bool
    is_approved: bool
    is_banned: bool
    ban_reason: Optional[str] = None
    ban_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserModerationRequest(BaseModel):
    """Admin moderation action on a researcher account."""
    action: Literal["approve", "reject", "ban", "unban"]
    ban_reason: Optional[str] = None
    ban_duration_days: Optional[int] = Field(None, ge=1)  # None = permanent


RegistrationResponse.model_rebuild()
