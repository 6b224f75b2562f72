"""
Pydantic schemas for user registration and user responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from propmanager.models.user import UserRole
from propmanager.utils.validators import trim_to_none


class UserCreate(BaseModel):
    """Schema for registering a new user."""

    email: EmailStr = Field(..., examples=["manager@example.com"])
    password: str = Field(..., min_length=8, max_length=72)
    name: Optional[str] = Field(None, max_length=255, examples=["Jordan Lee"])
    company: Optional[str] = Field(None, max_length=255, examples=["Acme Facilities"])
    role: UserRole = Field(UserRole.PROPERTY_MANAGER)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("name", "company", mode="before")
    @classmethod
    def clean_profile(cls, v):
        return trim_to_none(v)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        """Require at least one letter and one number."""
        if not any(c.isalpha() for c in v):
            raise ValueError("Password must contain at least one letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one number")
        return v


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str
    email: EmailStr
    name: Optional[str] = None
    company: Optional[str] = None
    role: UserRole
    is_active: bool
    org_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrgResponse(BaseModel):
    """Organization response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
