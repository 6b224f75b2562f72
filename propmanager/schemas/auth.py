"""
Pydantic schemas for authentication requests and responses.
Handles login, token refresh, and token payloads.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from propmanager.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., examples=["manager@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class LoginResponse(AccessTokenResponse):
    """Login response carrying both tokens and the authenticated user."""

    refresh_token: str
    user: UserResponse
