"""
Pydantic schemas for request/response validation.
"""

from .auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
)
from .user import UserCreate, UserResponse, OrgResponse
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
)
from .image import (
    PropertyImageCreate,
    PropertyImageUpdate,
    PropertyImageReorder,
    PropertyImageResponse,
)
from .unit import UnitCreate, UnitUpdate, UnitResponse
from .error import APIErrorResponse

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "UserCreate",
    "UserResponse",
    "OrgResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertyImageCreate",
    "PropertyImageUpdate",
    "PropertyImageReorder",
    "PropertyImageResponse",
    "UnitCreate",
    "UnitUpdate",
    "UnitResponse",
    "APIErrorResponse",
]
