"""
Service layer containing the business logic of the Property Manager API.
"""

from .auth import AuthService
from .error_handler import ErrorHandlerService
from .image import ImageService
from .organization import OrganizationService, derive_org_name
from .property import PropertyService
from .unit import UnitService

__all__ = [
    "AuthService",
    "ErrorHandlerService",
    "ImageService",
    "OrganizationService",
    "derive_org_name",
    "PropertyService",
    "UnitService",
]
