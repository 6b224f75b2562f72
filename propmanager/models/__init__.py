"""
Database models for the Property Manager API.
Includes Org, User, Property, PropertyImage and Unit models.
"""

from propmanager.models.org import Org, DEFAULT_ORG_NAME
from propmanager.models.user import User, UserRole
from propmanager.models.property import Property, PropertyStatus
from propmanager.models.image import PropertyImage
from propmanager.models.unit import Unit, UnitStatus

__all__ = [
    "Org",
    "DEFAULT_ORG_NAME",
    "User",
    "UserRole",
    "Property",
    "PropertyStatus",
    "PropertyImage",
    "Unit",
    "UnitStatus",
]
