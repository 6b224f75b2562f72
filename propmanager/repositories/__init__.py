"""
Repository layer for data access operations.
Provides organization-scoped database operations with proper error handling.
"""

from propmanager.repositories.base import BaseRepository
from propmanager.repositories.image import ImageRepository
from propmanager.repositories.org import OrgRepository
from propmanager.repositories.property import PropertyRepository, PropertySearchFilters
from propmanager.repositories.unit import UnitRepository
from propmanager.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "ImageRepository",
    "OrgRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "UnitRepository",
    "UserRepository",
]
