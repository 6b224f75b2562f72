"""
Repository for Unit model operations.
"""

import uuid
from typing import List, Optional
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propmanager.models.unit import Unit
from propmanager.repositories.base import BaseRepository


class UnitRepository(BaseRepository[Unit]):
    """Repository for units scoped to a property."""

    def __init__(self, db: AsyncSession):
        super().__init__(Unit, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[Unit]:
        query = select(Unit).where(Unit.property_id == property_id).order_by(Unit.unit_number)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_in_property(self, unit_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Unit]:
        query = select(Unit).where(and_(Unit.id == unit_id, Unit.property_id == property_id))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_number(self, property_id: uuid.UUID, unit_number: str) -> Optional[Unit]:
        """Find a unit by its number within a property."""
        query = select(Unit).where(
            and_(Unit.property_id == property_id, Unit.unit_number == unit_number)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        query = select(func.count(Unit.id)).where(Unit.property_id == property_id)
        result = await self.db.execute(query)
        return result.scalar() or 0
