"""
Repository for PropertyImage model operations.
Handles database queries and operations for property images.
"""

import uuid
from typing import Optional
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propmanager.models.image import PropertyImage
from propmanager.repositories.base import BaseRepository


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_in_property(
        self, image_id: uuid.UUID, property_id: uuid.UUID
    ) -> Optional[PropertyImage]:
        """Get an image only if it is attached to the given property."""
        query = select(PropertyImage).where(
            and_(PropertyImage.id == image_id, PropertyImage.property_id == property_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
