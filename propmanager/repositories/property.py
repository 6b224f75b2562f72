"""
Property repository for organization-scoped property queries.
Every read takes the caller's org_id, so rows from other organizations are
indistinguishable from missing rows.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, asc
from propmanager.repositories.base import BaseRepository
from propmanager.models.property import Property, PropertyStatus
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertySearchFilters:
    """Data class for property list filters."""

    def __init__(
        self,
        status: Optional[PropertyStatus] = None,
        city: Optional[str] = None,
        property_type: Optional[str] = None,
        search_text: Optional[str] = None,
    ):
        self.status = status
        self.city = city
        self.property_type = property_type
        self.search_text = search_text


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management within one organization.
    Images and units are loaded eagerly through the model's selectin relationships.
    """

    SORTABLE_FIELDS = ("created_at", "updated_at", "name", "city", "status")

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def get_in_org(self, property_id: uuid.UUID, org_id: uuid.UUID) -> Optional[Property]:
        """
        Get a property only if it belongs to the given organization.

        Args:
            property_id: UUID of the property
            org_id: UUID of the caller's organization

        Returns:
            Property instance or None if missing or owned by another org
        """
        query = select(Property).where(
            and_(Property.id == property_id, Property.org_id == org_id)
        )
        result = await self.db.execute(query)
        property_obj = result.scalar_one_or_none()

        if property_obj is None:
            logger.debug(f"Property {property_id} not found in org {org_id}")

        return property_obj

    async def list_for_org(
        self,
        org_id: uuid.UUID,
        filters: Optional[PropertySearchFilters] = None,
        skip: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "desc",
    ) -> Tuple[List[Property], int]:
        """
        List an organization's properties with filtering and pagination.

        Returns:
            Tuple of (properties list, total count)
        """
        conditions = [Property.org_id == org_id]
        conditions.extend(self._build_filter_conditions(filters or PropertySearchFilters()))

        count_query = select(func.count(Property.id)).where(and_(*conditions))
        count_result = await self.db.execute(count_query)
        total_count = count_result.scalar() or 0

        query = select(Property).where(and_(*conditions))

        if order_by in self.SORTABLE_FIELDS:
            order_field = getattr(Property, order_by)
            query = query.order_by(
                desc(order_field) if order_direction.lower() == "desc" else asc(order_field)
            )
        else:
            query = query.order_by(desc(Property.created_at))

        # Secondary key keeps pagination stable when timestamps collide
        query = query.order_by(Property.id).offset(skip).limit(limit)

        result = await self.db.execute(query)
        properties = list(result.scalars().all())

        logger.debug(f"Listed {len(properties)} of {total_count} properties for org {org_id}")
        return properties, total_count

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> list:
        conditions = []

        if filters.status is not None:
            conditions.append(Property.status == filters.status)

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))

        if filters.property_type:
            conditions.append(func.lower(Property.property_type) == filters.property_type.lower())

        if filters.search_text:
            pattern = f"%{filters.search_text}%"
            conditions.append(
                or_(
                    Property.name.ilike(pattern),
                    Property.address.ilike(pattern),
                    Property.city.ilike(pattern),
                    Property.description.ilike(pattern),
                )
            )

        return conditions
