"""
Unit service for managing the units of a property.
Units inherit the organization scoping and role checks of their property.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from propmanager.models.property import Property
from propmanager.models.unit import Unit
from propmanager.models.user import User
from propmanager.repositories.unit import UnitRepository
from propmanager.schemas.unit import UnitCreate, UnitUpdate
from propmanager.services.property import PropertyService
from propmanager.utils.exceptions import NotFoundError, DuplicateResourceError
import uuid
import logging

logger = logging.getLogger(__name__)


class UnitService:
    """
    CRUD for units nested under a property.
    Keeps Property.total_units equal to the number of units.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.unit_repo = UnitRepository(db_session)
        self.property_service = PropertyService(db_session)

    async def list_units(self, property_id: uuid.UUID, current_user: User) -> List[Unit]:
        property_obj = await self.property_service.get_property(property_id, current_user)
        return await self.unit_repo.get_by_property_id(property_obj.id)

    async def get_unit(self, property_id: uuid.UUID, unit_id: uuid.UUID, current_user: User) -> Unit:
        property_obj = await self.property_service.get_property(property_id, current_user)
        return await self._get_in_property(unit_id, property_obj.id)

    async def create_unit(self, property_id: uuid.UUID, unit_data: UnitCreate, current_user: User) -> Unit:
        """
        Create a unit in a property.

        Raises:
            DuplicateResourceError: If the unit number is taken in this property
        """
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        await self._ensure_number_available(property_obj.id, unit_data.unit_number)

        unit = Unit(property_id=property_obj.id, **unit_data.model_dump())
        await self.unit_repo.add(unit)
        await self._sync_total_units(property_obj)
        await self._commit(f"create unit in property {property_id}")
        await self.db.refresh(unit)

        logger.info(f"Unit {unit.unit_number} created in property {property_id} by {current_user.email}")
        return unit

    async def update_unit(
        self,
        property_id: uuid.UUID,
        unit_id: uuid.UUID,
        unit_data: UnitUpdate,
        current_user: User
    ) -> Unit:
        """Partially update a unit; only supplied fields change."""
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        unit = await self._get_in_property(unit_id, property_obj.id)

        update_data = unit_data.model_dump(exclude_unset=True)
        if update_data.get("unit_number") and update_data["unit_number"] != unit.unit_number:
            await self._ensure_number_available(property_obj.id, update_data["unit_number"])
        for field in ("unit_number", "status"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)

        updated = await self.unit_repo.update(unit, update_data)
        logger.info(f"Unit {unit_id} of property {property_id} updated by {current_user.email}")
        return updated

    async def delete_unit(self, property_id: uuid.UUID, unit_id: uuid.UUID, current_user: User) -> None:
        property_obj = await self.property_service.get_property_for_write(property_id, current_user)
        unit = await self._get_in_property(unit_id, property_obj.id)

        await self.db.delete(unit)
        await self.db.flush()
        await self._sync_total_units(property_obj)
        await self._commit(f"delete unit {unit_id}")

        logger.info(f"Unit {unit_id} deleted from property {property_id} by {current_user.email}")

    async def _get_in_property(self, unit_id: uuid.UUID, property_id: uuid.UUID) -> Unit:
        unit = await self.unit_repo.get_in_property(unit_id, property_id)
        if unit is None:
            raise NotFoundError("Unit", str(unit_id))
        return unit

    async def _ensure_number_available(self, property_id: uuid.UUID, unit_number: str) -> None:
        if await self.unit_repo.get_by_number(property_id, unit_number):
            raise DuplicateResourceError("Unit", unit_number)

    async def _sync_total_units(self, property_obj: Property) -> None:
        property_obj.total_units = await self.unit_repo.count_by_property_id(property_obj.id)

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise
