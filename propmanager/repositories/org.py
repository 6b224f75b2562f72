"""
Organization repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from propmanager.repositories.base import BaseRepository
from propmanager.models.org import Org
import logging

logger = logging.getLogger(__name__)


class OrgRepository(BaseRepository[Org]):
    def __init__(self, db: AsyncSession):
        super().__init__(Org, db)

    async def create_pending(self, name: str) -> Org:
        """Insert an organization inside the caller's open transaction."""
        org = await self.add(Org(name=name))
        logger.debug(f"Staged organization '{name}' with id {org.id}")
        return org
