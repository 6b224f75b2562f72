"""
Organization resolution service.
Guarantees every authenticated user maps to one existing organization before
any organization-scoped query runs, creating the organization on first use.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from propmanager.models.org import Org, DEFAULT_ORG_NAME
from propmanager.models.user import User
from propmanager.repositories.org import OrgRepository
from propmanager.repositories.user import UserRepository
from propmanager.utils.exceptions import NotFoundError
from propmanager.utils.validators import parse_uuid
import uuid
import logging

logger = logging.getLogger(__name__)


def derive_org_name(company: Optional[str], name: Optional[str]) -> str:
    """
    Name for a newly provisioned organization.

    Uses the trimmed company, falling back to the trimmed user name and
    finally to DEFAULT_ORG_NAME.
    """
    for candidate in (company, name):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return DEFAULT_ORG_NAME


class OrganizationService:
    """
    Resolves (and lazily provisions) the organization of a user.

    The creation path runs in one transaction that holds a row lock on the
    user, so concurrent first requests for the same user wait for each other
    and the later one reuses the organization the earlier one created.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.org_repo = OrgRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def resolve_org_id(self, user: Optional[User]) -> uuid.UUID:
        """
        Return the id of the user's organization, creating one if needed.

        Args:
            user: Authenticated user; its org_id is updated in place

        Returns:
            UUID of an existing organization

        Raises:
            ValueError: If no user is given
        """
        if user is None:
            raise ValueError("User context is required")

        user_id = user.id
        org_id = parse_uuid(user.org_id)
        if org_id is not None:
            if await self.org_repo.exists(org_id):
                return org_id
            logger.warning(f"User {user_id} references missing organization {org_id}; reprovisioning")

        try:
            locked_user = await self.user_repo.get_for_update(user_id)
            if locked_user is None:
                raise NotFoundError("User", str(user_id))

            stored_org_id = parse_uuid(locked_user.org_id)
            if stored_org_id is not None and await self.org_repo.exists(stored_org_id):
                await self.db.commit()
                logger.debug(f"Organization {stored_org_id} was assigned to user {user_id} concurrently")
                resolved_id = stored_org_id
            else:
                org_name = derive_org_name(locked_user.company, locked_user.name)
                org = await self.org_repo.create_pending(org_name)
                resolved_id = org.id
                locked_user.org_id = resolved_id
                await self.db.commit()
                logger.info(f"Created organization '{org_name}' ({resolved_id}) for user {user_id}")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to resolve organization for user {user_id}: {e}")
            raise

        user.org_id = resolved_id
        return resolved_id

    async def get_user_org(self, user: User) -> Org:
        """Resolve the user's organization and load it."""
        org_id = await self.resolve_org_id(user)
        org = await self.org_repo.get_by_id(org_id)
        if org is None:
            raise NotFoundError("Organization", str(org_id))
        return org
