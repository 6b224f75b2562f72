"""
Organization model.
Organizations are the tenant boundary every property belongs to.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmanager.database import Base
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from propmanager.models.property import Property


DEFAULT_ORG_NAME = "New Organization"


class Org(Base):
    """
    Tenant-scoping organization.
    Created lazily the first time a user without a valid organization reaches
    the property API; never deleted by the application.
    """

    __tablename__ = "orgs"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name, derived from the creating user's company or name"
    )

    properties: Mapped[List["Property"]] = relationship(
        "Property",
        back_populates="org",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Org(id={self.id}, name={self.name})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
