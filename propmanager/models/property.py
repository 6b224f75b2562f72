"""
Property model for managed buildings and homes.
Handles address data, status, legacy cover-image fields and organization ownership.
"""

from sqlalchemy import String, Text, Integer, Float, JSON, Uuid, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmanager.database import Base
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from propmanager.models.org import Org
    from propmanager.models.image import PropertyImage
    from propmanager.models.unit import Unit


class PropertyStatus(str, enum.Enum):
    """Operational status of a property."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"


class Property(Base):
    """
    Property owned by an organization.

    `image_url` and `images` are the legacy single-cover and URL-list
    representations; they are kept in sync with the PropertyImage rows so
    older clients keep working.
    """

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property name"
    )

    # Address
    address: Mapped[str] = mapped_column(String(255), nullable=False, comment="Street address")
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, comment="Postcode / ZIP")
    country: Mapped[str] = mapped_column(String(120), nullable=False)

    property_type: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Free-form category, e.g. Residential or Commercial"
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.ACTIVE,
        index=True
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_area: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Legacy image representation
    image_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Legacy cover image URL, mirrors the primary PropertyImage"
    )

    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Legacy list of image URLs in display order"
    )

    # Ownership
    org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning organization"
    )

    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Managing user"
    )

    # Relationships
    org: Mapped["Org"] = relationship("Org", back_populates="properties", lazy="select")

    property_images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="[PropertyImage.display_order, PropertyImage.created_at]"
    )

    units: Mapped[List["Unit"]] = relationship(
        "Unit",
        back_populates="property",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Unit.unit_number"
    )

    __table_args__ = (
        Index("idx_property_org_created", "org_id", "created_at"),
        Index("idx_property_org_status", "org_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name}, org_id={self.org_id})>"
