"""
PropertyImage model for normalized property photos.
Replaces the legacy single-URL cover field with ordered, captioned records.
"""

from sqlalchemy import Text, String, Integer, Boolean, Uuid, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmanager.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from propmanager.models.property import Property


class PropertyImage(Base):
    """
    Image attached to a property.
    At most one image per property has is_primary set; display order is
    display_order ascending, then created_at ascending.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Absolute URL or /uploads/ path of the image"
    )

    caption: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True
    )

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the property's cover image"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        index=True
    )

    uploaded_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    property: Mapped["Property"] = relationship(
        "Property",
        back_populates="property_images",
        lazy="select"
    )

    __table_args__ = (
        Index("idx_image_property_order", "property_id", "display_order"),
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, is_primary={self.is_primary})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id) if self.property_id else None,
            "image_url": self.image_url,
            "caption": self.caption,
            "is_primary": self.is_primary,
            "display_order": self.display_order,
            "uploaded_by_id": str(self.uploaded_by_id) if self.uploaded_by_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
