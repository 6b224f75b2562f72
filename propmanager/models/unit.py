"""
Unit model for rentable spaces inside a property.
"""

from sqlalchemy import String, Integer, Float, Numeric, Uuid, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmanager.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from propmanager.models.property import Property


class UnitStatus(str, enum.Enum):
    """Occupancy status of a unit."""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    VACANT = "VACANT"


class Unit(Base):
    """Unit belonging to a property; unit_number is unique per property."""

    __tablename__ = "units"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    area: Mapped[Optional[float]] = mapped_column(Float, nullable=True, comment="Floor area")

    rent_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=True,
        comment="Monthly rent"
    )

    status: Mapped[UnitStatus] = mapped_column(
        SQLEnum(UnitStatus),
        nullable=False,
        default=UnitStatus.AVAILABLE
    )

    property: Mapped["Property"] = relationship("Property", back_populates="units", lazy="select")

    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_unit_property_number"),
    )

    def __repr__(self) -> str:
        return f"<Unit(id={self.id}, unit_number={self.unit_number})>"
