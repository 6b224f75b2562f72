"""
Pydantic schemas for unit requests and responses.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from decimal import Decimal

from propmanager.models.unit import UnitStatus
from propmanager.utils.validators import trim_required, empty_to_none, upper_trim


class UnitFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[float] = Field(None, ge=0, le=50)
    area: Optional[float] = Field(None, gt=0, description="Floor area")
    rent_amount: Optional[Decimal] = Field(None, ge=0, description="Monthly rent")

    @field_validator("bedrooms", "bathrooms", "area", "rent_amount", mode="before")
    @classmethod
    def clean_numbers(cls, v):
        return empty_to_none(v)


class UnitCreate(UnitFields):
    """Schema for creating a unit."""

    unit_number: str = Field(..., min_length=1, max_length=50, examples=["2B"])
    status: UnitStatus = Field(UnitStatus.AVAILABLE)

    @field_validator("unit_number", mode="before")
    @classmethod
    def clean_unit_number(cls, v):
        return trim_required(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return UnitStatus.AVAILABLE if v is None else upper_trim(v)


class UnitUpdate(UnitFields):
    """Schema for partially updating a unit."""

    unit_number: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[UnitStatus] = None

    @field_validator("unit_number", mode="before")
    @classmethod
    def clean_unit_number(cls, v):
        return trim_required(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return upper_trim(v)


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    unit_number: str
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    rent_amount: Optional[Decimal] = None
    status: UnitStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "property_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v
