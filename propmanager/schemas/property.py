"""
Pydantic schemas for property requests and responses.
Accepts both snake_case and camelCase keys, plus the legacy aliases
(postcode, type, coverImage, images) older clients still send.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Optional, List
from datetime import datetime

from propmanager.models.property import PropertyStatus
from propmanager.schemas.image import PropertyImageResponse
from propmanager.utils.validators import (
    trim_to_none,
    trim_required,
    empty_to_none,
    upper_trim,
    is_image_location,
)


def _current_year() -> int:
    return datetime.now().year


class PropertyFields(BaseModel):
    """Optional property fields shared by create and update payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: Optional[str] = Field(None, max_length=120)
    zip_code: Optional[str] = Field(None, max_length=32)
    postcode: Optional[str] = Field(None, max_length=32, description="Legacy alias of zip_code")
    property_type: Optional[str] = Field(None, max_length=64, examples=["Residential"])
    type: Optional[str] = Field(None, max_length=64, description="Legacy alias of property_type")
    description: Optional[str] = Field(None, max_length=5000)
    year_built: Optional[int] = Field(None, ge=1800, description="Year of construction")
    total_area: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, description="Legacy cover image URL")

    # Image inputs: strings, {url} objects or {imageUrl, caption, isPrimary} objects
    cover_image: Optional[Any] = Field(None, description="Cover image (URL or image object)")
    images: Optional[List[Any]] = Field(None, description="Property images in display order")

    @field_validator("state", "zip_code", "postcode", "property_type", "type", "description", mode="before")
    @classmethod
    def clean_optional_strings(cls, v):
        return trim_to_none(v)

    @field_validator("year_built", "total_area", mode="before")
    @classmethod
    def clean_numbers(cls, v):
        return empty_to_none(v)

    @field_validator("year_built")
    @classmethod
    def validate_year_built(cls, v):
        if v is not None and v > _current_year():
            raise ValueError(f"Year cannot be later than {_current_year()}")
        return v

    @field_validator("image_url", mode="before")
    @classmethod
    def validate_image_url(cls, v):
        v = trim_to_none(v)
        if v is not None and (not isinstance(v, str) or not is_image_location(v)):
            raise ValueError("Must be a valid URL")
        return v


class PropertyCreate(PropertyFields):
    """Schema for creating a new property."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Harbour View Apartments"])
    address: str = Field(..., min_length=1, max_length=255, examples=["12 Quay Street"])
    city: str = Field(..., min_length=1, max_length=120, examples=["Auckland"])
    country: str = Field(..., min_length=1, max_length=120, examples=["New Zealand"])
    status: PropertyStatus = Field(PropertyStatus.ACTIVE)
    total_units: int = Field(0, ge=0)

    @field_validator("name", "address", "city", "country", mode="before")
    @classmethod
    def clean_required_strings(cls, v):
        return trim_required(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return PropertyStatus.ACTIVE if v is None else upper_trim(v)

    @field_validator("total_units", mode="before")
    @classmethod
    def default_total_units(cls, v):
        v = empty_to_none(v)
        return 0 if v is None else v

    @model_validator(mode="after")
    def require_property_type(self):
        if not self.property_type and not self.type:
            raise ValueError("Property type is required")
        return self


class PropertyUpdate(PropertyFields):
    """
    Schema for partially updating a property.

    Only fields present in the payload are applied; ``model_fields_set``
    distinguishes an omitted cover image (leave as is) from an explicit null
    (clear it).
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=120)
    country: Optional[str] = Field(None, min_length=1, max_length=120)
    status: Optional[PropertyStatus] = None
    total_units: Optional[int] = Field(None, ge=0)

    # Images already attached to the property that the client wants to keep;
    # multipart clients send this as a JSON-encoded string.
    existing_images: Optional[Any] = Field(None)

    @field_validator("name", "address", "city", "country", mode="before")
    @classmethod
    def clean_required_strings(cls, v):
        return trim_required(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return upper_trim(v)

    @field_validator("total_units", mode="before")
    @classmethod
    def clean_total_units(cls, v):
        return empty_to_none(v)


class PropertyResponse(BaseModel):
    """Schema for property response, including legacy alias fields."""

    id: str
    name: str
    address: str
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    postcode: Optional[str] = None
    country: str
    property_type: Optional[str] = None
    type: Optional[str] = None
    status: PropertyStatus
    description: Optional[str] = None
    year_built: Optional[int] = None
    total_units: int = 0
    total_area: Optional[float] = None
    image_url: Optional[str] = None
    cover_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    property_images: List[PropertyImageResponse] = Field(default_factory=list)
    org_id: str
    manager_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PropertyListResponse(BaseModel):
    """Paginated property list."""

    properties: List[PropertyResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool
