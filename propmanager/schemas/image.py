"""
Pydantic schemas for property image requests and responses.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
import uuid

from propmanager.utils.validators import trim_to_none, trim_required, is_image_location


class PropertyImageCreate(BaseModel):
    """Schema for attaching an image to a property by URL."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_url: str = Field(
        ...,
        min_length=1,
        description="Hosted http(s) URL or /uploads/ path",
        examples=["https://cdn.example.com/properties/front.jpg"]
    )

    caption: Optional[str] = Field(
        None,
        max_length=500,
        description="Optional caption",
        examples=["Front view"]
    )

    is_primary: Optional[bool] = Field(
        None,
        description="Make this the cover image; defaults to automatic placement"
    )

    @field_validator("image_url", mode="before")
    @classmethod
    def validate_image_url(cls, v):
        v = trim_required(v)
        if isinstance(v, str) and v and not is_image_location(v):
            raise ValueError("Must be a valid URL")
        return v

    @field_validator("caption", mode="before")
    @classmethod
    def clean_caption(cls, v):
        return trim_to_none(v)


class PropertyImageUpdate(BaseModel):
    """Schema for updating image metadata; at least one field is required."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    caption: Optional[str] = Field(None, max_length=500)
    is_primary: Optional[bool] = Field(None)

    @field_validator("caption", mode="before")
    @classmethod
    def clean_caption(cls, v):
        return trim_to_none(v)

    @model_validator(mode="after")
    def require_any_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class PropertyImageReorder(BaseModel):
    """Schema for reordering a property's images."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ordered_image_ids: List[uuid.UUID] = Field(
        ...,
        min_length=1,
        description="Every image ID of the property, in the desired display order"
    )


class PropertyImageResponse(BaseModel):
    """Schema for property image response."""

    id: Optional[str] = Field(
        None,
        description="Image identifier; null for images synthesized from legacy fields"
    )
    property_id: Optional[str] = None
    image_url: str
    caption: Optional[str] = None
    is_primary: bool
    display_order: int
    uploaded_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
