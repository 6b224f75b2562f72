"""
Property management API endpoints for CRUD operations and image sync.
Every endpoint is scoped to the caller's organization.
"""

from fastapi import APIRouter, Depends, status, Query, Path, File, Form, UploadFile, Response
from typing import Optional, List
from uuid import UUID
import math

from propmanager.config import settings
from propmanager.models.user import User
from propmanager.models.property import PropertyStatus
from propmanager.services.property import PropertyService
from propmanager.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
)
from propmanager.schemas.error import get_crud_error_responses
from propmanager.utils.dependencies import get_current_active_user, get_property_service
from propmanager.utils.exceptions import BadRequestError
from propmanager.utils.images import UNSET
from propmanager.utils.validators import upper_trim


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a property in the caller's organization. Requires property manager or admin role.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(property_service.serialize(property_obj))


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties",
    description="Paginated list of the organization's properties, newest first",
    responses=get_crud_error_responses()
)
async def list_properties(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by property status"),
    search: Optional[str] = Query(None, description="Search name, address, city and description"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size, description="Properties per page"
    ),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    status_value = None
    if status_filter and status_filter.strip():
        try:
            status_value = PropertyStatus(upper_trim(status_filter))
        except ValueError:
            allowed = ", ".join(s.value for s in PropertyStatus)
            raise BadRequestError(f"Invalid status '{status_filter}'. Allowed: {allowed}")

    properties, total = await property_service.list_properties(
        current_user,
        status=status_value,
        search=search.strip() if search and search.strip() else None,
        skip=(page - 1) * page_size,
        limit=page_size
    )

    total_pages = math.ceil(total / page_size) if total else 0
    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(property_service.serialize(p)) for p in properties],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property",
    responses=get_crud_error_responses()
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id, current_user)
    return PropertyResponse.model_validate(property_service.serialize(property_obj))


@router.patch(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description=(
        "Partially update a property. Omitted fields are left untouched; "
        "a null coverImage removes the current cover."
    ),
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(property_service.serialize(property_obj))


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Delete a property together with its images and units",
    responses=get_crud_error_responses()
)
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{property_id}/photos",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Sync property photos",
    description=(
        "Multipart image update. existing_images is a JSON list of the images to keep, "
        "cover_image selects the cover and files are appended in order."
    ),
    responses=get_crud_error_responses()
)
async def sync_property_photos(
    property_id: UUID = Path(..., description="Property ID"),
    existing_images: Optional[str] = Form(None, description="JSON list of images to keep"),
    cover_image: Optional[str] = Form(None, description="URL of the cover image; blank clears it"),
    files: Optional[List[UploadFile]] = File(None, description="New image files"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.sync_photos(
        property_id,
        current_user,
        existing_images=UNSET if existing_images is None else existing_images,
        cover_image=UNSET if cover_image is None else cover_image,
        files=files or []
    )
    return PropertyResponse.model_validate(property_service.serialize(property_obj))
