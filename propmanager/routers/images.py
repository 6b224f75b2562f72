"""
Property image API endpoints: add by URL, upload, update, delete and reorder.
"""

from fastapi import APIRouter, Depends, status, Path, File, Form, UploadFile, Response
from typing import List, Optional
from uuid import UUID

from propmanager.models.user import User
from propmanager.services.image import ImageService
from propmanager.schemas.image import (
    PropertyImageCreate,
    PropertyImageUpdate,
    PropertyImageReorder,
    PropertyImageResponse,
)
from propmanager.schemas.error import get_crud_error_responses
from propmanager.utils.dependencies import get_current_active_user, get_image_service
from propmanager.utils.validators import trim_to_none


router = APIRouter(prefix="/properties/{property_id}/images", tags=["Property Images"])


@router.get(
    "",
    response_model=List[PropertyImageResponse],
    summary="List property images",
    description="Images in display order; legacy cover fields are returned as synthesized images",
    responses=get_crud_error_responses()
)
async def list_images(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    images = await image_service.list_images(property_id, current_user)
    return [PropertyImageResponse.model_validate(image) for image in images]


@router.post(
    "",
    response_model=PropertyImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add image by URL",
    responses={**get_crud_error_responses(), **{409: {"description": "Image already attached"}}}
)
async def add_image(
    image_data: PropertyImageCreate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageResponse:
    record = await image_service.add_image(property_id, image_data, current_user)
    return PropertyImageResponse.model_validate(record.to_dict())


@router.post(
    "/upload",
    response_model=List[PropertyImageResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload images",
    description="Upload one or more JPEG, PNG or WebP files",
    responses=get_crud_error_responses()
)
async def upload_images(
    property_id: UUID = Path(..., description="Property ID"),
    files: List[UploadFile] = File(..., description="Image files"),
    caption: Optional[str] = Form(None, description="Caption applied to every uploaded image"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    records = await image_service.upload_images(property_id, files, current_user, caption=trim_to_none(caption))
    return [PropertyImageResponse.model_validate(record.to_dict()) for record in records]


@router.put(
    "/reorder",
    response_model=List[PropertyImageResponse],
    summary="Reorder images",
    responses=get_crud_error_responses()
)
async def reorder_images(
    reorder_data: PropertyImageReorder,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    records = await image_service.reorder_images(property_id, reorder_data.ordered_image_ids, current_user)
    return [PropertyImageResponse.model_validate(record.to_dict()) for record in records]


@router.patch(
    "/{image_id}",
    response_model=PropertyImageResponse,
    summary="Update image caption or cover flag",
    responses=get_crud_error_responses()
)
async def update_image(
    image_data: PropertyImageUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageResponse:
    record = await image_service.update_image(property_id, image_id, image_data, current_user)
    return PropertyImageResponse.model_validate(record.to_dict())


@router.delete(
    "/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete image",
    description="Deleting the cover promotes the next image",
    responses=get_crud_error_responses()
)
async def delete_image(
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> Response:
    await image_service.delete_image(property_id, image_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
