"""
Unit API endpoints nested under a property.
"""

from fastapi import APIRouter, Depends, status, Path, Response
from typing import List
from uuid import UUID

from propmanager.models.user import User
from propmanager.services.unit import UnitService
from propmanager.schemas.unit import UnitCreate, UnitUpdate, UnitResponse
from propmanager.schemas.error import get_crud_error_responses, get_error_responses
from propmanager.utils.dependencies import get_current_active_user, get_unit_service


router = APIRouter(prefix="/properties/{property_id}/units", tags=["Units"])


@router.get("", response_model=List[UnitResponse], summary="List units", responses=get_crud_error_responses())
async def list_units(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> List[UnitResponse]:
    units = await unit_service.list_units(property_id, current_user)
    return [UnitResponse.model_validate(unit) for unit in units]


@router.post(
    "",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create unit",
    responses={**get_crud_error_responses(), **get_error_responses(409)}
)
async def create_unit(
    unit_data: UnitCreate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitResponse:
    unit = await unit_service.create_unit(property_id, unit_data, current_user)
    return UnitResponse.model_validate(unit)


@router.get("/{unit_id}", response_model=UnitResponse, summary="Get unit", responses=get_crud_error_responses())
async def get_unit(
    property_id: UUID = Path(..., description="Property ID"),
    unit_id: UUID = Path(..., description="Unit ID"),
    current_user: User = Depends(get_current_active_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitResponse:
    unit = await unit_service.get_unit(property_id, unit_id, current_user)
    return UnitResponse.model_validate(unit)


@router.patch(
    "/{unit_id}",
    response_model=UnitResponse,
    summary="Update unit",
    responses={**get_crud_error_responses(), **get_error_responses(409)}
)
async def update_unit(
    unit_data: UnitUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    unit_id: UUID = Path(..., description="Unit ID"),
    current_user: User = Depends(get_current_active_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitResponse:
    unit = await unit_service.update_unit(property_id, unit_id, unit_data, current_user)
    return UnitResponse.model_validate(unit)


@router.delete(
    "/{unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete unit",
    responses=get_crud_error_responses()
)
async def delete_unit(
    property_id: UUID = Path(..., description="Property ID"),
    unit_id: UUID = Path(..., description="Unit ID"),
    current_user: User = Depends(get_current_active_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> Response:
    await unit_service.delete_unit(property_id, unit_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
