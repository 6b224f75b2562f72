"""
Organization API endpoints.
"""

from fastapi import APIRouter, Depends, status
from propmanager.models.user import User
from propmanager.schemas.user import OrgResponse
from propmanager.schemas.error import get_auth_error_responses
from propmanager.services.organization import OrganizationService
from propmanager.utils.dependencies import get_current_active_user, get_organization_service


router = APIRouter(prefix="/orgs", tags=["Organizations"])


@router.get(
    "/me",
    response_model=OrgResponse,
    status_code=status.HTTP_200_OK,
    summary="Current organization",
    description="Resolve the caller's organization, creating it on first access",
    responses=get_auth_error_responses()
)
async def get_my_org(
    current_user: User = Depends(get_current_active_user),
    org_service: OrganizationService = Depends(get_organization_service)
) -> OrgResponse:
    org = await org_service.get_user_org(current_user)
    return OrgResponse.model_validate(org.to_dict())
