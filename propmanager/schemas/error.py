"""
Error response schemas used for OpenAPI documentation.
Mirrors the structure produced by ErrorHandlerService.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ErrorDetail(BaseModel):
    """Field-level validation detail."""

    field: str = Field(..., examples=["body -> name"])
    message: str = Field(..., examples=["String should have at least 1 character"])
    type: str = Field(..., examples=["string_too_short"])
    input: Optional[Any] = None


class ErrorBody(BaseModel):
    code: str = Field(..., examples=["NOT_FOUND"])
    message: str = Field(..., examples=["Property not found"])
    timestamp: str
    request_id: Optional[str] = None
    details: Optional[List[ErrorDetail]] = None


class APIErrorResponse(BaseModel):
    """Envelope returned for every error."""

    error: ErrorBody


ERROR_DESCRIPTIONS = {
    400: "Bad Request - Malformed input",
    401: "Unauthorized - Authentication required",
    403: "Forbidden - Insufficient permissions",
    404: "Not Found - Resource does not exist in the caller's organization",
    409: "Conflict - Duplicate resource",
    422: "Unprocessable Entity - Request validation failed",
    500: "Internal Server Error",
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Build the ``responses`` mapping for the given status codes."""
    return {
        code: {"description": ERROR_DESCRIPTIONS[code], "model": APIErrorResponse}
        for code in status_codes
        if code in ERROR_DESCRIPTIONS
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 403)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(400, 401, 403, 404, 422, 500)
