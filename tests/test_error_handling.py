"""
Tests for error response formatting and transaction rollback on failure.
"""

import json
import pytest
from unittest.mock import AsyncMock, Mock, patch
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from propmanager.models import User
from propmanager.services.error_handler import ErrorHandlerService
from propmanager.services.organization import OrganizationService
from propmanager.utils.exceptions import BadRequestError, InvalidTokenError
from tests.conftest import count_orgs


def mock_request(request_id: str = "req-1", path: str = "/api/v1/properties") -> Mock:
    request = Mock()
    request.state.request_id = request_id
    request.url.path = path
    return request


class TestErrorHandlerService:

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "name", "message": "required"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "name"
        assert response["error"]["timestamp"].endswith("Z")

    def test_details_omitted_when_empty(self):
        response = ErrorHandlerService.format_error_response("X", "y")

        assert "details" not in response["error"]

    def test_api_exception_uses_request_id(self):
        response = ErrorHandlerService.handle_api_exception(
            BadRequestError("existingImages must be valid JSON"), mock_request("abc")
        )

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["error"]["code"] == "BAD_REQUEST"
        assert body["error"]["request_id"] == "abc"

    def test_api_exception_keeps_headers(self):
        response = ErrorHandlerService.handle_api_exception(InvalidTokenError())

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_validation_error_details(self):
        errors = [
            {"loc": ("body", "name"), "msg": "Field required", "type": "missing", "input": None},
            {"loc": ("body", "images", 0), "msg": "Invalid", "type": "value_error", "input": {"url": 1}},
        ]

        response = ErrorHandlerService.handle_validation_error(errors, mock_request())

        assert response.status_code == 422
        details = json.loads(response.body)["error"]["details"]
        assert details[0] == {"field": "body -> name", "message": "Field required", "type": "missing", "input": None}
        assert details[1]["field"] == "body -> images -> 0"
        assert "input" not in details[1]

    def test_integrity_error_is_conflict(self):
        exception = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: units.unit_number"))

        response = ErrorHandlerService.handle_database_error(exception, mock_request())

        assert response.status_code == 409
        body = json.loads(response.body)["error"]
        assert body["code"] == "INTEGRITY_ERROR"
        assert body["message"] == "Constraint violation: Duplicate value for unique field"

    def test_other_database_error_hides_internals(self):
        exception = OperationalError("SELECT", {}, Exception("connection refused on 10.0.0.5"))

        response = ErrorHandlerService.handle_database_error(exception, mock_request())

        assert response.status_code == 500
        assert "10.0.0.5" not in response.body.decode()

    def test_http_exception(self):
        response = ErrorHandlerService.handle_http_exception(
            StarletteHTTPException(status_code=405, detail="Method Not Allowed")
        )

        assert response.status_code == 405
        assert json.loads(response.body)["error"]["code"] == "HTTP_405"

    def test_unexpected_error(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret detail"), mock_request())

        assert response.status_code == 500
        body = json.loads(response.body)["error"]
        assert body["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret detail" not in body["message"]


class TestResolverRollback:

    async def test_failed_insert_rolls_back(
        self, org_service: OrganizationService, db_session: AsyncSession, manager: User
    ):
        with patch.object(
            org_service.org_repo, "create_pending", AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))
        ):
            with pytest.raises(OperationalError):
                await org_service.resolve_org_id(manager)

        await db_session.refresh(manager)
        assert manager.org_id is None
        assert await count_orgs(db_session) == 0
