"""
Request logging middleware.
Assigns each request an id, rejects oversized bodies, times the request and
logs it, flagging slow requests.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from propmanager.services.error_handler import ErrorHandlerService
from propmanager.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Adds ``X-Request-ID`` and ``X-Processing-Time`` headers to every response.
    The request id is stored on ``request.state`` so error responses can echo it.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,
        slow_request_threshold: float = 1.0,  # seconds
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.slow_request_threshold = slow_request_threshold
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        if self.enable_request_logging:
            logger.debug(f"Request [{request_id}]: {request.method} {request.url.path}")

        response = await call_next(request)
        processing_time = time.perf_counter() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request [{request_id}]: {request.method} {request.url.path} "
                f"took {processing_time:.3f}s",
                extra={"request_id": request_id, "processing_time": processing_time}
            )
        elif self.enable_request_logging:
            logger.info(
                f"Response [{request_id}]: {request.method} {request.url.path} "
                f"-> {response.status_code} ({processing_time:.3f}s)"
            )

        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Reject requests whose declared Content-Length exceeds the limit.

        Raises:
            BadRequestError: If the size is too large or the header is malformed
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )
