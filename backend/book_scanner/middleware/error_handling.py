"""
Error Handling Middleware

Turns exceptions escaping a route into the scanner's JSON error body:

    {"error": "<error_code>", "message": "...", "error_id": "1a2b3c4d",
     "details": {...} | null, "timestamp": "..."}

ScanError subclasses keep their own HTTP status and error code. Anything else
is a 500 whose message never includes exception text. Details (and, for
unexpected errors, the traceback) are only sent when the app runs in debug
mode. Every error body carries a short id that is also written to the log and
returned in the X-Error-Id header.

Failed scans do not pass through here: the scan router renders them itself
because their body is a full ScanResponse. This layer catches what happens
outside a scan (configuration, dependency and programming errors).

Usage:
    from book_scanner.middleware import setup_error_handling

    setup_error_handling(app, debug=settings.DEBUG)
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from book_scanner.exceptions import ScanError

logger = logging.getLogger(__name__)

ERROR_ID_HEADER = "X-Error-Id"
INTERNAL_ERROR_CODE = "internal_server_error"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


class ErrorResponse(BaseModel):
    """JSON body of every non-scan error response."""

    error: str
    message: str
    error_id: str
    details: Optional[dict] = None
    timestamp: datetime


def _new_error_id() -> str:
    return uuid4().hex[:8]


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Render ScanError and unexpected exceptions as ErrorResponse bodies."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            # FastAPI renders these itself
            raise
        except ScanError as e:
            return self._scan_error(request, e)
        except Exception as e:
            return self._unexpected_error(request, e)

    def _scan_error(self, request: Request, error: ScanError) -> JSONResponse:
        error_id = _new_error_id()
        logger.error(
            f"[{error_id}] {request.method} {request.url.path} failed: "
            f"{error.error_code}: {error.message}"
        )
        return create_error_response(
            error_code=error.error_code,
            message=error.message,
            status_code=error.status_code,
            details=error.details if self.debug else None,
            error_id=error_id,
        )

    def _unexpected_error(self, request: Request, error: Exception) -> JSONResponse:
        error_id = _new_error_id()
        trace = traceback.format_exc()
        logger.error(
            f"[{error_id}] {request.method} {request.url.path} raised "
            f"{type(error).__name__}: {error}\n{trace}"
        )

        details = None
        if self.debug:
            details = {"exception": type(error).__name__, "message": str(error), "traceback": trace}

        return create_error_response(
            error_code=INTERNAL_ERROR_CODE,
            message=INTERNAL_ERROR_MESSAGE,
            status_code=500,
            details=details,
            error_id=error_id,
        )


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """Install ErrorHandlingMiddleware on the app."""
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: Optional[dict] = None,
    error_id: Optional[str] = None,
) -> JSONResponse:
    """
    Build an ErrorResponse JSON response.

    Args:
        error_code: Machine-readable code, e.g. "configuration_error"
        message: User-facing message
        status_code: HTTP status
        details: Extra context (omit outside debug mode)
        error_id: Log correlation id (generated if omitted)

    Returns:
        JSONResponse with the error body and the X-Error-Id header
    """
    error_id = error_id or _new_error_id()
    body = ErrorResponse(
        error=error_code,
        message=message,
        error_id=error_id,
        details=details,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers={ERROR_ID_HEADER: error_id},
    )
