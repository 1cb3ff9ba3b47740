"""
Scan Error Taxonomy

Every failure a scan can hit is a ScanError subclass. Each carries the HTTP
status and error code the API reports, so the orchestrator can record it on
the session and the error middleware can render it without a lookup table.

Hierarchy:
    ScanError
    ├── DecodeError          - image could not be decoded (422)
    ├── NoTextDetected       - OCR returned no usable lines (422)
    ├── TransportError       - network / HTTP-level failure (502)
    ├── ServiceError         - remote reported a failure (502)
    ├── EmptyResponse        - LLM returned no text (502)
    ├── MalformedJson        - LLM reply is not a JSON object (502)
    ├── RateLimited          - retries exhausted on HTTP 429 (429)
    └── ConfigurationError   - required setting missing (500)

Usage:
    from book_scanner.exceptions import NoTextDetected

    raise NoTextDetected("No Hebrew text detected on the cover")
"""

from typing import Optional


class ScanError(Exception):
    """
    Base exception for scan pipeline errors.

    Example:
        raise ScanError("Something went wrong", status_code=500)
    """

    status_code: int = 500
    error_code: str = "scan_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details

    def to_dict(self) -> dict:
        """Serializable form used on ScanSession and in API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class DecodeError(ScanError):
    """Raised when the source image cannot be rendered."""

    status_code = 422
    error_code = "decode_error"


class NoTextDetected(ScanError):
    """Raised when OCR leaves no usable lines after filtering."""

    status_code = 422
    error_code = "no_text_detected"


class TransportError(ScanError):
    """Raised on network failures and non-success HTTP statuses."""

    status_code = 502
    error_code = "transport_error"


class ServiceError(ScanError):
    """Raised when a remote service answers but reports failure."""

    status_code = 502
    error_code = "service_error"


class EmptyResponse(ScanError):
    """Raised when the LLM reply carries no text."""

    status_code = 502
    error_code = "empty_response"


class MalformedJson(ScanError):
    """Raised when the LLM reply cannot be decoded as a JSON object."""

    status_code = 502
    error_code = "malformed_json"


class RateLimited(ScanError):
    """
    Raised when every attempt of a retried request hit HTTP 429.

    Cover lookup recovers from this internally; it never reaches a session.
    """

    status_code = 429
    error_code = "rate_limited"


class ConfigurationError(ScanError):
    """Raised at startup when a required endpoint or credential is missing."""

    status_code = 500
    error_code = "configuration_error"
