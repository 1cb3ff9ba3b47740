"""Pydantic models for the application."""

from book_scanner.models.book import BookRecord
from book_scanner.models.scan import ErrorInfo, HeartbeatResponse, ScanResponse

__all__ = [
    "BookRecord",
    "ErrorInfo",
    "HeartbeatResponse",
    "ScanResponse",
]
