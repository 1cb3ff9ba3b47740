"""API schemas for scan sessions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from book_scanner.enums import ScanStage
from book_scanner.models.book import BookRecord

if TYPE_CHECKING:
    from book_scanner.pipelines.book_scan import ScanSession


class ErrorInfo(BaseModel):
    """User-facing description of the error that ended a scan."""

    error: str
    message: str
    details: Optional[dict] = None


class ScanResponse(BaseModel):
    """Snapshot of a scan session as returned by the API."""

    session_id: str
    source_name: Optional[str] = None
    stage: ScanStage
    in_progress: bool
    identified: bool = False
    record: Optional[BookRecord] = None
    ocr_lines: list[str] = []
    liveness: Optional[str] = None
    search_url: Optional[str] = None
    error: Optional[ErrorInfo] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: ScanSession) -> ScanResponse:
        """Build the response from the orchestrator's session state."""
        record = session.record
        return cls(
            session_id=session.session_id,
            source_name=session.source_name,
            stage=session.stage,
            in_progress=session.in_progress,
            identified=bool(record and record.identified),
            record=record,
            ocr_lines=list(session.ocr_lines),
            liveness=session.liveness,
            search_url=record.search_url if record else None,
            error=ErrorInfo(**session.error.to_dict()) if session.error else None,
            started_at=session.started_at,
            finished_at=session.finished_at,
        )


class HeartbeatResponse(BaseModel):
    """Result of the AI connectivity probe."""

    status: str
    reply: str
