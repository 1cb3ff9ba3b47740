"""
Cover Scan API Router

Endpoints:
- POST /api/scan - Upload a cover photo and run the full scan
- GET /api/scan/current - State of the most recent scan

Usage:
    curl -X POST /api/scan -F "file=@cover.heic"
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from book_scanner.dependencies import get_pipeline
from book_scanner.models.scan import ScanResponse
from book_scanner.pipelines.book_scan import BookScanPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scan", tags=["scan"])


@router.post("", response_model=ScanResponse)
async def scan_cover(
    file: UploadFile = File(..., description="Photo of the book cover"),
    pipeline: BookScanPipeline = Depends(get_pipeline),
):
    """
    Identify a book from a photo of its cover.

    Runs encode → OCR → heartbeat → metadata inference → cover lookup.
    A failed scan answers with the failing stage's HTTP status and the same
    ScanResponse body, its `error` field set. A book that could not be
    identified is a 200 with `identified: false` and a placeholder record.

    Args:
        file: The image file (JPEG, PNG, HEIC, WEBP, ...).
        pipeline: Scan pipeline (injected).

    Returns:
        ScanResponse describing the finished session.
    """
    data = await file.read()
    logger.info(f"Received cover upload {file.filename!r} ({len(data)} bytes)")

    session = await pipeline.scan(data, source_name=file.filename)
    body = ScanResponse.from_session(session)

    if session.failed:
        return JSONResponse(
            status_code=session.error.status_code,
            content=body.model_dump(mode="json"),
        )

    if session.in_progress:
        # A newer upload replaced this scan before it finished
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=body.model_dump(mode="json"),
        )

    return body


@router.get("/current", response_model=ScanResponse)
async def current_scan(pipeline: BookScanPipeline = Depends(get_pipeline)):
    """
    Return the most recent scan session, including intermediate state.

    Raises:
        HTTPException: 404 if no scan has been started yet.
    """
    session = pipeline.current_session
    if session is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "No scan has been started")
    return ScanResponse.from_session(session)
