"""
Health Check Endpoints

Endpoints:
- GET /api/health - Basic health check
- GET /api/health/ai - Connectivity probe against the inference endpoint
"""

from fastapi import APIRouter, Depends

from book_scanner.config import settings
from book_scanner.dependencies import get_pipeline
from book_scanner.models.scan import HeartbeatResponse
from book_scanner.pipelines.book_scan import BookScanPipeline
from book_scanner.services.llm import is_offline_reply

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


@router.get("/ai", response_model=HeartbeatResponse)
async def ai_heartbeat(pipeline: BookScanPipeline = Depends(get_pipeline)):
    """
    Send the scripted heartbeat prompt to the inference endpoint.

    Always answers 200; an unreachable endpoint is reported as
    status "offline" with the transport error in the reply.
    """
    reply = await pipeline.llm_client.heartbeat()
    return HeartbeatResponse(
        status="offline" if is_offline_reply(reply) else "online",
        reply=reply,
    )
