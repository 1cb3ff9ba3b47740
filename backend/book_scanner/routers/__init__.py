"""API routers."""

from book_scanner.routers.health import router as health_router
from book_scanner.routers.scan import router as scan_router

__all__ = [
    "health_router",
    "scan_router",
]
