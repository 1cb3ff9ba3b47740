"""
Book Scanner API

FastAPI application exposing the cover scan pipeline.

Run with:
    uvicorn book_scanner.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from book_scanner import __version__
from book_scanner.config import ScannerConfig, settings, setup_logging
from book_scanner.middleware import setup_error_handling
from book_scanner.pipelines import create_pipeline
from book_scanner.routers import health_router, scan_router

setup_logging(debug=settings.DEBUG, level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and build the scan pipeline on startup."""
    # Missing endpoint or credential is fatal here, not a per-request error
    config = ScannerConfig.from_settings(settings)
    app.state.pipeline = create_pipeline(config, settings)
    logger.info(
        f"{settings.APP_NAME} ready (model={config.inference_model}, "
        f"probe_liveness={settings.SCAN_PROBE_LIVENESS})"
    )

    yield

    await app.state.pipeline.close()
    logger.info("Scan pipeline closed")


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Identify Hebrew books from a photo of the cover.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_error_handling(app, debug=settings.DEBUG)

app.include_router(health_router)
app.include_router(scan_router)
