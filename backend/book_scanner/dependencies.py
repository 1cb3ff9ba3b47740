"""
FastAPI Dependencies

The scan pipeline is built once in the application lifespan and stored on
app.state; routers receive it through get_pipeline so tests can override it.
"""

from fastapi import Request

from book_scanner.exceptions import ConfigurationError
from book_scanner.pipelines.book_scan import BookScanPipeline


def get_pipeline(request: Request) -> BookScanPipeline:
    """
    Return the application's scan pipeline.

    Raises:
        ConfigurationError: If the app started without a pipeline
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise ConfigurationError("Scan pipeline is not configured")
    return pipeline
