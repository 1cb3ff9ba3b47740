"""
Scan Pipelines

The cover scan orchestrator and the clients it sequences.

Usage:
    from book_scanner.pipelines import BookScanPipeline, create_pipeline
"""

from book_scanner.pipelines.book_scan import (
    BookScanPipeline,
    InvalidTransition,
    ScanSession,
    create_pipeline,
)
from book_scanner.pipelines.metadata_inference import MetadataInferenceClient

__all__ = [
    "BookScanPipeline",
    "InvalidTransition",
    "MetadataInferenceClient",
    "ScanSession",
    "create_pipeline",
]
