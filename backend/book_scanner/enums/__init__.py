"""Enum definitions shared across the scanner."""

from book_scanner.enums.pipeline import PipelineName, PipelineOperation, ScanStage

__all__ = [
    "PipelineName",
    "PipelineOperation",
    "ScanStage",
]
