"""
Pipeline-related enums.

Defines enums for pipeline identification, LLM operations, and scan stages.
"""

from enum import Enum


class PipelineName(str, Enum):
    """
    Pipeline names for usage attribution.

    Used by LLMClient to label the LLMUsage records it logs.
    """

    BOOK_SCAN = "BOOK_SCAN"


class PipelineOperation(str, Enum):
    """
    Operation types for LLM calls.

    Logged with every LLMUsage record for per-operation cost analysis.
    """

    HEARTBEAT = "HEARTBEAT"
    METADATA_INFERENCE = "METADATA_INFERENCE"


class ScanStage(str, Enum):
    """
    Stages of a single cover scan, in execution order.

    A scan moves strictly forward through these stages. ERRORED is terminal
    and reachable from any non-terminal stage; DONE is terminal.
    """

    IDLE = "idle"
    ENCODING = "encoding"
    EXTRACTING = "extracting"
    PROBING = "probing"  # Optional liveness check before inference
    INFERRING = "inferring"
    LOOKING_UP_COVER = "looking_up_cover"
    DONE = "done"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible from this stage."""
        return self in (ScanStage.DONE, ScanStage.ERRORED)
