"""Logging configuration shared by the API server and the CLI."""

import logging
from typing import Optional


def setup_logging(debug: bool = False, level: Optional[str] = None) -> None:
    """Configure logging based on debug flag."""
    if debug:
        resolved = logging.DEBUG
    else:
        resolved = getattr(logging, (level or "INFO").upper(), logging.INFO)

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # httpx logs every request at INFO
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
