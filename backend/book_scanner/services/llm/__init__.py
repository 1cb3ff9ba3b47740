"""
LLM Service Module

Provides the Gemini inference client (via LiteLLM) used for the connectivity
probe and metadata inference.

All completions return (response, LLMUsage) tuples for consistent usage logging.

Usage:
    from book_scanner.services.llm import LLMClient

    client = LLMClient(config)
    reply = await client.heartbeat()
"""

from book_scanner.models.llm_usage import LLMUsage
from book_scanner.services.llm.client import (
    HEARTBEAT_PROMPT,
    LLMClient,
    build_messages,
    is_offline_reply,
)

__all__ = [
    "HEARTBEAT_PROMPT",
    "LLMClient",
    "LLMUsage",
    "build_messages",
    "is_offline_reply",
]
