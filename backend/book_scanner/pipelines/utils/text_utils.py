"""
Text Processing Utilities

Line filtering for OCR output and JSON extraction for LLM replies.

Usage:
    from book_scanner.pipelines.utils.text_utils import (
        split_ocr_lines,
        extract_json_from_response,
    )

    lines = split_ocr_lines("עמיחי\\n\\nת\\nשירי אהבה")  # ["עמיחי", "שירי אהבה"]
    data = extract_json_from_response(llm_reply)
"""

import json
import re
from typing import Any, Optional

# Lines at or below this length are OCR noise (stray letters, punctuation)
MIN_OCR_LINE_LENGTH = 2

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def split_ocr_lines(text: Optional[str]) -> list[str]:
    """
    Split raw OCR text into trimmed, non-noise lines.

    Blank lines and single-character lines are dropped; the remaining lines
    keep their top-to-bottom order.

    Args:
        text: Raw text returned by the OCR service

    Returns:
        Ordered list of cleaned lines (possibly empty)
    """
    if not text:
        return []

    lines = (line.strip() for line in text.splitlines())
    return [line for line in lines if len(line) >= MIN_OCR_LINE_LENGTH]


def strip_code_fences(response_text: str) -> str:
    """
    Remove markdown code-fence markers from an LLM reply.

    Both ```json and bare ``` markers are removed wherever they appear.
    """
    return _CODE_FENCE_PATTERN.sub("", response_text).strip()


def extract_json_from_response(response_text: str) -> Optional[Any]:
    """
    Extract JSON from an LLM response that may contain markdown code blocks.

    Handles various formats:
    - Raw JSON
    - JSON in ```json ... ``` blocks
    - JSON in ``` ... ``` blocks

    Args:
        response_text: LLM response text

    Returns:
        Parsed JSON object, or None if parsing fails
    """
    if not response_text:
        return None

    text = strip_code_fences(response_text)
    if not text:
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None
