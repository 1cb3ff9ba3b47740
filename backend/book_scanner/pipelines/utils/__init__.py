"""Pipeline utilities: image encoding, text handling, retry, and HTTP clients."""

from book_scanner.pipelines.utils.cover_client import CoverLookupClient
from book_scanner.pipelines.utils.image_utils import encode_image
from book_scanner.pipelines.utils.ocr_client import TextExtractionClient
from book_scanner.pipelines.utils.retry import (
    RetryPolicy,
    fixed_backoff,
    linear_backoff,
    request_with_retry,
)
from book_scanner.pipelines.utils.text_utils import (
    extract_json_from_response,
    split_ocr_lines,
    strip_code_fences,
)

__all__ = [
    "CoverLookupClient",
    "RetryPolicy",
    "TextExtractionClient",
    "encode_image",
    "extract_json_from_response",
    "fixed_backoff",
    "linear_backoff",
    "request_with_retry",
    "split_ocr_lines",
    "strip_code_fences",
]
