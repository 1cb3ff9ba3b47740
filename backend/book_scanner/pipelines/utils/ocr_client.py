"""
Text Extraction Client

Client for the cloud OCR function. The function wraps a managed vision API;
from here it is an opaque service that turns a base64 image into text.

Wire contract:
    POST <endpoint>  {"image": "<base64>"}
    200  {"success": true, "text": "...", "message": "..."}
    500  {"success": false, "error": "...", "details": "..."}

No retries at this layer. A failed extraction ends the scan.

Usage:
    from book_scanner.pipelines.utils.ocr_client import TextExtractionClient

    extractor = TextExtractionClient(endpoint=config.extraction_endpoint)
    lines = await extractor.extract_lines(encode_image(upload_bytes))
    await extractor.close()
"""

import logging
from typing import Any, Optional

import httpx

from book_scanner.exceptions import NoTextDetected, ServiceError, TransportError
from book_scanner.pipelines.utils.text_utils import split_ocr_lines

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
NO_TEXT_MESSAGE = "No Hebrew text detected. Please ensure the title is centered and clear."


class TextExtractionClient:
    """Sends encoded cover images to the OCR service and filters its lines."""

    def __init__(
        self,
        endpoint: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            endpoint: URL of the OCR function
            client: Optional shared httpx client (owned by the caller)
            timeout: HTTP request timeout in seconds (default: DEFAULT_TIMEOUT_SECONDS)
        """
        self.endpoint: str = endpoint
        self.timeout: float = timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS
        self._owns_client: bool = client is None
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=self.timeout)

    async def extract_lines(self, image_b64: str) -> list[str]:
        """
        Run OCR on an encoded image and return its usable lines.

        Args:
            image_b64: Base64-encoded image (no data-URL prefix)

        Returns:
            Trimmed lines longer than one character, top to bottom

        Raises:
            TransportError: On network failure or an HTTP error status
            ServiceError: If the service reports failure or returns a non-JSON body
            NoTextDetected: If no usable line remains after filtering
        """
        logger.debug(f"Submitting image to OCR ({len(image_b64)} base64 chars)")

        try:
            response = await self.client.post(self.endpoint, json={"image": image_b64})
        except httpx.HTTPError as e:
            raise TransportError(f"OCR request failed: {e}") from e

        if response.is_error:
            raise TransportError(
                f"OCR service returned HTTP {response.status_code}",
                details={"status": response.status_code, "body": response.text[:500]},
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise ServiceError("OCR service returned a non-JSON response") from e

        if not isinstance(payload, dict) or not payload.get("success"):
            raise ServiceError(
                "OCR processing failed",
                details=_failure_details(payload),
            )

        lines = split_ocr_lines(payload.get("text"))
        if not lines:
            raise NoTextDetected(NO_TEXT_MESSAGE)

        logger.info(f"OCR extracted {len(lines)} line(s)")
        return lines

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()


def _failure_details(payload: Any) -> dict:
    if not isinstance(payload, dict):
        return {"payload": repr(payload)[:200]}
    return {
        key: payload[key] for key in ("error", "details", "message") if key in payload
    }
