"""
Cover Lookup Client

Looks up a cover thumbnail on the Google Books API by title. The lookup is a
best-effort garnish on the result: rate limiting is retried a bounded number of
times, and every failure degrades to "no cover" instead of failing the scan.

Cover lookups run right after the inference call, and Google Books answers
HTTP 429 often enough in that window to need the retry.

Usage:
    from book_scanner.pipelines.utils.cover_client import CoverLookupClient

    covers = CoverLookupClient()
    cover_uri = await covers.find_cover("שירי אהבה")  # https URL or None
"""

import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from book_scanner.exceptions import RateLimited
from book_scanner.pipelines.utils.retry import (
    RetryPolicy,
    linear_backoff,
    request_with_retry,
)

logger = logging.getLogger(__name__)


class CoverLookupClient:
    """Google Books thumbnail lookup with bounded retry on rate limiting."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"
    DEFAULT_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_MAX_ATTEMPTS: int = 3
    DEFAULT_BACKOFF_SECONDS: float = 1.0

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            client: Optional shared httpx client (owned by the caller)
            base_url: Volumes search endpoint (default: BASE_URL)
            retry_policy: Retry bound and backoff (default: 3 attempts, 1s * attempt)
            timeout: HTTP request timeout in seconds
            sleep: Awaitable sleep used between retries (for tests)
        """
        self.base_url: str = base_url or self.BASE_URL
        self.retry_policy: RetryPolicy = retry_policy or RetryPolicy(
            max_attempts=self.DEFAULT_MAX_ATTEMPTS,
            backoff=linear_backoff(self.DEFAULT_BACKOFF_SECONDS),
        )
        self._sleep = sleep
        self._owns_client: bool = client is None
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.DEFAULT_TIMEOUT_SECONDS
        )

    async def find_cover(self, title: str) -> Optional[str]:
        """
        Find a cover thumbnail for a title.

        Args:
            title: Book title, used verbatim as the intitle: query

        Returns:
            HTTPS thumbnail URL, or None if no cover could be found
        """
        if not title or not title.strip():
            logger.debug("Cover lookup skipped - empty title")
            return None

        params = {"q": f"intitle:{title}", "maxResults": 1}

        async def send() -> httpx.Response:
            return await self.client.get(self.base_url, params=params)

        retry_kwargs = {"sleep": self._sleep} if self._sleep else {}

        try:
            response = await request_with_retry(send, self.retry_policy, **retry_kwargs)
        except RateLimited:
            logger.warning(f"Cover lookup rate limited, giving up on '{title}'")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Cover lookup failed for '{title}': {e}")
            return None

        if response.is_error:
            logger.warning(f"Cover lookup returned HTTP {response.status_code}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Cover lookup returned a non-JSON response")
            return None

        thumbnail = _first_thumbnail(data)
        if not thumbnail:
            logger.info(f"No cover found for '{title}'")
            return None

        return to_https(thumbnail)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()


def _first_thumbnail(data: Any) -> Optional[str]:
    """Extract items[0].volumeInfo.imageLinks.thumbnail, tolerating gaps."""
    if not isinstance(data, dict):
        return None
    items = data.get("items")
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return None
    volume_info = items[0].get("volumeInfo")
    if not isinstance(volume_info, dict):
        return None
    image_links = volume_info.get("imageLinks")
    thumbnail = image_links.get("thumbnail") if isinstance(image_links, dict) else None
    return thumbnail if isinstance(thumbnail, str) and thumbnail else None


def to_https(url: str) -> str:
    """Upgrade an http:// URL to https://; other URLs pass through."""
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url
