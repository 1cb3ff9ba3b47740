"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests.
"""

import io
import os
from types import SimpleNamespace
from typing import Callable, Generator, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from PIL import Image

from book_scanner.config.settings import ScannerConfig
from book_scanner.models.book import BookRecord
from book_scanner.pipelines.book_scan import BookScanPipeline
from book_scanner.pipelines.metadata_inference import MetadataInferenceClient
from book_scanner.pipelines.utils.cover_client import CoverLookupClient
from book_scanner.pipelines.utils.ocr_client import TextExtractionClient
from book_scanner.services.llm import LLMClient


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Overrides any values from .env files to ensure test isolation.
    """
    original_env = os.environ.copy()

    os.environ.update(
        {
            "OCR_FUNCTION_URL": "https://ocr.test/ocrHandler",
            "GEMINI_API_KEY": "test-api-key",
            "DEBUG": "false",
        }
    )

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def scanner_config() -> ScannerConfig:
    """Explicit scanner configuration for client construction."""
    return ScannerConfig(
        extraction_endpoint="https://ocr.test/ocrHandler",
        inference_credential="test-api-key",
        inference_model="gemini/gemini-2.5-flash",
    )


# ============================================================================
# Images
# ============================================================================


@pytest.fixture
def sample_image() -> Image.Image:
    """Create a sample image for testing."""
    return Image.new("RGB", (100, 80), color="red")


@pytest.fixture
def sample_png_bytes(sample_image: Image.Image) -> bytes:
    """PNG-encoded bytes of the sample image."""
    buffer = io.BytesIO()
    sample_image.save(buffer, format="PNG")
    return buffer.getvalue()


# ============================================================================
# HTTP and LLM Mocks
# ============================================================================


@pytest.fixture
def mock_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an httpx.AsyncClient answering through a handler function."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


def make_completion(text: Optional[str]) -> SimpleNamespace:
    """Build a minimal LiteLLM-shaped completion response."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=120, completion_tokens=40, total_tokens=160),
        _hidden_params={"response_cost": 0.0001},
    )


@pytest.fixture
def completion_factory() -> Callable[[Optional[str]], SimpleNamespace]:
    """Expose make_completion as a fixture."""
    return make_completion


# ============================================================================
# Pipeline Collaborators
# ============================================================================


@pytest.fixture
def mock_extractor() -> MagicMock:
    """OCR client returning two Hebrew lines."""
    extractor = MagicMock(spec=TextExtractionClient)
    extractor.extract_lines = AsyncMock(return_value=["יהודה עמיחי", "שירי אהבה"])
    extractor.close = AsyncMock()
    return extractor


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """Inference client whose heartbeat answers OK."""
    llm_client = MagicMock(spec=LLMClient)
    llm_client.heartbeat = AsyncMock(return_value="AI Heartbeat: OK")
    return llm_client


@pytest.fixture
def mock_metadata_client() -> MagicMock:
    """Metadata client identifying the sample book."""
    metadata_client = MagicMock(spec=MetadataInferenceClient)
    metadata_client.infer = AsyncMock(
        return_value=BookRecord(
            title="שירי אהבה",
            authors=["יהודה עמיחי"],
            publisher="שוקן",
            year="1986",
            language="he",
        )
    )
    return metadata_client


@pytest.fixture
def mock_cover_client() -> MagicMock:
    """Cover client returning an HTTPS thumbnail."""
    cover_client = MagicMock(spec=CoverLookupClient)
    cover_client.find_cover = AsyncMock(return_value="https://books.test/cover.jpg")
    cover_client.close = AsyncMock()
    return cover_client


@pytest.fixture
def pipeline(
    mock_extractor: MagicMock,
    mock_llm_client: MagicMock,
    mock_metadata_client: MagicMock,
    mock_cover_client: MagicMock,
) -> BookScanPipeline:
    """BookScanPipeline wired to mocked collaborators and a trivial encoder."""
    return BookScanPipeline(
        extractor=mock_extractor,
        llm_client=mock_llm_client,
        metadata_client=mock_metadata_client,
        cover_client=mock_cover_client,
        encoder=lambda image: "ZW5jb2RlZA==",
    )
