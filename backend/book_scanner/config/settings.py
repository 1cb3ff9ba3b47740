"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Clients never read settings directly. ScannerConfig.from_settings() turns the
settings into the explicit struct each client receives at construction, and
fails fast when the OCR endpoint or the Gemini credential is missing.

Usage:
    from book_scanner.config import settings, ScannerConfig

    config = ScannerConfig.from_settings(settings)
    extractor = TextExtractionClient(config.extraction_endpoint)
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic_settings import BaseSettings

from book_scanner.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Book Scanner"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # Text extraction service (cloud OCR function)
    OCR_FUNCTION_URL: str = ""

    # Gemini (metadata inference via LiteLLM)
    GEMINI_API_KEY: str = ""
    GEMINI_API_BASE: Optional[str] = None  # None = provider default endpoint
    TEXT_MODEL: str = "gemini/gemini-2.5-flash"
    INFERENCE_TEMPERATURE: float = 0.2  # Higher values drift to famous titles
    INFERENCE_TOP_P: float = 0.8
    INFERENCE_MAX_TOKENS: int = 1024

    # Google Books cover lookup
    BOOKS_API_URL: str = "https://www.googleapis.com/books/v1/volumes"
    COVER_LOOKUP_MAX_ATTEMPTS: int = 3
    COVER_LOOKUP_BACKOFF_SECONDS: float = 1.0

    # Image encoding
    IMAGE_JPEG_QUALITY: int = 90
    IMAGE_MAX_DIMENSION: Optional[int] = None

    # Networking
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Pipeline
    SCAN_PROBE_LIVENESS: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()


@dataclass(frozen=True)
class ScannerConfig:
    """
    Explicit configuration handed to each client at construction.

    Attributes:
        extraction_endpoint: URL of the text extraction (OCR) service
        inference_endpoint: Optional API base for the inference endpoint
        inference_credential: API key for the inference endpoint
        inference_model: LiteLLM model identifier ("provider/model-name")
    """

    extraction_endpoint: str
    inference_credential: str
    inference_endpoint: Optional[str] = None
    inference_model: str = "gemini/gemini-2.5-flash"

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "ScannerConfig":
        """
        Build and validate the struct from application settings.

        Raises:
            ConfigurationError: If the OCR endpoint or Gemini key is missing
        """
        source = source or get_settings()

        missing = []
        if not source.OCR_FUNCTION_URL.strip():
            missing.append("OCR_FUNCTION_URL")
        if not source.GEMINI_API_KEY.strip():
            missing.append("GEMINI_API_KEY")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing},
            )

        return cls(
            extraction_endpoint=source.OCR_FUNCTION_URL.strip(),
            inference_credential=source.GEMINI_API_KEY.strip(),
            inference_endpoint=source.GEMINI_API_BASE or None,
            inference_model=source.TEXT_MODEL,
        )
