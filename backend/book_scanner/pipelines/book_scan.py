"""
Book Cover Scan Pipeline

Sequences one scan of a book cover photo:

    IDLE → ENCODING → EXTRACTING → (PROBING) → INFERRING → LOOKING_UP_COVER → DONE
                                    any stage ↘ ERRORED

Each stage runs at most once and strictly after the previous one completes.
A failure at any stage records a single user-facing error on the session and
skips everything after it; a new scan is the only recovery. Nothing is retried
at this level (cover lookup retries rate limiting internally).

Reaching DONE without a usable title is still a success: the session carries a
placeholder "not identified" record, which keeps "the pipeline ran and found
nothing" distinct from "the pipeline failed".

The pipeline owns one current-session handle. Starting a scan replaces it; an
older scan still in flight stops before its next stage and its late results
never reach the current session.

Usage:
    from book_scanner.pipelines import create_pipeline

    pipeline = create_pipeline(ScannerConfig.from_settings())
    session = await pipeline.scan(Path("cover.heic"))
    if session.stage == ScanStage.DONE:
        print(session.record.title, session.record.cover_uri)
    else:
        print(session.error.message)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

import httpx

from book_scanner.config.settings import ScannerConfig, Settings, get_settings
from book_scanner.enums.pipeline import ScanStage
from book_scanner.exceptions import ScanError
from book_scanner.models.book import BookRecord
from book_scanner.pipelines.metadata_inference import MetadataInferenceClient
from book_scanner.pipelines.utils.cover_client import CoverLookupClient
from book_scanner.pipelines.utils.image_utils import ImageSource, encode_image
from book_scanner.pipelines.utils.ocr_client import TextExtractionClient
from book_scanner.pipelines.utils.retry import RetryPolicy, linear_backoff
from book_scanner.services.llm import LLMClient, is_offline_reply

# Allowed forward transitions. ERRORED is reachable from every non-terminal stage.
_TRANSITIONS: dict[ScanStage, set[ScanStage]] = {
    ScanStage.IDLE: {ScanStage.ENCODING},
    ScanStage.ENCODING: {ScanStage.EXTRACTING},
    ScanStage.EXTRACTING: {ScanStage.PROBING, ScanStage.INFERRING},
    ScanStage.PROBING: {ScanStage.INFERRING},
    ScanStage.INFERRING: {ScanStage.LOOKING_UP_COVER},
    ScanStage.LOOKING_UP_COVER: {ScanStage.DONE},
    ScanStage.DONE: set(),
    ScanStage.ERRORED: set(),
}

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while scanning the cover."

TransitionObserver = Callable[["ScanSession", ScanStage, ScanStage], None]


class InvalidTransition(RuntimeError):
    """Raised when code tries to move a session backwards or skip a stage."""


@dataclass
class ScanSession:
    """State of a single scan, populated stage by stage."""

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source_name: Optional[str] = None
    stage: ScanStage = ScanStage.IDLE
    ocr_lines: list[str] = field(default_factory=list)
    liveness: Optional[str] = None
    record: Optional[BookRecord] = None
    error: Optional[ScanError] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def in_progress(self) -> bool:
        """Check if the scan has started and not yet reached a terminal stage."""
        return self.stage != ScanStage.IDLE and not self.stage.is_terminal

    @property
    def failed(self) -> bool:
        """Check if the scan ended with an error."""
        return self.stage == ScanStage.ERRORED


class _Superseded(Exception):
    """Internal signal: a newer scan replaced this session mid-flight."""


class BookScanPipeline:
    """
    Linear scan orchestrator: encode → extract → probe → infer → cover.

    Collaborators are injected so each stage can be mocked independently.
    """

    def __init__(
        self,
        extractor: TextExtractionClient,
        llm_client: LLMClient,
        metadata_client: MetadataInferenceClient,
        cover_client: CoverLookupClient,
        encoder: Callable[[ImageSource], str] = encode_image,
        probe_liveness: bool = True,
        observer: Optional[TransitionObserver] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            extractor: OCR client
            llm_client: Inference endpoint client (used for the liveness probe)
            metadata_client: Metadata inference client
            cover_client: Cover thumbnail lookup client
            encoder: Image → base64 JPEG transform
            probe_liveness: Run the PROBING stage before inference
            observer: Optional callback invoked as observer(session, previous, current)
                on every stage transition
        """
        self.extractor = extractor
        self.llm_client = llm_client
        self.metadata_client = metadata_client
        self.cover_client = cover_client
        self.encoder = encoder
        self.probe_liveness = probe_liveness
        self.observer = observer
        self._current: Optional[ScanSession] = None
        self.logger: logging.Logger = logging.getLogger(self.__class__.__name__)

    @property
    def current_session(self) -> Optional[ScanSession]:
        """The most recently started session, or None before the first scan."""
        return self._current

    async def scan(self, image: ImageSource, source_name: Optional[str] = None) -> ScanSession:
        """
        Run one full scan of a cover image.

        Never raises for scan failures: errors are recorded on the returned
        session, which ends in DONE or ERRORED (or stays where it was if a
        newer scan superseded it).

        Args:
            image: Raw bytes, file path, binary file object, or PIL Image
            source_name: Optional label (e.g. upload filename) for logs and API

        Returns:
            The session for this scan
        """
        session = ScanSession(source_name=source_name, started_at=_now())
        previous = self._current
        if previous is not None and previous.in_progress:
            self.logger.info(
                f"Scan {session.session_id[:8]} supersedes in-flight scan "
                f"{previous.session_id[:8]}"
            )
        self._current = session

        try:
            await self._run(session, image)
        except _Superseded:
            self.logger.info(
                f"Scan {session.session_id[:8]} superseded at {session.stage.value}; "
                f"discarding its results"
            )
        except ScanError as e:
            if session is self._current:
                self._fail(session, e)
            else:
                self.logger.info(
                    f"Ignoring {e.error_code} from superseded scan {session.session_id[:8]}"
                )
        except Exception as e:
            self.logger.exception(f"Unexpected error in scan {session.session_id[:8]}")
            error = ScanError(
                UNEXPECTED_ERROR_MESSAGE,
                details={"exception": type(e).__name__},
            )
            error.__cause__ = e
            self._fail(session, error)

        return session

    async def _run(self, session: ScanSession, image: ImageSource) -> None:
        self._advance(session, ScanStage.ENCODING)
        loop = asyncio.get_running_loop()
        payload = await loop.run_in_executor(None, partial(self.encoder, image))
        self._ensure_current(session)

        self._advance(session, ScanStage.EXTRACTING)
        lines = await self.extractor.extract_lines(payload)
        self._ensure_current(session)
        session.ocr_lines = list(lines)

        if self.probe_liveness:
            self._advance(session, ScanStage.PROBING)
            liveness = await self.llm_client.heartbeat()
            self._ensure_current(session)
            session.liveness = liveness
            if is_offline_reply(liveness):
                self.logger.warning(f"Inference endpoint looks unreachable: {liveness}")

        self._advance(session, ScanStage.INFERRING)
        record = await self.metadata_client.infer(session.ocr_lines)
        self._ensure_current(session)

        self._advance(session, ScanStage.LOOKING_UP_COVER)
        cover_uri = await self.cover_client.find_cover(record.title or "")
        self._ensure_current(session)
        if cover_uri:
            record = record.model_copy(update={"cover_uri": cover_uri})

        if not record.has_usable_title:
            self.logger.info(f"Scan {session.session_id[:8]}: book not identified")
            record = BookRecord.not_identified()

        session.record = record
        session.finished_at = _now()
        self._advance(session, ScanStage.DONE)

    async def close(self) -> None:
        """Release the HTTP clients owned by the collaborators."""
        await self.extractor.close()
        await self.cover_client.close()

    def _advance(self, session: ScanSession, stage: ScanStage) -> None:
        """Move the session forward one stage, enforcing the transition table."""
        previous = session.stage
        allowed = _TRANSITIONS[previous]
        if stage == ScanStage.ERRORED:
            allowed = allowed if previous.is_terminal else allowed | {ScanStage.ERRORED}
        if stage not in allowed:
            raise InvalidTransition(f"Cannot move scan from {previous.value} to {stage.value}")

        session.stage = stage
        self.logger.debug(f"Scan {session.session_id[:8]}: {previous.value} → {stage.value}")
        self._notify(session, previous, stage)

    def _fail(self, session: ScanSession, error: ScanError) -> None:
        """Record the error and end the session in ERRORED."""
        self.logger.warning(
            f"Scan {session.session_id[:8]} failed during {session.stage.value}: "
            f"{error.error_code}: {error.message}"
        )
        session.error = error
        session.finished_at = _now()
        self._advance(session, ScanStage.ERRORED)

    def _ensure_current(self, session: ScanSession) -> None:
        if session is not self._current:
            raise _Superseded()

    def _notify(self, session: ScanSession, previous: ScanStage, current: ScanStage) -> None:
        if self.observer is None:
            return
        try:
            self.observer(session, previous, current)
        except Exception:
            self.logger.exception("Scan observer raised; ignoring")


def create_pipeline(
    config: ScannerConfig,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    observer: Optional[TransitionObserver] = None,
) -> BookScanPipeline:
    """
    Wire a BookScanPipeline from configuration.

    Args:
        config: Validated endpoints and credential
        settings: Tuning knobs (default: application settings)
        http_client: Optional shared httpx client for OCR and cover lookups
        observer: Optional stage-transition callback

    Returns:
        Ready-to-use pipeline
    """
    settings = settings or get_settings()

    llm_client = LLMClient(config)
    return BookScanPipeline(
        extractor=TextExtractionClient(
            endpoint=config.extraction_endpoint,
            client=http_client,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        llm_client=llm_client,
        metadata_client=MetadataInferenceClient(
            llm_client,
            temperature=settings.INFERENCE_TEMPERATURE,
            top_p=settings.INFERENCE_TOP_P,
            max_tokens=settings.INFERENCE_MAX_TOKENS,
        ),
        cover_client=CoverLookupClient(
            client=http_client,
            base_url=settings.BOOKS_API_URL,
            retry_policy=RetryPolicy(
                max_attempts=settings.COVER_LOOKUP_MAX_ATTEMPTS,
                backoff=linear_backoff(settings.COVER_LOOKUP_BACKOFF_SECONDS),
            ),
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        encoder=partial(
            encode_image,
            quality=settings.IMAGE_JPEG_QUALITY,
            max_dimension=settings.IMAGE_MAX_DIMENSION,
        ),
        probe_liveness=settings.SCAN_PROBE_LIVENESS,
        observer=observer,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)
