"""
Unit tests for book and scan response models.
"""

from datetime import datetime, timezone

import pytest

from book_scanner.enums import ScanStage
from book_scanner.exceptions import NoTextDetected
from book_scanner.models import BookRecord, ScanResponse
from book_scanner.models.book import NOT_IDENTIFIED_DESCRIPTION, NOT_IDENTIFIED_TITLE
from book_scanner.pipelines.book_scan import ScanSession


class TestBookRecord:
    """Tests for BookRecord normalization."""

    def test_from_llm_payload(self):
        """Test a complete payload."""
        record = BookRecord.from_llm_payload(
            {
                "title": " שירי אהבה ",
                "authors": ["יהודה עמיחי"],
                "publisher": "שוקן",
                "year": "1986",
                "description": "מבחר שירים.",
                "language": "he",
            }
        )

        assert record.title == "שירי אהבה"
        assert record.authors == ["יהודה עמיחי"]
        assert record.identified
        assert record.cover_uri is None

    def test_blank_fields_become_none(self):
        """Test that empty strings mean unknown."""
        record = BookRecord.from_llm_payload({"title": "", "publisher": "  ", "authors": []})

        assert record.title is None
        assert record.publisher is None
        assert record.authors is None

    def test_lone_author_string(self):
        """Test that a single author string becomes a one-item list."""
        record = BookRecord.from_llm_payload({"authors": "עמוס עוז"})

        assert record.authors == ["עמוס עוז"]

    def test_numeric_year(self):
        """Test that numeric years are kept as strings."""
        record = BookRecord.from_llm_payload({"year": 1968})

        assert record.year == "1968"

    def test_ignores_unexpected_values(self):
        """Test that structured values and unknown keys are dropped."""
        record = BookRecord.from_llm_payload(
            {"title": {"he": "x"}, "authors": ["", 3, "א. ב. יהושע"], "rating": 5}
        )

        assert record.title is None
        assert record.authors == ["א. ב. יהושע"]
        assert not hasattr(record, "rating")

    def test_not_identified(self):
        """Test the placeholder record."""
        record = BookRecord.not_identified()

        assert record.title == NOT_IDENTIFIED_TITLE
        assert record.description == NOT_IDENTIFIED_DESCRIPTION
        assert not record.identified
        assert record.search_url is None

    @pytest.mark.parametrize("title,expected", [("שירי אהבה", True), ("  ", False), (None, False)])
    def test_has_usable_title(self, title, expected):
        """Test the usable-title check."""
        assert BookRecord(title=title).has_usable_title is expected

    def test_search_url(self):
        """Test the web search link for an identified title."""
        record = BookRecord(title="Love Poems")

        assert record.search_url == "https://www.google.com/search?q=Love%20Poems"


class TestScanResponse:
    """Tests for ScanResponse.from_session."""

    def test_done_session(self):
        """Test a finished, identified scan."""
        now = datetime.now(timezone.utc)
        session = ScanSession(
            source_name="cover.jpg",
            stage=ScanStage.DONE,
            ocr_lines=["שירי אהבה"],
            liveness="AI Heartbeat: OK",
            record=BookRecord(title="שירי אהבה"),
            started_at=now,
            finished_at=now,
        )

        response = ScanResponse.from_session(session)

        assert response.identified
        assert not response.in_progress
        assert response.search_url.startswith("https://www.google.com/search?q=")
        assert response.error is None
        assert response.model_dump(mode="json")["stage"] == "done"

    def test_errored_session(self):
        """Test that the session error is rendered."""
        session = ScanSession(
            stage=ScanStage.ERRORED,
            error=NoTextDetected("No Hebrew text detected."),
        )

        response = ScanResponse.from_session(session)

        assert response.error.error == "no_text_detected"
        assert response.error.message == "No Hebrew text detected."
        assert not response.identified
        assert response.record is None
        assert response.search_url is None
