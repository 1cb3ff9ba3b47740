"""
Tests for the scan and health API endpoints.

The application lifespan is not run: the pipeline dependency is overridden
with a BookScanPipeline wired to mocked collaborators.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from book_scanner.dependencies import get_pipeline
from book_scanner.exceptions import NoTextDetected, TransportError
from book_scanner.main import app
from book_scanner.models.book import BookRecord


@pytest.fixture
def client(pipeline):
    """Test client with the pipeline dependency overridden."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


def upload(client, content=b"raw image", filename="cover.jpg"):
    return client.post("/api/scan", files={"file": (filename, content, "image/jpeg")})


class TestHealthEndpoints:
    """Tests for /api/health."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ai_online(self, client, mock_llm_client):
        """Test the heartbeat endpoint with a live model."""
        response = client.get("/api/health/ai")

        assert response.status_code == 200
        assert response.json() == {"status": "online", "reply": "AI Heartbeat: OK"}

    def test_ai_offline(self, client, mock_llm_client):
        """Test that an unreachable model is a 200 with status offline."""
        mock_llm_client.heartbeat.return_value = "AI Offline: DNS failure"

        response = client.get("/api/health/ai")

        assert response.status_code == 200
        assert response.json()["status"] == "offline"


class TestScanEndpoint:
    """Tests for POST /api/scan."""

    def test_successful_scan(self, client):
        """Test that an identified book is returned with its cover."""
        response = upload(client)

        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == "done"
        assert data["identified"] is True
        assert data["source_name"] == "cover.jpg"
        assert data["record"]["title"] == "שירי אהבה"
        assert data["record"]["cover_uri"] == "https://books.test/cover.jpg"
        assert data["ocr_lines"] == ["יהודה עמיחי", "שירי אהבה"]
        assert data["error"] is None

    def test_upload_bytes_reach_pipeline(self, client, pipeline):
        """Test that the uploaded file content is what gets encoded."""
        received = []
        pipeline.encoder = lambda image: received.append(image) or "ZW5jb2RlZA=="

        upload(client, content=b"\x89PNG fake")

        assert received == [b"\x89PNG fake"]

    def test_no_text_detected(self, client, mock_extractor):
        """Test that a scan failure answers with the error's status."""
        mock_extractor.extract_lines.side_effect = NoTextDetected("No Hebrew text detected.")

        response = upload(client)

        assert response.status_code == 422
        data = response.json()
        assert data["stage"] == "errored"
        assert data["error"]["error"] == "no_text_detected"
        assert data["record"] is None

    def test_transport_failure(self, client, mock_extractor):
        """Test that OCR transport failures are a bad gateway."""
        mock_extractor.extract_lines.side_effect = TransportError("OCR service returned HTTP 500")

        response = upload(client)

        assert response.status_code == 502

    def test_not_identified(self, client, mock_metadata_client, mock_cover_client):
        """Test that an unidentified book is still a 200."""
        mock_metadata_client.infer = AsyncMock(return_value=BookRecord())
        mock_cover_client.find_cover.return_value = None

        response = upload(client)

        assert response.status_code == 200
        data = response.json()
        assert data["identified"] is False
        assert data["record"]["title"] == "Identification Failed"
        assert data["search_url"] is None

    def test_missing_file(self, client):
        """Test that a request without a file is rejected."""
        response = client.post("/api/scan")

        assert response.status_code == 422


class TestCurrentScan:
    """Tests for GET /api/scan/current."""

    def test_no_scan_yet(self, client):
        response = client.get("/api/scan/current")

        assert response.status_code == 404

    def test_returns_latest(self, client):
        """Test that the last upload is reported."""
        scanned = upload(client, filename="second.jpg").json()

        response = client.get("/api/scan/current")

        assert response.status_code == 200
        assert response.json()["session_id"] == scanned["session_id"]
        assert response.json()["source_name"] == "second.jpg"
