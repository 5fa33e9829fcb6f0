"""
Tests for the FastAPI server routes.
"""

import io
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from controllers.frame_controller import ANALYSIS_DISABLED_CAPTION
from main import create_app


def _png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), (0, 128, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def db_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    monkeypatch.setenv("DELETE_LOGS_ON_EXIT", "true")
    monkeypatch.setenv("FRAME_ANALYSIS_ENABLED", "true")
    return tmp_path


@pytest.fixture
def client(db_dir):
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def mock_captioner():
    with patch("controllers.frame_controller.FrameCaptioner") as captioner_cls:
        instance = MagicMock()
        instance.caption = AsyncMock(
            return_value={"caption": "A person at a desk", "latency": 0.1, "input_tokens": 10, "output_tokens": 5}
        )
        captioner_cls.return_value = instance
        yield instance


class TestHealth:
    """Tests for /health."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["db_initialized"] is True
        assert data["openai_available"] is True
        assert data["analysis_enabled"] is True
        assert data["caption_count"] == 0

    def test_health_counts_logged_captions(self, client, mock_captioner):
        client.post("/api/analyze-frame", files={"file": ("frame.png", _png_bytes(), "image/png")})

        assert client.get("/health").json()["caption_count"] == 1


class TestSettingsRoutes:
    """Tests for the runtime toggle routes."""

    def test_log_deletion_toggle(self, client):
        assert client.get("/api/log-deletion-setting").json() == {"shouldDeleteLogs": True}
        assert client.post("/api/toggle-log-deletion").json() == {"shouldDeleteLogs": False}
        assert client.get("/api/log-deletion-setting").json() == {"shouldDeleteLogs": False}
        assert client.post("/api/toggle-log-deletion").json() == {"shouldDeleteLogs": True}

    def test_analysis_toggle(self, client):
        assert client.get("/api/analysis-setting").json() == {"isAnalysisEnabled": True}
        assert client.post("/api/toggle-analysis").json() == {"isAnalysisEnabled": False}
        assert client.get("/api/analysis-setting").json() == {"isAnalysisEnabled": False}


class TestAnalyzeFrame:
    """Tests for /api/analyze-frame and /api/caption-logs."""

    def test_caption_is_returned_and_logged(self, client, mock_captioner):
        response = client.post(
            "/api/analyze-frame",
            files={"file": ("frame.png", _png_bytes(), "image/png")},
        )

        assert response.status_code == 200
        assert response.json() == {"caption": "A person at a desk"}
        mock_captioner.caption.assert_awaited_once()

        logs = client.get("/api/caption-logs").json()
        assert len(logs) == 1
        assert logs[0]["caption"] == "A person at a desk"
        assert logs[0]["mimeType"] == "image/png"
        assert logs[0]["imageSize"] == len(_png_bytes())

    def test_caption_logs_newest_first(self, client, mock_captioner):
        for caption in ("first", "second", "third"):
            mock_captioner.caption.return_value = {"caption": caption}
            client.post("/api/analyze-frame", files={"file": ("frame.png", _png_bytes(), "image/png")})

        logs = client.get("/api/caption-logs").json()
        assert [entry["caption"] for entry in logs] == ["third", "second"]

        logs = client.get("/api/caption-logs", params={"limit": 5}).json()
        assert len(logs) == 3

    def test_disabled_analysis_returns_placeholder(self, client, mock_captioner):
        client.post("/api/toggle-analysis")

        response = client.post(
            "/api/analyze-frame",
            files={"file": ("frame.png", _png_bytes(), "image/png")},
        )

        assert response.status_code == 200
        assert response.json() == {"caption": ANALYSIS_DISABLED_CAPTION}
        mock_captioner.caption.assert_not_called()
        assert client.get("/api/caption-logs").json() == []

    def test_missing_file(self, client, mock_captioner):
        response = client.post("/api/analyze-frame")
        assert response.status_code == 400
        assert response.json()["detail"] == "No file uploaded"

    def test_non_image_upload(self, client, mock_captioner):
        response = client.post(
            "/api/analyze-frame",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 415

    def test_undecodable_image(self, client, mock_captioner):
        response = client.post(
            "/api/analyze-frame",
            files={"file": ("frame.jpg", b"not really a jpeg", "image/jpeg")},
        )
        assert response.status_code == 415

    def test_captioning_failure(self, client, mock_captioner):
        mock_captioner.caption.side_effect = RuntimeError("upstream unavailable")

        response = client.post(
            "/api/analyze-frame",
            files={"file": ("frame.png", _png_bytes(), "image/png")},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze frame", "details": "upstream unavailable"}
        assert client.get("/api/caption-logs").json() == []


class TestTokenRoute:
    """Tests for /token."""

    def test_token_success(self, client):
        payload = {"client_secret": {"value": "ek_abc", "expires_at": 123}}
        client.app.state.token_service = MagicMock(create_session=AsyncMock(return_value=payload))

        response = client.get("/token")

        assert response.status_code == 200
        assert response.json() == payload

    def test_token_failure(self, client):
        client.app.state.token_service = MagicMock(
            create_session=AsyncMock(side_effect=RuntimeError("bad key"))
        )

        response = client.get("/token")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate token"}


class TestShutdown:
    """Tests for caption log cleanup on shutdown."""

    def test_log_deleted_on_exit(self, db_dir):
        with TestClient(create_app()):
            assert (db_dir / "captions.db").exists()
        assert not (db_dir / "captions.db").exists()

    def test_log_kept_when_deletion_disabled(self, db_dir):
        with TestClient(create_app()) as test_client:
            test_client.post("/api/toggle-log-deletion")
        assert (db_dir / "captions.db").exists()

    def test_kept_log_is_appended_after_restart(self, db_dir, mock_captioner):
        frame = {"file": ("frame.png", _png_bytes(), "image/png")}
        mock_captioner.caption.return_value = {"caption": "first run"}
        with TestClient(create_app()) as test_client:
            test_client.post("/api/toggle-log-deletion")
            test_client.post("/api/analyze-frame", files=frame)

        mock_captioner.caption.return_value = {"caption": "second run"}
        with TestClient(create_app()) as test_client:
            test_client.post("/api/analyze-frame", files=frame)
            logs = test_client.get("/api/caption-logs").json()

        assert [entry["caption"] for entry in logs] == ["second run", "first run"]
