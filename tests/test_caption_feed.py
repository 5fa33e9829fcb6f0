"""
Unit tests for the caption feed.
"""

import asyncio
import io
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from PIL import Image

from services.realtime.caption_feed import CaptionFeed, StillImageSource


class StaticSource:
    def __init__(self, frame=(b"\xff\xd8jpeg", "image/jpeg")):
        self.frame = frame
        self.captures = 0

    async def capture(self):
        self.captures += 1
        return self.frame


def _client_mock(response=None, side_effect=None):
    mock_instance = AsyncMock()
    mock_instance.post.return_value = response
    if side_effect is not None:
        mock_instance.post.side_effect = side_effect
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_instance


class TestCaptionFeed:
    """Tests for CaptionFeed."""

    @pytest.mark.asyncio
    async def test_capture_once_surfaces_entry(self):
        on_caption = MagicMock()
        feed = CaptionFeed(StaticSource(), "http://localhost:8000/api/analyze-frame", on_caption)

        mock_response = MagicMock()
        mock_response.json.return_value = {"caption": "A cat on a sofa"}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _client_mock(mock_response)
            mock_client.return_value = mock_instance
            entry = await feed.capture_once()

        assert entry["caption"] == "A cat on a sofa"
        assert entry["imageSize"] == len(b"\xff\xd8jpeg")
        assert entry["mimeType"] == "image/jpeg"
        assert entry["timestamp"]
        on_caption.assert_called_once_with(entry)
        files = mock_instance.post.call_args.kwargs["files"]
        assert files["file"][0] == "frame.jpg"

    @pytest.mark.asyncio
    async def test_capture_once_error_response(self):
        on_caption = MagicMock()
        feed = CaptionFeed(StaticSource(), "http://x/api/analyze-frame", on_caption)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = _client_mock(side_effect=httpx.ConnectError("refused"))
            assert await feed.capture_once() is None

        on_caption.assert_not_called()

    @pytest.mark.asyncio
    async def test_capture_once_without_caption(self):
        on_caption = MagicMock()
        feed = CaptionFeed(StaticSource(), "http://x/api/analyze-frame", on_caption)
        mock_response = MagicMock()
        mock_response.json.return_value = {"error": "Failed to analyze frame"}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = _client_mock(mock_response)
            assert await feed.capture_once() is None

        on_caption.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_frame_skips_upload(self):
        on_caption = MagicMock()
        feed = CaptionFeed(StaticSource(frame=None), "http://x/api/analyze-frame", on_caption)
        with patch("httpx.AsyncClient") as mock_client:
            assert await feed.capture_once() is None
            mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        source = StaticSource(frame=None)
        feed = CaptionFeed(source, "http://x/api/analyze-frame", MagicMock(), interval=0.01)

        task = feed.start()
        await asyncio.sleep(0.05)
        await feed.stop()

        assert task.done()
        assert source.captures >= 2

    @pytest.mark.asyncio
    async def test_still_image_source_encodes_jpeg(self, tmp_path):
        path = tmp_path / "frame.png"
        Image.new("RGBA", (64, 32), (255, 0, 0, 128)).save(path, format="PNG")

        frame = await StillImageSource(path).capture()

        data, mime_type = frame
        assert mime_type == "image/jpeg"
        assert Image.open(io.BytesIO(data)).format == "JPEG"

    @pytest.mark.asyncio
    async def test_still_image_source_missing_file(self, tmp_path):
        assert await StillImageSource(tmp_path / "missing.jpg").capture() is None
