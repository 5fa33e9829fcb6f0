"""Periodic frame capture feeding captions into the realtime session."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import httpx

from services.frame_encoder import FrameEncoder

logger = logging.getLogger(__name__)

Frame = Tuple[bytes, str]


class FrameSource(Protocol):
	"""Anything that can produce one encoded frame on demand."""

	async def capture(self) -> Optional[Frame]: ...


class StillImageSource:
	"""Re-read an image file on every capture so it can be swapped while running."""

	def __init__(self, path: str | Path, encoder: Optional[FrameEncoder] = None) -> None:
		self.path = Path(path)
		self.encoder = encoder or FrameEncoder()

	async def capture(self) -> Optional[Frame]:
		if not self.path.exists():
			logger.warning("Frame source %s does not exist", self.path)
			return None
		data = await asyncio.to_thread(self.encoder.encode_file, self.path)
		return data, self.encoder.mime_type


class CaptionFeed:
	"""Send a frame for captioning every `interval` seconds.

	Each caption becomes a log entry handed to `on_caption`, which the
	console wires to `SessionController.inject_log_update`.
	"""

	def __init__(
		self,
		source: FrameSource,
		analyze_url: str,
		on_caption: Callable[[Dict[str, Any]], Any],
		*,
		interval: float = 2.0,
		timeout: float = 30.0,
	) -> None:
		self.source = source
		self.analyze_url = analyze_url
		self.on_caption = on_caption
		self.interval = interval
		self.timeout = timeout
		self._task: Optional[asyncio.Task] = None

	async def capture_once(self) -> Optional[Dict[str, Any]]:
		"""Capture, caption and surface one frame; return the log entry."""
		frame = await self.source.capture()
		if frame is None:
			return None
		image_bytes, mime_type = frame

		try:
			async with httpx.AsyncClient(timeout=self.timeout) as client:
				resp = await client.post(
					self.analyze_url,
					files={"file": ("frame.jpg", image_bytes, mime_type)},
				)
				resp.raise_for_status()
				data = resp.json()
		except (httpx.HTTPError, ValueError) as exc:
			logger.error("Error sending frame for analysis: %s", exc)
			return None

		caption = data.get("caption") if isinstance(data, dict) else None
		if not isinstance(caption, str):
			logger.warning("Frame analysis returned no caption: %.200r", data)
			return None

		entry = {
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"caption": caption,
			"imageSize": len(image_bytes),
			"mimeType": mime_type,
		}
		self.on_caption(entry)
		return entry

	async def run(self) -> None:
		"""Capture frames at the configured interval until cancelled."""
		while True:
			try:
				await self.capture_once()
				await asyncio.sleep(self.interval)
			except asyncio.CancelledError:
				break
			except Exception as exc:
				logger.error("Caption feed iteration failed: %s", exc)
				await asyncio.sleep(self.interval)

	def start(self) -> asyncio.Task:
		if self._task is None or self._task.done():
			self._task = asyncio.ensure_future(self.run())
		return self._task

	async def stop(self) -> None:
		task, self._task = self._task, None
		if task is None:
			return
		task.cancel()
		try:
			await task
		except asyncio.CancelledError:
			pass
