"""Exceptions raised by the realtime client."""

from __future__ import annotations

from typing import Optional


class RealtimeError(RuntimeError):
	"""Base class for realtime client failures."""


class SignalingError(RealtimeError):
	"""The credential fetch or the offer/answer exchange failed."""


class SessionStartFailure(RealtimeError):
	"""A session could not be started; all partial resources were released.

	Attributes:
		stage: Which step failed ("credential", "transport", "media", "channel", "signaling").
	"""

	def __init__(self, stage: str, message: str, *, cause: Optional[BaseException] = None) -> None:
		super().__init__(f"Session start failed during {stage}: {message}")
		self.stage = stage
		self.cause = cause
