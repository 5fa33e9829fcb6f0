"""Fold the caption stream into the live conversation context."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from models.realtime_events import LOG_UPDATE
from services.realtime.client_events import conversation_item
from services.realtime.dispatcher import OutboundDispatcher
from services.realtime.prompts import scene_system_prompt

logger = logging.getLogger(__name__)

_EMPHASIS = re.compile(r"\*\*|\*")


def clean_caption(caption: str) -> str:
	"""Strip markdown emphasis markers from a caption."""
	return _EMPHASIS.sub("", caption or "")


class ContextSynthesizer:
	"""Build a system message from the two most recent caption entries."""

	def __init__(self, dispatcher: OutboundDispatcher) -> None:
		self.dispatcher = dispatcher

	@staticmethod
	def latest_captions(log: Sequence[Dict[str, Any]], count: int = 2) -> List[str]:
		"""Return cleaned captions of the `count` newest caption entries, oldest first."""
		entries = [entry for entry in log if entry.get("type") == LOG_UPDATE][:count]
		return [clean_caption(entry.get("caption") or "") for entry in reversed(entries)]

	def build_context(self, log: Sequence[Dict[str, Any]]) -> Optional[str]:
		captions = self.latest_captions(log)
		if len(captions) < 2:
			return None
		return "\n\n".join(captions)

	def synthesize(self, log: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
		"""Dispatch an updated scene prompt; return it, or None below the threshold."""
		context = self.build_context(log)
		if context is None:
			logger.debug("Fewer than two captions logged; context unchanged")
			return None
		message = conversation_item("system", scene_system_prompt(context))
		self.dispatcher.send(message)
		return message
