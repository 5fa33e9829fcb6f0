"""The single funnel for application-originated realtime messages."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from services.realtime.client_events import conversation_item, response_create
from services.realtime.event_log import EventLog
from services.realtime.message_queue import MessageQueue

logger = logging.getLogger(__name__)

OPEN = "open"


class OutboundDispatcher:
	"""Send messages on the current channel, or queue them until it opens.

	A message is logged only once it is actually transmitted. The
	`generation` counter changes whenever the channel is attached or
	detached so callers that suspended can tell whether the channel they
	started with is still the current one.
	"""

	def __init__(self, queue: MessageQueue, log: EventLog) -> None:
		self.queue = queue
		self.log = log
		self.channel: Optional[Any] = None
		self.generation = 0

	def attach(self, channel: Any) -> int:
		"""Make `channel` the current channel and return the new generation."""
		self.channel = channel
		self.generation += 1
		return self.generation

	def detach(self) -> None:
		self.channel = None
		self.generation += 1

	def is_current(self, generation: int) -> bool:
		return generation == self.generation

	@property
	def is_open(self) -> bool:
		return self.channel is not None and getattr(self.channel, "ready_state", None) == OPEN

	def send(self, message: Dict[str, Any]) -> bool:
		"""Transmit `message` if the channel is open, otherwise queue it.

		Returns:
			True when the message went out on the wire.
		"""
		if not self.is_open:
			logger.debug("Channel not ready; queueing %s", message.get("type"))
			self.queue.enqueue(message)
			return False

		if not message.get("event_id"):
			message["event_id"] = str(uuid4())
		# The remote peer rejects unknown fields, so the timestamp never goes on the wire.
		wire = {key: value for key, value in message.items() if key != "timestamp"}
		self.channel.send(json.dumps(wire))
		logger.debug("Sent %s (%s)", message.get("type"), message["event_id"])

		self.log.prepend(message)
		return True

	def request_response(self) -> bool:
		return self.send(response_create())

	def send_text_message(self, text: str) -> None:
		"""Send a user text item followed by a response request."""
		self.send(conversation_item("user", text))
		self.request_response()
