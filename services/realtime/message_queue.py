"""FIFO buffer for outbound messages sent before the channel is open."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any, Deque, Dict, List

if TYPE_CHECKING:
	from services.realtime.dispatcher import OutboundDispatcher


class MessageQueue:
	"""Hold not-yet-sendable messages in arrival order."""

	def __init__(self) -> None:
		self._items: Deque[Dict[str, Any]] = deque()

	def enqueue(self, message: Dict[str, Any]) -> None:
		"""Append a message to the tail."""
		self._items.append(message)

	def drain(self) -> List[Dict[str, Any]]:
		"""Remove and return every queued message, head first."""
		items = list(self._items)
		self._items.clear()
		return items

	def flush(self, dispatcher: "OutboundDispatcher") -> int:
		"""Re-submit queued messages through the dispatcher in FIFO order.

		The queue is drained before re-submission so a message that is
		re-queued (channel closed mid-flush) cannot loop forever.

		Returns:
			The number of messages re-submitted.
		"""
		pending = self.drain()
		for message in pending:
			dispatcher.send(message)
		return len(pending)

	def clear(self) -> None:
		self._items.clear()

	def __len__(self) -> int:
		return len(self._items)
