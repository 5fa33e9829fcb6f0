"""Most-recent-first event log for one realtime session."""

from __future__ import annotations

import time
from typing import Any, Dict, List


def wall_clock() -> str:
	"""Return the local wall-clock time used to stamp events."""
	return time.strftime("%H:%M:%S", time.localtime())


class EventLog:
	"""Ordered record of every message sent or received during a session.

	New entries are prepended. Entries are never mutated after insertion
	except for the timestamp backfill done by `stamp`.
	"""

	def __init__(self) -> None:
		self._entries: List[Dict[str, Any]] = []

	@staticmethod
	def stamp(message: Dict[str, Any]) -> Dict[str, Any]:
		"""Set `timestamp` unless one is already present."""
		if not message.get("timestamp"):
			message["timestamp"] = wall_clock()
		return message

	def prepend(self, message: Dict[str, Any]) -> List[Dict[str, Any]]:
		"""Stamp and insert a message at the head; return the updated log."""
		self.stamp(message)
		self._entries.insert(0, message)
		return self.entries

	def clear(self) -> None:
		self._entries.clear()

	@property
	def entries(self) -> List[Dict[str, Any]]:
		"""Return a shallow copy of the log, most recent first."""
		return list(self._entries)

	def recent(self, count: int) -> List[Dict[str, Any]]:
		"""Return the `count` most recent entries, most recent first."""
		if count <= 0:
			return []
		return self._entries[:count]

	def __len__(self) -> int:
		return len(self._entries)
