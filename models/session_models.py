"""Session domain models for realtime workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import uuid4


@dataclass
class ToolDescriptor:
	"""Advertised schema of a locally dispatchable function."""

	name: str
	description: str
	parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

	def to_wire(self) -> Dict[str, Any]:
		"""Return the descriptor in `session.update` tool format."""
		return {
			"type": "function",
			"name": self.name,
			"description": self.description,
			"parameters": self.parameters,
		}


@dataclass
class FunctionCallRecord:
	"""A single model-issued function call, consumed exactly once."""

	name: str
	call_id: str
	arguments: str = "{}"


@dataclass
class Session:
	"""State of one realtime connection attempt.

	Attributes:
		transport: The peer connection wrapper backing this session.
		channel: The ordered control/event channel.
		generation: Monotonic counter used to detect stale sessions after suspension.
		is_active: True between the channel's open signal and stop.
	"""

	transport: Any
	channel: Any
	generation: int
	session_id: str = field(default_factory=lambda: uuid4().hex)
	is_active: bool = False
	closed: bool = False
	model: Optional[str] = None
