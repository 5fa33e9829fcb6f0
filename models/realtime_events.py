"""Typed views over inbound realtime events.

Inbound channel payloads are plain JSON objects tagged by `type`. The
variants below cover the tags the client reacts to; anything else parses
to `RawEvent` so callers never probe optional fields by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

FUNCTION_CALL_DONE = "response.function_call_arguments.done"
RESPONSE_DONE = "response.done"
LOG_UPDATE = "log.update"
CONVERSATION_ITEM_CREATE = "conversation.item.create"


@dataclass
class ConversationItemEvent:
	"""An event carrying a conversation item with message content."""

	raw: Dict[str, Any]
	role: str = ""
	content: List[Any] = field(default_factory=list)


@dataclass
class ResponseDoneEvent:
	"""A completed model response and its output parts."""

	raw: Dict[str, Any]
	output: List[Any] = field(default_factory=list)


@dataclass
class FunctionCallArgumentsDone:
	"""The model finished streaming arguments for a function call."""

	raw: Dict[str, Any]
	name: str = ""
	call_id: str = ""
	arguments: str = "{}"


@dataclass
class LogUpdateEvent:
	"""A caption log entry surfaced into the event stream."""

	raw: Dict[str, Any]
	caption: str = ""


@dataclass
class RawEvent:
	"""Fallback for any event type without a dedicated variant."""

	raw: Dict[str, Any]


RealtimeEvent = Union[
	ConversationItemEvent, ResponseDoneEvent, FunctionCallArgumentsDone, LogUpdateEvent, RawEvent
]


def parse_event(event: Dict[str, Any]) -> RealtimeEvent:
	"""Return the typed variant for an event dictionary."""
	event_type = event.get("type")
	if event_type == FUNCTION_CALL_DONE:
		return FunctionCallArgumentsDone(
			raw=event,
			name=event.get("name") or "",
			call_id=event.get("call_id") or "",
			arguments=event.get("arguments") or "{}",
		)
	if event_type == LOG_UPDATE:
		return LogUpdateEvent(raw=event, caption=event.get("caption") or "")
	item = event.get("item")
	if isinstance(item, dict) and item.get("content"):
		return ConversationItemEvent(raw=event, role=item.get("role") or "", content=list(item["content"]))
	response = event.get("response")
	if isinstance(response, dict) and response.get("output"):
		return ResponseDoneEvent(raw=event, output=list(response["output"]))
	return RawEvent(raw=event)


def event_content(event: Dict[str, Any]) -> Any:
	"""Return the item content, the response output, or the raw event."""
	parsed = parse_event(event)
	if isinstance(parsed, ConversationItemEvent):
		return parsed.content
	if isinstance(parsed, ResponseDoneEvent):
		return parsed.output
	return parsed.raw
