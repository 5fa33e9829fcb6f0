"""Builders for outbound realtime client events."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable

from models.session_models import ToolDescriptor


def conversation_item(role: str, text: str) -> Dict[str, Any]:
	"""Return a `conversation.item.create` message for one text item."""
	content_type = "text" if role == "assistant" else "input_text"
	return {
		"type": "conversation.item.create",
		"item": {
			"type": "message",
			"role": role,
			"content": [{"type": content_type, "text": text}],
		},
	}


def response_create() -> Dict[str, Any]:
	"""Return the message asking the model to produce output."""
	return {"type": "response.create"}


def session_update(tools: Iterable[ToolDescriptor], tool_choice: str = "auto") -> Dict[str, Any]:
	"""Return a `session.update` advertising the given tools."""
	return {
		"type": "session.update",
		"session": {
			"tools": [tool.to_wire() for tool in tools],
			"tool_choice": tool_choice,
		},
	}


def function_call_output(call_id: str, result: Any) -> Dict[str, Any]:
	"""Wrap a function result for the remote model."""
	return {
		"type": "conversation.item.create",
		"item": {
			"type": "function_call_output",
			"call_id": call_id,
			"output": json.dumps(result, default=str),
		},
	}
