"""Registry of locally executable functions the realtime model may call."""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from models.realtime_events import event_content
from models.session_models import ToolDescriptor
from services.realtime.client_events import conversation_item
from services.realtime.dispatcher import OutboundDispatcher
from services.realtime.event_log import EventLog

Handler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]

GET_LOGS = "getLogs"
UPDATE_SYSTEM_PROMPT = "updateSystemPrompt"

GET_LOGS_DESCRIPTOR = ToolDescriptor(
	name=GET_LOGS,
	description="Return the most recent events of the current session.",
	parameters={
		"type": "object",
		"properties": {
			"count": {
				"type": "integer",
				"description": "How many of the most recent events to return.",
				"default": 5,
			},
		},
	},
)

UPDATE_SYSTEM_PROMPT_DESCRIPTOR = ToolDescriptor(
	name=UPDATE_SYSTEM_PROMPT,
	description="Replace the assistant's working context with the provided text.",
	parameters={
		"type": "object",
		"properties": {
			"context": {
				"type": "string",
				"description": "New context to add to the conversation as a system message.",
			},
		},
		"required": ["context"],
	},
)


@dataclass
class RegisteredFunction:
	descriptor: ToolDescriptor
	handler: Handler


class FunctionDispatchTable:
	"""Map function names to handlers and their advertised descriptors."""

	def __init__(self) -> None:
		self._functions: Dict[str, RegisteredFunction] = {}

	def register(self, descriptor: ToolDescriptor, handler: Handler) -> None:
		"""Add or replace a function; the descriptor name is the lookup key."""
		if not descriptor.name:
			raise ValueError("Tool descriptor must have a name.")
		self._functions[descriptor.name] = RegisteredFunction(descriptor=descriptor, handler=handler)

	def get(self, name: str) -> Optional[RegisteredFunction]:
		return self._functions.get(name)

	def __contains__(self, name: object) -> bool:
		return name in self._functions

	def descriptors(self) -> List[ToolDescriptor]:
		"""Return descriptors in registration order for `session.update`."""
		return [entry.descriptor for entry in self._functions.values()]

	async def invoke(self, name: str, arguments: str) -> Any:
		"""Parse `arguments` and run the named handler, awaiting it if needed.

		Raises:
			KeyError: If no function is registered under `name`.
			ValueError: If `arguments` is not a JSON object.
		"""
		entry = self._functions.get(name)
		if entry is None:
			raise KeyError(name)
		try:
			args = json.loads(arguments or "{}")
		except json.JSONDecodeError as exc:
			raise ValueError(f"Arguments for '{name}' are not valid JSON.") from exc
		if not isinstance(args, dict):
			raise ValueError(f"Arguments for '{name}' must be a JSON object.")
		result = entry.handler(args)
		if inspect.isawaitable(result):
			result = await result
		return result


def get_logs_handler(log: EventLog) -> Handler:
	"""Return a handler projecting the newest events to {type, timestamp, content}."""

	def get_logs(args: Dict[str, Any]) -> List[Dict[str, Any]]:
		count = args.get("count", 5)
		try:
			count = int(count)
		except (TypeError, ValueError):
			count = 5
		return [
			{
				"type": event.get("type"),
				"timestamp": event.get("timestamp"),
				"content": event_content(event),
			}
			for event in log.recent(count)
		]

	return get_logs


def update_system_prompt_handler(dispatcher: OutboundDispatcher) -> Handler:
	"""Return a handler that sends `context` verbatim as a system message."""

	def update_system_prompt(args: Dict[str, Any]) -> Dict[str, Any]:
		context = args.get("context") or ""
		dispatcher.send(conversation_item("system", context))
		return {"success": True, "context": context}

	return update_system_prompt


def default_function_table(log: EventLog, dispatcher: OutboundDispatcher) -> FunctionDispatchTable:
	"""Return a table holding the baseline `getLogs` and `updateSystemPrompt`."""
	table = FunctionDispatchTable()
	table.register(GET_LOGS_DESCRIPTOR, get_logs_handler(log))
	table.register(UPDATE_SYSTEM_PROMPT_DESCRIPTOR, update_system_prompt_handler(dispatcher))
	return table
