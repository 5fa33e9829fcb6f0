"""Fold inbound realtime events into the session log and react to them."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

from models.realtime_events import (
	FunctionCallArgumentsDone,
	LogUpdateEvent,
	ResponseDoneEvent,
	parse_event,
)
from models.session_models import FunctionCallRecord
from services.realtime.client_events import function_call_output
from services.realtime.context_synthesizer import ContextSynthesizer
from services.realtime.dispatcher import OutboundDispatcher
from services.realtime.event_log import EventLog
from services.realtime.function_table import FunctionDispatchTable

logger = logging.getLogger(__name__)


class InboundEventReducer:
	"""Append inbound events to the log and trigger their side effects.

	Function calls run as tasks so a slow handler never blocks the
	channel's message callback. Their results are dispatched only if the
	channel they arrived on is still current when the handler completes.
	"""

	def __init__(
		self,
		log: EventLog,
		dispatcher: OutboundDispatcher,
		functions: FunctionDispatchTable,
		synthesizer: ContextSynthesizer,
	) -> None:
		self.log = log
		self.dispatcher = dispatcher
		self.functions = functions
		self.synthesizer = synthesizer
		self._pending: Set[asyncio.Task] = set()

	def receive_raw(self, data: Any) -> Optional[asyncio.Task]:
		"""Decode one channel payload and reduce it; drop it if malformed."""
		try:
			event = json.loads(data)
		except (TypeError, ValueError):
			logger.warning("Dropping malformed inbound payload: %.200r", data)
			return None
		if not isinstance(event, dict) or not isinstance(event.get("type"), str):
			logger.warning("Dropping inbound payload without a type: %.200r", data)
			return None
		return self.reduce(event)

	def reduce(self, event: Dict[str, Any]) -> Optional[asyncio.Task]:
		"""Log `event` and start any follow-up work.

		Returns:
			The task running a function call, when one was started.
		"""
		updated_log = self.log.prepend(event)
		parsed = parse_event(event)

		if isinstance(parsed, FunctionCallArgumentsDone):
			record = FunctionCallRecord(name=parsed.name, call_id=parsed.call_id, arguments=parsed.arguments)
			if record.name not in self.functions:
				logger.debug("Ignoring call to unregistered function %r", record.name)
				return None
			task = asyncio.ensure_future(self.handle_function_call(record, self.dispatcher.generation))
			self._pending.add(task)
			task.add_done_callback(self._pending.discard)
			return task

		if isinstance(parsed, LogUpdateEvent):
			self.synthesizer.synthesize(updated_log)
		elif isinstance(parsed, ResponseDoneEvent):
			for part in parsed.output:
				logger.debug("Response output part: %.500r", part)
		return None

	async def handle_function_call(self, record: FunctionCallRecord, generation: int) -> bool:
		"""Run one function call and send its output followed by a response request.

		Returns:
			True if the output was dispatched, False if the session changed meanwhile.
		"""
		try:
			result = await self.functions.invoke(record.name, record.arguments)
		except KeyError:
			logger.debug("Function %r was unregistered before it ran", record.name)
			return False
		except Exception as exc:
			logger.error("Function %s (%s) failed: %s", record.name, record.call_id, exc)
			result = {"error": str(exc)}

		if not self.dispatcher.is_current(generation):
			logger.info("Discarding output of %s; session changed while it ran", record.name)
			return False

		self.dispatcher.send(function_call_output(record.call_id, result))
		self.dispatcher.request_response()
		return True

	async def wait_pending(self) -> None:
		"""Wait for in-flight function calls to finish."""
		if self._pending:
			await asyncio.gather(*list(self._pending), return_exceptions=True)
