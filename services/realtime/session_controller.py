"""Lifecycle of one realtime session: start, stop and automatic restart."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from models.realtime_events import LOG_UPDATE
from models.session_models import Session
from services.realtime.client_events import conversation_item, session_update
from services.realtime.context_synthesizer import ContextSynthesizer
from services.realtime.dispatcher import OPEN, OutboundDispatcher
from services.realtime.errors import SessionStartFailure
from services.realtime.event_log import EventLog
from services.realtime.event_reducer import InboundEventReducer
from services.realtime.function_table import default_function_table
from services.realtime.message_queue import MessageQueue
from services.realtime.prompts import greeting, initial_system_prompt
from services.realtime.signaling import SignalingClient
from services.realtime.transport import CHANNEL_LABEL, TERMINAL_STATES, RealtimeTransport

logger = logging.getLogger(__name__)


class SessionController:
	"""Own the queue, log, channel and active flag of the realtime client.

	Only one session exists at a time. Every component receives the
	controller's queue, log and dispatcher explicitly.

	Args:
		signaling: Client for the token endpoint and the SDP exchange.
		transport_factory: Zero-argument callable building a fresh transport.
		signaling_timeout: Bound in seconds on the offer/answer exchange.
		restart_max_attempts: Consecutive restarts allowed after connectivity loss.
		restart_backoff: Delay before the first restart; doubled on each attempt.
	"""

	def __init__(
		self,
		signaling: SignalingClient,
		transport_factory: Callable[[], RealtimeTransport],
		*,
		signaling_timeout: float = 15.0,
		restart_max_attempts: int = 3,
		restart_backoff: float = 1.0,
	) -> None:
		self.signaling = signaling
		self.transport_factory = transport_factory
		self.signaling_timeout = signaling_timeout
		self.restart_max_attempts = restart_max_attempts
		self.restart_backoff = restart_backoff

		self.queue = MessageQueue()
		self.log = EventLog()
		self.dispatcher = OutboundDispatcher(self.queue, self.log)
		self.functions = default_function_table(self.log, self.dispatcher)
		self.synthesizer = ContextSynthesizer(self.dispatcher)
		self.reducer = InboundEventReducer(self.log, self.dispatcher, self.functions, self.synthesizer)

		self.session: Optional[Session] = None
		self._lock = asyncio.Lock()
		self._restart_task: Optional[asyncio.Task] = None
		self._restart_attempts = 0

	@property
	def is_active(self) -> bool:
		return self.session is not None and self.session.is_active

	async def start(self) -> Session:
		"""Create, negotiate and return a session.

		Returns the existing session when one is already running.

		Raises:
			SessionStartFailure: If any step fails; nothing stays allocated.
		"""
		async with self._lock:
			if self.session is not None and not self.session.closed:
				logger.info("Session %s already running", self.session.session_id)
				return self.session
			return await self._open_session()

	async def stop(self) -> None:
		"""Tear down the current session; safe to call repeatedly."""
		task = self._restart_task
		if task is not None and not task.done() and task is not asyncio.current_task():
			task.cancel()
		await self._teardown()

	def send(self, message: Dict[str, Any]) -> bool:
		return self.dispatcher.send(message)

	def send_text_message(self, text: str) -> None:
		self.dispatcher.send_text_message(text)

	def inject_log_update(self, entry: Dict[str, Any]) -> Optional[asyncio.Task]:
		"""Surface a caption log entry into the event stream of the active session."""
		if not self.is_active:
			logger.debug("No active session; caption not surfaced")
			return None
		return self.reducer.reduce({**entry, "type": LOG_UPDATE})

	async def _open_session(self) -> Session:
		stage = "credential"
		try:
			credential = await self.signaling.fetch_client_secret()
		except Exception as exc:
			raise SessionStartFailure(stage, str(exc), cause=exc) from exc

		transport = None
		channel = None
		try:
			stage = "transport"
			transport = self.transport_factory()

			stage = "media"
			transport.add_audio_source()

			stage = "channel"
			channel = transport.create_channel(CHANNEL_LABEL)
			generation = self.dispatcher.attach(channel)
			session = Session(
				transport=transport,
				channel=channel,
				generation=generation,
				model=self.signaling.model,
			)
			self.session = session
			transport.on_state_change(lambda state: self._on_connection_state(session, state))
			channel.on_open(lambda: self._on_channel_open(session))
			channel.on_message(lambda data: self._on_channel_message(session, data))
			channel.on_close(lambda: self._on_channel_close(session))
			self._queue_session_setup()

			stage = "signaling"
			offer = await transport.create_offer()
			answer = await asyncio.wait_for(
				self.signaling.exchange(offer, credential), timeout=self.signaling_timeout
			)
			await transport.apply_answer(answer)
		except asyncio.CancelledError:
			logger.warning("Session start cancelled during %s", stage)
			await self._release(transport, channel)
			raise
		except Exception as exc:
			logger.error("Session start failed during %s: %s", stage, exc)
			await self._release(transport, channel)
			if isinstance(exc, asyncio.TimeoutError):
				raise SessionStartFailure(stage, "timed out waiting for the answer", cause=exc) from exc
			raise SessionStartFailure(stage, str(exc), cause=exc) from exc

		logger.info("Session %s negotiated; waiting for channel", session.session_id)
		return session

	def _queue_session_setup(self) -> None:
		"""Place the setup messages ahead of anything queued before the session."""
		pending = self.queue.drain()
		self.dispatcher.send(session_update(self.functions.descriptors()))
		self.dispatcher.send(conversation_item("system", initial_system_prompt()))
		self.dispatcher.send(conversation_item("assistant", greeting()))
		for message in pending:
			self.queue.enqueue(message)

	async def _release(self, transport: Optional[RealtimeTransport], channel: Any) -> None:
		"""Undo a partial start."""
		self.session = None
		self.dispatcher.detach()
		self.queue.clear()
		if channel is not None and channel.ready_state != "closed":
			try:
				channel.close()
			except Exception as exc:
				logger.warning("Failed to close channel during rollback: %s", exc)
		if transport is None:
			return
		try:
			transport.stop_local_tracks()
			if not transport.is_closed:
				await transport.close()
		except Exception as exc:
			logger.warning("Failed to close transport during rollback: %s", exc)

	async def _teardown(self) -> None:
		session = self.session
		self.session = None
		self.dispatcher.detach()
		self.queue.clear()
		if session is None or session.closed:
			return

		session.closed = True
		session.is_active = False
		try:
			if session.channel.ready_state == OPEN:
				session.channel.close()
			session.transport.stop_local_tracks()
			if not session.transport.is_closed:
				await session.transport.close()
		except Exception as exc:
			logger.warning("Error while closing session %s: %s", session.session_id, exc)
		logger.info("Session %s stopped", session.session_id)

	def _on_channel_open(self, session: Session) -> None:
		if session is not self.session or session.closed:
			return
		# Fresh log first so flushed setup messages lead the new session's log.
		self.log.clear()
		session.is_active = True
		self._restart_attempts = 0
		flushed = self.queue.flush(self.dispatcher)
		logger.info("Session %s active; flushed %d queued messages", session.session_id, flushed)

	def _on_channel_message(self, session: Session, data: Any) -> None:
		if session is not self.session or session.closed:
			logger.debug("Ignoring message for stale session %s", session.session_id)
			return
		self.reducer.receive_raw(data)

	def _on_channel_close(self, session: Session) -> None:
		if session is self.session:
			session.is_active = False
			logger.info("Channel closed for session %s", session.session_id)

	def _on_connection_state(self, session: Session, state: str) -> None:
		logger.info("Connection state for session %s: %s", session.session_id, state)
		if session is not self.session or session.closed:
			return
		if state in TERMINAL_STATES:
			self._schedule_restart(state)

	def _schedule_restart(self, reason: str) -> None:
		if self._restart_task is not None and not self._restart_task.done():
			return
		self._restart_task = asyncio.ensure_future(self._restart(reason))

	async def _restart(self, reason: str) -> None:
		"""Stop, then start again with exponential backoff until attempts run out."""
		logger.warning("Connection %s; restarting session", reason)
		await self._teardown()
		while self._restart_attempts < self.restart_max_attempts:
			self._restart_attempts += 1
			delay = self.restart_backoff * (2 ** (self._restart_attempts - 1))
			logger.info(
				"Restart attempt %d/%d in %.1fs", self._restart_attempts, self.restart_max_attempts, delay
			)
			await asyncio.sleep(delay)
			try:
				await self.start()
				return
			except SessionStartFailure as exc:
				logger.error("Restart attempt %d failed: %s", self._restart_attempts, exc)
		logger.error("Giving up after %d restart attempts", self._restart_attempts)
