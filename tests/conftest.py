"""
Shared test fixtures and configuration.
"""

import json
import os
import tempfile

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("DATABASE_DIR", tempfile.mkdtemp(prefix="realtime_console_test_"))
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeChannel:
    """In-memory stand-in for the realtime event channel."""

    def __init__(self):
        self.ready_state = "connecting"
        self.sent = []
        self.close_calls = 0
        self._open_callbacks = []
        self._message_callbacks = []
        self._close_callbacks = []

    def send(self, data):
        if self.ready_state != "open":
            raise RuntimeError("channel is not open")
        self.sent.append(json.loads(data))

    def close(self):
        self.close_calls += 1
        self.ready_state = "closed"
        for callback in self._close_callbacks:
            callback()

    def on_open(self, callback):
        self._open_callbacks.append(callback)

    def on_message(self, callback):
        self._message_callbacks.append(callback)

    def on_close(self, callback):
        self._close_callbacks.append(callback)

    def open(self):
        self.ready_state = "open"
        for callback in self._open_callbacks:
            callback()

    def deliver(self, payload):
        data = payload if isinstance(payload, str) else json.dumps(payload)
        for callback in self._message_callbacks:
            callback(data)


class FakeTransport:
    """In-memory stand-in for the peer connection."""

    def __init__(self, fail_media=False, fail_offer=False):
        self.fail_media = fail_media
        self.fail_offer = fail_offer
        self.connection_state = "new"
        self.channels = []
        self.answer = None
        self.tracks_stopped = 0
        self.close_calls = 0
        self._state_callbacks = []

    @property
    def is_closed(self):
        return self.connection_state == "closed"

    def add_audio_source(self):
        if self.fail_media:
            raise RuntimeError("microphone unavailable")

    def create_channel(self, label):
        channel = FakeChannel()
        channel.label = label
        self.channels.append(channel)
        return channel

    async def create_offer(self):
        if self.fail_offer:
            raise RuntimeError("offer failed")
        return "v=0 offer"

    async def apply_answer(self, sdp):
        self.answer = sdp

    def on_state_change(self, callback):
        self._state_callbacks.append(callback)

    def set_state(self, state):
        self.connection_state = state
        for callback in self._state_callbacks:
            callback(state)

    def stop_local_tracks(self):
        self.tracks_stopped += 1

    async def close(self):
        self.close_calls += 1
        self.set_state("closed")


class FakeSignaling:
    """Signaling client returning canned credentials and answers."""

    def __init__(self, model="gpt-realtime-test"):
        self.model = model
        self.fail_credential = False
        self.fail_exchange = False
        self.exchange_delay = None
        self.credential_calls = 0
        self.offers = []

    async def fetch_client_secret(self):
        self.credential_calls += 1
        if self.fail_credential:
            raise RuntimeError("token endpoint down")
        return "ek_test"

    async def exchange(self, offer_sdp, credential):
        self.offers.append((offer_sdp, credential))
        if self.exchange_delay is not None:
            import asyncio

            await asyncio.sleep(self.exchange_delay)
        if self.fail_exchange:
            raise RuntimeError("signaling rejected")
        return "v=0 answer"


@pytest.fixture
def fake_channel_cls():
    return FakeChannel


@pytest.fixture
def signaling():
    return FakeSignaling()


@pytest.fixture
def transports():
    return []


@pytest.fixture
def transport_factory(transports):
    options = {}

    def _factory():
        transport = FakeTransport(**options)
        transports.append(transport)
        return transport

    _factory.options = options
    return _factory


@pytest.fixture
def components():
    """Queue, log, dispatcher (on an open channel) and reducer wired together."""
    from types import SimpleNamespace

    from services.realtime.context_synthesizer import ContextSynthesizer
    from services.realtime.dispatcher import OutboundDispatcher
    from services.realtime.event_log import EventLog
    from services.realtime.event_reducer import InboundEventReducer
    from services.realtime.function_table import default_function_table
    from services.realtime.message_queue import MessageQueue

    queue = MessageQueue()
    log = EventLog()
    dispatcher = OutboundDispatcher(queue, log)
    channel = FakeChannel()
    channel.ready_state = "open"
    dispatcher.attach(channel)
    functions = default_function_table(log, dispatcher)
    synthesizer = ContextSynthesizer(dispatcher)
    reducer = InboundEventReducer(log, dispatcher, functions, synthesizer)
    return SimpleNamespace(
        queue=queue,
        log=log,
        dispatcher=dispatcher,
        channel=channel,
        functions=functions,
        synthesizer=synthesizer,
        reducer=reducer,
    )
