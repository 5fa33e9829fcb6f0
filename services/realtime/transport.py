"""Peer connection and data channel used by a realtime session.

The session controller only depends on the small `RealtimeTransport` and
`RealtimeChannel` surfaces; `PeerTransport` implements them on aiortc.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol, Sequence

from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription
from aiortc.contrib.media import MediaBlackhole, MediaPlayer
from aiortc.rtcconfiguration import RTCBundlePolicy

logger = logging.getLogger(__name__)

CHANNEL_LABEL = "oai-events"
TERMINAL_STATES = frozenset({"failed", "disconnected", "closed"})


class RealtimeChannel(Protocol):
	"""Ordered bidirectional message channel."""

	@property
	def ready_state(self) -> str: ...

	def send(self, data: str) -> None: ...

	def close(self) -> None: ...

	def on_open(self, callback: Callable[[], None]) -> None: ...

	def on_message(self, callback: Callable[[Any], None]) -> None: ...

	def on_close(self, callback: Callable[[], None]) -> None: ...


class RealtimeTransport(Protocol):
	"""Connection that carries local audio and one event channel."""

	@property
	def connection_state(self) -> str: ...

	@property
	def is_closed(self) -> bool: ...

	def add_audio_source(self) -> None: ...

	def create_channel(self, label: str) -> RealtimeChannel: ...

	async def create_offer(self) -> str: ...

	async def apply_answer(self, sdp: str) -> None: ...

	def on_state_change(self, callback: Callable[[str], None]) -> None: ...

	def stop_local_tracks(self) -> None: ...

	async def close(self) -> None: ...


class PeerChannel:
	"""`RealtimeChannel` over an aiortc `RTCDataChannel`."""

	def __init__(self, channel) -> None:
		self._channel = channel

	@property
	def ready_state(self) -> str:
		return self._channel.readyState

	def send(self, data: str) -> None:
		self._channel.send(data)

	def close(self) -> None:
		self._channel.close()

	def on_open(self, callback: Callable[[], None]) -> None:
		self._channel.on("open", callback)

	def on_message(self, callback: Callable[[Any], None]) -> None:
		self._channel.on("message", callback)

	def on_close(self, callback: Callable[[], None]) -> None:
		self._channel.on("close", callback)


class PeerTransport:
	"""`RealtimeTransport` backed by an aiortc peer connection.

	Args:
		ice_servers: STUN/TURN URLs used for candidate gathering.
		audio_device: Optional microphone passed to `MediaPlayer` (e.g. "default").
		audio_format: Optional capture backend for `MediaPlayer` (e.g. "pulse").
	"""

	def __init__(
		self,
		ice_servers: Sequence[str] = (),
		*,
		audio_device: Optional[str] = None,
		audio_format: Optional[str] = None,
	) -> None:
		configuration = RTCConfiguration(
			iceServers=[RTCIceServer(urls=url) for url in ice_servers],
			bundlePolicy=RTCBundlePolicy.MAX_BUNDLE,
		)
		self._pc = RTCPeerConnection(configuration=configuration)
		self._audio_device = audio_device
		self._audio_format = audio_format
		self._player: Optional[MediaPlayer] = None
		self._sink = MediaBlackhole()
		self._pc.on("track", self._on_track)

	@property
	def connection_state(self) -> str:
		return self._pc.connectionState

	@property
	def is_closed(self) -> bool:
		return self._pc.connectionState == "closed"

	def add_audio_source(self) -> None:
		"""Attach the microphone, or an audio transceiver when none is configured."""
		if self._audio_device:
			self._player = MediaPlayer(self._audio_device, format=self._audio_format)
			if self._player.audio is None:
				raise RuntimeError(f"No audio track available from {self._audio_device!r}")
			self._pc.addTrack(self._player.audio)
		else:
			self._pc.addTransceiver("audio", direction="sendrecv")

	def create_channel(self, label: str = CHANNEL_LABEL) -> PeerChannel:
		return PeerChannel(self._pc.createDataChannel(label, ordered=True))

	async def create_offer(self) -> str:
		"""Create the local offer and return its SDP once candidates are gathered."""
		offer = await self._pc.createOffer()
		await self._pc.setLocalDescription(offer)
		return self._pc.localDescription.sdp

	async def apply_answer(self, sdp: str) -> None:
		await self._pc.setRemoteDescription(RTCSessionDescription(sdp=sdp, type="answer"))

	def on_state_change(self, callback: Callable[[str], None]) -> None:
		def _changed() -> None:
			callback(self._pc.connectionState)

		self._pc.on("connectionstatechange", _changed)

	def stop_local_tracks(self) -> None:
		for sender in self._pc.getSenders():
			if sender.track is not None:
				sender.track.stop()

	async def close(self) -> None:
		await self._sink.stop()
		await self._pc.close()

	def _on_track(self, track) -> None:
		# Remote model audio is consumed so the connection keeps flowing.
		if track.kind == "audio":
			logger.debug("Remote audio track received")
			self._sink.addTrack(track)
			asyncio.ensure_future(self._sink.start())


def peer_transport_factory(
	ice_servers: Sequence[str],
	audio_device: Optional[str] = None,
	audio_format: Optional[str] = None,
) -> Callable[[], PeerTransport]:
	"""Return a zero-argument factory creating configured `PeerTransport`s."""

	def _factory() -> PeerTransport:
		return PeerTransport(ice_servers, audio_device=audio_device, audio_format=audio_format)

	return _factory
