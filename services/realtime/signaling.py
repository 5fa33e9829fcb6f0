"""Credential fetch and SDP offer/answer exchange for realtime sessions."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from services.realtime.errors import SignalingError

logger = logging.getLogger(__name__)


class SignalingClient:
	"""Talk to the token endpoint and the remote realtime signaling endpoint.

	Args:
		token_url: URL of the local server's `GET /token` route.
		realtime_base_url: Remote realtime endpoint receiving the SDP offer.
		model: Realtime model id appended as the `model` query parameter.
		timeout: Upper bound in seconds for each HTTP exchange.
	"""

	def __init__(self, token_url: str, realtime_base_url: str, model: str, timeout: float = 15.0) -> None:
		self.token_url = token_url
		self.realtime_base_url = realtime_base_url
		self.model = model
		self.timeout = timeout

	async def fetch_client_secret(self) -> str:
		"""Return the short-lived credential minted by the token endpoint."""
		try:
			async with httpx.AsyncClient(timeout=self.timeout) as client:
				resp = await client.get(self.token_url)
				resp.raise_for_status()
				data: Dict[str, Any] = resp.json()
		except (httpx.HTTPError, ValueError) as exc:
			raise SignalingError(f"Token request failed: {exc}") from exc

		secret = (data.get("client_secret") or {}).get("value") if isinstance(data, dict) else None
		if not secret:
			raise SignalingError("Token response did not include client_secret.value")
		return secret

	async def exchange(self, offer_sdp: str, credential: str) -> str:
		"""Send the local offer and return the remote answer SDP."""
		headers = {
			"Authorization": f"Bearer {credential}",
			"Content-Type": "application/sdp",
		}
		try:
			async with httpx.AsyncClient(timeout=self.timeout) as client:
				resp = await client.post(
					self.realtime_base_url,
					params={"model": self.model},
					content=offer_sdp,
					headers=headers,
				)
				resp.raise_for_status()
		except httpx.HTTPError as exc:
			raise SignalingError(f"SDP exchange failed: {exc}") from exc

		answer = resp.text
		if not answer.strip():
			raise SignalingError("SDP exchange returned an empty answer")
		logger.debug("Received %d bytes of answer SDP", len(answer))
		return answer
