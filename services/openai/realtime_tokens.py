"""Mint short-lived credentials for browser or console realtime sessions."""

import logging
from typing import Any, Dict

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class RealtimeTokenService:
    """Create ephemeral realtime sessions through the shared OpenAI client."""

    def __init__(self, client: AsyncOpenAI, model: str, voice: str) -> None:
        """
        Args:
            client: Server-side OpenAI async client; its API key is never returned.
            model: Realtime model the credential is scoped to.
            voice: Voice used by the model for audio output.
        """
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.voice = voice

    async def create_session(self) -> Dict[str, Any]:
        """Return the session JSON, including `client_secret.value`."""
        try:
            session = await self.client.beta.realtime.sessions.create(model=self.model, voice=self.voice)
        except Exception as exc:
            logger.error("Error creating realtime session: %s", exc)
            raise

        logger.info("Minted realtime session for model %s", self.model)
        return session.model_dump(mode="json")
