"""Caption webcam frames using OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict

from openai import AsyncOpenAI

from services.openai.media_inputs import build_caption_inputs
from services.openai.response_parser import extract_text, extract_usage
from services.realtime.prompts import caption_prompt

DEFAULT_CAPTION_MODEL = "gpt-4o-mini"


class FrameCaptioner:
    """Produce a short natural-language caption for one image."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_CAPTION_MODEL) -> None:
        """Initialize the captioner with a shared OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def caption(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Return the caption, latency and token usage for an image."""
        start_time = time.time()
        inputs = build_caption_inputs(caption_prompt(), image_bytes, mime_type)
        try:
            response = await self.client.responses.create(model=self.model, input=inputs)
        except Exception as exc:
            logging.error("Error during OpenAI Responses API call: %s", exc)
            raise

        caption = extract_text(response).strip()
        if not caption:
            logging.error("Captioning response did not include text: %r", response)
            raise RuntimeError("Captioning response did not include text.")

        result: Dict[str, Any] = {"caption": caption, "latency": time.time() - start_time}
        result.update(extract_usage(response))
        return result
