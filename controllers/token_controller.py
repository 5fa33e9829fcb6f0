"""Ephemeral credential minting for realtime sessions."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


async def create_token(request: Request) -> Any:
	"""Return the upstream realtime session JSON, or a 500 error payload."""
	token_service = request.app.state.token_service
	try:
		return await token_service.create_session()
	except Exception as exc:
		logger.error("Token generation error: %s", exc)
		return JSONResponse(status_code=500, content={"error": "Failed to generate token"})
