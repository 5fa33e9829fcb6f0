from fastapi import APIRouter, Request

from controllers.token_controller import create_token

router = APIRouter()


@router.get("/token")
async def token_route(request: Request):
	"""Mint a short-lived realtime credential."""
	return await create_token(request)
