"""FastAPI routes for the server's runtime toggles."""

from fastapi import APIRouter, Request

from controllers.settings_controller import (
	analysis_setting,
	log_deletion_setting,
	toggle_analysis,
	toggle_log_deletion,
)

router = APIRouter(prefix="/api", tags=["settings"])


@router.post("/toggle-log-deletion")
async def toggle_log_deletion_route(request: Request):
	return toggle_log_deletion(request)


@router.get("/log-deletion-setting")
async def log_deletion_setting_route(request: Request):
	return log_deletion_setting(request)


@router.post("/toggle-analysis")
async def toggle_analysis_route(request: Request):
	return toggle_analysis(request)


@router.get("/analysis-setting")
async def analysis_setting_route(request: Request):
	return analysis_setting(request)
