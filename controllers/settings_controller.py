"""Runtime toggles for caption log deletion and frame analysis."""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import Request

from utils.settings import RuntimeToggles

logger = logging.getLogger(__name__)


def _toggles(request: Request) -> RuntimeToggles:
	return request.app.state.toggles


def log_deletion_setting(request: Request) -> Dict[str, bool]:
	return {"shouldDeleteLogs": _toggles(request).delete_logs_on_exit}


def toggle_log_deletion(request: Request) -> Dict[str, bool]:
	"""Flip whether the caption log is deleted when the server shuts down."""
	toggles = _toggles(request)
	toggles.delete_logs_on_exit = not toggles.delete_logs_on_exit
	logger.info("Caption log deletion on exit: %s", toggles.delete_logs_on_exit)
	return log_deletion_setting(request)


def analysis_setting(request: Request) -> Dict[str, bool]:
	return {"isAnalysisEnabled": _toggles(request).frame_analysis_enabled}


def toggle_analysis(request: Request) -> Dict[str, bool]:
	"""Flip whether uploaded frames are sent to the captioning backend."""
	toggles = _toggles(request)
	toggles.frame_analysis_enabled = not toggles.frame_analysis_enabled
	logger.info("Frame analysis enabled: %s", toggles.frame_analysis_enabled)
	return analysis_setting(request)
