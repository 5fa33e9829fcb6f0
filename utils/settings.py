"""Environment-driven configuration for the server and the realtime client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_ICE_SERVERS = ("stun:stun.l.google.com:19302",)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be a number") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer") from exc


@dataclass(frozen=True)
class ServerSettings:
    """Settings read once when the FastAPI app starts."""

    openai_api_key: str
    realtime_model: str = DEFAULT_REALTIME_MODEL
    realtime_voice: str = "verse"
    caption_model: str = "gpt-4o-mini"
    delete_logs_on_exit: bool = True
    frame_analysis_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerSettings":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY environment variable is not set")
        return cls(
            openai_api_key=api_key,
            realtime_model=os.getenv("REALTIME_MODEL") or DEFAULT_REALTIME_MODEL,
            realtime_voice=os.getenv("REALTIME_VOICE") or "verse",
            caption_model=os.getenv("CAPTION_MODEL") or "gpt-4o-mini",
            delete_logs_on_exit=_env_bool("DELETE_LOGS_ON_EXIT", True),
            frame_analysis_enabled=_env_bool("FRAME_ANALYSIS_ENABLED", True),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
        )


@dataclass
class RuntimeToggles:
    """Server flags that can be flipped while the app runs."""

    delete_logs_on_exit: bool = True
    frame_analysis_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "RuntimeToggles":
        return cls(
            delete_logs_on_exit=settings.delete_logs_on_exit,
            frame_analysis_enabled=settings.frame_analysis_enabled,
        )


@dataclass(frozen=True)
class ClientSettings:
    """Settings for the realtime console client."""

    server_url: str = "http://localhost:8000"
    realtime_base_url: str = "https://api.openai.com/v1/realtime"
    realtime_model: str = DEFAULT_REALTIME_MODEL
    ice_servers: Tuple[str, ...] = field(default=DEFAULT_ICE_SERVERS)
    audio_device: Optional[str] = None
    audio_format: Optional[str] = None
    signaling_timeout: float = 15.0
    restart_max_attempts: int = 3
    restart_backoff: float = 1.0
    capture_interval: float = 2.0
    log_level: str = "INFO"

    @property
    def token_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/token"

    @property
    def analyze_frame_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/api/analyze-frame"

    @classmethod
    def from_env(cls) -> "ClientSettings":
        ice_raw = os.getenv("ICE_SERVERS")
        ice_servers = (
            tuple(url.strip() for url in ice_raw.split(",") if url.strip())
            if ice_raw is not None
            else DEFAULT_ICE_SERVERS
        )
        return cls(
            server_url=os.getenv("REALTIME_SERVER_URL") or "http://localhost:8000",
            realtime_base_url=os.getenv("REALTIME_BASE_URL") or "https://api.openai.com/v1/realtime",
            realtime_model=os.getenv("REALTIME_MODEL") or DEFAULT_REALTIME_MODEL,
            ice_servers=ice_servers,
            audio_device=os.getenv("AUDIO_DEVICE") or None,
            audio_format=os.getenv("AUDIO_FORMAT") or None,
            signaling_timeout=_env_float("SIGNALING_TIMEOUT", 15.0),
            restart_max_attempts=_env_int("RESTART_MAX_ATTEMPTS", 3),
            restart_backoff=_env_float("RESTART_BACKOFF", 1.0),
            capture_interval=_env_float("CAPTURE_INTERVAL", 2.0),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
        )
