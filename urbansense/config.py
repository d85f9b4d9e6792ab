"""Configuration loader for the UrbanSense assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, cast

from .constants import (
    API_KEY_ENV_CANDIDATES,
    DEFAULT_ANALYSIS_TIMEOUT_S,
    DEFAULT_CAMERA_INDEX,
    DEFAULT_DEBUG,
    DEFAULT_DEPLOYMENT,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_LANGUAGE,
    DEFAULT_LOCATION_TIMEOUT_S,
    DEFAULT_LOCATION_URL,
    DEFAULT_LOG_MAX_BYTES,
    DEFAULT_LOG_PATH,
    DEFAULT_MOCK_DELAY_S,
    DEFAULT_MODEL_NAME,
    DEFAULT_PREFS_PATH,
    DEFAULT_PROXY_URL,
    DEFAULT_THINKING_BUDGET,
    DEPLOYMENTS,
)
from .types import Deployment


@dataclass(frozen=True)
class AppConfig:
    model_name: str
    api_key: str | None
    deployment: Deployment
    proxy_url: str
    mock_mode: bool
    language: str
    mock_delay_s: float
    analysis_timeout_s: float
    location_timeout_s: float
    location_url: str
    fetch_location: bool
    camera_index: int
    jpeg_quality: int
    thinking_budget: int
    prefs_path: str | None
    log_path: str | None
    log_max_bytes: int
    debug: bool

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_deployment(value: str | None) -> Deployment:
    if value is None:
        return cast(Deployment, DEFAULT_DEPLOYMENT)
    cleaned = value.strip().lower()
    if cleaned in {"dev", "local"}:
        cleaned = "development"
    elif cleaned == "prod":
        cleaned = "production"
    if cleaned in DEPLOYMENTS:
        return cast(Deployment, cleaned)
    return cast(Deployment, DEFAULT_DEPLOYMENT)


def _optional_path(value: str | None, default: str) -> str | None:
    if value is None:
        return default
    return value.strip() or None


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from environment variables.

    Args:
        env: Optional mapping of environment variables for easier testing.

    Returns:
        A fully populated :class:`AppConfig` with safe defaults. Setting
        ``URBANSENSE_PREFS_PATH`` or ``URBANSENSE_LOG_PATH`` to an empty string
        disables preference persistence or the event log.
    """

    environment = env if env is not None else os.environ

    api_key: str | None = None
    for key_name in API_KEY_ENV_CANDIDATES:
        candidate = environment.get(key_name)
        if candidate:
            api_key = candidate
            break

    return AppConfig(
        model_name=environment.get("URBANSENSE_MODEL_NAME", DEFAULT_MODEL_NAME),
        api_key=api_key,
        deployment=_parse_deployment(environment.get("URBANSENSE_DEPLOYMENT")),
        proxy_url=environment.get("URBANSENSE_PROXY_URL", DEFAULT_PROXY_URL),
        mock_mode=_parse_bool(environment.get("URBANSENSE_MOCK_MODE"), False),
        language=environment.get("URBANSENSE_LANGUAGE", DEFAULT_LANGUAGE),
        mock_delay_s=_parse_float(
            environment.get("URBANSENSE_MOCK_DELAY_S"), DEFAULT_MOCK_DELAY_S
        ),
        analysis_timeout_s=_parse_float(
            environment.get("URBANSENSE_ANALYSIS_TIMEOUT_S"), DEFAULT_ANALYSIS_TIMEOUT_S
        ),
        location_timeout_s=_parse_float(
            environment.get("URBANSENSE_LOCATION_TIMEOUT_S"), DEFAULT_LOCATION_TIMEOUT_S
        ),
        location_url=environment.get("URBANSENSE_LOCATION_URL", DEFAULT_LOCATION_URL),
        fetch_location=_parse_bool(environment.get("URBANSENSE_FETCH_LOCATION"), True),
        camera_index=_parse_int(
            environment.get("URBANSENSE_CAMERA_INDEX"), DEFAULT_CAMERA_INDEX
        ),
        jpeg_quality=_parse_int(
            environment.get("URBANSENSE_JPEG_QUALITY"), DEFAULT_JPEG_QUALITY
        ),
        thinking_budget=_parse_int(
            environment.get("URBANSENSE_THINKING_BUDGET"), DEFAULT_THINKING_BUDGET
        ),
        prefs_path=_optional_path(environment.get("URBANSENSE_PREFS_PATH"), DEFAULT_PREFS_PATH),
        log_path=_optional_path(environment.get("URBANSENSE_LOG_PATH"), DEFAULT_LOG_PATH),
        log_max_bytes=_parse_int(
            environment.get("URBANSENSE_LOG_MAX_BYTES"), DEFAULT_LOG_MAX_BYTES
        ),
        debug=_parse_bool(environment.get("URBANSENSE_DEBUG"), DEFAULT_DEBUG),
    )
