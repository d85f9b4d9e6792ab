"""Public API for the UrbanSense assistant."""

from .analysis import (
    AnalysisClient,
    AnalysisResult,
    DirectStrategy,
    MockStrategy,
    ProxiedStrategy,
    select_strategy,
)
from .commands import VoiceCommandResolver, resolve_command
from .config import AppConfig, load_config
from .errors import (
    AnalysisError,
    CaptureError,
    LocationError,
    SpeechInputError,
    SpeechOutputError,
    UrbanSenseError,
)
from .gemini_client import GeminiClient
from .locales import LOCALES, Locale, available_locales, get_locale
from .logging_utils import append_event, build_log_event, ensure_log_dir
from .orchestrator import Orchestrator
from .postprocess import postprocess_response
from .preferences import JsonPreferenceStore, MemoryPreferenceStore, Preferences
from .prompt_builder import BuiltPrompt, build_prompt, build_request
from .types import AnalysisRequest, Coordinates, Session, SessionSnapshot, SessionState, Task

__all__ = [
    "AnalysisClient",
    "AnalysisError",
    "AnalysisRequest",
    "AnalysisResult",
    "AppConfig",
    "BuiltPrompt",
    "CaptureError",
    "Coordinates",
    "DirectStrategy",
    "GeminiClient",
    "JsonPreferenceStore",
    "LOCALES",
    "Locale",
    "LocationError",
    "MemoryPreferenceStore",
    "MockStrategy",
    "Orchestrator",
    "Preferences",
    "ProxiedStrategy",
    "Session",
    "SessionSnapshot",
    "SessionState",
    "SpeechInputError",
    "SpeechOutputError",
    "Task",
    "UrbanSenseError",
    "VoiceCommandResolver",
    "append_event",
    "available_locales",
    "build_log_event",
    "build_prompt",
    "build_request",
    "ensure_log_dir",
    "get_locale",
    "load_config",
    "postprocess_response",
    "resolve_command",
    "select_strategy",
]
