"""Data contract definitions for the UrbanSense assistant.

Everything here is immutable except :class:`Session`, which is owned and
mutated exclusively by the :class:`~urbansense.orchestrator.Orchestrator`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class Task(str, Enum):
    """Assistance intents the user can request."""

    FIND_BUS = "find_bus"
    CROSS_ROAD = "cross_road"
    EXPLORE = "explore"
    FIND_SHOP = "find_shop"


SessionState = Literal[
    "initializing",
    "idle",
    "capturing",
    "awaiting_analysis",
    "speaking",
    "listening_for_command",
    "listening_for_subquery",
    "error",
]
StrategyName = Literal["mock", "direct", "proxied"]
Deployment = Literal["development", "production"]

BUSY_STATES: frozenset[str] = frozenset(
    {
        "initializing",
        "capturing",
        "awaiting_analysis",
        "speaking",
        "listening_for_command",
        "listening_for_subquery",
        "error",
    }
)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class AnalysisRequest:
    """A single (image, prompt) pair sent to the analysis strategies.

    ``user_query`` is only set by the FindShop sub-dialog.
    """

    task: Task
    base64_image: str
    prompt: str
    user_query: str | None = None
    coordinates: Coordinates | None = None


@dataclass
class Session:
    active_locale: str
    mock_mode: bool
    state: SessionState = "idle"
    last_status: str = ""
    last_error: str | None = None
    pending_subdialog_task: Task | None = None
    busy_task: Task | None = None
    last_response: str | None = None
    location: Coordinates | None = None

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for status displays."""

    state: SessionState
    active_locale: str
    mock_mode: bool
    status: str
    last_error: str | None
    pending_subdialog_task: Task | None
    busy_task: Task | None
    last_response: str | None
    has_location: bool
