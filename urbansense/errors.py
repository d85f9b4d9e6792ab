"""Typed provider errors.

Each error carries a machine-readable ``reason`` and a short ``message`` that
is safe to show and speak to the user.
"""

from __future__ import annotations

from typing import Literal

CaptureReason = Literal["permission-denied", "no-device", "unsupported", "frame-unavailable"]
AnalysisReason = Literal[
    "invalid-credential",
    "service-unavailable",
    "not-authorized",
    "network",
    "empty-result",
    "timeout",
    "other",
]
SpeechOutputReason = Literal["synthesis-failed", "unsupported"]
SpeechInputReason = Literal["permission-denied", "no-speech", "aborted", "unsupported", "other"]
LocationReason = Literal["permission-denied", "position-unavailable", "timeout", "unsupported"]


class UrbanSenseError(Exception):
    """Base class for errors that resolve to a user-presentable message."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    @property
    def is_benign(self) -> bool:
        return False


class CaptureError(UrbanSenseError):
    reason: CaptureReason


class AnalysisError(UrbanSenseError):
    reason: AnalysisReason


class SpeechOutputError(UrbanSenseError):
    reason: SpeechOutputReason


class SpeechInputError(UrbanSenseError):
    reason: SpeechInputReason

    @property
    def is_benign(self) -> bool:
        return self.reason == "aborted"


class LocationError(UrbanSenseError):
    reason: LocationReason


__all__ = [
    "UrbanSenseError",
    "CaptureError",
    "AnalysisError",
    "SpeechOutputError",
    "SpeechInputError",
    "LocationError",
]
