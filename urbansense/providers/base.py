"""Async contracts for the external collaborators the orchestrator drives.

Concrete adapters live next to this module; each contract also has an
``Unsupported*`` variant so capability detection happens once at startup.
"""

from __future__ import annotations

from typing import Callable, Protocol

from ..errors import CaptureError
from ..types import Coordinates

CaptureErrorCallback = Callable[[CaptureError], None]


class CaptureProvider(Protocol):
    async def start(self, on_error: CaptureErrorCallback | None = None) -> bool:
        """
        Acquire the stream once. Acquisition failure is reported through
        ``on_error`` exactly once and ``False`` is returned.
        """
        ...

    async def capture_frame(self) -> str | None:
        """
        Base64 JPEG of the most recent frame, or ``None`` if no frame is ready.
        """
        ...

    def close(self) -> None: ...


class SpeechOutput(Protocol):
    @property
    def is_speaking(self) -> bool: ...

    async def speak(self, text: str, lang: str) -> None:
        """
        Speak ``text``; a newer call interrupts this one, which then returns
        normally. Raises :class:`~urbansense.errors.SpeechOutputError` on
        synthesis failure.
        """
        ...

    def cancel(self) -> None: ...


class SpeechInput(Protocol):
    @property
    def is_listening(self) -> bool: ...

    async def listen(self, lang: str) -> str:
        """
        Recognize a single utterance. Raises
        :class:`~urbansense.errors.SpeechInputError` with reason
        ``permission-denied``, ``no-speech``, ``aborted``, ``unsupported`` or
        ``other``. A call made while already listening raises ``aborted``.
        """
        ...

    def abort(self) -> None: ...


class LocationProvider(Protocol):
    async def request_location(self) -> Coordinates:
        """
        Fresh fix, never cached. Raises :class:`~urbansense.errors.LocationError`.
        """
        ...
