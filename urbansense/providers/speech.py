"""Speech synthesis (pyttsx3) and recognition (SpeechRecognition) adapters."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Iterable, TextIO

import pyttsx3
import speech_recognition as sr

from ..constants import (
    MSG_RECOGNITION_NO_SPEECH,
    MSG_RECOGNITION_OTHER,
    MSG_RECOGNITION_PERMISSION,
    MSG_RECOGNITION_UNSUPPORTED,
    MSG_SPEECH_FAILED,
    MSG_SPEECH_UNSUPPORTED,
)
from ..errors import SpeechInputError, SpeechOutputError

LOGGER = logging.getLogger(__name__)


def _normalize_lang(value: object) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).strip().replace("_", "-").lower()
    # espeak prefixes its language tags with a priority byte
    return text.lstrip("\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09")


def _voice_languages(voice: object) -> list[str]:
    languages = getattr(voice, "languages", None) or []
    if isinstance(languages, (str, bytes)):
        languages = [languages]
    return [_normalize_lang(lang) for lang in languages if lang]


def select_voice(voices: Iterable[object], lang: str) -> object | None:
    """Pick a voice for ``lang``.

    Exact tag match first, then a match on the primary language subtag.
    ``None`` means the engine default should be used.
    """

    wanted = _normalize_lang(lang)
    primary = wanted.split("-")[0]
    voices = list(voices)
    for voice in voices:
        if wanted in _voice_languages(voice):
            return voice
    for voice in voices:
        if any(code.split("-")[0] == primary for code in _voice_languages(voice)):
            return voice
    return None


class Pyttsx3SpeechOutput:
    """Offline TTS through pyttsx3 with last-call-wins semantics."""

    def __init__(self, engine: object | None = None, rate: int | None = None) -> None:
        self._engine = engine if engine is not None else pyttsx3.init()
        if rate is not None:
            self._engine.setProperty("rate", rate)
        self._voices = list(self._engine.getProperty("voices") or [])
        self._lock = asyncio.Lock()
        self._speaking = False
        self._generation = 0

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    def cancel(self) -> None:
        if self._speaking:
            self._engine.stop()

    def _say(self, text: str, voice_id: str | None) -> None:
        if voice_id is not None:
            self._engine.setProperty("voice", voice_id)
        self._engine.say(text)
        self._engine.runAndWait()

    async def speak(self, text: str, lang: str) -> None:
        if not text:
            return
        self._generation += 1
        generation = self._generation
        self.cancel()
        async with self._lock:
            if generation != self._generation:
                # A newer utterance superseded this one before it started.
                return
            voice = select_voice(self._voices, lang)
            if voice is None and self._voices:
                LOGGER.warning("No voice found for '%s'; using the engine default", lang)
            voice_id = getattr(voice, "id", None) if voice is not None else None
            self._speaking = True
            try:
                await asyncio.to_thread(self._say, text, voice_id)
            except RuntimeError as exc:
                raise SpeechOutputError(
                    "synthesis-failed", MSG_SPEECH_FAILED.format(detail=exc)
                ) from exc
            finally:
                self._speaking = False


class ConsoleSpeechOutput:
    """Writes utterances to a text stream instead of audio."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout
        self._speaking = False

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    def cancel(self) -> None:
        self._speaking = False

    async def speak(self, text: str, lang: str) -> None:
        if not text:
            return
        self._speaking = True
        try:
            print(f"[{lang}] {text}", file=self._stream, flush=True)
        finally:
            self._speaking = False


class UnsupportedSpeechOutput:
    @property
    def is_speaking(self) -> bool:
        return False

    def cancel(self) -> None:
        return None

    async def speak(self, text: str, lang: str) -> None:
        raise SpeechOutputError("unsupported", MSG_SPEECH_UNSUPPORTED)


class SpeechRecognitionInput:
    """Single-utterance recognition via the ``speech_recognition`` package."""

    def __init__(
        self,
        recognizer: sr.Recognizer | None = None,
        microphone: sr.Microphone | None = None,
        *,
        timeout_s: float = 8.0,
        phrase_time_limit_s: float = 10.0,
    ) -> None:
        self._recognizer = recognizer or sr.Recognizer()
        self._microphone = microphone or sr.Microphone()
        self.timeout_s = timeout_s
        self.phrase_time_limit_s = phrase_time_limit_s
        self._listening = False
        self._aborted = False

    @property
    def is_listening(self) -> bool:
        return self._listening

    def abort(self) -> None:
        if self._listening:
            self._aborted = True

    def _recognize(self, lang: str) -> str:
        try:
            with self._microphone as source:
                audio = self._recognizer.listen(
                    source,
                    timeout=self.timeout_s,
                    phrase_time_limit=self.phrase_time_limit_s,
                )
            return self._recognizer.recognize_google(audio, language=lang)
        except (sr.WaitTimeoutError, sr.UnknownValueError) as exc:
            raise SpeechInputError("no-speech", MSG_RECOGNITION_NO_SPEECH) from exc
        except sr.RequestError as exc:
            raise SpeechInputError("other", MSG_RECOGNITION_OTHER.format(detail=exc)) from exc
        except OSError as exc:
            raise SpeechInputError("permission-denied", MSG_RECOGNITION_PERMISSION) from exc

    async def listen(self, lang: str) -> str:
        if self._listening:
            raise SpeechInputError("aborted", "already listening")
        self._listening = True
        self._aborted = False
        try:
            transcript = await asyncio.to_thread(self._recognize, lang)
        finally:
            self._listening = False
        if self._aborted:
            raise SpeechInputError("aborted", "listening aborted")
        return transcript


class KeyboardSpeechInput:
    """Reads a typed "utterance" from stdin; fallback when no microphone exists."""

    def __init__(self, prompt: str = "say> ") -> None:
        self.prompt = prompt
        self._listening = False

    @property
    def is_listening(self) -> bool:
        return self._listening

    def abort(self) -> None:
        return None

    async def listen(self, lang: str) -> str:
        if self._listening:
            raise SpeechInputError("aborted", "already listening")
        self._listening = True
        try:
            text = await asyncio.to_thread(input, f"[{lang}] {self.prompt}")
        except EOFError as exc:
            raise SpeechInputError("aborted", "input closed") from exc
        finally:
            self._listening = False
        if not text.strip():
            raise SpeechInputError("no-speech", MSG_RECOGNITION_NO_SPEECH)
        return text.strip()


class UnsupportedSpeechInput:
    @property
    def is_listening(self) -> bool:
        return False

    def abort(self) -> None:
        return None

    async def listen(self, lang: str) -> str:
        raise SpeechInputError("unsupported", MSG_RECOGNITION_UNSUPPORTED)


def bind_speech_output(kind: str = "tts"):
    """Choose the speech output adapter once at startup."""

    if kind == "console":
        return ConsoleSpeechOutput()
    try:
        return Pyttsx3SpeechOutput()
    except (OSError, RuntimeError) as exc:
        LOGGER.warning("Speech synthesis unavailable: %s", exc)
        return UnsupportedSpeechOutput()


def bind_speech_input(kind: str = "microphone"):
    """Choose the speech input adapter once at startup."""

    if kind == "keyboard":
        return KeyboardSpeechInput()
    if kind == "none":
        return UnsupportedSpeechInput()
    try:
        return SpeechRecognitionInput()
    except (OSError, AttributeError) as exc:
        # sr.Microphone raises AttributeError when PyAudio is not installed
        LOGGER.warning("Speech recognition unavailable: %s", exc)
        return UnsupportedSpeechInput()


__all__ = [
    "ConsoleSpeechOutput",
    "KeyboardSpeechInput",
    "Pyttsx3SpeechOutput",
    "SpeechRecognitionInput",
    "UnsupportedSpeechInput",
    "UnsupportedSpeechOutput",
    "bind_speech_input",
    "bind_speech_output",
    "select_voice",
]
