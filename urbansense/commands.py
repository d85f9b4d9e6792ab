"""Keyword matcher that maps a spoken transcript to a task."""

from __future__ import annotations

from .locales import Locale, get_locale
from .types import Task


def normalize_transcript(transcript: str) -> str:
    return " ".join(transcript.casefold().split())


def resolve_command(transcript: str | None, locale: Locale | str) -> Task | None:
    """Resolve ``transcript`` to a :class:`Task` using the locale vocabulary.

    Rules are checked in their declared order and the first rule with a
    phrase contained in the transcript wins. Returns ``None`` when nothing
    matches.
    """

    if not transcript:
        return None
    if isinstance(locale, str):
        locale = get_locale(locale)

    text = normalize_transcript(transcript)
    if not text:
        return None
    for task, phrases in locale.commands:
        for phrase in phrases:
            if phrase.casefold() in text:
                return task
    return None


class VoiceCommandResolver:
    """Thin object wrapper so the orchestrator can take a resolver dependency."""

    def resolve(self, transcript: str | None, locale: Locale | str) -> Task | None:
        return resolve_command(transcript, locale)


__all__ = ["VoiceCommandResolver", "normalize_transcript", "resolve_command"]
