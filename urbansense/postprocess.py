"""Response post-processing so model output reads well aloud."""

from __future__ import annotations

import re

from .constants import MSG_EMPTY_RESPONSE


_MARKDOWN_BLOCK_PATTERN = re.compile(r"```.*?```", re.DOTALL)
_EMPHASIS_PATTERN = re.compile(r"(\*\*|__|\*|`)")


def _strip_markdown(text: str) -> str:
    cleaned = re.sub(_MARKDOWN_BLOCK_PATTERN, "", text)
    cleaned_lines = []
    for line in cleaned.splitlines():
        line = line.lstrip("-*#> ")
        cleaned_lines.append(line)
    return _EMPHASIS_PATTERN.sub("", " ".join(cleaned_lines))


def postprocess_response(text: str | None) -> str:
    """Strip markdown and collapse whitespace; empty text becomes a fallback."""

    if not text:
        return MSG_EMPTY_RESPONSE
    cleaned = " ".join(_strip_markdown(text).split())
    if not cleaned:
        return MSG_EMPTY_RESPONSE
    return cleaned


__all__ = ["postprocess_response"]
