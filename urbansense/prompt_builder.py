"""Prompt builder.

Turns a task plus optional context (the FindShop user query and the current
coordinates) into the text prompt sent alongside the captured frame. The
builder stays deterministic and exposes debug metadata for inspection.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .constants import (
    BASE_SYSTEM_INSTRUCTION,
    COORDINATES_TEMPLATE,
    TASK_INSTRUCTIONS,
    USER_QUERY_TEMPLATE,
)
from .types import AnalysisRequest, Coordinates, Task


@dataclass(frozen=True)
class BuiltPrompt:
    """Structured prompt payload."""

    task: Task
    text: str
    user_query: str | None
    coordinates: Coordinates | None
    debug: dict[str, object]


def task_prompt(task: Task) -> str:
    """Base instruction plus the task-specific instruction."""

    return f"{BASE_SYSTEM_INSTRUCTION} {TASK_INSTRUCTIONS[task.value]}"


def prompt_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def build_prompt(
    task: Task,
    *,
    user_query: str | None = None,
    coordinates: Coordinates | None = None,
) -> BuiltPrompt:
    """Compose the full prompt for ``task``.

    The user query is only honoured for :attr:`Task.FIND_SHOP`.
    """

    text = task_prompt(task)
    query = user_query.strip() if user_query else None
    if task is not Task.FIND_SHOP:
        query = None
    if query:
        text += USER_QUERY_TEMPLATE.format(query=query)
    if coordinates is not None:
        text += COORDINATES_TEMPLATE.format(
            latitude=coordinates.latitude, longitude=coordinates.longitude
        )

    debug = {
        "task": task.value,
        "has_user_query": bool(query),
        "has_coordinates": coordinates is not None,
        "prompt_chars": len(text),
        "prompt_hash": prompt_hash(text),
    }
    return BuiltPrompt(
        task=task,
        text=text,
        user_query=query,
        coordinates=coordinates,
        debug=debug,
    )


def build_request(
    task: Task,
    base64_image: str,
    *,
    user_query: str | None = None,
    coordinates: Coordinates | None = None,
) -> AnalysisRequest:
    prompt = build_prompt(task, user_query=user_query, coordinates=coordinates)
    return AnalysisRequest(
        task=task,
        base64_image=base64_image,
        prompt=prompt.text,
        user_query=prompt.user_query,
        coordinates=coordinates,
    )


__all__ = ["BuiltPrompt", "build_prompt", "build_request", "prompt_hash", "task_prompt"]
