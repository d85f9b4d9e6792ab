"""Lightweight structured logging helpers."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from .config import AppConfig

LOG_FORMAT = "[%(asctime)s] %(levelname)s:%(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def ensure_log_dir(path: str) -> None:
    Path(path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def append_event(path: str, event: dict, *, max_bytes: int) -> None:
    ensure_log_dir(path)
    target = Path(path).expanduser()
    if target.exists() and target.stat().st_size > max_bytes:
        rotated = target.with_name(f"{target.stem}-{int(time.time())}{target.suffix}")
        target.rename(rotated)
    with target.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(event, ensure_ascii=False) + "\n")


def build_log_event(
    *,
    cfg: AppConfig,
    task: str,
    strategy: str,
    locale: str,
    latency_ms: int | None,
    error: str | None,
    has_location: bool,
    has_user_query: bool,
    prompt_hash: str | None,
    response_preview: str,
) -> dict:
    return {
        "ts": time.time(),
        "task": task,
        "strategy": strategy,
        "locale": locale,
        "latency_ms": latency_ms,
        "error": error,
        "has_location": has_location,
        "has_user_query": has_user_query,
        "prompt_hash": prompt_hash,
        "response_preview": response_preview[:80],
        "model": cfg.model_name,
        "deployment": cfg.deployment,
    }


__all__ = ["LOG_FORMAT", "append_event", "build_log_event", "configure_logging", "ensure_log_dir"]
