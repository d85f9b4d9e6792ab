"""Gemini client wrapper shared by the direct strategy and the proxy server."""

from __future__ import annotations

import base64
import binascii
import time

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from .config import AppConfig
from .constants import IMAGE_MIME_TYPE, MSG_DIRECT_FAILED, MSG_INVALID_CREDENTIAL
from .errors import AnalysisError

_CREDENTIAL_HINTS = ("api key", "api_key", "permission", "credential", "unauthenticated")


class GeminiClient:
    """Minimal async Gemini wrapper for (image, prompt) analysis.

    No retries are attempted; a failure is reported once and the caller
    decides what the user hears.
    """

    def __init__(self, cfg: AppConfig, client: genai.Client | None = None):
        self.cfg = cfg
        if client is None and cfg.has_credential:
            client = genai.Client(api_key=cfg.api_key)
        self._client = client

    @property
    def available(self) -> bool:
        return self._client is not None

    def _generate_config(self) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            thinking_config=genai_types.ThinkingConfig(
                thinking_budget=self.cfg.thinking_budget
            ),
        )

    async def generate(self, base64_image: str, prompt: str) -> tuple[str, dict[str, object]]:
        """Send the frame and prompt; return raw model text and call metadata.

        SDK exceptions propagate so each caller can map them to its own
        surface (a spoken message or an HTTP status).
        """

        if self._client is None:
            raise AnalysisError("invalid-credential", MSG_INVALID_CREDENTIAL)
        try:
            image_bytes = base64.b64decode(base64_image, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AnalysisError("other", MSG_DIRECT_FAILED) from exc

        meta: dict[str, object] = {
            "provider": "google-genai",
            "model": self.cfg.model_name,
            "thinking_budget": self.cfg.thinking_budget,
        }
        start = time.perf_counter()
        response = await self._client.aio.models.generate_content(
            model=self.cfg.model_name,
            contents=[
                genai_types.Part.from_bytes(data=image_bytes, mime_type=IMAGE_MIME_TYPE),
                prompt,
            ],
            config=self._generate_config(),
        )
        text = self._extract_text(response)
        meta["latency_ms"] = int((time.perf_counter() - start) * 1000)
        meta["raw_length_chars"] = len(text)
        return text, meta

    @staticmethod
    def _extract_text(response: object) -> str:
        if response is None:
            return ""
        # google-genai responses usually expose .text
        text = getattr(response, "text", None)
        if isinstance(text, str):
            return text
        return ""


def is_credential_error(exc: BaseException) -> bool:
    """True when ``exc`` means the API key is missing, invalid or lacks permission."""

    if isinstance(exc, AnalysisError):
        return exc.reason == "invalid-credential"
    if not isinstance(exc, genai_errors.APIError):
        return False
    if exc.code in (401, 403):
        return True
    message = f"{exc.status or ''} {exc.message or ''}".lower()
    return exc.code == 400 and any(hint in message for hint in _CREDENTIAL_HINTS)


__all__ = ["GeminiClient", "is_credential_error"]
