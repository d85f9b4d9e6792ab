"""Analysis dispatch: mock, direct Gemini call, or the trusted proxy.

Strategy selection is a pure function of (mock mode, credential presence,
deployment) and is evaluated once per request. Every strategy failure is
turned into a user-presentable string; nothing raises past
:meth:`AnalysisClient.analyze`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Protocol

import requests

from .config import AppConfig
from .constants import (
    MOCK_RESPONSES,
    MSG_ANALYSIS_TIMEOUT,
    MSG_CONNECTION_FAILED,
    MSG_DIRECT_FAILED,
    MSG_EMPTY_RESPONSE,
    MSG_INVALID_CREDENTIAL,
    MSG_NOT_AUTHORIZED,
    MSG_SERVICE_UNAVAILABLE,
    MSG_UNEXPECTED_SERVICE_ERROR,
)
from .errors import AnalysisError
from .gemini_client import GeminiClient, is_credential_error
from .postprocess import postprocess_response
from .types import AnalysisRequest, Deployment, StrategyName

LOGGER = logging.getLogger(__name__)


def select_strategy(
    *, mock_mode: bool, has_credential: bool, deployment: Deployment
) -> StrategyName:
    """Pick the invocation strategy in fixed priority order."""

    if mock_mode:
        return "mock"
    if has_credential and deployment == "development":
        return "direct"
    return "proxied"


@dataclass(frozen=True)
class AnalysisResult:
    text: str
    strategy: StrategyName
    error: str | None = None
    latency_ms: int | None = None
    meta: dict[str, object] = field(default_factory=dict)


class AnalysisStrategy(Protocol):
    name: StrategyName

    async def run(self, request: AnalysisRequest) -> tuple[str, dict[str, object]]: ...


class MockStrategy:
    """Canned per-task answers after a fixed delay; never fails."""

    name: StrategyName = "mock"

    def __init__(
        self,
        delay_s: float,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.delay_s = delay_s
        self._sleep = sleep

    async def run(self, request: AnalysisRequest) -> tuple[str, dict[str, object]]:
        if self.delay_s > 0:
            await self._sleep(self.delay_s)
        return MOCK_RESPONSES[request.task.value], {"simulated_delay_s": self.delay_s}


class DirectStrategy:
    """Calls Gemini from this process with the locally held credential."""

    name: StrategyName = "direct"

    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    async def run(self, request: AnalysisRequest) -> tuple[str, dict[str, object]]:
        try:
            raw_text, meta = await self.client.generate(request.base64_image, request.prompt)
        except Exception as exc:  # all SDK failures resolve to a spoken message
            LOGGER.error("Direct Gemini call failed: %s", exc)
            if is_credential_error(exc):
                raise AnalysisError("invalid-credential", MSG_INVALID_CREDENTIAL) from exc
            raise AnalysisError("other", MSG_DIRECT_FAILED) from exc
        if not raw_text.strip():
            raise AnalysisError("empty-result", MSG_EMPTY_RESPONSE)
        return postprocess_response(raw_text), meta


class ProxiedStrategy:
    """Posts ``{base64Image, prompt}`` to the intermediary holding the key."""

    name: StrategyName = "proxied"

    def __init__(
        self,
        url: str,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    def _post(self, payload: dict[str, str]) -> requests.Response:
        return self._session.post(self.url, json=payload, timeout=self.timeout_s)

    async def run(self, request: AnalysisRequest) -> tuple[str, dict[str, object]]:
        payload = {"base64Image": request.base64_image, "prompt": request.prompt}
        try:
            response = await asyncio.to_thread(self._post, payload)
        except requests.exceptions.RequestException as exc:
            LOGGER.error("Network error calling analysis proxy: %s", exc)
            raise AnalysisError("network", MSG_CONNECTION_FAILED) from exc

        meta: dict[str, object] = {"http_status": response.status_code, "url": self.url}
        if not response.ok:
            LOGGER.error(
                "Analysis proxy responded with %s: %s",
                response.status_code,
                self._error_detail(response),
            )
            if response.status_code >= 500:
                raise AnalysisError("service-unavailable", MSG_SERVICE_UNAVAILABLE)
            if response.status_code in (401, 403):
                raise AnalysisError("not-authorized", MSG_NOT_AUTHORIZED)
            raise AnalysisError("other", MSG_UNEXPECTED_SERVICE_ERROR)

        try:
            data = response.json()
        except ValueError:
            LOGGER.warning("Analysis proxy returned a non-JSON body")
            raise AnalysisError("empty-result", MSG_EMPTY_RESPONSE) from None
        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise AnalysisError("empty-result", MSG_EMPTY_RESPONSE)
        return postprocess_response(text), meta

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"status {response.status_code}, unparseable error body"
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return f"status {response.status_code}"


class AnalysisClient:
    """Resolves a strategy per request and returns descriptive text."""

    def __init__(
        self,
        cfg: AppConfig,
        *,
        strategies: Mapping[StrategyName, AnalysisStrategy] | None = None,
    ) -> None:
        self.cfg = cfg
        if strategies is None:
            built: dict[StrategyName, AnalysisStrategy] = {
                "mock": MockStrategy(cfg.mock_delay_s),
                "proxied": ProxiedStrategy(
                    cfg.proxy_url,
                    timeout_s=cfg.analysis_timeout_s if cfg.analysis_timeout_s > 0 else None,
                ),
            }
            if cfg.has_credential:
                built["direct"] = DirectStrategy(GeminiClient(cfg))
            strategies = built
        self._strategies = dict(strategies)

    def strategy_for(self, mock_mode: bool | None = None) -> StrategyName:
        return select_strategy(
            mock_mode=self.cfg.mock_mode if mock_mode is None else mock_mode,
            has_credential=self.cfg.has_credential,
            deployment=self.cfg.deployment,
        )

    async def analyze(self, request: AnalysisRequest, *, mock_mode: bool | None = None) -> str:
        result = await self.analyze_detailed(request, mock_mode=mock_mode)
        return result.text

    async def analyze_detailed(
        self, request: AnalysisRequest, *, mock_mode: bool | None = None
    ) -> AnalysisResult:
        name = self.strategy_for(mock_mode)
        strategy = self._strategies.get(name)
        start = time.perf_counter()
        if strategy is None:
            LOGGER.error("No %s analysis strategy is configured", name)
            return AnalysisResult(text=MSG_DIRECT_FAILED, strategy=name, error="other")

        timeout = self.cfg.analysis_timeout_s if self.cfg.analysis_timeout_s > 0 else None
        try:
            text, meta = await asyncio.wait_for(strategy.run(request), timeout=timeout)
            error: str | None = None
        except asyncio.TimeoutError:
            LOGGER.warning("%s analysis timed out after %.1fs", name, timeout)
            text, meta, error = MSG_ANALYSIS_TIMEOUT, {}, "timeout"
        except AnalysisError as exc:
            text, meta, error = exc.message, {}, exc.reason

        latency_ms = int((time.perf_counter() - start) * 1000)
        return AnalysisResult(
            text=text, strategy=name, error=error, latency_ms=latency_ms, meta=meta
        )


__all__ = [
    "AnalysisClient",
    "AnalysisResult",
    "AnalysisStrategy",
    "DirectStrategy",
    "MockStrategy",
    "ProxiedStrategy",
    "select_strategy",
]
