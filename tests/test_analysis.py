import asyncio
import base64
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests
from google.genai import errors as genai_errors

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fakes import make_config  # noqa: E402
from urbansense import (  # noqa: E402
    AnalysisClient,
    AnalysisError,
    DirectStrategy,
    GeminiClient,
    MockStrategy,
    ProxiedStrategy,
    Task,
    build_request,
    select_strategy,
)
from urbansense.constants import (  # noqa: E402
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
from urbansense.gemini_client import is_credential_error  # noqa: E402

IMAGE = base64.b64encode(b"\xff\xd8fake-jpeg").decode("ascii")


def _request(task=Task.FIND_BUS):
    return build_request(task, IMAGE)


class FakeResponse:
    def __init__(self, status_code, payload=None, raw=None):
        self.status_code = status_code
        self._payload = payload
        self._raw = raw

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raw is not None:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeGemini:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error

    async def generate(self, base64_image, prompt):
        if self.error is not None:
            raise self.error
        return self.text, {"provider": "fake"}


class StaticStrategy:
    def __init__(self, name, text="ok", delay_s=0.0):
        self.name = name
        self.text = text
        self.delay_s = delay_s
        self.calls = 0

    async def run(self, request):
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return self.text, {}


@pytest.mark.parametrize(
    "mock_mode, has_credential, deployment, expected",
    [
        (True, True, "development", "mock"),
        (True, False, "production", "mock"),
        (False, True, "development", "direct"),
        (False, True, "production", "proxied"),
        (False, False, "development", "proxied"),
        (False, False, "production", "proxied"),
    ],
)
def test_select_strategy(mock_mode, has_credential, deployment, expected):
    for _ in range(3):
        assert (
            select_strategy(
                mock_mode=mock_mode, has_credential=has_credential, deployment=deployment
            )
            == expected
        )


def test_client_strategy_follows_config_and_override():
    cfg = make_config(api_key="key", deployment="development")
    client = AnalysisClient(cfg, strategies={})
    assert client.strategy_for() == "direct"
    assert client.strategy_for(mock_mode=True) == "mock"


def test_mock_strategy_waits_then_returns_canned_text():
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    strategy = MockStrategy(1.5, sleep=fake_sleep)
    for task in Task:
        text, meta = asyncio.run(strategy.run(_request(task)))
        assert text == MOCK_RESPONSES[task.value]
        assert meta["simulated_delay_s"] == 1.5
    assert delays == [1.5] * len(Task)


def test_proxied_success_posts_image_and_prompt():
    session = FakeSession(FakeResponse(200, {"text": "**Bus 5** is  arriving."}))
    strategy = ProxiedStrategy("http://proxy/api/analyze-image", timeout_s=5, session=session)
    request = _request()

    text, meta = asyncio.run(strategy.run(request))

    assert text == "Bus 5 is arriving."
    assert meta["http_status"] == 200
    url, payload, timeout = session.posts[0]
    assert url == "http://proxy/api/analyze-image"
    assert payload == {"base64Image": IMAGE, "prompt": request.prompt}
    assert timeout == 5


@pytest.mark.parametrize(
    "outcome, reason, message",
    [
        (FakeResponse(500, {"error": "boom"}), "service-unavailable", MSG_SERVICE_UNAVAILABLE),
        (FakeResponse(503, raw=b"<html>"), "service-unavailable", MSG_SERVICE_UNAVAILABLE),
        (FakeResponse(401, {"error": "no"}), "not-authorized", MSG_NOT_AUTHORIZED),
        (FakeResponse(403, {}), "not-authorized", MSG_NOT_AUTHORIZED),
        (FakeResponse(400, {"error": "bad"}), "other", MSG_UNEXPECTED_SERVICE_ERROR),
        (FakeResponse(200, raw=b"oops"), "empty-result", MSG_EMPTY_RESPONSE),
        (FakeResponse(200, {"text": "  "}), "empty-result", MSG_EMPTY_RESPONSE),
        (FakeResponse(200, {"error": "x"}), "empty-result", MSG_EMPTY_RESPONSE),
        (requests.exceptions.ConnectionError("down"), "network", MSG_CONNECTION_FAILED),
        (requests.exceptions.Timeout("slow"), "network", MSG_CONNECTION_FAILED),
    ],
)
def test_proxied_failures_map_to_messages(outcome, reason, message):
    strategy = ProxiedStrategy("http://proxy", session=FakeSession(outcome))

    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(strategy.run(_request()))

    assert excinfo.value.reason == reason
    assert excinfo.value.message == message


def test_direct_success_is_postprocessed():
    strategy = DirectStrategy(FakeGemini(text="- Safe to cross.\n- Walk signal is on."))
    text, meta = asyncio.run(strategy.run(_request(Task.CROSS_ROAD)))
    assert text == "Safe to cross. Walk signal is on."
    assert meta == {"provider": "fake"}


def test_direct_credential_error():
    error = genai_errors.ClientError(
        403,
        {"error": {"code": 403, "message": "API key not valid", "status": "PERMISSION_DENIED"}},
    )
    assert is_credential_error(error)
    strategy = DirectStrategy(FakeGemini(error=error))

    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(strategy.run(_request()))

    assert excinfo.value.reason == "invalid-credential"
    assert excinfo.value.message == MSG_INVALID_CREDENTIAL


def test_direct_generic_and_empty_failures():
    strategy = DirectStrategy(FakeGemini(error=RuntimeError("socket closed")))
    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(strategy.run(_request()))
    assert excinfo.value.message == MSG_DIRECT_FAILED
    assert not is_credential_error(RuntimeError("socket closed"))

    strategy = DirectStrategy(FakeGemini(text="   "))
    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(strategy.run(_request()))
    assert excinfo.value.reason == "empty-result"


def test_gemini_client_sends_frame_with_zero_thinking_budget():
    calls = []

    async def generate_content(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(text="A bench is ahead.")

    inner = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    client = GeminiClient(make_config(), client=inner)

    text, meta = asyncio.run(client.generate(IMAGE, "describe"))

    assert client.available
    assert text == "A bench is ahead."
    assert meta["model"] == "gemini-2.5-flash"
    call = calls[0]
    assert call["model"] == "gemini-2.5-flash"
    image_part, prompt = call["contents"]
    assert image_part.inline_data.mime_type == "image/jpeg"
    assert image_part.inline_data.data == b"\xff\xd8fake-jpeg"
    assert prompt == "describe"
    assert call["config"].thinking_config.thinking_budget == 0


def test_gemini_client_without_credential_or_bad_image():
    client = GeminiClient(make_config(api_key=None))
    assert not client.available
    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(client.generate(IMAGE, "describe"))
    assert excinfo.value.reason == "invalid-credential"

    inner = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=None)))
    with pytest.raises(AnalysisError) as excinfo:
        asyncio.run(GeminiClient(make_config(), client=inner).generate("not base64!!", "p"))
    assert excinfo.value.reason == "other"


def test_client_timeout_yields_timeout_message():
    cfg = make_config(mock_mode=True, analysis_timeout_s=0.01)
    client = AnalysisClient(cfg, strategies={"mock": StaticStrategy("mock", delay_s=1.0)})

    result = asyncio.run(client.analyze_detailed(_request()))

    assert result.text == MSG_ANALYSIS_TIMEOUT
    assert result.error == "timeout"
    assert result.strategy == "mock"


def test_client_never_raises_on_strategy_errors():
    cfg = make_config()
    session = FakeSession(requests.exceptions.ConnectionError("down"))
    client = AnalysisClient(
        cfg, strategies={"proxied": ProxiedStrategy(cfg.proxy_url, session=session)}
    )

    result = asyncio.run(client.analyze_detailed(_request()))

    assert result.strategy == "proxied"
    assert result.error == "network"
    assert result.text == MSG_CONNECTION_FAILED
    assert result.latency_ms is not None


def test_client_missing_strategy_reports_failure():
    client = AnalysisClient(make_config(), strategies={})
    result = asyncio.run(client.analyze_detailed(_request()))
    assert result.error == "other"
    assert result.text == MSG_DIRECT_FAILED


def test_mock_mode_override_per_request():
    mock = StaticStrategy("mock", text="canned")
    proxied = StaticStrategy("proxied", text="remote")
    client = AnalysisClient(make_config(), strategies={"mock": mock, "proxied": proxied})

    assert asyncio.run(client.analyze(_request(), mock_mode=True)) == "canned"
    assert asyncio.run(client.analyze(_request())) == "remote"
    assert (mock.calls, proxied.calls) == (1, 1)
