import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fakes import make_config  # noqa: E402
from urbansense.constants import (  # noqa: E402
    MSG_DIRECT_FAILED,
    MSG_PROXY_EMPTY_ANALYSIS,
    MSG_PROXY_INTERNAL_ERROR,
)
from urbansense.errors import AnalysisError  # noqa: E402
from urbansense.gemini_client import GeminiClient  # noqa: E402
from urbansense.proxy_server import ANALYZE_PATH, create_app  # noqa: E402


class ScriptedGemini:
    available = True

    def __init__(self, outcome="A crosswalk is ahead."):
        self.outcome = outcome
        self.calls = []

    async def generate(self, base64_image, prompt):
        self.calls.append((base64_image, prompt))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome, {"latency_ms": 3}


def _client(outcome="A crosswalk is ahead."):
    gemini = ScriptedGemini(outcome)
    return TestClient(create_app(make_config(), gemini_client=gemini)), gemini


def test_analyze_returns_text():
    client, gemini = _client()
    with client:
        response = client.post(ANALYZE_PATH, json={"base64Image": "aGk=", "prompt": "describe"})
    assert response.status_code == 200
    assert response.json() == {"text": "A crosswalk is ahead."}
    assert gemini.calls == [("aGk=", "describe")]


def test_health_reports_client():
    client, _ = _client()
    with client:
        response = client.get("/health")
    assert response.json() == {"ok": True, "gemini_available": True}


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (
            {"content": b"{not json", "headers": {"content-type": "application/json"}},
            "Invalid JSON format in request body.",
        ),
        ({"json": ["base64Image", "prompt"]}, "Invalid JSON format in request body."),
        ({"json": {"prompt": "describe"}}, "Request body must contain 'base64Image' and 'prompt'."),
        ({"json": {"base64Image": "aGk="}}, "Request body must contain 'base64Image' and 'prompt'."),
    ],
)
def test_bad_requests_are_rejected(kwargs, message):
    client, gemini = _client()
    with client:
        response = client.post(ANALYZE_PATH, **kwargs)
    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert gemini.calls == []


def test_undecodable_image_is_a_client_error():
    client, _ = _client(AnalysisError("other", MSG_DIRECT_FAILED))
    with client:
        response = client.post(ANALYZE_PATH, json={"base64Image": "??", "prompt": "describe"})
    assert response.status_code == 400
    assert "base64Image" in response.json()["error"]


def test_upstream_failure_hides_details():
    client, _ = _client(RuntimeError("quota exceeded for key abc123"))
    with client:
        response = client.post(ANALYZE_PATH, json={"base64Image": "aGk=", "prompt": "describe"})
    assert response.status_code == 500
    assert response.json() == {"error": MSG_PROXY_INTERNAL_ERROR}
    assert "abc123" not in response.text


def test_empty_model_text_is_replaced():
    client, _ = _client("")
    with client:
        response = client.post(ANALYZE_PATH, json={"base64Image": "aGk=", "prompt": "describe"})
    assert response.status_code == 200
    assert response.json() == {"text": MSG_PROXY_EMPTY_ANALYSIS}


def test_startup_requires_credential():
    app = create_app(make_config(api_key=None))
    with pytest.raises(RuntimeError):
        with TestClient(app):
            pass


def test_client_without_credential_is_a_server_error():
    gemini = GeminiClient(make_config(api_key=None))
    client = TestClient(create_app(make_config(), gemini_client=gemini))
    with client:
        health = client.get("/health")
        response = client.post(ANALYZE_PATH, json={"base64Image": "aGk=", "prompt": "describe"})
    assert health.json() == {"ok": True, "gemini_available": False}
    assert response.status_code == 500
    assert response.json() == {"error": MSG_PROXY_INTERNAL_ERROR}
