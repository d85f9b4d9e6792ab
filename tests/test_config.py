import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fakes import make_config  # noqa: E402
from urbansense import (  # noqa: E402
    JsonPreferenceStore,
    Preferences,
    append_event,
    build_log_event,
    load_config,
)


def test_load_config_reads_environment():
    cfg = load_config(
        {
            "GOOGLE_API_KEY": "secret",
            "URBANSENSE_DEPLOYMENT": "dev",
            "URBANSENSE_MOCK_MODE": "yes",
            "URBANSENSE_LANGUAGE": "es-ES",
            "URBANSENSE_ANALYSIS_TIMEOUT_S": "12.5",
            "URBANSENSE_CAMERA_INDEX": "2",
            "URBANSENSE_FETCH_LOCATION": "0",
            "URBANSENSE_PREFS_PATH": "",
            "URBANSENSE_LOG_PATH": "",
        }
    )
    assert cfg.api_key == "secret" and cfg.has_credential
    assert cfg.deployment == "development"
    assert cfg.mock_mode
    assert cfg.language == "es-ES"
    assert cfg.analysis_timeout_s == 12.5
    assert cfg.camera_index == 2
    assert not cfg.fetch_location
    assert cfg.prefs_path is None
    assert cfg.log_path is None


def test_load_config_credential_precedence_and_bad_numbers():
    cfg = load_config(
        {
            "GEMINI_API_KEY": "first",
            "API_KEY": "last",
            "URBANSENSE_MOCK_DELAY_S": "soon",
            "URBANSENSE_JPEG_QUALITY": "high",
            "URBANSENSE_DEPLOYMENT": "staging",
        }
    )
    assert cfg.api_key == "first"
    assert cfg.mock_delay_s == 1.5
    assert cfg.jpeg_quality == 80
    assert cfg.deployment == "production"
    assert cfg.fetch_location
    assert cfg.prefs_path and cfg.log_path


def test_json_preferences_round_trip(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    store = JsonPreferenceStore(path)
    assert store.load() == Preferences()

    store.save(Preferences(language="hi-IN", mock_mode=True))

    assert json.loads(path.read_text(encoding="utf-8")) == {"language": "hi-IN", "mock_mode": True}
    assert JsonPreferenceStore(path).load() == Preferences(language="hi-IN", mock_mode=True)


def test_json_preferences_tolerate_bad_files(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{broken", encoding="utf-8")
    assert JsonPreferenceStore(path).load() == Preferences()

    path.write_text(json.dumps({"language": 7, "mock_mode": "yes"}), encoding="utf-8")
    assert JsonPreferenceStore(path).load() == Preferences()


def test_append_event_rotates_when_too_large(tmp_path):
    log_path = tmp_path / "logs" / "events.jsonl"

    append_event(str(log_path), {"n": 1}, max_bytes=10)
    append_event(str(log_path), {"n": 2}, max_bytes=10)
    append_event(str(log_path), {"n": 3}, max_bytes=10)

    assert json.loads(log_path.read_text(encoding="utf-8")) == {"n": 3}
    rotated = [p for p in log_path.parent.iterdir() if p != log_path]
    assert rotated


def test_build_log_event_truncates_preview():
    cfg = make_config()
    event = build_log_event(
        cfg=cfg,
        task="explore",
        strategy="proxied",
        locale="en-US",
        latency_ms=42,
        error=None,
        has_location=True,
        has_user_query=False,
        prompt_hash="abc",
        response_preview="x" * 200,
    )
    assert len(event["response_preview"]) == 80
    assert event["model"] == cfg.model_name
    assert event["deployment"] == "production"
    assert event["has_location"] is True
