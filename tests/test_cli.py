import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from urbansense import JsonPreferenceStore, Preferences, cli, load_config  # noqa: E402
from urbansense.constants import MOCK_RESPONSES  # noqa: E402


@pytest.fixture
def quiet_env(monkeypatch):
    monkeypatch.setenv("URBANSENSE_PREFS_PATH", "")
    monkeypatch.setenv("URBANSENSE_LOG_PATH", "")
    monkeypatch.setenv("URBANSENSE_MOCK_DELAY_S", "0")
    monkeypatch.setenv("URBANSENSE_LANGUAGE", "en-US")


def test_list_locales(quiet_env, capsys):
    cli.main(["--list-locales"])
    out = capsys.readouterr().out
    assert "en-US\t" in out and "hi-IN\t" in out and "es-ES\t" in out


def test_prompt_only(quiet_env, capsys):
    cli.main(["--task", "find_shop", "--query", "pharmacy", "--prompt-only"])
    out = capsys.readouterr().out
    assert 'The user is looking for: "pharmacy".' in out


def test_requires_an_action(quiet_env):
    with pytest.raises(SystemExit):
        cli.main(["--mock"])


def test_mock_task_with_still_image(quiet_env, tmp_path, capsys):
    image_path = tmp_path / "street.png"
    cv2.imwrite(str(image_path), np.full((12, 12, 3), 90, dtype=np.uint8))

    cli.main(
        [
            "--task",
            "find_bus",
            "--mock",
            "--image",
            str(image_path),
            "--speech",
            "console",
            "--listen",
            "none",
            "--no-location",
        ]
    )

    out = capsys.readouterr().out
    assert f"[en-US] {MOCK_RESPONSES['find_bus']}" in out
    assert "status=idle" in out


def _street_image(tmp_path):
    image_path = tmp_path / "street.png"
    cv2.imwrite(str(image_path), np.full((12, 12, 3), 90, dtype=np.uint8))
    return str(image_path)


def _orchestrator_for(argv):
    args = cli._parse_args(argv)
    return cli.build_orchestrator(args, load_config())


def test_run_flags_do_not_leak_into_later_runs(quiet_env, tmp_path, monkeypatch, capsys):
    prefs_path = tmp_path / "prefs.json"
    monkeypatch.setenv("URBANSENSE_PREFS_PATH", str(prefs_path))
    monkeypatch.setenv("URBANSENSE_MOCK_MODE", "0")
    image = _street_image(tmp_path)
    common = ["--image", image, "--speech", "console", "--listen", "none", "--no-location"]

    cli.main(["--task", "cross_road", "--mock", "--language", "es-ES", *common])
    assert MOCK_RESPONSES["cross_road"] in capsys.readouterr().out
    assert not prefs_path.exists()

    snapshot = _orchestrator_for(["--task", "cross_road", *common]).snapshot()
    assert snapshot.mock_mode is False
    assert snapshot.active_locale == "en-US"


def test_no_mock_overrides_a_saved_preference(quiet_env, tmp_path, monkeypatch):
    prefs_path = tmp_path / "prefs.json"
    JsonPreferenceStore(prefs_path).save(Preferences(language="hi-IN", mock_mode=True))
    monkeypatch.setenv("URBANSENSE_PREFS_PATH", str(prefs_path))

    orchestrator = _orchestrator_for(
        ["--task", "explore", "--no-mock", "--speech", "console", "--listen", "none"]
    )

    assert orchestrator.snapshot().mock_mode is False
    assert orchestrator.snapshot().active_locale == "hi-IN"
    assert JsonPreferenceStore(prefs_path).load().mock_mode is True


def test_mock_flags_are_exclusive(quiet_env):
    with pytest.raises(SystemExit):
        cli.main(["--task", "explore", "--mock", "--no-mock"])
