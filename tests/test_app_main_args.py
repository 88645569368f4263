from __future__ import annotations

import json
from pathlib import Path

import pytest

from polyvox.app.config import resolve_args


def _write(tmp_path: Path, payload: dict) -> str:
    cfg_path = tmp_path / "app.json"
    cfg_path.write_text(json.dumps(payload), encoding="utf-8")
    return str(cfg_path)


def test_app_resolve_args_cli_overrides_config(tmp_path: Path) -> None:
    cfg = _write(tmp_path, {"translator": "gemini", "sr": 16000, "poll_ms": 60})
    args = resolve_args(["--config", cfg, "--translator", "stub", "--poll-ms", "30"])
    assert args.translator == "stub"
    assert args.sr == 16000
    assert args.poll_ms == 30


def test_app_resolve_args_retry_settings(tmp_path: Path) -> None:
    cfg = _write(tmp_path, {"max_retries": 5, "backoff_base_sec": 0.25})
    args = resolve_args(["--config", cfg, "--backoff-jitter-sec", "0"])
    assert args.max_retries == 5
    assert args.backoff_base_sec == 0.25
    assert args.backoff_jitter_sec == 0.0


def test_app_resolve_args_target_language(tmp_path: Path) -> None:
    cfg = _write(tmp_path, {"target_language": "fr"})
    assert resolve_args(["--config", cfg]).target_language == "fr"
    assert resolve_args(["--config", cfg, "--target-language", "ja"]).target_language == "ja"
    with pytest.raises(SystemExit):
        resolve_args(["--config", cfg, "--target-language", "it"])


def test_app_resolve_args_boolean_toggles(tmp_path: Path) -> None:
    cfg = _write(tmp_path, {"tts_enabled": True, "auto_play": True})
    args = resolve_args(["--config", cfg, "--no-tts-enabled", "--no-auto-play"])
    assert args.tts_enabled is False
    assert args.auto_play is False


def test_app_resolve_args_api_key_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("POLYVOX_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    cfg = _write(tmp_path, {"api_key": "YOUR_GEMINI_API_KEY_HERE"})
    assert resolve_args(["--config", cfg]).api_key == "env-key"
    assert resolve_args(["--config", cfg, "--api-key", "cli-key"]).api_key == "cli-key"


def test_app_resolve_args_debug_from_config(tmp_path: Path) -> None:
    cfg = _write(tmp_path, {"debug": True})
    args = resolve_args(["--config", cfg, "--text", "hello"])
    assert args.debug is True
    assert args.text == "hello"
