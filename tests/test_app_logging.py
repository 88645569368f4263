from __future__ import annotations

import json
import logging
from pathlib import Path

from polyvox.app import config as app_config
from polyvox.app.logging_setup import setup_app_logger


def _records(log_path: Path) -> list[dict]:
    return [json.loads(ln) for ln in log_path.read_text(encoding="utf-8").splitlines() if ln.strip()]


def test_setup_app_logger_writes_json_line(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(app_config, "user_config_dir", lambda appname, appauthor=None: str(tmp_path))
    logger, log_dir, log_path = setup_app_logger("polyvox.test")

    logger.info("translate_backoff", extra={"attempt": 1, "delay_sec": 2.31})
    logging.getLogger("polyvox.test.child").debug("hidden")
    for h in logger.handlers:
        h.flush()

    assert log_dir == tmp_path / "logs"
    assert log_path.exists()
    payload = _records(log_path)[-1]
    assert payload["message"] == "translate_backoff"
    assert payload["attempt"] == 1
    assert payload["delay_sec"] == 2.31
    assert payload["level"] == "INFO"
    assert payload["logger"] == "polyvox.test"
    assert payload["thread"] == "MainThread"
    assert all(rec["message"] != "hidden" for rec in _records(log_path))

    for h in logger.handlers:
        h.close()
    logging.getLogger("polyvox.test").handlers.clear()


def test_setup_app_logger_debug_and_exceptions(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(app_config, "user_config_dir", lambda appname, appauthor=None: str(tmp_path))
    setup_app_logger("polyvox.test2")
    logger, _, log_path = setup_app_logger("polyvox.test2", debug=True)
    assert len(logger.handlers) == 1

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("tts_failed", extra={"voice": "es-ES-ElviraNeural"})
    logger.debug("chunk", extra={"rms": 12.5})
    for h in logger.handlers:
        h.flush()

    records = _records(log_path)
    failed = next(rec for rec in records if rec["message"] == "tts_failed")
    assert failed["level"] == "ERROR"
    assert "RuntimeError: boom" in failed["exc_info"]
    assert records[-1]["rms"] == 12.5

    for h in logger.handlers:
        h.close()
    logging.getLogger("polyvox.test2").handlers.clear()


def test_setup_app_logger_console_mirror(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(app_config, "user_config_dir", lambda appname, appauthor=None: str(tmp_path))
    logger, _, log_path = setup_app_logger("polyvox.test3", console=True)
    assert len(logger.handlers) == 2
    assert log_path.name == "polyvox.log"

    logger, _, _ = setup_app_logger("polyvox.test3")
    assert len(logger.handlers) == 1

    for h in logger.handlers:
        h.close()
    logging.getLogger("polyvox.test3").handlers.clear()
