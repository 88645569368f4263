from __future__ import annotations

from polyvox.app.diagnostics import (
    HINT_API_KEY,
    HINT_DEFAULT,
    HINT_MIC,
    HINT_NETWORK,
    HINT_RATE_LIMIT,
    HINT_REJECTED,
    HINT_SERVER,
    hint_for_error,
    hint_for_exception,
    summarize_exception,
)
from polyvox.audio.mic import MicError
from polyvox.errors import AIProcessingFailed, ConfigurationError, MalformedResponse, TransportFailure


def test_summarize_exception_picks_last_meaningful_line() -> None:
    detail = (
        "Traceback (most recent call last):\n"
        '  File "x.py", line 1, in <module>\n'
        "    post()\n"
        "polyvox.errors.TransportFailure: HTTP error! status: 503"
    )
    assert summarize_exception(detail) == "polyvox.errors.TransportFailure: HTTP error! status: 503"


def test_summarize_exception_truncates_long_line() -> None:
    detail = "ValueError: " + ("x" * 500)
    out = summarize_exception(detail, max_len=60)
    assert out.startswith("ValueError: ")
    assert out.endswith("...")
    assert len(out) <= 60


def test_summarize_exception_empty() -> None:
    assert summarize_exception("") == "Unknown runtime error."


def test_hint_for_missing_api_key() -> None:
    hint = hint_for_exception("ConfigurationError: Gemini API key is not configured")
    assert "GEMINI_API_KEY" in hint


def test_hint_for_rate_limit() -> None:
    assert "rate limit" in hint_for_exception("TransportFailure: HTTP error! status: 429")


def test_hint_for_microphone() -> None:
    assert "Microphone" in hint_for_exception("MicError: PortAudio library not found")


def test_hint_for_exception_default() -> None:
    hint = hint_for_exception("RuntimeError: unknown")
    assert hint == "Check logs for full traceback."


def test_hint_for_error_uses_exception_types() -> None:
    assert hint_for_error(ConfigurationError("no key")) == HINT_API_KEY
    assert hint_for_error(TransportFailure("boom", status_code=429)) == HINT_RATE_LIMIT
    assert hint_for_error(TransportFailure("boom", status_code=503)) == HINT_SERVER
    assert hint_for_error(TransportFailure("connection refused")) == HINT_NETWORK
    assert hint_for_error(MicError("Failed to open microphone stream.")) == HINT_MIC


def test_hint_for_error_unwraps_retry_exhaustion() -> None:
    err = AIProcessingFailed(3, TransportFailure("HTTP error! status: 403", status_code=403))
    assert hint_for_error(err) == HINT_REJECTED
    assert hint_for_error(AIProcessingFailed(3, MalformedResponse("bad json"))) == HINT_DEFAULT
