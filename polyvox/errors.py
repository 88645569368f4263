"""
Error taxonomy for capture and translation.

Capture-side failures end the session and are never retried automatically.
``AttemptFailed`` subclasses are the only errors the orchestrator retries.
"""
from __future__ import annotations

from typing import Optional


class PolyvoxError(Exception):
    """Base class for all project errors."""

    user_message = "Unexpected error."


class CaptureFailure(PolyvoxError):
    """A capture session ended without a usable utterance."""


class CapabilityUnavailable(CaptureFailure):
    user_message = "Error: Speech Recognition not supported."

    def __init__(self, detail: str = "speech recognition capability unavailable") -> None:
        super().__init__(detail)


class CaptureError(CaptureFailure):
    """Engine-reported error such as ``audio-capture`` or ``not-allowed``."""

    def __init__(self, code: str, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Error: {self.code}. Try again."


class EmptyCapture(CaptureFailure):
    user_message = "No speech detected or valid result captured."

    def __init__(self) -> None:
        super().__init__("capture ended with no recognized speech")


class TranslationError(PolyvoxError):
    """Base class for translation failures."""


class ConfigurationError(TranslationError):
    user_message = "Error: Please set your Gemini API Key."


class AttemptFailed(TranslationError):
    """A single request attempt failed; counts toward the retry budget."""


class TransportFailure(AttemptFailed):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MalformedResponse(AttemptFailed):
    pass


class AIProcessingFailed(TranslationError):
    user_message = "AI Processing failed after multiple retries. Check logs."

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"gave up after {attempts} attempt(s): {last_error}")


class TranslationCancelled(TranslationError):
    user_message = "Translation cancelled."
