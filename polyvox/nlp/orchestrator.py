"""
Resilient wrapper around a single-attempt ``Translator``.

Every failed attempt (transport error, non-2xx status, empty or unparsable
payload) counts toward the same ``max_retries`` budget. A well-formed response
that omits a field is not a failure: it is returned with placeholders and is
never retried. Before attempt ``n`` (0-based, n >= 1) the orchestrator waits
``2**n * backoff_base_sec + uniform(0, backoff_jitter_sec)`` seconds.
"""
from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Optional

from polyvox.contracts import TranslationRequest, TranslationResult
from polyvox.errors import AIProcessingFailed, AttemptFailed, TranslationCancelled
from polyvox.nlp.translator.base import Translator

logger = logging.getLogger(__name__)

MAX_RETRIES = 3

STATUS_PROCESSING = "AI Processing (Structured Gemini API call)..."
STATUS_COMPLETE = "Analysis and Translation complete."


def backoff_delay(
    failures: int,
    *,
    base_sec: float = 1.0,
    jitter_sec: float = 0.5,
    rng: Optional[random.Random] = None,
) -> float:
    """Delay after ``failures`` failed attempts: exponential plus jitter in [0, jitter_sec)."""
    jitter = (rng or random).random() * jitter_sec
    return (2 ** failures) * base_sec + jitter


class TranslationOrchestrator:
    def __init__(
        self,
        translator: Translator,
        *,
        max_retries: int = MAX_RETRIES,
        backoff_base_sec: float = 1.0,
        backoff_jitter_sec: float = 0.5,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float, threading.Event], bool]] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if backoff_base_sec < 0 or backoff_jitter_sec < 0:
            raise ValueError("backoff settings must be >= 0")
        self.translator = translator
        self.max_retries = int(max_retries)
        self.backoff_base_sec = float(backoff_base_sec)
        self.backoff_jitter_sec = float(backoff_jitter_sec)
        self._rng = rng or random.Random()
        # sleep(delay, cancel) returns True when cancelled during the wait.
        self._sleep = sleep or (lambda delay, cancel: cancel.wait(delay))
        self._on_status = on_status

    def translate(
        self,
        source_text: str,
        target_language: str,
        *,
        cancel: Optional[threading.Event] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> TranslationResult:
        """
        Return a validated result, or raise ``ConfigurationError`` (no attempt
        made), ``AIProcessingFailed`` (budget exhausted) or
        ``TranslationCancelled``.
        """
        req = TranslationRequest(text=source_text, target_lang=target_language)
        self.translator.check_ready()
        cancel = cancel or threading.Event()
        notify = on_status or self._on_status or (lambda _message: None)

        notify(STATUS_PROCESSING)
        last_error: Optional[AttemptFailed] = None
        for attempt in range(self.max_retries):
            if cancel.is_set():
                raise TranslationCancelled(f"cancelled before attempt {attempt + 1}")
            try:
                result = self.translator.translate(req)
            except AttemptFailed as e:
                last_error = e
                logger.warning(
                    "translate_attempt_failed",
                    extra={
                        "attempt": attempt + 1,
                        "max_retries": self.max_retries,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                if attempt + 1 >= self.max_retries:
                    break
                delay = backoff_delay(
                    attempt + 1,
                    base_sec=self.backoff_base_sec,
                    jitter_sec=self.backoff_jitter_sec,
                    rng=self._rng,
                )
                if cancel.is_set():
                    raise TranslationCancelled(f"cancelled after attempt {attempt + 1}") from e
                notify(f"Attempt {attempt + 1} failed. Retrying...")
                logger.info("translate_backoff", extra={"attempt": attempt + 1, "delay_sec": round(delay, 3)})
                if self._sleep(delay, cancel):
                    raise TranslationCancelled(f"cancelled during backoff after attempt {attempt + 1}") from e
                continue

            logger.info(
                "translate_done",
                extra={
                    "attempts": attempt + 1,
                    "provider": result.provider,
                    "target_lang": target_language,
                    "missing_fields": list(result.missing_fields),
                },
            )
            notify(STATUS_COMPLETE)
            return result

        logger.error("translate_gave_up", extra={"attempts": self.max_retries, "error": str(last_error)})
        raise AIProcessingFailed(self.max_retries, last_error)
