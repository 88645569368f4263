"""
Single-use voice-capture session.

A session wraps one run of a speech-recognition engine and guarantees that the
consumer hears about it exactly once: either the final utterance, or one
capture failure. All engine callbacks go through ``handle_event`` and are
processed in arrival order under a lock; nothing is processed after ``ENDED``.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from polyvox.capture.events import CaptureEvent, CaptureEventKind, SpeechRecognitionEngine
from polyvox.errors import CapabilityUnavailable, CaptureError, CaptureFailure, EmptyCapture

logger = logging.getLogger(__name__)


class CaptureStatus(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    FINALIZING = "finalizing"
    ENDED = "ended"


class CaptureSession:
    """
    Status moves IDLE -> LISTENING -> (FINALIZING ->) ENDED. The one exception
    is the fail-closed start: when the engine reports it is unavailable the
    session goes straight from IDLE to ENDED, records ``CapabilityUnavailable``
    as ``last_error`` and never touches the engine.
    """

    def __init__(
        self,
        engine: SpeechRecognitionEngine,
        *,
        on_utterance: Callable[[str], None],
        on_failure: Optional[Callable[[CaptureFailure], None]] = None,
        on_ended: Optional[Callable[[], None]] = None,
    ) -> None:
        self.engine = engine
        self._on_utterance = on_utterance
        self._on_failure = on_failure
        self._on_ended = on_ended
        # Re-entrant: a synchronous engine may deliver events from inside start().
        self._lock = threading.RLock()
        self._status = CaptureStatus.IDLE
        self._candidate: Optional[str] = None
        self._final_utterance: Optional[str] = None
        self._last_error: Optional[CaptureFailure] = None
        self.history: list[CaptureStatus] = [CaptureStatus.IDLE]

    @property
    def status(self) -> CaptureStatus:
        return self._status

    @property
    def final_utterance(self) -> Optional[str]:
        return self._final_utterance

    @property
    def last_error(self) -> Optional[CaptureFailure]:
        return self._last_error

    @property
    def active(self) -> bool:
        return self._status in (CaptureStatus.LISTENING, CaptureStatus.FINALIZING)

    def _set_status(self, status: CaptureStatus) -> None:
        self._status = status
        self.history.append(status)

    def start(self) -> None:
        with self._lock:
            if self._status != CaptureStatus.IDLE:
                raise RuntimeError("capture session is single-use and was already started")
            if not self.engine.is_available():
                self._last_error = CapabilityUnavailable()
                self._set_status(CaptureStatus.ENDED)
                logger.warning("capture_capability_unavailable")
                raise self._last_error
            self._candidate = None
            self._final_utterance = None
            self._last_error = None
            self._set_status(CaptureStatus.LISTENING)
            try:
                self.engine.start(self.handle_event)
            except Exception as e:
                self._last_error = CaptureError("start-failed", str(e))
                self._set_status(CaptureStatus.ENDED)
                logger.exception("capture_start_failed")
                raise self._last_error from e
            logger.info("capture_started", extra={"language": self.engine.config.language})

    def stop(self) -> bool:
        """Ask the engine to finalize. The text still arrives via the end event."""
        with self._lock:
            if self._status != CaptureStatus.LISTENING:
                return False
            self._set_status(CaptureStatus.FINALIZING)
            self.engine.stop()
            return True

    def handle_event(self, event: CaptureEvent) -> None:
        notify: list[Callable[[], None]] = []
        with self._lock:
            if self._status in (CaptureStatus.IDLE, CaptureStatus.ENDED):
                logger.debug(
                    "capture_event_ignored",
                    extra={"capture_event": event.kind.value, "status": self._status.value},
                )
                return
            logger.debug("capture_event", extra={"capture_event": event.kind.value})

            if event.kind == CaptureEventKind.RESULT:
                text = (event.text or "").strip()
                if self._last_error is None and text:
                    # Only the latest final result before end-of-capture is kept.
                    self._candidate = text

            elif event.kind == CaptureEventKind.ERROR:
                if self._last_error is None:
                    err = CaptureError(event.code or "unknown", event.detail)
                    self._last_error = err
                    self._candidate = None
                    if self._status == CaptureStatus.LISTENING:
                        self._set_status(CaptureStatus.FINALIZING)
                    logger.warning("capture_error", extra={"code": err.code})
                    if self._on_failure is not None:
                        notify.append(lambda: self._on_failure(err))

            elif event.kind == CaptureEventKind.END:
                self._set_status(CaptureStatus.ENDED)
                # An earlier error was already reported when it arrived.
                if self._last_error is None and self._candidate:
                    self._final_utterance = self._candidate
                    text = self._candidate
                    logger.info("capture_utterance", extra={"chars": len(text)})
                    notify.append(lambda: self._on_utterance(text))
                elif self._last_error is None:
                    empty = EmptyCapture()
                    self._last_error = empty
                    logger.info("capture_empty")
                    if self._on_failure is not None:
                        notify.append(lambda: self._on_failure(empty))
                if self._on_ended is not None:
                    notify.append(self._on_ended)

        for callback in notify:
            callback()
