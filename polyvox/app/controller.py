"""
Coordinates one capture session at a time with the translation orchestrator.

Every capture or language change starts a new generation. Work belonging to an
older generation is cancelled, and anything it reports late is dropped, so a
stale translation can never overwrite the current view.
"""
from __future__ import annotations

import logging
import threading
import traceback
from typing import Any, Callable, Optional

from polyvox.app.diagnostics import summarize_exception
from polyvox.app.state import ViewState
from polyvox.capture.events import SpeechRecognitionEngine
from polyvox.capture.session import CaptureSession
from polyvox.contracts import AI_ERROR_MARKER, API_KEY_MISSING_MARKER
from polyvox.errors import (
    AIProcessingFailed,
    CaptureFailure,
    ConfigurationError,
    EmptyCapture,
    TranslationCancelled,
)
from polyvox.nlp.orchestrator import TranslationOrchestrator
from polyvox.ui.bridge import ViewBus

logger = logging.getLogger(__name__)


def _spawn_daemon(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="polyvox-translate-worker", daemon=True).start()


class TranslatorController:
    def __init__(
        self,
        *,
        engine: SpeechRecognitionEngine,
        orchestrator: TranslationOrchestrator,
        speaker: Optional[Any] = None,
        language: str = "es",
        bus: Optional[ViewBus] = None,
        auto_play: bool = False,
        spawn: Optional[Callable[[Callable[[], None]], None]] = None,
    ) -> None:
        self.engine = engine
        self.orchestrator = orchestrator
        self.speaker = speaker
        self.bus = bus
        self.auto_play = auto_play
        self.view = ViewState(language=language)
        self._spawn = spawn or _spawn_daemon
        self._lock = threading.RLock()
        self._session: Optional[CaptureSession] = None
        self._cancel: Optional[threading.Event] = None
        self._generation = 0

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> ViewState:
        with self._lock:
            return self.view.snapshot()

    def _publish(self) -> None:
        if self.bus is not None:
            self.bus.push(self.view.snapshot())

    def _capture_active(self) -> bool:
        return self._session is not None and self._session.active

    def _next_generation(self) -> int:
        self._generation += 1
        if self._cancel is not None:
            self._cancel.set()
            self._cancel = None
        return self._generation

    def _apply(self, generation: int, update: Callable[[], None]) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.info("stale_update_dropped", extra={"generation": generation, "current": self._generation})
                return False
            update()
            self._publish()
            return True

    def toggle_recording(self) -> bool:
        with self._lock:
            if self._capture_active():
                return self.stop_recording()
            return self.start_recording()

    def start_recording(self) -> bool:
        with self._lock:
            if self._capture_active():
                return False
            generation = self._next_generation()
            session = CaptureSession(
                self.engine,
                on_utterance=lambda text: self._on_utterance(generation, text),
                on_failure=lambda err: self._on_capture_failure(generation, err),
                on_ended=lambda: self._on_capture_ended(generation),
            )
            self._session = session
            self.view.begin_capture()
            self._publish()
            try:
                session.start()
            except CaptureFailure as e:
                self._on_capture_failure(generation, e)
                return False
            logger.info("recording_started", extra={"generation": generation})
            return True

    def stop_recording(self) -> bool:
        with self._lock:
            if self._session is None or not self._session.stop():
                return False
            self.view.capture_stopping()
            self._publish()
            logger.info("recording_stop_requested", extra={"generation": self._generation})
            return True

    def set_language(self, code: str) -> bool:
        with self._lock:
            if self._capture_active():
                return False
            self.view.set_language(code)
            self._next_generation()
            self._publish()
            logger.info("language_changed", extra={"target_lang": code})
            return True

    def play_audio(self) -> bool:
        with self._lock:
            if self.speaker is None or not self.view.can_play:
                return False
            text, language = self.view.translation, self.view.language
        self.speaker.speak(text, language)
        return True

    def shutdown(self) -> None:
        with self._lock:
            self._next_generation()
            if self._capture_active():
                self.engine.abort()
        logger.info("controller_shutdown")

    def _on_capture_failure(self, generation: int, err: CaptureFailure) -> None:
        self._apply(
            generation,
            lambda: self.view.capture_failed(err.user_message, no_transcript=isinstance(err, EmptyCapture)),
        )

    def _on_capture_ended(self, generation: int) -> None:
        self._apply(generation, self.view.capture_ended)

    def _on_utterance(self, generation: int, text: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            cancel = threading.Event()
            self._cancel = cancel
            language = self.view.language
            self.view.begin_translation(text)
            self._publish()
        self._spawn(lambda: self._run_translation(generation, text, language, cancel))

    def _run_translation(self, generation: int, text: str, language: str, cancel: threading.Event) -> None:
        def _status(message: str) -> None:
            self._apply(generation, lambda: setattr(self.view, "message", message))

        try:
            result = self.orchestrator.translate(text, language, cancel=cancel, on_status=_status)
        except TranslationCancelled:
            logger.info("translation_cancelled", extra={"generation": generation})
            return
        except ConfigurationError as e:
            logger.error("translation_not_configured", extra={"error": str(e)})
            self._apply(generation, lambda: self.view.apply_failure(e.user_message, API_KEY_MISSING_MARKER))
            return
        except AIProcessingFailed as e:
            self._apply(generation, lambda: self.view.apply_failure(e.user_message, AI_ERROR_MARKER))
            return
        except Exception:
            detail = traceback.format_exc()
            logger.exception("translation_crash", extra={"generation": generation})
            summary = summarize_exception(detail)
            self._apply(generation, lambda: self.view.apply_failure(f"Error: {summary}", AI_ERROR_MARKER))
            return

        applied = self._apply(generation, lambda: self.view.apply_result(result))
        if applied and self.auto_play:
            self.play_audio()
