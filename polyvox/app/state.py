from __future__ import annotations

from dataclasses import dataclass, field, replace

from polyvox.contracts import (
    AI_ERROR_MARKER,
    NO_TRANSCRIPTION_MARKER,
    SENTINEL_MARKERS,
    TranslationResult,
    language_name,
)

STATUS_LISTENING = "Listening..."
STATUS_PROCESSING = "Processing..."
STATUS_READY = "Ready to record."
STATUS_RECORDING = "Recording..."


@dataclass
class ViewState:
    """Everything the display layer renders. Mutated only by the controller."""

    language: str = "es"
    recording: bool = False
    # Stop was requested but the capture has not ended yet.
    finalizing: bool = False
    busy: bool = False
    message: str = ""
    transcript: str = ""
    corrected_english: str = ""
    alternatives: list[str] = field(default_factory=list)
    cultural_notes: str = ""
    translation: str = ""

    def __post_init__(self) -> None:
        language_name(self.language)

    @property
    def status_text(self) -> str:
        if self.message:
            return self.message
        return STATUS_RECORDING if self.recording else STATUS_READY

    @property
    def is_error(self) -> bool:
        return "Error" in self.message or "failed" in self.message

    @property
    def can_play(self) -> bool:
        return bool(self.translation) and self.translation not in SENTINEL_MARKERS and not self.busy

    @property
    def can_change_language(self) -> bool:
        return not (self.recording or self.finalizing)

    def clear_results(self) -> None:
        self.corrected_english = ""
        self.alternatives = []
        self.cultural_notes = ""
        self.translation = ""

    def begin_capture(self) -> None:
        self.clear_results()
        self.transcript = ""
        self.recording = True
        self.finalizing = False
        self.busy = False
        self.message = STATUS_LISTENING

    def capture_stopping(self) -> None:
        self.recording = False
        self.finalizing = True

    def capture_ended(self) -> None:
        self.recording = False
        self.finalizing = False

    def set_language(self, code: str) -> None:
        name = language_name(code)
        if not self.can_change_language:
            raise RuntimeError("cannot change target language while recording")
        self.language = code
        self.busy = False
        self.clear_results()
        self.message = f"Language set to {name}. Please record again."

    def capture_failed(self, message: str, *, no_transcript: bool = False) -> None:
        self.recording = False
        self.finalizing = False
        self.busy = False
        self.message = message
        if no_transcript:
            self.transcript = NO_TRANSCRIPTION_MARKER

    def begin_translation(self, transcript: str) -> None:
        self.recording = False
        self.finalizing = False
        self.busy = True
        self.transcript = transcript
        self.clear_results()
        self.message = STATUS_PROCESSING

    def apply_result(self, result: TranslationResult) -> None:
        self.busy = False
        self.corrected_english = result.corrected_english
        self.alternatives = list(result.alternative_phrasings)
        self.cultural_notes = result.tone_notes
        self.translation = result.translated_text

    def apply_failure(self, message: str, marker: str = AI_ERROR_MARKER) -> None:
        self.busy = False
        self.clear_results()
        self.translation = marker
        self.message = message

    def snapshot(self) -> "ViewState":
        return replace(self, alternatives=list(self.alternatives))
