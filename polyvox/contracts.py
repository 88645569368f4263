from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

LANGUAGE_NAMES: dict[str, str] = {
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "hi": "Hindi",
    "ja": "Japanese",
    "ko": "Korean",
}

# Sentinel markers shown in place of a result that could not be produced.
AI_ERROR_MARKER = "[AI Error]"
API_KEY_MISSING_MARKER = "[API Key Missing]"
NO_TRANSCRIPTION_MARKER = "[No transcription available]"
SENTINEL_MARKERS = frozenset({AI_ERROR_MARKER, API_KEY_MISSING_MARKER, NO_TRANSCRIPTION_MARKER})

# Placeholders for a field the model left out of an otherwise valid response.
MISSING_CORRECTED = "Error: Missing corrected text."
MISSING_NOTES = "Error: Missing notes."
MISSING_TRANSLATION = "Error: Missing translation."


def language_name(code: str) -> str:
    try:
        return LANGUAGE_NAMES[code]
    except KeyError:
        raise ValueError(f"Unsupported target language: {code!r}") from None


@dataclass(frozen=True)
class TranslationRequest:
    text: str
    target_lang: str = "es"

    def __post_init__(self) -> None:
        if not (self.text or "").strip():
            raise ValueError("source text must be non-empty")
        language_name(self.target_lang)


@dataclass(frozen=True)
class TranslationResult:
    corrected_english: str
    alternative_phrasings: Sequence[str]
    tone_notes: str
    translated_text: str
    provider: str = ""
    # Names of response fields that were absent and replaced by placeholders.
    missing_fields: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.missing_fields


@dataclass(frozen=True)
class ASRSegment:
    text: str
    t0: float
    t1: float


@dataclass(frozen=True)
class AudioChunk:
    """
    Raw PCM16 audio chunk captured from the microphone.
    pcm16: little-endian signed 16-bit PCM bytes (interleaved if channels > 1).
    """
    pcm16: bytes
    sample_rate: int
    channels: int
    start_time: float  # seconds since stream start
    duration: float    # seconds
