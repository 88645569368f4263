from __future__ import annotations

import io
import logging
import time
import wave
from typing import List, Optional

from polyvox.contracts import ASRSegment

logger = logging.getLogger(__name__)


def pcm16_to_wav_buffer(pcm16: bytes, sample_rate: int, channels: int) -> io.BytesIO:
    """Wrap raw int16 PCM in an in-memory WAV container that faster-whisper can decode."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm16)
    buf.seek(0)
    return buf


class FasterWhisperPCM16Transcriber:
    """
    Transcribe one captured PCM16 phrase with faster-whisper.

    The model is loaded lazily on first use. Segments the model itself flags as
    probable non-speech (``no_speech_prob`` above ``no_speech_threshold``) are
    dropped, which keeps hallucinated text out of short or noisy captures.
    """

    def __init__(
        self,
        *,
        model_size: str = "tiny",
        device: str = "cpu",
        compute_type: str = "int8",
        language: Optional[str] = "en",
        beam_size: int = 1,
        no_speech_threshold: float = 0.6,
    ) -> None:
        if not 0.0 <= no_speech_threshold <= 1.0:
            raise ValueError("no_speech_threshold must be within [0, 1]")
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self.beam_size = beam_size
        self.no_speech_threshold = float(no_speech_threshold)
        self._model = None

    def _get_model(self):
        if self._model is None:
            from faster_whisper import WhisperModel

            t0 = time.monotonic()
            self._model = WhisperModel(
                self.model_size,
                device=self.device,
                compute_type=self.compute_type,
            )
            logger.info(
                "asr_model_loaded",
                extra={"model_size": self.model_size, "load_sec": round(time.monotonic() - t0, 2)},
            )
        return self._model

    def transcribe_utterance(
        self,
        pcm16: bytes,
        sample_rate: int,
        channels: int,
        *,
        language: Optional[str] = None,
    ) -> List[ASRSegment]:
        if not pcm16:
            return []

        model = self._get_model()
        segments, _info = model.transcribe(
            pcm16_to_wav_buffer(pcm16, sample_rate, channels),
            language=language or self.language,
            beam_size=self.beam_size,
            vad_filter=False,
            condition_on_previous_text=False,
        )

        out: List[ASRSegment] = []
        dropped = 0
        for s in segments:
            text = (s.text or "").strip()
            if not text:
                continue
            if float(getattr(s, "no_speech_prob", 0.0)) > self.no_speech_threshold:
                dropped += 1
                continue
            out.append(
                ASRSegment(
                    text=text,
                    t0=float(s.start),
                    t1=float(s.end),
                )
            )
        if dropped:
            logger.debug("asr_segments_dropped", extra={"dropped": dropped, "kept": len(out)})
        return out

    def transcribe_text(
        self,
        pcm16: bytes,
        sample_rate: int,
        channels: int,
        *,
        language: Optional[str] = None,
    ) -> str:
        segments = self.transcribe_utterance(pcm16, sample_rate, channels, language=language)
        return " ".join(seg.text for seg in segments).strip()
