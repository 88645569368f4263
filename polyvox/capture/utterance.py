from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from polyvox.audio.vad import EnergyVAD, pcm16_duration, pcm16_rms
from polyvox.contracts import AudioChunk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapturedUtterance:
    pcm16: bytes
    sample_rate: int
    channels: int
    t0: float
    reason: str  # silence | max_utter_sec | stream_end

    @property
    def duration(self) -> float:
        return pcm16_duration(self.pcm16, self.sample_rate, self.channels)


class SingleUtteranceCollector:
    """
    Collect exactly one spoken phrase from a chunk stream.

    Non-speech chunks before the phrase are skipped until
    ``no_speech_timeout_sec`` of stream time has passed. The phrase is closed by
    trailing silence, by reaching ``max_utter_sec`` or by the stream ending
    (for example when capture is stopped by the user).
    """

    def __init__(
        self,
        *,
        vad: EnergyVAD,
        silence_chunks_to_finalize: int = 3,
        min_utter_sec: float = 0.3,
        max_utter_sec: Optional[float] = 15.0,
        no_speech_timeout_sec: Optional[float] = 8.0,
        debug: bool = False,
    ) -> None:
        if silence_chunks_to_finalize <= 0:
            raise ValueError("silence_chunks_to_finalize must be > 0")
        if min_utter_sec < 0:
            raise ValueError("min_utter_sec must be >= 0")
        if max_utter_sec is not None and max_utter_sec <= 0:
            raise ValueError("max_utter_sec must be > 0 when set")
        if no_speech_timeout_sec is not None and no_speech_timeout_sec <= 0:
            raise ValueError("no_speech_timeout_sec must be > 0 when set")

        self.vad = vad
        self.silence_chunks_to_finalize = int(silence_chunks_to_finalize)
        self.min_utter_sec = float(min_utter_sec)
        self.max_utter_sec = float(max_utter_sec) if max_utter_sec is not None else None
        self.no_speech_timeout_sec = (
            float(no_speech_timeout_sec) if no_speech_timeout_sec is not None else None
        )
        self.debug = debug

    def _finish(self, parts: list[bytes], first: AudioChunk, reason: str) -> Optional[CapturedUtterance]:
        utt = CapturedUtterance(
            pcm16=b"".join(parts),
            sample_rate=int(first.sample_rate),
            channels=int(first.channels),
            t0=float(first.start_time),
            reason=reason,
        )
        if utt.duration < self.min_utter_sec:
            logger.debug(
                "utterance_too_short",
                extra={"reason": reason, "duration_sec": round(utt.duration, 3)},
            )
            return None
        return utt

    def collect(self, chunk_iter: Iterable[AudioChunk]) -> Optional[CapturedUtterance]:
        """Return the captured phrase, or None when no usable speech was heard."""
        parts: list[bytes] = []
        first: Optional[AudioChunk] = None
        utter_bytes = 0
        trailing_silence = 0

        for i, chunk in enumerate(chunk_iter, start=1):
            is_speech = self.vad.is_speech(chunk.pcm16)
            if self.debug:
                print(
                    f"[debug] chunk#{i} {chunk.start_time:.2f}s "
                    f"rms={pcm16_rms(chunk.pcm16):.1f} speech={is_speech}"
                )

            if first is None:
                if not is_speech:
                    waited = chunk.start_time + chunk.duration
                    if self.no_speech_timeout_sec is not None and waited >= self.no_speech_timeout_sec:
                        logger.info("no_speech_timeout", extra={"waited_sec": round(waited, 2)})
                        return None
                    continue
                first = chunk

            parts.append(chunk.pcm16)
            utter_bytes += len(chunk.pcm16)
            if is_speech:
                trailing_silence = 0
            else:
                trailing_silence += 1
                if trailing_silence >= self.silence_chunks_to_finalize:
                    return self._finish(parts, first, "silence")

            if self.max_utter_sec is not None:
                bytes_per_second = first.sample_rate * first.channels * 2
                if bytes_per_second > 0 and utter_bytes / float(bytes_per_second) >= self.max_utter_sec:
                    return self._finish(parts, first, "max_utter_sec")

        if first is None:
            return None
        return self._finish(parts, first, "stream_end")
