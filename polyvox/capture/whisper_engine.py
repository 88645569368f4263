from __future__ import annotations

import importlib.util
import logging
import threading
from typing import Any, Optional

from polyvox.asr.faster_whisper_pcm16 import FasterWhisperPCM16Transcriber
from polyvox.audio.mic import MicError, SoundDeviceMicSource
from polyvox.audio.vad import EnergyVAD
from polyvox.capture.events import CaptureEvent, EventSink, RecognitionConfig
from polyvox.capture.utterance import SingleUtteranceCollector

logger = logging.getLogger(__name__)


class WhisperRecognitionEngine:
    """
    Speech-capture capability backed by the microphone, an energy VAD and
    faster-whisper.

    One ``start`` runs one capture on a worker thread: listen for a single
    phrase, transcribe it, emit ``result`` (only when text was recognized) and
    finally ``end``. Failures are emitted as ``error`` followed by ``end``.
    Only final results are reported.
    """

    def __init__(
        self,
        *,
        mic: SoundDeviceMicSource,
        collector: SingleUtteranceCollector,
        transcriber: FasterWhisperPCM16Transcriber,
        config: Optional[RecognitionConfig] = None,
    ) -> None:
        self.mic = mic
        self.collector = collector
        self.transcriber = transcriber
        self.config = config or RecognitionConfig(language=transcriber.language or "en")
        if self.config.continuous or self.config.interim_results:
            raise ValueError("only single-utterance, final-result capture is supported")
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._aborted = False
        self._thread: Optional[threading.Thread] = None

    def is_available(self) -> bool:
        if not _asr_runtime_available():
            return False
        return self.mic.is_available()

    def start(self, on_event: EventSink) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise RuntimeError("capture already running")
            self._stop_event = threading.Event()
            self._aborted = False
            stop_event = self._stop_event
            self._thread = threading.Thread(
                target=lambda: self._run(on_event, stop_event),
                name="polyvox-capture",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """Finish listening; whatever was heard so far is still transcribed."""
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()

    def abort(self) -> None:
        """Stop listening and discard the audio."""
        with self._lock:
            self._aborted = True
            if self._stop_event is not None:
                self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, on_event: EventSink, stop_event: threading.Event) -> None:
        try:
            utterance = self.collector.collect(self.mic.chunks(stop_event))
            if self._aborted:
                on_event(CaptureEvent.error("aborted"))
                return
            if utterance is None:
                return
            text = self.transcriber.transcribe_text(
                utterance.pcm16,
                sample_rate=utterance.sample_rate,
                channels=utterance.channels,
                language=self.config.language,
            )
            logger.info(
                "capture_transcribed",
                extra={
                    "reason": utterance.reason,
                    "duration_sec": round(utterance.duration, 2),
                    "chars": len(text),
                },
            )
            if self._aborted:
                on_event(CaptureEvent.error("aborted"))
            elif text:
                on_event(CaptureEvent.result(text))
        except MicError as e:
            logger.warning("capture_mic_error", extra={"error": str(e)})
            on_event(CaptureEvent.error(_mic_error_code(e), str(e)))
        except Exception as e:
            logger.exception("capture_engine_crash")
            on_event(CaptureEvent.error("transcription-failed", str(e)))
        finally:
            on_event(CaptureEvent.end())


def _asr_runtime_available() -> bool:
    return importlib.util.find_spec("faster_whisper") is not None


def _mic_error_code(err: MicError) -> str:
    cause: Any = err.__cause__
    text = f"{err} {cause or ''}".lower()
    if "permission" in text or "not allowed" in text or "access denied" in text:
        return "not-allowed"
    return "audio-capture"


def build_whisper_engine(args: Any) -> WhisperRecognitionEngine:
    mic = SoundDeviceMicSource(
        chunk_seconds=float(args.chunk_sec),
        sample_rate=int(args.sr),
        channels=int(args.channels),
        device=args.device,
    )
    collector = SingleUtteranceCollector(
        vad=EnergyVAD(rms_threshold=float(args.rms_th)),
        silence_chunks_to_finalize=int(args.silence_chunks),
        min_utter_sec=float(args.min_utter_sec),
        max_utter_sec=None if args.max_utter_sec is None else float(args.max_utter_sec),
        no_speech_timeout_sec=(
            None if args.no_speech_timeout_sec is None else float(args.no_speech_timeout_sec)
        ),
        debug=bool(args.debug),
    )
    transcriber = FasterWhisperPCM16Transcriber(
        model_size=str(args.asr_model),
        language=str(args.capture_language),
    )
    return WhisperRecognitionEngine(
        mic=mic,
        collector=collector,
        transcriber=transcriber,
        config=RecognitionConfig(language=str(args.capture_language)),
    )
