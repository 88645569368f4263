from __future__ import annotations

import contextlib
import threading
from typing import Iterator, Optional

from polyvox.contracts import AudioChunk


class MicError(RuntimeError):
    pass


def _import_sounddevice():
    try:
        import sounddevice as sd
    except (ImportError, OSError) as e:
        # OSError: the PortAudio shared library itself could not be loaded.
        raise MicError(
            "sounddevice is not installed. Install with: python -m pip install sounddevice"
        ) from e
    return sd


class SoundDeviceMicSource:
    """
    Microphone source on top of `sounddevice` (PortAudio).
    Yields raw PCM16 chunks of fixed duration until the stop event is set.
    """

    def __init__(
        self,
        *,
        chunk_seconds: float = 0.3,
        sample_rate: int = 16000,
        channels: int = 1,
        device: Optional[int] = None,
    ) -> None:
        if chunk_seconds <= 0:
            raise ValueError("chunk_seconds must be > 0")
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if channels not in (1, 2):
            raise ValueError("channels must be 1 or 2")

        self.chunk_seconds = float(chunk_seconds)
        self.sample_rate = int(sample_rate)
        self.channels = int(channels)
        self.device = device

    @staticmethod
    def list_devices() -> str:
        return str(_import_sounddevice().query_devices())

    def is_available(self) -> bool:
        """True when PortAudio loads and an input device can be resolved."""
        try:
            sd = _import_sounddevice()
            info = sd.query_devices(self.device, kind="input")
        except Exception:
            return False
        return int(info.get("max_input_channels", 0)) >= self.channels

    @contextlib.contextmanager
    def _open_stream(self):
        sd = _import_sounddevice()
        try:
            stream = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                device=self.device,
                blocksize=0,
            )
        except Exception as e:
            raise MicError(
                "Failed to open microphone stream. "
                "Try --list-devices and select a device id with --device."
            ) from e

        with stream:
            yield stream

    def chunks(self, stop_event: Optional[threading.Event] = None) -> Iterator[AudioChunk]:
        frames_per_chunk = max(1, int(round(self.chunk_seconds * self.sample_rate)))
        duration = frames_per_chunk / self.sample_rate
        frames_seen = 0

        with self._open_stream() as stream:
            while stop_event is None or not stop_event.is_set():
                # Overflow only means PortAudio dropped frames; keep reading.
                data, _overflowed = stream.read(frames_per_chunk)
                start_time = frames_seen / self.sample_rate
                frames_seen += frames_per_chunk
                yield AudioChunk(
                    pcm16=bytes(data),
                    sample_rate=self.sample_rate,
                    channels=self.channels,
                    start_time=start_time,
                    duration=duration,
                )
