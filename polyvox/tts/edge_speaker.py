from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import threading
from typing import Optional

logger = logging.getLogger(__name__)

# Edge neural voices per target language.
EDGE_VOICES: dict[str, str] = {
    "es": "es-ES-ElviraNeural",
    "fr": "fr-FR-DeniseNeural",
    "de": "de-DE-KatjaNeural",
    "hi": "hi-IN-SwaraNeural",
    "ja": "ja-JP-NanamiNeural",
    "ko": "ko-KR-SunHiNeural",
}


async def _edge_synthesize(text: str, voice: str, out_path: str) -> None:
    import edge_tts

    communicate = edge_tts.Communicate(text, voice)
    await communicate.save(out_path)


def _play_file(path: str) -> None:
    import sounddevice as sd
    import soundfile as sf

    data, sample_rate = sf.read(path)
    sd.play(data, sample_rate)
    sd.wait()


class EdgeTTSSpeaker:
    """
    Speak text in the target language. ``speak`` returns immediately; synthesis
    and playback run on a daemon thread and failures are only logged.
    """

    def __init__(self, voices: Optional[dict[str, str]] = None) -> None:
        self.voices = dict(EDGE_VOICES if voices is None else voices)

    def voice_for(self, language: str) -> str:
        try:
            return self.voices[language]
        except KeyError:
            raise ValueError(f"No voice configured for language: {language!r}") from None

    def speak(self, text: str, language: str) -> Optional[threading.Thread]:
        text = (text or "").strip()
        if not text:
            return None
        voice = self.voice_for(language)
        thread = threading.Thread(
            target=self._speak_blocking,
            args=(text, voice),
            name="polyvox-tts",
            daemon=True,
        )
        thread.start()
        return thread

    def _speak_blocking(self, text: str, voice: str) -> None:
        fd, tmp_path = tempfile.mkstemp(suffix=".mp3", prefix="polyvox_tts_")
        os.close(fd)
        try:
            asyncio.run(_edge_synthesize(text, voice, tmp_path))
            _play_file(tmp_path)
            logger.info("tts_played", extra={"voice": voice, "chars": len(text)})
        except Exception:
            logger.exception("tts_failed", extra={"voice": voice})
        finally:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
