from __future__ import annotations

import wave
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from polyvox.asr.faster_whisper_pcm16 import FasterWhisperPCM16Transcriber, pcm16_to_wav_buffer


def _seg(start: float, end: float, text: str, no_speech_prob: float = 0.05) -> SimpleNamespace:
    return SimpleNamespace(start=start, end=end, text=text, no_speech_prob=no_speech_prob)


def _with_model(tr: FasterWhisperPCM16Transcriber, monkeypatch, segments) -> MagicMock:
    fake_model = MagicMock()
    fake_model.transcribe.return_value = (segments, MagicMock())
    monkeypatch.setattr(tr, "_get_model", lambda: fake_model)
    return fake_model


def test_transcribe_utterance_wraps_segments(monkeypatch) -> None:
    tr = FasterWhisperPCM16Transcriber(model_size="base")
    fake_model = _with_model(
        tr,
        monkeypatch,
        [_seg(0.0, 1.2, " I go to "), _seg(1.2, 2.5, "store yesterday"), _seg(2.5, 2.6, "  ")],
    )

    out = tr.transcribe_utterance(b"\x00\x01" * 1600, sample_rate=16000, channels=1)
    assert [s.text for s in out] == ["I go to", "store yesterday"]
    assert (out[1].t0, out[1].t1) == (1.2, 2.5)
    audio, kwargs = fake_model.transcribe.call_args
    assert kwargs["language"] == "en"
    assert kwargs["vad_filter"] is False
    with wave.open(audio[0], "rb") as wf:
        assert wf.getframerate() == 16000
        assert wf.getnframes() == 1600


def test_transcribe_drops_probable_non_speech(monkeypatch) -> None:
    tr = FasterWhisperPCM16Transcriber(no_speech_threshold=0.5)
    _with_model(tr, monkeypatch, [_seg(0.0, 1.0, "Thank you.", no_speech_prob=0.9), _seg(1.0, 2.0, "hello")])
    assert tr.transcribe_text(b"\x00\x00" * 1600, sample_rate=16000, channels=1) == "hello"


def test_transcribe_text_joins_segments_with_language_override(monkeypatch) -> None:
    tr = FasterWhisperPCM16Transcriber()
    fake_model = _with_model(tr, monkeypatch, [_seg(0.0, 1.0, "hello"), _seg(1.0, 2.0, "world")])
    assert tr.transcribe_text(b"\x00\x00" * 1600, sample_rate=16000, channels=1, language="en-US") == "hello world"
    assert fake_model.transcribe.call_args.kwargs["language"] == "en-US"
    assert tr.transcribe_text(b"", sample_rate=16000, channels=1) == ""


def test_wav_buffer_is_rewound() -> None:
    buf = pcm16_to_wav_buffer(b"\x00\x00" * 10, sample_rate=8000, channels=2)
    assert buf.tell() == 0
    with wave.open(buf, "rb") as wf:
        assert wf.getnchannels() == 2
        assert wf.getnframes() == 5


def test_rejects_bad_threshold() -> None:
    with pytest.raises(ValueError):
        FasterWhisperPCM16Transcriber(no_speech_threshold=1.5)
