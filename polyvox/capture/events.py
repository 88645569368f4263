from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol


class CaptureEventKind(str, Enum):
    RESULT = "result"
    ERROR = "error"
    END = "end"


@dataclass(frozen=True)
class CaptureEvent:
    kind: CaptureEventKind
    text: Optional[str] = None  # RESULT: final transcript
    code: Optional[str] = None  # ERROR: engine error code
    detail: str = ""

    @classmethod
    def result(cls, text: str) -> "CaptureEvent":
        return cls(CaptureEventKind.RESULT, text=text)

    @classmethod
    def error(cls, code: str, detail: str = "") -> "CaptureEvent":
        return cls(CaptureEventKind.ERROR, code=code, detail=detail)

    @classmethod
    def end(cls) -> "CaptureEvent":
        return cls(CaptureEventKind.END)


@dataclass(frozen=True)
class RecognitionConfig:
    language: str = "en"
    continuous: bool = False
    interim_results: bool = False


EventSink = Callable[[CaptureEvent], None]


class SpeechRecognitionEngine(Protocol):
    """
    Speech-capture capability. Events are delivered asynchronously through the
    sink passed to ``start``; ``END`` is always the last event of a run.
    """

    config: RecognitionConfig

    def is_available(self) -> bool:
        ...

    def start(self, on_event: EventSink) -> None:
        ...

    def stop(self) -> None:
        ...

    def abort(self) -> None:
        ...
