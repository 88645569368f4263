from __future__ import annotations

import json
from typing import Any


def gemini_body(fields: Any) -> dict[str, Any]:
    text = fields if isinstance(fields, str) else json.dumps(fields)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


FULL_FIELDS = {
    "corrected_english": "I went to the store yesterday.",
    "alternative_phrasings": ["Yesterday I went to the store.", "I stopped by the store yesterday."],
    "tone_and_cultural_notes": "Neutral and casual. Fine for everyday conversation.",
    "translated_text": "Fui a la tienda ayer.",
}


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, raw: str | None = None) -> None:
        self.status_code = status_code
        self._body = body
        self._raw = raw

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._raw is not None:
            return json.loads(self._raw)
        return self._body


class FakeSession:
    """Replays scripted responses (or raises scripted exceptions) per POST."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
