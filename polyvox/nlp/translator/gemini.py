"""
Gemini ``generateContent`` client for the four-part correction/translation task.

The request pins the response to JSON with an explicit schema, so the embedded
text at ``candidates[0].content.parts[0].text`` can be parsed directly. One call
of ``translate`` is exactly one HTTP attempt.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

from polyvox.contracts import (
    MISSING_CORRECTED,
    MISSING_NOTES,
    MISSING_TRANSLATION,
    TranslationRequest,
    TranslationResult,
    language_name,
)
from polyvox.errors import ConfigurationError, MalformedResponse, TransportFailure

from .base import Translator

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY_HERE"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

SYSTEM_INSTRUCTION = (
    "You are an expert polyglot assistant. "
    "You must respond ONLY with a valid JSON object matching the provided schema."
)

FIELD_ORDER: tuple[str, ...] = (
    "corrected_english",
    "alternative_phrasings",
    "tone_and_cultural_notes",
    "translated_text",
)


def build_prompt(text: str, target_name: str) -> str:
    return (
        f'The user spoke the following English text: "{text}".\n'
        "Perform the following tasks and return the result as a single JSON object:\n"
        "1. Correct the grammar and natural flow of the English text (Proofreader/Rewriter).\n"
        "2. Provide two short, alternative English phrasings for the corrected text.\n"
        "3. Provide a short, actionable note on the tone or cultural context of the "
        "corrected phrase (max 3 sentences).\n"
        f"4. Translate the corrected English text into the target language: {target_name}.\n"
    )


def build_response_schema(target_name: str) -> dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {
            "corrected_english": {
                "type": "STRING",
                "description": "Grammatically corrected and naturally flowing version of the original English text.",
            },
            "alternative_phrasings": {
                "type": "ARRAY",
                "description": "Two alternative ways to phrase the corrected English text.",
                "items": {"type": "STRING"},
            },
            "tone_and_cultural_notes": {
                "type": "STRING",
                "description": "Short (max 3 sentences) actionable tip about the tone or cultural context of the corrected English phrase.",
            },
            "translated_text": {
                "type": "STRING",
                "description": f"The final translation of the corrected English text into the target language: {target_name}.",
            },
        },
        "required": list(FIELD_ORDER),
        "propertyOrdering": list(FIELD_ORDER),
    }


def build_payload(req: TranslationRequest) -> dict[str, Any]:
    target_name = language_name(req.target_lang)
    return {
        "contents": [{"parts": [{"text": build_prompt(req.text.strip(), target_name)}]}],
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": build_response_schema(target_name),
        },
    }


def extract_payload_text(body: Any) -> str:
    """Pull the generated text out of a generateContent response body."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponse("API response was empty or malformed.") from e
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponse("API response was empty or malformed.")
    return text.strip()


def _string_field(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_structured_result(text: str, provider: str = "gemini") -> TranslationResult:
    """
    Parse the model's JSON text. Unparsable text or a non-object is malformed;
    an object with fields missing is accepted with per-field placeholders.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedResponse(f"response text is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"expected a JSON object, got {type(data).__name__}")

    missing: list[str] = []

    corrected = _string_field(data, "corrected_english")
    if corrected is None:
        missing.append("corrected_english")

    raw_alts = data.get("alternative_phrasings")
    if isinstance(raw_alts, list):
        alternatives = tuple(a.strip() for a in raw_alts if isinstance(a, str) and a.strip())
    else:
        alternatives = ()
        missing.append("alternative_phrasings")

    notes = _string_field(data, "tone_and_cultural_notes")
    if notes is None:
        missing.append("tone_and_cultural_notes")

    translated = _string_field(data, "translated_text")
    if translated is None:
        missing.append("translated_text")

    return TranslationResult(
        corrected_english=corrected or MISSING_CORRECTED,
        alternative_phrasings=alternatives,
        tone_notes=notes or MISSING_NOTES,
        translated_text=translated or MISSING_TRANSLATION,
        provider=provider,
        missing_fields=tuple(missing),
    )


class GeminiTranslator(Translator):
    def __init__(
        self,
        api_key: str = "",
        *,
        model: str = DEFAULT_MODEL,
        api_base: str = DEFAULT_API_BASE,
        timeout_sec: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0")
        self.api_key = (api_key or "").strip()
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout_sec = float(timeout_sec)
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def check_ready(self) -> None:
        if not self.api_key or self.api_key == PLACEHOLDER_API_KEY:
            raise ConfigurationError("Gemini API key is missing or still the placeholder value")

    def translate(self, req: TranslationRequest) -> TranslationResult:
        self.check_ready()
        # Key goes in a header so it never shows up in logged URLs.
        try:
            resp = self.session.post(
                self.url,
                headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
                data=json.dumps(build_payload(req)),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as e:
            raise TransportFailure(f"request failed: {type(e).__name__}") from e

        if not resp.ok:
            raise TransportFailure(f"HTTP error! status: {resp.status_code}", status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedResponse("response body is not JSON") from e

        result = parse_structured_result(extract_payload_text(body), provider=self.name)
        if result.missing_fields:
            logger.warning("translate_fields_missing", extra={"missing_fields": list(result.missing_fields)})
        return result
