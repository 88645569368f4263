from __future__ import annotations

import json

import pytest
import requests

from fakes_http import FULL_FIELDS, FakeResponse, FakeSession, gemini_body
from polyvox.contracts import MISSING_CORRECTED, MISSING_NOTES, TranslationRequest
from polyvox.errors import ConfigurationError, MalformedResponse, TransportFailure
from polyvox.nlp.translator import gemini
from polyvox.nlp.translator.gemini import GeminiTranslator


def _req(text: str = "i go to store yesterday", lang: str = "es") -> TranslationRequest:
    return TranslationRequest(text=text, target_lang=lang)


def test_build_payload_requests_structured_json() -> None:
    payload = gemini.build_payload(_req(lang="ja"))
    prompt = payload["contents"][0]["parts"][0]["text"]
    assert '"i go to store yesterday"' in prompt
    assert "Japanese" in prompt
    assert "JSON" in payload["systemInstruction"]["parts"][0]["text"]

    cfg = payload["generationConfig"]
    assert cfg["responseMimeType"] == "application/json"
    schema = cfg["responseSchema"]
    assert schema["required"] == list(gemini.FIELD_ORDER)
    assert schema["propertyOrdering"] == list(gemini.FIELD_ORDER)
    assert schema["properties"]["alternative_phrasings"]["items"] == {"type": "STRING"}
    assert "Japanese" in schema["properties"]["translated_text"]["description"]


def test_translate_success_parses_all_fields() -> None:
    session = FakeSession(FakeResponse(200, gemini_body(FULL_FIELDS)))
    tr = GeminiTranslator("secret-key", model="m-1", session=session, timeout_sec=12)
    out = tr.translate(_req())

    assert out.corrected_english == "I went to the store yesterday."
    assert list(out.alternative_phrasings) == FULL_FIELDS["alternative_phrasings"]
    assert out.tone_notes.startswith("Neutral")
    assert out.translated_text == "Fui a la tienda ayer."
    assert out.complete
    assert out.provider == "gemini"

    call = session.calls[0]
    assert call["url"].endswith("/models/m-1:generateContent")
    assert call["headers"]["x-goog-api-key"] == "secret-key"
    assert "secret-key" not in call["url"]
    assert call["timeout"] == 12
    assert json.loads(call["data"])["generationConfig"]["responseMimeType"] == "application/json"


def test_translate_non_success_status_is_transport_failure() -> None:
    tr = GeminiTranslator("k", session=FakeSession(FakeResponse(500, {"error": "boom"})))
    with pytest.raises(TransportFailure) as exc:
        tr.translate(_req())
    assert exc.value.status_code == 500


def test_translate_network_error_is_transport_failure() -> None:
    tr = GeminiTranslator("k", session=FakeSession(requests.ConnectionError("unreachable")))
    with pytest.raises(TransportFailure):
        tr.translate(_req())


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, {"candidates": []}),
        FakeResponse(200, gemini_body("   ")),
        FakeResponse(200, gemini_body("this is not json")),
        FakeResponse(200, gemini_body("[1, 2, 3]")),
        FakeResponse(200, raw="<html>oops</html>"),
    ],
)
def test_translate_malformed_payloads(response: FakeResponse) -> None:
    tr = GeminiTranslator("k", session=FakeSession(response))
    with pytest.raises(MalformedResponse):
        tr.translate(_req())


def test_missing_field_gets_placeholder_not_error() -> None:
    fields = dict(FULL_FIELDS)
    del fields["tone_and_cultural_notes"]
    tr = GeminiTranslator("k", session=FakeSession(FakeResponse(200, gemini_body(fields))))
    out = tr.translate(_req())
    assert out.tone_notes == MISSING_NOTES
    assert out.missing_fields == ("tone_and_cultural_notes",)
    assert out.translated_text == "Fui a la tienda ayer."


def test_parse_structured_result_wrong_types_count_as_missing() -> None:
    out = gemini.parse_structured_result(
        json.dumps(
            {
                "corrected_english": "",
                "alternative_phrasings": "not a list",
                "tone_and_cultural_notes": "ok",
                "translated_text": "bien",
            }
        )
    )
    assert out.corrected_english == MISSING_CORRECTED
    assert list(out.alternative_phrasings) == []
    assert out.missing_fields == ("corrected_english", "alternative_phrasings")

    mixed = gemini.parse_structured_result(
        json.dumps(dict(FULL_FIELDS, alternative_phrasings=[None, {"x": 1}, 7, "  ", " Hello. "]))
    )
    assert mixed.alternative_phrasings == ("Hello.",)
    assert mixed.missing_fields == ()


@pytest.mark.parametrize("key", ["", "   ", gemini.PLACEHOLDER_API_KEY])
def test_missing_or_placeholder_key_fails_without_network(key: str) -> None:
    session = FakeSession(FakeResponse(200, gemini_body(FULL_FIELDS)))
    tr = GeminiTranslator(key, session=session)
    with pytest.raises(ConfigurationError):
        tr.translate(_req())
    assert session.calls == []
