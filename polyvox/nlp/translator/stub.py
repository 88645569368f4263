from __future__ import annotations
from .base import Translator
from polyvox.contracts import TranslationRequest, TranslationResult, language_name

class StubTranslator(Translator):
    @property
    def name(self) -> str:
        return "stub"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        # Deterministic, test-friendly
        text = req.text.strip()
        corrected = text[:1].upper() + text[1:]
        if not corrected.endswith((".", "!", "?")):
            corrected += "."
        return TranslationResult(
            corrected_english=corrected,
            alternative_phrasings=(f"In other words: {corrected}", f"Put simply: {corrected}"),
            tone_notes="Neutral tone; suitable for everyday conversation.",
            translated_text=f"[{language_name(req.target_lang)}] {corrected}",
            provider=self.name,
        )
