from __future__ import annotations
import os
from typing import Any
from .base import Translator
from .gemini import GeminiTranslator
from .stub import StubTranslator

def get_translator(provider: str | None = None, **options: Any) -> Translator:
    provider = (provider or os.getenv("POLYVOX_TRANSLATOR", "gemini")).lower().strip()

    if provider == "stub":
        return StubTranslator()
    if provider == "gemini":
        return GeminiTranslator(**options)

    raise ValueError(f"Unknown translator provider: {provider}")
