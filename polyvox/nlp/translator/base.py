from __future__ import annotations
from abc import ABC, abstractmethod
from polyvox.contracts import TranslationRequest, TranslationResult

class Translator(ABC):
    """One structured correction + translation attempt; retries live in the orchestrator."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    def check_ready(self) -> None:
        """Raise ConfigurationError when the translator cannot be used at all."""

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult: ...
