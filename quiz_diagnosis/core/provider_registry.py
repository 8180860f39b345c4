"""Maps configured provider names to adapters."""

from __future__ import annotations

from ..adapters.base import ChatProvider
from ..adapters.google_adapter import GoogleAdapter
from ..adapters.mock_adapter import MockAdapter
from ..adapters.openai_adapter import OpenAIAdapter
from ..adapters.openrouter_adapter import OpenRouterAdapter
from .errors import DiagnosisError, ErrorKind

PROVIDERS = {
    "openrouter": OpenRouterAdapter,
    "google": GoogleAdapter,
    "openai": OpenAIAdapter,
}


def create_provider(name: str, use_mocks: bool = False) -> ChatProvider:
    if use_mocks:
        return MockAdapter()
    factory = PROVIDERS.get((name or "").strip().lower())
    if factory is None:
        raise DiagnosisError(
            ErrorKind.CONFIGURATION,
            f"Provedor de IA desconhecido: '{name}'. Use um de: {', '.join(PROVIDERS)}.",
        )
    return factory()
