from __future__ import annotations

import json

from ..core.prompt import Prompt

MOCK_NARRATIVE = {
    "urgencyLevel": "Moderada",
    "urgencyDescription": "Resposta simulada para testes.",
    "conclusion": "Converse com um especialista para montar um plano de ação.",
}


class MockAdapter:
    """Simple adapter that returns canned responses for testing."""

    def __init__(self, text: str | None = None) -> None:
        self.id = "mock"
        self.text = text if text is not None else json.dumps(MOCK_NARRATIVE, ensure_ascii=False)
        self.calls: list[tuple[Prompt, str]] = []

    async def send(self, prompt: Prompt, model: str, credential: str) -> str:
        self.calls.append((prompt, model))
        return self.text
