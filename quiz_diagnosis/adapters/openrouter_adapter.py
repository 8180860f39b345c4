from __future__ import annotations

import logging
from typing import Any, Union
from urllib.parse import quote

import httpx

from ..core.prompt import DIAGNOSIS_SCHEMA, Prompt
from .base import (
    REQUEST_TIMEOUT_SECONDS,
    call_with_deadline,
    empty_content_error,
    read_json_envelope,
    require_credentials,
)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

logger = logging.getLogger(__name__)


def header_safe(value: str) -> str:
    # httpx encodes header values as ASCII
    return value if value.isascii() else quote(value, safe=" ")


def extract_message_content(payload: Any) -> str:
    """Pull the assistant text out of a chat-completion envelope."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return ""

    content = message.get("content")
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "\n".join(p for p in parts if p).strip()
    if isinstance(content, dict) and isinstance(content.get("text"), str):
        return content["text"].strip()
    return ""


class OpenRouterAdapter:
    id = "openrouter"
    label = "OpenRouter"

    def __init__(
        self,
        base_url: str = OPENROUTER_BASE_URL,
        referer: str = "https://ubuntu-diagnostico.vercel.app",
        title: str = "Ubuntu Diagnostico IA",
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Union[httpx.AsyncBaseTransport, None] = None,
    ) -> None:
        self.base_url = base_url
        self.referer = referer
        self.title = title
        self.timeout = timeout
        self.transport = transport

    def build_payload(self, prompt: Prompt, model: str) -> dict:
        return {
            "model": model,
            "messages": prompt.as_messages(),
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "diagnosis_response", "schema": DIAGNOSIS_SCHEMA},
            },
        }

    async def send(self, prompt: Prompt, model: str, credential: str) -> str:
        model, credential = require_credentials(model, credential)
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": header_safe(self.title),
        }
        payload = self.build_payload(prompt, model)
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        ) as client:
            resp = await call_with_deadline(
                client.post("/chat/completions", json=payload, headers=headers),
                self.timeout,
                self.label,
            )
        data = read_json_envelope(resp, self.label)
        text = extract_message_content(data)
        if not text:
            raise empty_content_error(self.label)
        logger.debug("OpenRouter model %s answered with %d chars", model, len(text))
        return text
