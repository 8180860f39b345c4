from __future__ import annotations

from typing import Any, Union

import httpx

from ..core.prompt import DIAGNOSIS_SCHEMA, Prompt
from .base import (
    REQUEST_TIMEOUT_SECONDS,
    call_with_deadline,
    empty_content_error,
    read_json_envelope,
    require_credentials,
)

GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _to_gemini_schema(schema: dict) -> dict:
    # Gemini takes an OpenAPI subset: upper-case types, no additionalProperties.
    converted: dict[str, Any] = {"type": schema["type"].upper()}
    if "properties" in schema:
        converted["properties"] = {
            name: _to_gemini_schema(prop) for name, prop in schema["properties"].items()
        }
    if "required" in schema:
        converted["required"] = list(schema["required"])
    if "description" in schema:
        converted["description"] = schema["description"]
    return converted


def extract_candidate_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts).strip()


class GoogleAdapter:
    id = "google"
    label = "API Gemini"

    def __init__(
        self,
        base_url: str = GOOGLE_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Union[httpx.AsyncBaseTransport, None] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def build_payload(self, prompt: Prompt) -> dict:
        return {
            "systemInstruction": {"parts": [{"text": prompt.instructions}]},
            "contents": [{"role": "user", "parts": [{"text": prompt.data}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": _to_gemini_schema(DIAGNOSIS_SCHEMA),
                "candidateCount": 1,
            },
        }

    async def send(self, prompt: Prompt, model: str, credential: str) -> str:
        model, credential = require_credentials(model, credential)
        headers = {"Content-Type": "application/json", "x-goog-api-key": credential}
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        ) as client:
            resp = await call_with_deadline(
                client.post(
                    f"/models/{model}:generateContent",
                    json=self.build_payload(prompt),
                    headers=headers,
                ),
                self.timeout,
                self.label,
            )
        data = read_json_envelope(resp, self.label)
        text = extract_candidate_text(data)
        if not text:
            raise empty_content_error(self.label)
        return text
