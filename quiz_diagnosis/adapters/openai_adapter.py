from __future__ import annotations

from typing import Union

import httpx
import openai

from ..core.errors import TIMEOUT_MESSAGE, DiagnosisError, ErrorKind
from ..core.prompt import Prompt
from .base import REQUEST_TIMEOUT_SECONDS, call_with_deadline, empty_content_error, require_credentials


class OpenAIAdapter:
    """Native SDK backend; retries are left to the orchestrator."""

    id = "openai"
    label = "OpenAI"

    def __init__(
        self,
        base_url: Union[str, None] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        http_client: Union[httpx.AsyncClient, None] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.http_client = http_client

    def _client(self, credential: str) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=credential,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=self.http_client,
        )

    async def _complete(self, client: openai.AsyncOpenAI, prompt: Prompt, model: str):
        try:
            return await client.chat.completions.create(
                model=model,
                messages=prompt.as_messages(),
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError as exc:
            raise DiagnosisError(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE, cause=exc) from exc
        except openai.APIStatusError as exc:
            raise DiagnosisError(
                ErrorKind.REQUEST,
                f"{self.label} ({exc.status_code}): {exc.message}",
                cause=exc,
            ) from exc
        except openai.APIError as exc:
            raise DiagnosisError(
                ErrorKind.REQUEST, f"Falha de comunicação com {self.label}: {exc}", cause=exc
            ) from exc

    async def send(self, prompt: Prompt, model: str, credential: str) -> str:
        model, credential = require_credentials(model, credential)
        client = self._client(credential)
        try:
            response = await call_with_deadline(
                self._complete(client, prompt, model), self.timeout, self.label
            )
        finally:
            # an injected http_client belongs to the caller
            if self.http_client is None:
                await client.close()
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None) if message else None
        if not isinstance(text, str) or not text.strip():
            raise empty_content_error(self.label)
        return text.strip()
