from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar

import httpx

from ..core.errors import TIMEOUT_MESSAGE, DiagnosisError, ErrorKind
from ..core.prompt import Prompt

REQUEST_TIMEOUT_SECONDS = 15.0

T = TypeVar("T")


class ChatProvider(Protocol):
    id: str

    async def send(self, prompt: Prompt, model: str, credential: str) -> str: ...


def require_credentials(model: str, credential: str) -> tuple[str, str]:
    model = (model or "").strip()
    credential = (credential or "").strip()
    if not credential:
        raise DiagnosisError(
            ErrorKind.CONFIGURATION,
            "Chave da API de IA ausente. Configure o segredo para liberar o diagnóstico inteligente.",
        )
    if not model:
        raise DiagnosisError(
            ErrorKind.CONFIGURATION,
            "Modelo da IA não informado. Verifique as configurações administrativas.",
        )
    return model, credential


async def call_with_deadline(call: Awaitable[T], timeout: float, label: str) -> T:
    """Await ``call`` under a hard wall-clock deadline, mapping transport failures."""
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise DiagnosisError(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE, cause=exc) from exc
    except httpx.HTTPError as exc:
        raise DiagnosisError(
            ErrorKind.REQUEST, f"Falha de comunicação com {label}: {exc}", cause=exc
        ) from exc


def _error_message(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    error = payload.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    message = payload.get("message")
    return message if isinstance(message, str) else ""


def read_json_envelope(response: httpx.Response, label: str) -> Any:
    """Decode a provider response body, classifying failures by kind."""
    raw_body = response.text
    try:
        payload = json.loads(raw_body) if raw_body else None
    except json.JSONDecodeError as exc:
        payload = None
        decode_error = exc
    else:
        decode_error = None

    if response.is_error:
        message = _error_message(payload) or raw_body or (
            f"{label} retornou o status {response.status_code}."
        )
        raise DiagnosisError(
            ErrorKind.REQUEST,
            f"{label} ({response.status_code}): {message}",
            cause=payload if payload is not None else raw_body,
        )
    if decode_error is not None:
        raise DiagnosisError(
            ErrorKind.PARSING,
            f"Falha ao interpretar a resposta enviada pela {label}.",
            cause=raw_body,
        ) from decode_error
    return payload


def empty_content_error(label: str) -> DiagnosisError:
    return DiagnosisError(
        ErrorKind.PARSING,
        f"A {label} respondeu sem conteúdo utilizável. Tente novamente em instantes.",
    )
