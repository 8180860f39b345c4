from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from urllib.parse import quote

import httpx

from .types import DiagnosisResult, Segment

WEBHOOK_TIMEOUT_SECONDS = 15.0


class LeadDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class LeadContact:
    name: str
    email: str
    phone: str = ""
    company: str = ""


def build_lead_payload(
    contact: LeadContact, segment: Segment, result: DiagnosisResult
) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "company": contact.company,
        "segment": Segment(segment).value,
    }
    payload.update(result.to_dict())
    return payload


def _bullets(items: tuple[str, ...]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "Nenhum"


def build_whatsapp_message(
    contact: LeadContact, segment: Segment, result: DiagnosisResult
) -> str:
    lines = [
        "Olá! Gostaria de saber mais sobre a consultoria de D&I.",
        "",
        f"*Meu Diagnóstico ({Segment(segment).value}):*",
        f"- Nível de Urgência: {result.urgency_level}",
        "",
        "*Contato:*",
        f"- Nome: {contact.name}",
        f"- E-mail: {contact.email}",
        f"- Telefone: {contact.phone or 'Não informado'}",
        f"- Empresa: {contact.company or 'Não informada'}",
        "",
        "*Pontos Fortes (Respondi 'Não'):*",
        _bullets(result.strengths),
        "",
        "*Pontos de Melhoria (Respondi 'Sim'):*",
        _bullets(result.weaknesses),
    ]
    return "\n".join(lines).strip()


def whatsapp_link(number: str, message: str) -> str:
    digits = "".join(ch for ch in number if ch.isdigit())
    return f"https://wa.me/{digits}?text={quote(message)}"


async def send_lead(
    webhook_url: str,
    payload: dict[str, object],
    transport: Union[httpx.AsyncBaseTransport, None] = None,
) -> None:
    try:
        async with httpx.AsyncClient(
            transport=transport, timeout=WEBHOOK_TIMEOUT_SECONDS
        ) as client:
            resp = await client.post(webhook_url, json=payload)
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise LeadDeliveryError(
            f"Webhook respondeu com o status {e.response.status_code}."
        ) from e
    except httpx.HTTPError as e:
        raise LeadDeliveryError(f"Falha ao enviar informações ao webhook: {e}") from e
