import asyncio
import json
import sys
from pathlib import Path
from urllib.parse import unquote

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from quiz_diagnosis.core.leads import (
    LeadContact,
    LeadDeliveryError,
    build_lead_payload,
    build_whatsapp_message,
    send_lead,
    whatsapp_link,
)
from quiz_diagnosis.core.types import DiagnosisResult, DiagnosisSource, Segment

RESULT = DiagnosisResult(
    urgency_level="Alta",
    urgency_description="desc",
    conclusion="conc",
    strengths=("forte",),
    weaknesses=(),
    source=DiagnosisSource.DEFAULT,
)
CONTACT = LeadContact(name="Ana", email="ana@example.com")


def test_payload_contains_contact_and_full_result():
    payload = build_lead_payload(CONTACT, Segment.EMPRESA, RESULT)
    assert payload["name"] == "Ana"
    assert payload["segment"] == "Empresa"
    assert payload["urgencyLevel"] == "Alta"
    assert payload["strengths"] == ["forte"]
    assert payload["source"] == "Padrão"


def test_whatsapp_message_and_link():
    message = build_whatsapp_message(CONTACT, Segment.PESSOA, RESULT)
    assert "Nível de Urgência: Alta" in message
    assert "Telefone: Não informado" in message
    assert "- forte" in message
    assert "Nenhum" in message
    link = whatsapp_link("+55 (11) 99999-0000", message)
    assert link.startswith("https://wa.me/5511999990000?text=")
    assert unquote(link.split("text=", 1)[1]) == message


def test_send_lead_posts_json():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200)

    payload = build_lead_payload(CONTACT, Segment.ESCOLA, RESULT)
    asyncio.run(send_lead("https://hook.test/lead", payload, transport=httpx.MockTransport(handler)))
    assert seen["body"] == payload


def test_send_lead_failure_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    with pytest.raises(LeadDeliveryError):
        asyncio.run(send_lead("https://hook.test/lead", {}, transport=transport))
