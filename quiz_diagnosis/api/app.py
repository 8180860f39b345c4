from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import replace

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ..core.app_config import AIConfig, AppConfigLoader, resolve_ai_config
from ..core.diagnosis import request_narrative, run_diagnosis
from ..core.errors import DiagnosisError, ErrorKind
from ..core.leads import (
    LeadContact,
    LeadDeliveryError,
    build_lead_payload,
    build_whatsapp_message,
    send_lead,
    whatsapp_link,
)
from ..core.logging_utils import configure_logging
from ..core.prompt import build_prompt
from ..core.provider_registry import create_provider
from ..core.types import DiagnosisResult, DiagnosisSource, Segment

load_dotenv()

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION: 400,
    ErrorKind.REQUEST: 502,
    ErrorKind.PARSING: 502,
    ErrorKind.TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(lifespan=lifespan)
config_loader = AppConfigLoader()


def _use_mocks() -> bool:
    return os.environ.get("QUIZ_DIAGNOSIS_ENV", "real").lower() == "mock"


def _resolve(ai: AIConfig) -> AIConfig:
    resolved = resolve_ai_config(ai)
    if _use_mocks() and not resolved.credential:
        resolved = replace(resolved, credential="mock")
    return resolved


class DiagnoseRequest(BaseModel):
    segment: Segment
    strengths: list[str]
    weaknesses: list[str]
    model: str
    apiKey: str | None = None
    provider: str = "openrouter"


class SubmitRequest(BaseModel):
    segment: Segment
    answers: list[bool]


class DiagnosisResultModel(BaseModel):
    urgencyLevel: str
    urgencyDescription: str
    conclusion: str
    strengths: list[str]
    weaknesses: list[str]
    source: DiagnosisSource


class LeadRequest(BaseModel):
    name: str
    email: str
    phone: str = ""
    company: str = ""
    segment: Segment
    result: DiagnosisResultModel


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/segments")
def list_segments() -> dict:
    config = config_loader.load()
    return {
        "segments": [
            {"segment": segment.value, "questions": config.questions_for(segment)}
            for segment in Segment
        ]
    }


@app.post("/api/diagnose")
async def diagnose(req: DiagnoseRequest) -> dict:
    if not req.model.strip():
        raise HTTPException(status_code=400, detail="Modelo de IA inválido ou ausente na requisição.")

    ai = _resolve(
        AIConfig(enabled=True, provider=req.provider, model=req.model, credential=req.apiKey or "")
    )
    if not ai.credential:
        raise HTTPException(
            status_code=400,
            detail="Chave da API de IA não fornecida. Configure no painel administrativo.",
        )

    try:
        provider = create_provider(ai.provider, _use_mocks())
        narrative = await request_narrative(
            provider,
            build_prompt(req.segment, req.strengths, req.weaknesses),
            ai.model,
            ai.credential,
        )
    except DiagnosisError as exc:
        logger.warning("AI diagnosis request failed (%s): %s", exc.kind.value, exc.message)
        raise HTTPException(status_code=STATUS_BY_KIND[exc.kind], detail=exc.to_dict()) from exc

    return {
        "urgencyLevel": narrative.urgency_level,
        "urgencyDescription": narrative.urgency_description,
        "conclusion": narrative.conclusion,
    }


@app.post("/api/quiz/submit")
async def submit_quiz(req: SubmitRequest) -> dict:
    config = config_loader.load()
    questions = config.questions_for(req.segment)
    if len(req.answers) != len(questions):
        raise HTTPException(
            status_code=400,
            detail=f"Esperadas {len(questions)} respostas, recebidas {len(req.answers)}.",
        )

    config = replace(config, ai=_resolve(config.ai))
    provider = None
    provider_error = None
    if config.ai.enabled:
        try:
            provider = create_provider(config.ai.provider, _use_mocks())
        except DiagnosisError as exc:
            logger.warning("Provider unavailable: %s", exc.message)
            provider_error = exc

    outcome = await run_diagnosis(
        req.segment, req.answers, config, provider, provider_error=provider_error
    )
    return outcome.to_dict()


@app.post("/api/leads")
async def submit_lead(req: LeadRequest) -> dict:
    config = config_loader.load()
    contact = LeadContact(name=req.name, email=req.email, phone=req.phone, company=req.company)
    result = DiagnosisResult(
        urgency_level=req.result.urgencyLevel,
        urgency_description=req.result.urgencyDescription,
        conclusion=req.result.conclusion,
        strengths=tuple(req.result.strengths),
        weaknesses=tuple(req.result.weaknesses),
        source=req.result.source,
    )

    delivered = False
    webhook_url = config.integrations.webhook_url
    if webhook_url:
        try:
            await send_lead(webhook_url, build_lead_payload(contact, req.segment, result))
        except LeadDeliveryError as exc:
            logger.error("Lead webhook failed: %s", exc)
            raise HTTPException(
                status_code=502, detail="Falha ao enviar informações. Tente novamente."
            ) from exc
        delivered = True

    whatsapp_url = None
    if config.integrations.whatsapp_number:
        whatsapp_url = whatsapp_link(
            config.integrations.whatsapp_number,
            build_whatsapp_message(contact, req.segment, result),
        )
    return {"delivered": delivered, "whatsappUrl": whatsapp_url}
