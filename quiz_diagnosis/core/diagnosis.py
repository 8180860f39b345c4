from __future__ import annotations

import logging
from typing import Union

from ..adapters.base import ChatProvider, require_credentials
from .app_config import AIConfig, AppConfig, DiagnosisCopy
from .errors import UNEXPECTED_MESSAGE, DiagnosisError, ErrorKind
from .prompt import Prompt, build_prompt
from .retry import BASE_DELAY_SECONDS, MAX_ATTEMPTS, run_with_retries
from .scorer import Answers, score
from .types import (
    DiagnosisNarrative,
    DiagnosisOutcome,
    DiagnosisResult,
    DiagnosisSource,
    DiagnosisStage,
    ScoringOutcome,
    Segment,
    UrgencyTier,
)
from .utils import validate_narrative

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "IA não configurada. Usando análise padrão."
PROVIDER_UNAVAILABLE_MESSAGE = "Provedor de IA indisponível. Usando análise padrão."


async def request_narrative(
    provider: ChatProvider,
    prompt: Prompt,
    model: str,
    credential: str,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
) -> DiagnosisNarrative:
    """Ask the provider for a narrative, retrying transient failures."""
    model, credential = require_credentials(model, credential)

    async def attempt() -> DiagnosisNarrative:
        try:
            raw_text = await provider.send(prompt, model, credential)
        except DiagnosisError:
            raise
        except Exception as exc:
            raise DiagnosisError(ErrorKind.REQUEST, UNEXPECTED_MESSAGE, cause=exc) from exc
        return validate_narrative(raw_text)

    return await run_with_retries(attempt, max_attempts=max_attempts, base_delay=base_delay)


def fallback_narrative(tier: UrgencyTier, copy: DiagnosisCopy) -> DiagnosisNarrative:
    descriptions = {
        UrgencyTier.LOW: copy.low,
        UrgencyTier.MODERATE: copy.medium,
        UrgencyTier.HIGH: copy.high,
    }
    return DiagnosisNarrative(
        urgency_level=tier.value,
        urgency_description=descriptions[tier],
        conclusion=copy.conclusion_default,
    )


def _result(
    scoring: ScoringOutcome, narrative: DiagnosisNarrative, source: DiagnosisSource
) -> DiagnosisResult:
    return DiagnosisResult(
        urgency_level=narrative.urgency_level,
        urgency_description=narrative.urgency_description,
        conclusion=narrative.conclusion,
        strengths=scoring.strengths,
        weaknesses=scoring.weaknesses,
        source=source,
    )


async def assemble(
    segment: Segment,
    scoring: ScoringOutcome,
    ai_config: AIConfig,
    provider: Union[ChatProvider, None],
    copy: DiagnosisCopy,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
    provider_error: Union[DiagnosisError, None] = None,
) -> DiagnosisOutcome:
    """Combine the scoring with an AI narrative, or with the static copy.

    Never raises for AI failures: the error is returned as ``notice`` next
    to a fallback result so the caller can still show a diagnosis.
    ``provider_error`` is the reason ``provider`` could not be built, if any.
    """
    stages = [DiagnosisStage.NOT_STARTED, DiagnosisStage.SCORING]
    notice: Union[DiagnosisError, None] = None

    if ai_config.enabled:
        if provider is None:
            notice = provider_error or DiagnosisError(
                ErrorKind.CONFIGURATION, PROVIDER_UNAVAILABLE_MESSAGE
            )
            logger.info(
                "AI enabled without a usable provider (%s), using default copy",
                ai_config.provider,
            )
        elif not ai_config.is_complete:
            notice = DiagnosisError(ErrorKind.CONFIGURATION, NOT_CONFIGURED_MESSAGE)
            logger.info("AI enabled without model or credential, using default copy")
        else:
            stages.append(DiagnosisStage.AI_ATTEMPT)
            prompt = build_prompt(segment, scoring.strengths, scoring.weaknesses)
            try:
                narrative = await request_narrative(
                    provider,
                    prompt,
                    ai_config.model,
                    ai_config.credential,
                    max_attempts=max_attempts,
                    base_delay=base_delay,
                )
            except DiagnosisError as exc:
                notice = exc
                stages.append(DiagnosisStage.AI_FAILURE)
                logger.warning(
                    "AI diagnosis via %s failed (%s): %s",
                    getattr(provider, "id", "provider"),
                    exc.kind.value,
                    exc.message,
                )
            else:
                stages += [DiagnosisStage.AI_SUCCESS, DiagnosisStage.ASSEMBLED]
                return DiagnosisOutcome(
                    result=_result(scoring, narrative, DiagnosisSource.AI),
                    stages=tuple(stages),
                )

    stages += [DiagnosisStage.FALLBACK, DiagnosisStage.ASSEMBLED]
    narrative = fallback_narrative(scoring.urgency_tier, copy)
    return DiagnosisOutcome(
        result=_result(scoring, narrative, DiagnosisSource.DEFAULT),
        notice=notice,
        stages=tuple(stages),
    )


async def run_diagnosis(
    segment: Segment,
    answers: Answers,
    config: AppConfig,
    provider: Union[ChatProvider, None],
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
    provider_error: Union[DiagnosisError, None] = None,
) -> DiagnosisOutcome:
    """Score a completed quiz and assemble its diagnosis.

    ``config.ai`` must already be resolved (see ``resolve_ai_config``).
    """
    segment = Segment(segment)
    scoring = score(config.questions_for(segment), answers)
    logger.info(
        "Scored %s quiz: %d weaknesses of %d (%s)",
        segment.value,
        len(scoring.weaknesses),
        len(scoring.strengths) + len(scoring.weaknesses),
        scoring.urgency_tier.value,
    )
    return await assemble(
        segment,
        scoring,
        config.ai,
        provider,
        config.diagnosis_copy,
        max_attempts=max_attempts,
        base_delay=base_delay,
        provider_error=provider_error,
    )
