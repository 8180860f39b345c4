from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .errors import DiagnosisError


class Segment(str, Enum):
    PESSOA = "Pessoa"
    EMPRESA = "Empresa"
    ESCOLA = "Escola"


class UrgencyTier(str, Enum):
    LOW = "Baixa"
    MODERATE = "Moderada"
    HIGH = "Alta"


class DiagnosisSource(str, Enum):
    AI = "AI"
    DEFAULT = "Padrão"


class DiagnosisStage(str, Enum):
    NOT_STARTED = "not_started"
    SCORING = "scoring"
    AI_ATTEMPT = "ai_attempt"
    AI_SUCCESS = "ai_success"
    AI_FAILURE = "ai_failure"
    FALLBACK = "fallback"
    ASSEMBLED = "assembled"


@dataclass(frozen=True)
class ScoringOutcome:
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    weakness_ratio: float
    urgency_tier: UrgencyTier


@dataclass(frozen=True)
class DiagnosisNarrative:
    urgency_level: str
    urgency_description: str
    conclusion: str


@dataclass(frozen=True)
class DiagnosisResult:
    urgency_level: str
    urgency_description: str
    conclusion: str
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    source: DiagnosisSource

    def to_dict(self) -> dict[str, object]:
        return {
            "urgencyLevel": self.urgency_level,
            "urgencyDescription": self.urgency_description,
            "conclusion": self.conclusion,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "source": self.source.value,
        }


@dataclass(frozen=True)
class DiagnosisOutcome:
    result: DiagnosisResult
    notice: Union[DiagnosisError, None] = None
    stages: tuple[DiagnosisStage, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "result": self.result.to_dict(),
            "notice": self.notice.to_dict() if self.notice else None,
        }
