"""Configuration loader for the quiz: questions, fallback copy, AI and integrations."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .types import Segment

CONFIG_PATH_ENV = "QUIZ_DIAGNOSIS_CONFIG"

PROVIDER_KEY_ENVS: dict[str, str] = {
    "openrouter": "OPENROUTER_API_KEY",
    "google": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}

PROVIDER_DEFAULT_MODELS: dict[str, str] = {
    "openrouter": "google/gemini-2.5-flash",
    "google": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
}

DEFAULT_QUESTIONS: dict[Segment, list[str]] = {
    Segment.PESSOA: [
        "Você já presenciou uma piada preconceituosa e preferiu não se posicionar?",
        "Você sente dificuldade em conversar sobre raça, gênero ou orientação sexual?",
        "Seu círculo de convivência é formado quase só por pessoas parecidas com você?",
        "Você desconhece os termos adequados para se referir a grupos minorizados?",
        "Você já deixou de indicar alguém por não se identificar com essa pessoa?",
        "Você evita consumir conteúdos produzidos por pessoas de outras realidades?",
        "Você acredita que o preconceito é um problema que não o afeta?",
        "Você nunca refletiu sobre os privilégios que possui?",
        "Você se sente inseguro para acolher alguém que sofreu discriminação?",
        "Você nunca participou de uma formação sobre diversidade e inclusão?",
    ],
    Segment.EMPRESA: [
        "A liderança da empresa é pouco diversa em gênero e raça?",
        "Não existe um canal seguro para denúncias de discriminação?",
        "Os processos seletivos não têm metas ou ações afirmativas?",
        "Não há dados sobre a diversidade do quadro de colaboradores?",
        "Já houve casos de assédio ou discriminação sem resposta adequada?",
        "Os benefícios não contemplam diferentes configurações familiares?",
        "A comunicação interna não utiliza linguagem inclusiva?",
        "Não existem grupos de afinidade ou letramento para os times?",
        "A acessibilidade física e digital não é avaliada com frequência?",
        "Diversidade e inclusão não fazem parte dos indicadores da empresa?",
    ],
    Segment.ESCOLA: [
        "O material didático raramente representa a diversidade dos estudantes?",
        "Não há protocolo para casos de bullying motivado por preconceito?",
        "Os professores não recebem formação sobre educação antirracista?",
        "A escola não adapta atividades para estudantes com deficiência?",
        "Famílias de diferentes configurações não se sentem representadas?",
        "O calendário escolar ignora datas ligadas à diversidade?",
        "A equipe pedagógica é pouco diversa?",
        "Não existem espaços de escuta para estudantes sobre discriminação?",
        "A escola não acompanha dados de evasão por perfil de estudante?",
        "Diversidade não aparece no projeto político-pedagógico?",
    ],
}


@dataclass(frozen=True)
class DiagnosisCopy:
    low: str = (
        "Sua jornada de inclusão está bem encaminhada. Manter a consistência é "
        "o próximo desafio."
    )
    medium: str = (
        "Existem lacunas importantes que já impactam pessoas e resultados. "
        "Agir agora evita que se tornem crises."
    )
    high: str = (
        "Os sinais indicam riscos relevantes de exclusão. É urgente estruturar "
        "um plano de ação."
    )
    conclusion_default: str = (
        "Este diagnóstico é um ponto de partida. Converse com um especialista da "
        "Ubuntu para construir um plano de ação sob medida."
    )


@dataclass(frozen=True)
class AIConfig:
    enabled: bool = True
    provider: str = "openrouter"
    model: str = PROVIDER_DEFAULT_MODELS["openrouter"]
    credential: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.model.strip() and self.credential.strip())


@dataclass(frozen=True)
class IntegrationsConfig:
    webhook_url: str = ""
    whatsapp_number: str = ""


@dataclass(frozen=True)
class AppConfig:
    questions: dict[Segment, list[str]] = field(
        default_factory=lambda: {seg: list(qs) for seg, qs in DEFAULT_QUESTIONS.items()}
    )
    diagnosis_copy: DiagnosisCopy = field(default_factory=DiagnosisCopy)
    ai: AIConfig = field(default_factory=AIConfig)
    integrations: IntegrationsConfig = field(default_factory=IntegrationsConfig)

    def questions_for(self, segment: Segment) -> list[str]:
        return self.questions.get(Segment(segment), [])


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else {}


def parse_app_config(raw: Mapping[str, Any]) -> AppConfig:
    """Build an ``AppConfig`` from the camelCase admin configuration blob."""
    base = AppConfig()

    questions = dict(base.questions)
    for name, items in _section(raw, "questions").items():
        try:
            segment = Segment(name)
        except ValueError:
            continue
        if isinstance(items, list):
            questions[segment] = [str(item) for item in items]

    copy_raw = _section(raw, "diagnosisCopy")
    copy_values = {
        "low": copy_raw.get("low"),
        "medium": copy_raw.get("medium"),
        "high": copy_raw.get("high"),
        "conclusion_default": copy_raw.get("conclusionDefault"),
    }
    diagnosis_copy = replace(
        base.diagnosis_copy, **{k: str(v) for k, v in copy_values.items() if v}
    )

    ai_raw = _section(raw, "ai")
    provider = str(ai_raw.get("provider") or base.ai.provider)
    ai = AIConfig(
        enabled=bool(ai_raw.get("enabled", base.ai.enabled)),
        provider=provider,
        model=str(ai_raw.get("model") or PROVIDER_DEFAULT_MODELS.get(provider, "")),
        credential=str(ai_raw.get("apiKey") or ai_raw.get("openRouterApiKey") or ""),
    )

    integrations_raw = _section(raw, "integrations")
    integrations = IntegrationsConfig(
        webhook_url=str(integrations_raw.get("webhookUrl") or ""),
        whatsapp_number=str(integrations_raw.get("whatsappNumber") or ""),
    )
    return AppConfig(
        questions=questions,
        diagnosis_copy=diagnosis_copy,
        ai=ai,
        integrations=integrations,
    )


def resolve_ai_config(ai: AIConfig, environ: Optional[Mapping[str, str]] = None) -> AIConfig:
    """Fill a blank credential or model from process-level defaults.

    Runs once at the API/CLI boundary; the pipeline itself only sees the
    resolved value.
    """
    env = os.environ if environ is None else environ
    credential = ai.credential.strip()
    if not credential:
        key_env = PROVIDER_KEY_ENVS.get(ai.provider, "")
        credential = env.get(key_env, "").strip() if key_env else ""
    model = ai.model.strip() or PROVIDER_DEFAULT_MODELS.get(ai.provider, "")
    return replace(ai, credential=credential, model=model)


class AppConfigLoader:
    """Loads the quiz configuration from config/quiz.yaml (YAML or JSON)."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        if config_path is None:
            env_path = os.environ.get(CONFIG_PATH_ENV, "").strip()
            if env_path:
                config_path = Path(env_path)
            else:
                project_root = Path(__file__).parent.parent.parent
                config_path = project_root / "config" / "quiz.yaml"
        self.config_path = config_path
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        if self._config is not None:
            return self._config
        raw: Any = {}
        if self.config_path.exists():
            with self.config_path.open("r", encoding="utf-8") as handle:
                raw = yaml.safe_load(handle) or {}
        self._config = parse_app_config(raw if isinstance(raw, Mapping) else {})
        return self._config

    def reload(self) -> AppConfig:
        self._config = None
        return self.load()
