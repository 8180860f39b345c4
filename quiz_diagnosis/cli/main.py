from __future__ import annotations

import asyncio
import json
import os
from dataclasses import replace
from typing import Optional

import typer
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from ..core.app_config import AppConfigLoader, resolve_ai_config
from ..core.diagnosis import run_diagnosis
from ..core.errors import DiagnosisError
from ..core.logging_utils import configure_logging
from ..core.provider_registry import create_provider
from ..core.types import DiagnosisSource, Segment

app = typer.Typer()

YES_TOKENS = {"s", "sim", "y", "yes", "1", "true"}
NO_TOKENS = {"n", "nao", "não", "no", "0", "false"}


def parse_answers(raw: str) -> list[bool]:
    answers = []
    for token in raw.split(","):
        token = token.strip().lower()
        if token in YES_TOKENS:
            answers.append(True)
        elif token in NO_TOKENS:
            answers.append(False)
        else:
            raise typer.BadParameter(f"Resposta inválida: '{token}' (use s/n)")
    return answers


@app.command("segments")
def list_segments() -> None:
    """List the quiz segments and how many questions each one has."""
    config = AppConfigLoader().load()
    for segment in Segment:
        typer.echo(f"📋 {segment.value}: {len(config.questions_for(segment))} perguntas")


@app.command("diagnose")
def diagnose(
    segment: Segment,
    answers: Optional[str] = typer.Option(None, help="Respostas separadas por vírgula, ex.: s,n,s"),
    provider: Optional[str] = typer.Option(None, help="openrouter, google ou openai"),
    model: Optional[str] = typer.Option(None, help="Modelo de IA a utilizar"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Usar apenas a análise padrão"),
    as_json: bool = typer.Option(False, "--json", help="Imprimir o resultado em JSON"),
) -> None:
    """Answer a quiz segment and print its diagnosis."""
    configure_logging()
    use_mocks = os.environ.get("QUIZ_DIAGNOSIS_ENV", "real").lower() == "mock"
    config = AppConfigLoader().load()
    questions = config.questions_for(segment)

    if answers is None:
        parsed = [typer.confirm(f"{idx}. {q}") for idx, q in enumerate(questions, start=1)]
    else:
        parsed = parse_answers(answers)
    if len(parsed) != len(questions):
        typer.echo(f"❌ Esperadas {len(questions)} respostas, recebidas {len(parsed)}.", err=True)
        raise typer.Exit(1)

    ai = replace(
        config.ai,
        enabled=config.ai.enabled and not no_ai,
        provider=provider or config.ai.provider,
        model=model or config.ai.model,
    )
    ai = resolve_ai_config(ai)
    if use_mocks and not ai.credential:
        ai = replace(ai, credential="mock")
    config = replace(config, ai=ai)

    chat_provider = None
    provider_error = None
    if ai.enabled:
        try:
            chat_provider = create_provider(ai.provider, use_mocks)
        except DiagnosisError as exc:
            provider_error = exc

    outcome = asyncio.run(
        run_diagnosis(segment, parsed, config, chat_provider, provider_error=provider_error)
    )

    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
        return

    result = outcome.result
    if outcome.notice is not None:
        typer.echo(f"⚠️  {outcome.notice.message}", err=True)
    label = "Análise por IA" if result.source is DiagnosisSource.AI else "Análise Padrão"
    typer.echo(f"🎯 Nível de Urgência: {result.urgency_level} ({label})")
    typer.echo(result.urgency_description)
    typer.echo("")
    typer.echo("✅ Pontos Fortes:")
    for item in result.strengths or ("Nenhum ponto forte identificado.",):
        typer.echo(f"   • {item}")
    typer.echo("❌ Pontos de Melhoria:")
    for item in result.weaknesses or ("Nenhuma fragilidade identificada.",):
        typer.echo(f"   • {item}")
    typer.echo("")
    typer.echo(result.conclusion)


if __name__ == "__main__":
    app()
