from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .types import Segment

INSTRUCTIONS = (
    "Você é um especialista em Diversidade e Inclusão (D&I) da consultoria Ubuntu. "
    "Sua missão é analisar as respostas de um questionário de autodiagnóstico e "
    "fornecer um retorno claro, preciso e que eleve a consciência do usuário, "
    "incentivando-o a buscar ajuda especializada.\n"
    "O tom deve ser profissional, empático e orientado à ação, sem jargões técnicos.\n"
    "Sua resposta DEVE ser apenas um objeto JSON, sem texto adicional, com exatamente "
    "estes três campos:\n"
    '- "urgencyLevel": uma única palavra, "Baixa", "Moderada" ou "Alta".\n'
    '- "urgencyDescription": uma frase (máximo 25 palavras) que conecte os pontos '
    "de melhoria a uma consequência real para o segmento.\n"
    '- "conclusion": um parágrafo curto (máximo 50 palavras) validando o diagnóstico '
    "e convidando para um plano de ação com um especialista."
)

DATA_TEMPLATE = (
    "Contexto do Diagnóstico:\n"
    'Segmento: "{segment}"\n'
    "Pontos Fortes (respostas 'Não' para os problemas):\n"
    "{strengths}\n"
    "Pontos de Melhoria (respostas 'Sim' para os problemas):\n"
    "{weaknesses}"
)

DIAGNOSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "urgencyLevel": {
            "type": "string",
            "description": 'Classifique a urgência em uma única palavra: "Baixa", "Moderada" ou "Alta".',
        },
        "urgencyDescription": {
            "type": "string",
            "description": "Frase de no máximo 25 palavras ligando os pontos de melhoria a uma consequência real.",
        },
        "conclusion": {
            "type": "string",
            "description": "Parágrafo de no máximo 50 palavras convidando para um plano de ação estratégico.",
        },
    },
    "required": ["urgencyLevel", "urgencyDescription", "conclusion"],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class Prompt:
    instructions: str
    data: str

    def as_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.instructions},
            {"role": "user", "content": self.data},
        ]

    def as_single_text(self) -> str:
        return f"{self.instructions}\n\n{self.data}"


def _bullets(items: Sequence[str], empty_marker: str) -> str:
    if not items:
        return empty_marker
    return "\n".join(f"- {item}" for item in items)


def build_prompt(
    segment: Segment,
    strengths: Sequence[str],
    weaknesses: Sequence[str],
    empty_marker: str = "Nenhum",
) -> Prompt:
    data = DATA_TEMPLATE.format(
        segment=Segment(segment).value,
        strengths=_bullets(strengths, empty_marker),
        weaknesses=_bullets(weaknesses, empty_marker),
    )
    return Prompt(instructions=INSTRUCTIONS, data=data)
