import json
from typing import Any, Union

from .errors import DiagnosisError, ErrorKind
from .types import DiagnosisNarrative

REQUIRED_FIELDS = ("urgencyLevel", "urgencyDescription", "conclusion")


def _strip_fences(text: str) -> str:
    trimmed = text.strip()
    if trimmed.startswith("```"):
        lines = trimmed.splitlines()[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        return "\n".join(lines).strip()
    return trimmed


def _braced_substring(text: str) -> Union[str, None]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_json_object(text: str) -> Union[dict[str, Any], None]:
    """Parse a JSON object out of a model response, tolerating surrounding text."""
    # fence stripping drops the whole opening line, so a one-line fenced
    # reply is only recoverable from the raw text
    candidates = [_strip_fences(text), _braced_substring(text)]
    stripped_braces = _braced_substring(candidates[0])
    if stripped_braces is not None:
        candidates.insert(1, stripped_braces)
    for candidate in candidates:
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def validate_narrative(raw_text: str) -> DiagnosisNarrative:
    data = parse_json_object(raw_text or "")
    if data is None:
        raise DiagnosisError(
            ErrorKind.PARSING,
            "Falha ao interpretar a resposta JSON enviada pela IA.",
            cause=raw_text,
        )
    if not all(isinstance(data.get(name), str) for name in REQUIRED_FIELDS):
        raise DiagnosisError(
            ErrorKind.PARSING,
            "A resposta da IA não retornou os campos obrigatórios "
            "(urgencyLevel, urgencyDescription, conclusion).",
            cause=data,
        )
    return DiagnosisNarrative(
        urgency_level=data["urgencyLevel"],
        urgency_description=data["urgencyDescription"],
        conclusion=data["conclusion"],
    )
