from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Union

from .types import ScoringOutcome, UrgencyTier

# Upper bounds (exclusive) of the weakness ratio for each tier.
LOW_RATIO_LIMIT = 1 / 3
MODERATE_RATIO_LIMIT = 2 / 3

Answers = Union[Mapping[int, bool], Sequence[bool]]


def urgency_tier(weakness_ratio: float) -> UrgencyTier:
    if weakness_ratio < LOW_RATIO_LIMIT:
        return UrgencyTier.LOW
    if weakness_ratio < MODERATE_RATIO_LIMIT:
        return UrgencyTier.MODERATE
    return UrgencyTier.HIGH


def score(questions: Sequence[str], answers: Answers) -> ScoringOutcome:
    """Split answered questions into strengths and weaknesses.

    Questions are phrased as problem statements, so a ``True`` answer marks
    a weakness and ``False`` a strength. Every index of ``questions`` is
    expected in ``answers``.
    """
    if not isinstance(answers, Mapping):
        answers = dict(enumerate(answers))

    strengths: list[str] = []
    weaknesses: list[str] = []
    for idx, question in enumerate(questions):
        if answers[idx]:
            weaknesses.append(question)
        else:
            strengths.append(question)

    ratio = len(weaknesses) / len(questions) if questions else 0.0
    return ScoringOutcome(
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
        weakness_ratio=ratio,
        urgency_tier=urgency_tier(ratio),
    )
