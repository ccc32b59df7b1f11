"""Communication sub-score from code-review comments (all values 1-10)."""

from __future__ import annotations

import re
from typing import Any, Iterable, List

from .rules import COMMENT_IDENTIFIER_PATTERNS, COMMENT_SPECIFICITY_PATTERNS, CONSTRUCTIVE_PATTERNS
from .schemas import CommunicationScore
from .technical import clamp10

_CONSTRUCTIVE = [re.compile(p, re.IGNORECASE) for p in CONSTRUCTIVE_PATTERNS]
_SPECIFIC = [re.compile(p, re.IGNORECASE) for p in COMMENT_SPECIFICITY_PATTERNS] + [
    re.compile(p) for p in COMMENT_IDENTIFIER_PATTERNS
]


def _comment_text(comment: Any) -> str:
    if isinstance(comment, str):
        return comment
    if isinstance(comment, dict):
        return str(comment.get("comment_text") or "")
    return str(getattr(comment, "comment_text", "") or "")


def score_clarity(texts: List[str]) -> float:
    """Mean comment length banded around a 50-200 character sweet spot."""
    avg = sum(len(t) for t in texts) / len(texts)
    if avg < 20:
        return clamp10(1 + avg / 20 * 2)
    if avg < 50:
        return clamp10(3 + (avg - 20) / 30 * 3)
    if avg <= 200:
        return clamp10(7 + (avg - 50) / 150 * 3)
    if avg <= 500:
        return clamp10(7 - (avg - 200) / 300 * 2)
    return clamp10(5 - min((avg - 500) / 500, 1) * 2)


def _share_matching(texts: List[str], patterns: list) -> float:
    matching = sum(1 for t in texts if any(p.search(t) for p in patterns))
    return matching / len(texts)


def score_constructiveness(texts: List[str]) -> float:
    return clamp10(1 + _share_matching(texts, _CONSTRUCTIVE) * 9)


def score_specificity(texts: List[str]) -> float:
    return clamp10(1 + _share_matching(texts, _SPECIFIC) * 9)


def calculate_communication_score(comments: Iterable[Any] | None) -> CommunicationScore:
    texts = [_comment_text(c) for c in comments or []]
    if not texts:
        return CommunicationScore()

    clarity = score_clarity(texts)
    constructiveness = score_constructiveness(texts)
    specificity = score_specificity(texts)
    return CommunicationScore(
        overall=clamp10((clarity + constructiveness + specificity) / 3),
        clarity=clarity,
        constructiveness=constructiveness,
        specificity=specificity,
    )
