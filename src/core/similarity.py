"""
Scoring functions used by the retrieval engine.
"""

import math
import re
from numbers import Real
from typing import List, Sequence

from src.constants import (
    EXACT_PHRASE_BONUS,
    MIN_QUERY_WORD_LENGTH,
    WORD_MATCH_POINTS,
    WORD_MAX_POINTS,
)


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 when either vector is empty, the lengths differ, an entry is
    not a finite number, or either norm is zero.
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0

    dot = norm_a = norm_b = 0.0
    for a, b in zip(vec_a, vec_b):
        if not (_is_number(a) and _is_number(b)):
            return 0.0
        dot += a * b
        norm_a += a * a
        norm_b += b * b

    magnitude = math.sqrt(norm_a) * math.sqrt(norm_b)
    if magnitude == 0 or not math.isfinite(magnitude) or not math.isfinite(dot):
        return 0.0

    # rounding can push identical vectors a hair past 1
    return max(-1.0, min(1.0, dot / magnitude))


def query_words(query: str) -> List[str]:
    return [
        word for word in query.lower().split() if len(word) >= MIN_QUERY_WORD_LENGTH
    ]


def keyword_score(query: str, text: str) -> tuple[float, int]:
    """Score ``text`` against a free-text query.

    Returns ``(normalized_score, matches)`` where the score is in [0, 1] and
    ``matches`` counts the exact phrase hit plus each query word found.
    """
    lower_query = query.lower().strip()
    lower_text = text.lower()
    words = query_words(lower_query)

    score = 0
    matches = 0

    if lower_query and lower_query in lower_text:
        score += EXACT_PHRASE_BONUS
        matches += 1

    for word in words:
        occurrences = len(re.findall(rf"\b{re.escape(word)}\b", lower_text))
        if occurrences:
            score += occurrences * WORD_MATCH_POINTS
            matches += 1

    max_possible = EXACT_PHRASE_BONUS + len(words) * WORD_MAX_POINTS
    return min(score / max_possible, 1.0), matches
