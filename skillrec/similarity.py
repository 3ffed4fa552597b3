from __future__ import annotations

"""
Similarity primitives shared by the scorers and the diversity filter.
"""

from collections import Counter
from typing import Optional, Sequence

import numpy as np

from .config import (
    COURSE_SIM_CATEGORY,
    COURSE_SIM_DIFFICULTY,
    COURSE_SIM_SKILLS,
    DIFFICULTY_PREFERENCE_MAP,
)
from .models import Course
from .normalize import word_tokenize


def cosine_similarity(a, b) -> float:
    """Cosine of two equal-length vectors; 0.0 if either has zero norm."""
    va = np.asarray(a, dtype="float64")
    vb = np.asarray(b, dtype="float64")
    if va.shape != vb.shape:
        return 0.0
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


def term_frequency_similarity(text_a: str, text_b: str) -> float:
    """Cosine over raw token counts on the union vocabulary.

    This is the "TF-IDF" signal of the content scorer; there is
    no inverse-document-frequency weighting.
    """
    tokens_a = word_tokenize(text_a)
    tokens_b = word_tokenize(text_b)
    if not tokens_a or not tokens_b:
        return 0.0
    counts_a, counts_b = Counter(tokens_a), Counter(tokens_b)
    vocab = list(dict.fromkeys(tokens_a + tokens_b))
    return cosine_similarity(
        [counts_a[t] for t in vocab],
        [counts_b[t] for t in vocab],
    )


def skill_overlap(skills_a: Sequence[str], skills_b: Sequence[str]) -> float:
    """|a with a substring-aware match in b| / |distinct a ∪ b|."""
    if not skills_a or not skills_b:
        return 0.0
    a = [s.lower() for s in skills_a]
    b = [s.lower() for s in skills_b]
    hits = [s for s in a if any(s in other or other in s for other in b)]
    union = set(a) | set(b)
    return len(hits) / len(union)


def difficulty_match(preference: Optional[str], course_difficulty: Optional[str]) -> float:
    preference = preference or "mixed"
    if preference == "mixed":
        return 0.5
    wanted = DIFFICULTY_PREFERENCE_MAP.get(preference)
    if wanted is None:
        # unknown preference bucket accepts anything
        return 1.0
    return 1.0 if course_difficulty in wanted else 0.0


def course_similarity(c1: Course, c2: Course) -> float:
    score = 0.0
    if c1.category == c2.category:
        score += COURSE_SIM_CATEGORY
    score += skill_overlap(c1.skills, c2.skills) * COURSE_SIM_SKILLS
    if c1.difficulty == c2.difficulty:
        score += COURSE_SIM_DIFFICULTY
    return score
