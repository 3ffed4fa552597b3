from __future__ import annotations

"""
Weighted fusion, diversification and final shaping of recommendations.

The four scorer outputs are fused with fixed weights into one ranking,
near-duplicates of already accepted courses are suppressed greedily
(top item always kept), completed courses are removed, and the
survivors are enriched with the course record and an explanation.
"""

import math
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from loguru import logger

from .config import DIVERSITY_FACTOR, SOURCE_WEIGHTS
from .models import (
    Course,
    Explanation,
    LearningHistoryEntry,
    Recommendation,
    ScoredCandidate,
    SourceContribution,
)
from .similarity import course_similarity

SourceList = Tuple[Sequence[ScoredCandidate], float, str]

DEFAULT_REASON = "Recommended based on your profile"


def validate_weights(weights: Mapping[str, float] = SOURCE_WEIGHTS) -> None:
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"Source weights must sum to 1.0, got {total}")


validate_weights()


def combine(sources: Iterable[SourceList]) -> List[ScoredCandidate]:
    """Merge ``(candidates, weight, type)`` lists into one ranking.

    A course's score is the sum of ``candidate score x source weight``
    over every source that proposed it; contributions are kept in input
    order for explanations.
    """
    merged: Dict[str, ScoredCandidate] = {}
    for candidates, weight, source_type in sources:
        for cand in candidates:
            contribution = SourceContribution(type=source_type, score=cand.score, reason=cand.reason)
            if cand.course_id in merged:
                item = merged[cand.course_id]
                item.score += cand.score * weight
                item.sources.append(contribution)
            else:
                merged[cand.course_id] = ScoredCandidate(
                    course_id=cand.course_id,
                    score=cand.score * weight,
                    sources=[contribution],
                )
    fused = sorted(merged.values(), key=lambda c: -c.score)
    logger.info("Fused {} candidates from weighted sources", len(fused))
    return fused


def diversity_filter(
    ranked: Sequence[ScoredCandidate],
    courses_by_id: Mapping[str, Course],
    diversity_factor: float = DIVERSITY_FACTOR,
) -> List[ScoredCandidate]:
    """Greedy near-duplicate suppression over a ranked list.

    The top candidate is always kept.  Each later candidate is accepted
    only if its similarity to every accepted course is at most
    ``1 - diversity_factor``; candidates whose course is unknown are
    skipped.
    """
    if len(ranked) <= 1:
        return list(ranked)
    max_similarity = 1.0 - diversity_factor
    accepted: List[ScoredCandidate] = [ranked[0]]
    for cand in ranked[1:]:
        course = courses_by_id.get(cand.course_id)
        if course is None:
            continue
        diverse = True
        for chosen in accepted:
            other = courses_by_id.get(chosen.course_id)
            if other is None:
                continue
            if course_similarity(course, other) > max_similarity:
                diverse = False
                break
        if diverse:
            accepted.append(cand)
    logger.info("Diversity filter kept {} of {} (factor={})", len(accepted), len(ranked), diversity_factor)
    return accepted


def completed_filter(
    candidates: Sequence[ScoredCandidate],
    history: Iterable[LearningHistoryEntry],
) -> List[ScoredCandidate]:
    completed = {h.course_id for h in history if h.status == "completed"}
    return [c for c in candidates if c.course_id not in completed]


def enrich(
    candidates: Sequence[ScoredCandidate],
    courses_by_id: Mapping[str, Course],
    include_explanations: bool = True,
) -> List[Recommendation]:
    """Attach course records and explanations; unknown courses are dropped."""
    out: List[Recommendation] = []
    for cand in candidates:
        course = courses_by_id.get(cand.course_id)
        if course is None:
            logger.warning("Course id {} not in catalog; skipping", cand.course_id)
            continue
        explanation = None
        if include_explanations:
            explanation = Explanation(
                primary_reason=cand.sources[0].reason if cand.sources else DEFAULT_REASON,
                sources=list(cand.sources),
                confidence=min(cand.score, 1.0),
            )
        out.append(
            Recommendation(course_id=cand.course_id, score=cand.score, course=course, explanation=explanation)
        )
    return out
