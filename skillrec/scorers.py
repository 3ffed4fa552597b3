from __future__ import annotations

"""
The four candidate generators of the hybrid recommender.

Each scorer is read-only over the snapshot it is handed and returns a
list of :class:`~skillrec.models.ScoredCandidate`, each carrying a
single source contribution (its own type, score and reason).  The
combiner weights and merges them afterwards.

* :class:`CollaborativeScorer` - neighbours in the interaction matrix
* :class:`ContentScorer` - profile text / skills vs course content
* :class:`MarketScorer` - trending skills and career-goal gaps
* :class:`BehavioralScorer` - category / provider / difficulty habits
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from .config import (
    BEHAVIOR_CATEGORY_SCORE,
    BEHAVIOR_DIFFICULTY_SCORE,
    BEHAVIOR_PROVIDER_SCORE,
    BEHAVIOR_TOP_CATEGORIES,
    BEHAVIOR_TOP_PROVIDERS,
    CONTENT_DIFFICULTY_WEIGHT,
    CONTENT_SKILL_WEIGHT,
    CONTENT_TF_WEIGHT,
    DEFAULT_SKILL_LEVEL,
    DEMAND_BONUS,
    GOAL_GAP_SCORE,
    MAX_NEIGHBOURS,
    MAX_RECOMMENDATIONS,
    MIN_SIMILARITY_THRESHOLD,
    RELATED_SKILL_BONUS,
)
from .interaction import InteractionMatrix, build_interaction_matrix
from .models import (
    Course,
    MarketTrends,
    ScoredCandidate,
    SourceContribution,
    TrendingSkill,
    UserProfile,
)
from .similarity import difficulty_match, skill_overlap, term_frequency_similarity


def _candidate(course_id: str, score: float, source_type: str, reason: str) -> ScoredCandidate:
    return ScoredCandidate(
        course_id=course_id,
        score=score,
        sources=[SourceContribution(type=source_type, score=score, reason=reason)],
    )


def _rank(cands: List[ScoredCandidate], cap: Optional[int]) -> List[ScoredCandidate]:
    cands.sort(key=lambda c: -c.score)
    return cands if cap is None else cands[:cap]


def _best_per_course(cands: List[ScoredCandidate]) -> List[ScoredCandidate]:
    """One candidate per course: the highest score wins, first seen on ties."""
    best: Dict[str, ScoredCandidate] = {}
    for cand in cands:
        current = best.get(cand.course_id)
        if current is None or cand.score > current.score:
            best[cand.course_id] = cand
    return list(best.values())


def courses_with_skill(courses: Sequence[Course], needle: str) -> List[Course]:
    """Courses listing a skill that contains ``needle`` (case-insensitive)."""
    needle = needle.lower()
    return [c for c in courses if any(needle in s.lower() for s in c.skills)]


class CollaborativeScorer:
    source_type = "collaborative"
    reason = "Users with similar interests also liked this course"

    def __init__(
        self,
        min_similarity: float = MIN_SIMILARITY_THRESHOLD,
        max_neighbours: int = MAX_NEIGHBOURS,
    ):
        self.min_similarity = min_similarity
        self.max_neighbours = max_neighbours

    def neighbours(self, matrix: InteractionMatrix, user_idx: int) -> List[tuple]:
        """``(row, similarity)`` of the closest other users above threshold."""
        values = matrix.values
        target = values[user_idx]
        norms = np.linalg.norm(values, axis=1)
        target_norm = norms[user_idx]
        if target_norm == 0.0:
            return []
        dots = values @ target
        with np.errstate(divide="ignore", invalid="ignore"):
            sims = np.where(norms > 0.0, dots / (norms * target_norm), 0.0)
        out = [
            (i, float(sims[i]))
            for i in range(values.shape[0])
            if i != user_idx and sims[i] > self.min_similarity
        ]
        out.sort(key=lambda t: -t[1])
        return out[: self.max_neighbours]

    def score(
        self,
        user_id: str,
        users: Sequence[UserProfile],
        courses: Sequence[Course],
        matrix: Optional[InteractionMatrix] = None,
    ) -> List[ScoredCandidate]:
        if len(users) < 2 or len(courses) < 2:
            logger.info("Collaborative: insufficient data ({} users, {} courses)", len(users), len(courses))
            return []
        if matrix is None:
            matrix = build_interaction_matrix(users, courses)
        user_idx = matrix.user_index(user_id)
        if user_idx is None:
            logger.info("Collaborative: user {} not in snapshot", user_id)
            return []

        neighbours = self.neighbours(matrix, user_idx)
        if not neighbours:
            return []
        rows = np.array([i for i, _ in neighbours])
        sims = np.array([s for _, s in neighbours])
        target = matrix.row(user_id)

        out: List[ScoredCandidate] = []
        for j, course_id in enumerate(matrix.course_ids):
            if target[j] > 0:
                continue
            ratings = matrix.values[rows, j]
            rated = ratings > 0
            sim_sum = float(sims[rated].sum())
            if sim_sum <= 0:
                continue
            predicted = float((sims[rated] * ratings[rated]).sum()) / sim_sum
            if predicted > self.min_similarity:
                out.append(_candidate(course_id, predicted, self.source_type, self.reason))
        return _rank(out, None)


def user_profile_text(user: UserProfile) -> str:
    skills = " ".join(user.skill_names())
    interests = " ".join(user.interests)
    goals = " ".join(f"{g.title} {' '.join(g.required_skills)}" for g in user.career_goals)
    return f"{skills} {interests} {goals}".lower()


def course_text(course: Course) -> str:
    return f"{course.title} {course.description} {' '.join(course.skills)}".lower()


class ContentScorer:
    source_type = "content-based"

    def __init__(
        self,
        min_similarity: float = MIN_SIMILARITY_THRESHOLD,
        max_results: int = MAX_RECOMMENDATIONS,
    ):
        self.min_similarity = min_similarity
        self.max_results = max_results

    def course_score(self, user: UserProfile, profile_text: str, course: Course) -> float:
        tf = term_frequency_similarity(profile_text, course_text(course))
        overlap = skill_overlap(user.skill_names(), course.skills)
        difficulty = difficulty_match(user.preferences.difficulty, course.difficulty)
        return tf * CONTENT_TF_WEIGHT + overlap * CONTENT_SKILL_WEIGHT + difficulty * CONTENT_DIFFICULTY_WEIGHT

    def score(self, user: UserProfile, courses: Sequence[Course]) -> List[ScoredCandidate]:
        if not courses:
            return []
        profile_text = user_profile_text(user)
        out: List[ScoredCandidate] = []
        for course in courses:
            s = self.course_score(user, profile_text, course)
            if s > self.min_similarity:
                reason = f"Content similarity based on skills and interests ({round(s * 100)}% match)"
                out.append(_candidate(course.id, s, self.source_type, reason))
        return _rank(out, self.max_results)


class MarketScorer:
    source_type = "market-driven"

    def __init__(self, max_results: int = MAX_RECOMMENDATIONS):
        self.max_results = max_results

    @staticmethod
    def market_score(trend: TrendingSkill, user: UserProfile) -> float:
        score = trend.growth_rate / 100.0
        score += DEMAND_BONUS.get(trend.demand_level, 0.0)
        words = trend.skill.lower().split()
        first_word = words[0] if words else ""
        if first_word and any(first_word in name for name in user.skill_names()):
            score += RELATED_SKILL_BONUS
        return min(score, 1.0)

    def trend_candidates(self, user: UserProfile, trends: MarketTrends, courses: Sequence[Course]) -> List[ScoredCandidate]:
        out: List[ScoredCandidate] = []
        for trend in trends.trending_skills:
            held = user.get_skill(trend.skill)
            if held is not None and held.level in ("advanced", "expert"):
                continue
            score = self.market_score(trend, user)
            reason = (
                f"High market demand for {trend.skill} "
                f"({trend.growth_rate:g}% growth, {trend.demand_level} demand)"
            )
            for course in courses_with_skill(courses, trend.skill):
                out.append(_candidate(course.id, score, self.source_type, reason))
        return out

    def goal_gap_candidates(self, user: UserProfile, courses: Sequence[Course]) -> List[ScoredCandidate]:
        names = user.skill_names()
        out: List[ScoredCandidate] = []
        for goal in user.career_goals:
            if goal.status != "active":
                continue
            for required in goal.required_skills:
                req = required.lower()
                if any(n in req or req in n for n in names):
                    continue
                reason = f"Required for your career goal: {goal.title}"
                for course in courses_with_skill(courses, req):
                    out.append(_candidate(course.id, GOAL_GAP_SCORE, self.source_type, reason))
        return out

    def score(self, user: UserProfile, trends: MarketTrends, courses: Sequence[Course]) -> List[ScoredCandidate]:
        out = self.trend_candidates(user, trends, courses)
        if user.career_goals:
            out.extend(self.goal_gap_candidates(user, courses))
        return _rank(_best_per_course(out), self.max_results)


def _top_values(values: List[str], n: int) -> List[str]:
    """Most frequent values, ties in first-seen order."""
    if not values:
        return []
    series = pd.Series(values, dtype="object")
    counts = series.value_counts()
    first_seen = {v: i for i, v in reversed(list(enumerate(series)))}
    ordered = sorted(counts.index, key=lambda v: (-int(counts[v]), first_seen[v]))
    return [str(v) for v in ordered[:n]]


class BehavioralScorer:
    source_type = "behavioral"

    def __init__(self, max_results: int = MAX_RECOMMENDATIONS):
        self.max_results = max_results

    @staticmethod
    def completed_frame(user: UserProfile, courses_by_id: Dict[str, Course]) -> pd.DataFrame:
        """Completed entries with category/provider/difficulty filled from the catalog."""
        rows = []
        for h in user.learning_history:
            if h.status != "completed":
                continue
            course = courses_by_id.get(h.course_id)
            rows.append(
                {
                    "course_id": h.course_id,
                    "category": h.category or (course.category if course else None),
                    "provider": h.provider or (course.provider if course else None),
                    "difficulty": h.difficulty or (course.difficulty if course else None),
                }
            )
        return pd.DataFrame(rows, columns=["course_id", "category", "provider", "difficulty"])

    def preferences(self, user: UserProfile, courses_by_id: Dict[str, Course]):
        df = self.completed_frame(user, courses_by_id)
        categories = _top_values(df["category"].dropna().tolist(), BEHAVIOR_TOP_CATEGORIES)
        providers = _top_values(df["provider"].dropna().tolist(), BEHAVIOR_TOP_PROVIDERS)
        difficulties = _top_values(df["difficulty"].dropna().tolist(), 1)
        difficulty = difficulties[0] if difficulties else DEFAULT_SKILL_LEVEL
        return categories, providers, difficulty

    def score(self, user: UserProfile, courses: Sequence[Course]) -> List[ScoredCandidate]:
        if not user.learning_history:
            return []
        courses_by_id = {c.id: c for c in courses}
        categories, providers, difficulty = self.preferences(user, courses_by_id)
        logger.debug(
            "Behavioral prefs for {}: categories={} providers={} difficulty={}",
            user.id, categories, providers, difficulty,
        )
        out: List[ScoredCandidate] = []
        for course in courses:
            score = 0.0
            reasons: List[str] = []
            if course.category in categories:
                score += BEHAVIOR_CATEGORY_SCORE
                reasons.append(f"matches your preferred category: {course.category}")
            if course.provider in providers:
                score += BEHAVIOR_PROVIDER_SCORE
                reasons.append(f"from your preferred provider: {course.provider}")
            if course.difficulty == difficulty:
                score += BEHAVIOR_DIFFICULTY_SCORE
                reasons.append("matches your preferred difficulty level")
            if score > 0:
                reason = f"Based on your learning patterns: {', '.join(reasons)}"
                out.append(_candidate(course.id, score, self.source_type, reason))
        return _rank(out, self.max_results)
