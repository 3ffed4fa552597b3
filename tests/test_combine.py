"""Tests for fusion, diversity and completed filtering, and enrichment."""

import pytest

from skillrec.combine import (
    DEFAULT_REASON,
    combine,
    completed_filter,
    diversity_filter,
    enrich,
    validate_weights,
)
from skillrec.models import Course, LearningHistoryEntry, ScoredCandidate, SourceContribution


def cand(course_id: str, score: float, source_type: str = "collaborative", reason: str = "r") -> ScoredCandidate:
    return ScoredCandidate(
        course_id=course_id,
        score=score,
        sources=[SourceContribution(type=source_type, score=score, reason=reason)],
    )


class TestCombine:
    def test_weighted_sum_and_source_order(self) -> None:
        fused = combine(
            [
                ([cand("a", 1.0, reason="peers")], 0.35, "collaborative"),
                ([cand("a", 0.5, reason="content"), cand("b", 0.9)], 0.35, "content-based"),
            ]
        )
        assert [c.course_id for c in fused] == ["a", "b"]
        assert fused[0].score == pytest.approx(0.35 + 0.175)
        assert [s.type for s in fused[0].sources] == ["collaborative", "content-based"]
        assert fused[0].sources[1].score == pytest.approx(0.5)
        assert fused[1].score == pytest.approx(0.315)

    def test_empty_sources(self) -> None:
        assert combine([([], 0.35, "collaborative")]) == []

    def test_unit_scores_stay_within_bounds(self) -> None:
        sources = [
            ([cand("a", 1.0)], 0.35, "collaborative"),
            ([cand("a", 1.0)], 0.35, "content-based"),
            ([cand("a", 1.0)], 0.20, "market-driven"),
            ([cand("a", 1.0)], 0.10, "behavioral"),
        ]
        (fused,) = combine(sources)
        assert 0.0 <= fused.score <= 1.0 + 1e-9

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(ValueError):
            validate_weights({"collaborative": 0.5, "content-based": 0.6})


class TestDiversity:
    @pytest.fixture
    def twins(self):
        a = Course(id="a", skills=["python"], category="datascience", difficulty="beginner")
        b = Course(id="b", skills=["python"], category="datascience", difficulty="beginner")
        c = Course(id="c", skills=["docker"], category="cloud", difficulty="advanced")
        return {x.id: x for x in (a, b, c)}

    def test_top_candidate_always_kept(self, twins) -> None:
        ranked = [cand("a", 0.9), cand("b", 0.8), cand("c", 0.1)]
        out = diversity_filter(ranked, twins, 1.0)
        assert out[0].course_id == "a"

    def test_full_diversity_rejects_identical_course(self, twins) -> None:
        ranked = [cand("a", 0.9), cand("b", 0.8), cand("c", 0.1)]
        out = diversity_filter(ranked, twins, 1.0)
        assert [c.course_id for c in out] == ["a", "c"]

    def test_default_factor_keeps_distinct_courses(self, twins) -> None:
        ranked = [cand("a", 0.9), cand("b", 0.8), cand("c", 0.1)]
        assert [c.course_id for c in diversity_filter(ranked, twins, 0.3)] == ["a", "c"]

    def test_unknown_course_is_skipped(self, twins) -> None:
        ranked = [cand("a", 0.9), cand("zzz", 0.5)]
        assert [c.course_id for c in diversity_filter(ranked, twins, 0.3)] == ["a"]

    def test_short_lists_pass_through(self, twins) -> None:
        assert diversity_filter([], twins) == []
        assert [c.course_id for c in diversity_filter([cand("zzz", 1.0)], twins)] == ["zzz"]


def test_completed_filter_drops_only_completed() -> None:
    history = [
        LearningHistoryEntry(course_id="a", status="completed"),
        LearningHistoryEntry(course_id="b", status="in-progress", progress=10),
    ]
    out = completed_filter([cand("a", 0.9), cand("b", 0.8), cand("c", 0.7)], history)
    assert [c.course_id for c in out] == ["b", "c"]


class TestEnrich:
    def test_attaches_course_and_explanation(self, courses) -> None:
        by_id = {c.id: c for c in courses}
        (rec,) = enrich([cand("c2", 1.3, reason="peers")], by_id)
        assert rec.course.title == "Machine Learning A-Z"
        assert rec.explanation.primary_reason == "peers"
        assert rec.explanation.confidence == 1.0

    def test_unknown_courses_dropped_and_explanations_optional(self, courses) -> None:
        by_id = {c.id: c for c in courses}
        out = enrich([cand("zzz", 0.5), cand("c1", 0.4)], by_id, include_explanations=False)
        assert [r.course_id for r in out] == ["c1"]
        assert out[0].explanation is None

    def test_default_reason_without_sources(self, courses) -> None:
        by_id = {c.id: c for c in courses}
        (rec,) = enrich([ScoredCandidate(course_id="c1", score=0.2)], by_id)
        assert rec.explanation.primary_reason == DEFAULT_REASON
