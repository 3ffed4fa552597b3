"""Tests for the content, market and behavioral scorers."""

import pytest

from skillrec.models import (
    CareerGoal,
    LearningHistoryEntry,
    MarketTrends,
    Skill,
    TrendingSkill,
    UserProfile,
)
from skillrec.scorers import (
    BehavioralScorer,
    ContentScorer,
    MarketScorer,
    _top_values,
    courses_with_skill,
)


def test_courses_with_skill_is_substring_match(courses) -> None:
    assert [c.id for c in courses_with_skill(courses, "Learning")] == ["c2", "c4"]


class TestContent:
    def test_python_user_gets_ml_course(self, users, courses) -> None:
        out = ContentScorer().score(users[0], courses)
        ids = [c.course_id for c in out]
        assert "c2" in ids
        assert all(c.score > 0.1 for c in out)
        assert ids == [c.course_id for c in sorted(out, key=lambda c: -c.score)]

    def test_reason_reports_match_percentage(self, users, courses) -> None:
        out = ContentScorer().score(users[0], courses)
        assert all(c.sources[0].reason.endswith("% match)") for c in out)
        assert all(c.sources[0].type == "content-based" for c in out)

    def test_no_courses(self, users) -> None:
        assert ContentScorer().score(users[0], []) == []


class TestMarket:
    def test_trend_and_goal_gap_for_ml(self, users, courses, market) -> None:
        out = MarketScorer().score(users[0], market.get_trends(), courses)
        # the goal gap (0.8) beats the trend (0.68) for the same course
        assert [c.course_id for c in out] == ["c2"]
        assert out[0].score == pytest.approx(0.8)
        assert out[0].sources[0].reason == "Required for your career goal: Data Scientist"

    def test_advanced_holders_skip_trend(self, courses, market) -> None:
        user = UserProfile(id="x", skills=[Skill(name="machine learning", level="advanced")])
        assert MarketScorer().score(user, market.get_trends(), courses) == []

    def test_related_skill_bonus_and_cap(self) -> None:
        user = UserProfile(id="x", skills=[Skill(name="machine learning", level="beginner")])
        trend = TrendingSkill(skill="machine learning", growth_rate=38, demand_level="high")
        assert MarketScorer.market_score(trend, user) == pytest.approx(0.88)
        hot = TrendingSkill(skill="rust", growth_rate=90, demand_level="high")
        assert MarketScorer.market_score(hot, user) == 1.0

    def test_inactive_goals_are_ignored(self, courses) -> None:
        user = UserProfile(
            id="x",
            career_goals=[CareerGoal(title="Ops", required_skills=["docker"], status="paused")],
        )
        assert MarketScorer().score(user, MarketTrends(), courses) == []


class TestBehavioral:
    def test_learning_patterns(self, users, courses) -> None:
        out = BehavioralScorer().score(users[0], courses)
        assert [c.course_id for c in out] == ["c1", "c4", "c2", "c3"]
        assert [c.score for c in out] == pytest.approx([1.0, 0.7, 0.4, 0.3])
        assert out[0].sources[0].reason.startswith("Based on your learning patterns: ")

    def test_no_history(self, courses) -> None:
        assert BehavioralScorer().score(UserProfile(id="x"), courses) == []

    def test_history_fields_override_catalog(self, courses) -> None:
        user = UserProfile(
            id="x",
            learning_history=[LearningHistoryEntry(course_id="c1", status="completed", category="web")],
        )
        categories, providers, difficulty = BehavioralScorer().preferences(
            user, {c.id: c for c in courses}
        )
        assert categories == ["web"]
        assert providers == ["coursera"]
        assert difficulty == "beginner"

    def test_ties_keep_first_seen_order(self) -> None:
        assert _top_values(["b", "a", "a", "b", "c"], 2) == ["b", "a"]
        assert _top_values([], 3) == []
