"""Tests for interaction weights, the interaction matrix and collaborative scoring."""

import pytest

from skillrec.interaction import build_interaction_matrix, interaction_weight
from skillrec.models import Course, LearningHistoryEntry, UserProfile
from skillrec.scorers import CollaborativeScorer


class TestInteractionWeight:
    def test_missing_entry(self) -> None:
        assert interaction_weight(None) == 0.0

    def test_completed_with_rating(self) -> None:
        entry = LearningHistoryEntry(course_id="c", status="completed", rating=4)
        assert interaction_weight(entry) == pytest.approx(0.8)

    def test_in_progress_uses_progress(self) -> None:
        entry = LearningHistoryEntry(course_id="c", status="in-progress", progress=50)
        assert interaction_weight(entry) == pytest.approx(0.5)

    def test_time_factor_is_capped(self) -> None:
        entry = LearningHistoryEntry(course_id="c", status="completed", time_spent=100_000)
        assert interaction_weight(entry) == pytest.approx(2.0)

    def test_enrolled_or_dropped_is_zero(self) -> None:
        assert interaction_weight(LearningHistoryEntry(course_id="c", status="dropped")) == 0.0


def test_matrix_layout(users, courses) -> None:
    matrix = build_interaction_matrix(users, courses)
    assert matrix.shape == (3, 5)
    assert matrix.user_ids == ["u1", "u2", "u3"]
    assert matrix.row("u2").tolist() == pytest.approx([0.8, 1.0, 0.0, 0.0, 0.0])
    assert matrix.row("missing") is None


class TestCollaborative:
    def test_predicts_unseen_course_from_neighbour(self, users, courses) -> None:
        out = CollaborativeScorer().score("u1", users, courses)
        assert [c.course_id for c in out] == ["c2"]
        assert out[0].score == pytest.approx(1.0)
        assert out[0].sources[0].type == "collaborative"

    def test_single_user_returns_empty(self, users, courses) -> None:
        assert CollaborativeScorer().score("u1", users[:1], courses) == []

    def test_single_course_returns_empty(self, users, courses) -> None:
        assert CollaborativeScorer().score("u1", users, courses[:1]) == []

    def test_user_without_history_returns_empty(self, users, courses) -> None:
        users = users + [UserProfile(id="new")]
        assert CollaborativeScorer().score("new", users, courses) == []

    def test_unknown_user_returns_empty(self, users, courses) -> None:
        assert CollaborativeScorer().score("ghost", users, courses) == []


def _history(**weights) -> list:
    """History entries whose interaction weight equals the given value (0 < w <= 2)."""
    entries = []
    for course_id, w in weights.items():
        if w > 1:
            entries.append(LearningHistoryEntry(course_id=course_id, status="completed", time_spent=3600 * w))
        else:
            entries.append(LearningHistoryEntry(course_id=course_id, status="in-progress", progress=round(w * 100, 6)))
    return entries


def _courses(*ids) -> list:
    return [Course(id=i, title=i) for i in ids]


class TestCollaborativeThresholds:
    def test_prediction_is_not_clamped(self) -> None:
        users = [
            UserProfile(id="me", learning_history=_history(a=1.0)),
            UserProfile(id="peer", learning_history=_history(a=1.0, b=2.0, c=1.2)),
        ]
        out = CollaborativeScorer().score("me", users, _courses("a", "b", "c"))
        assert [c.course_id for c in out] == ["b", "c"]
        assert [c.score for c in out] == pytest.approx([2.0, 1.2])

    def test_low_prediction_is_dropped(self) -> None:
        users = [
            UserProfile(id="me", learning_history=_history(a=1.0)),
            UserProfile(id="peer", learning_history=_history(a=1.0, b=0.05, c=0.5)),
        ]
        out = CollaborativeScorer().score("me", users, _courses("a", "b", "c"))
        assert [c.course_id for c in out] == ["c"]

    def test_weak_neighbours_are_ignored(self) -> None:
        users = [
            UserProfile(id="me", learning_history=_history(a=1.0)),
            UserProfile(id="close", learning_history=_history(a=1.0, b=1.0)),
            UserProfile(id="far", learning_history=_history(a=0.1, c=2.0)),
        ]
        matrix = build_interaction_matrix(users, _courses("a", "b", "c"))
        neighbours = CollaborativeScorer().neighbours(matrix, matrix.user_index("me"))
        assert [matrix.user_ids[i] for i, _ in neighbours] == ["close"]
        out = CollaborativeScorer().score("me", users, _courses("a", "b", "c"), matrix=matrix)
        assert [c.course_id for c in out] == ["b"]

    def test_neighbour_count_is_capped(self) -> None:
        users = [UserProfile(id="me", learning_history=_history(a=1.0))]
        users += [UserProfile(id=f"p{i}", learning_history=_history(a=1.0, b=0.5)) for i in range(25)]
        matrix = build_interaction_matrix(users, _courses("a", "b"))
        assert len(CollaborativeScorer().neighbours(matrix, 0)) == 20
        assert len(CollaborativeScorer(max_neighbours=3).neighbours(matrix, 0)) == 3
