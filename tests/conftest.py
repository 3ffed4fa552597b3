"""Shared fixtures: a small catalog and three users with overlapping history."""

from typing import List

import pytest

from skillrec.extraction import SkillExtractor, default_methods
from skillrec.models import CareerGoal, Course, LearningHistoryEntry, Skill, UserProfile
from skillrec.stores import InMemoryCourseStore, InMemoryUserStore, StaticMarketData


@pytest.fixture
def courses() -> List[Course]:
    return [
        Course(
            id="c1",
            title="Python for Data Science",
            description="Data wrangling with python and pandas",
            skills=["python", "pandas"],
            category="datascience",
            provider="coursera",
            difficulty="beginner",
        ),
        Course(
            id="c2",
            title="Machine Learning A-Z",
            description="Supervised learning in python",
            skills=["machine learning", "python"],
            category="datascience",
            provider="udemy",
            difficulty="intermediate",
        ),
        Course(
            id="c3",
            title="Docker Essentials",
            description="Containers from scratch",
            skills=["docker"],
            category="cloud",
            provider="udemy",
            difficulty="beginner",
        ),
        Course(
            id="c4",
            title="Deep Learning",
            description="Neural networks with tensorflow",
            skills=["deep learning", "tensorflow"],
            category="datascience",
            provider="coursera",
            difficulty="advanced",
        ),
        Course(
            id="c5",
            title="Web with React",
            description="Components and hooks",
            skills=["react", "javascript"],
            category="web",
            provider="edx",
            difficulty="intermediate",
        ),
    ]


@pytest.fixture
def users() -> List[UserProfile]:
    return [
        UserProfile(
            id="u1",
            skills=[Skill(name="Python", level="intermediate", confidence=0.8)],
            interests=["data"],
            career_goals=[
                CareerGoal(title="Data Scientist", required_skills=["machine learning", "python"])
            ],
            learning_history=[LearningHistoryEntry(course_id="c1", status="completed", rating=5)],
        ),
        UserProfile(
            id="u2",
            learning_history=[
                LearningHistoryEntry(course_id="c1", status="completed", rating=4),
                LearningHistoryEntry(course_id="c2", status="completed", rating=5),
            ],
        ),
        UserProfile(
            id="u3",
            learning_history=[
                LearningHistoryEntry(course_id="c3", status="completed", rating=5),
                LearningHistoryEntry(course_id="c5", status="in-progress", progress=50),
            ],
        ),
    ]


@pytest.fixture
def user_store(users) -> InMemoryUserStore:
    return InMemoryUserStore(users)


@pytest.fixture
def course_store(courses) -> InMemoryCourseStore:
    return InMemoryCourseStore(courses)


@pytest.fixture
def market() -> StaticMarketData:
    return StaticMarketData()


@pytest.fixture
def extractor() -> SkillExtractor:
    """Extractor with the linguistic pass stubbed out (no spaCy model needed)."""
    return SkillExtractor(default_methods(tagger=lambda text: []))
