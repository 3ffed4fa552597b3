from __future__ import annotations

"""
Domain model for users, courses and recommendation outputs.

Everything here is a pydantic model so the same objects flow from the
snapshot loaders through the scorers and out of the API unchanged.
Scorers treat these as read-only snapshots; only :class:`UserProfile`
has mutating helpers, used by extraction and manual edits.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Literal, Optional, Set

from pydantic import BaseModel, Field, field_validator

SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]
SkillSource = Literal["manual", "extracted", "inferred", "verified"]
HistoryStatus = Literal["enrolled", "in-progress", "completed", "dropped", "paused"]
GoalPriority = Literal["low", "medium", "high", "critical"]
GoalStatus = Literal["active", "achieved", "paused", "cancelled"]
DemandLevel = Literal["high", "medium", "low"]

SKILL_LEVELS: List[str] = ["beginner", "intermediate", "advanced", "expert"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def canonical_skill_name(name: str) -> str:
    return (name or "").strip().lower()


class ExtractionMethodId(str, Enum):
    """Tags recording which extraction pass produced a skill."""

    DIRECT_MATCH = "direct_match"
    PARTIAL_MATCH = "partial_match"
    PATTERN_MATCH = "pattern_match"
    NLP_MATCH = "nlp_match"
    SECTION_EXTRACTION = "section_extraction"


class Skill(BaseModel):
    name: str
    level: SkillLevel = "beginner"
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    verified: bool = False
    source: SkillSource = "manual"
    last_updated: datetime = Field(default_factory=_utcnow)

    @field_validator("name")
    @classmethod
    def _canonical(cls, v: str) -> str:
        v = canonical_skill_name(v)
        if not v:
            raise ValueError("skill name must be non-empty")
        return v


class CareerGoal(BaseModel):
    title: str
    description: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list)
    target_date: Optional[datetime] = None
    priority: GoalPriority = "medium"
    status: GoalStatus = "active"


class LearningPreferences(BaseModel):
    pace: Optional[str] = None
    format: Optional[str] = None
    difficulty: str = "mixed"
    session_duration: Optional[int] = Field(None, ge=0)


class LearningHistoryEntry(BaseModel):
    course_id: str
    status: HistoryStatus = "enrolled"
    progress: float = Field(0.0, ge=0.0, le=100.0)
    time_spent: float = Field(0.0, ge=0.0)  # minutes
    rating: Optional[float] = Field(None, ge=1.0, le=5.0)
    # Denormalised at enrolment time; may be missing on older entries
    category: Optional[str] = None
    provider: Optional[str] = None
    difficulty: Optional[str] = None


class Course(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    skills: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    provider: Optional[str] = None
    difficulty: Optional[str] = None


class LearningAnalytics(BaseModel):
    courses_completed: int = 0
    total_learning_time: float = 0.0  # minutes
    average_rating: Optional[float] = None
    completion_rate: float = 0.0


class UserProfile(BaseModel):
    id: str
    name: Optional[str] = None
    skills: List[Skill] = Field(default_factory=list)
    career_goals: List[CareerGoal] = Field(default_factory=list)
    preferences: LearningPreferences = Field(default_factory=LearningPreferences)
    interests: List[str] = Field(default_factory=list)
    learning_history: List[LearningHistoryEntry] = Field(default_factory=list)

    def get_skill(self, name: str) -> Optional[Skill]:
        key = canonical_skill_name(name)
        for skill in self.skills:
            if skill.name == key:
                return skill
        return None

    def skill_names(self) -> List[str]:
        return [s.name for s in self.skills]

    def add_skill(self, skill: Skill) -> Skill:
        """Insert ``skill`` or update the existing one with the same name.

        Level and source follow the incoming skill; confidence keeps the
        higher of the two values.
        """
        existing = self.get_skill(skill.name)
        if existing is None:
            self.skills.append(skill)
            return skill
        existing.level = skill.level
        existing.source = skill.source
        existing.verified = existing.verified or skill.verified
        existing.confidence = max(existing.confidence, skill.confidence)
        existing.last_updated = _utcnow()
        return existing

    def merge_extracted(self, extracted: Iterable["ExtractedSkill"]) -> List[Skill]:
        """Fold extraction results into the profile as ``source="extracted"``.

        Manually entered or verified skills keep their source and level;
        only their confidence can go up.
        """
        touched: List[Skill] = []
        for item in extracted:
            existing = self.get_skill(item.name)
            if existing is not None and existing.source in ("manual", "verified"):
                existing.confidence = max(existing.confidence, item.confidence)
                existing.last_updated = _utcnow()
                touched.append(existing)
                continue
            touched.append(
                self.add_skill(
                    Skill(
                        name=item.name,
                        level=item.level,
                        confidence=item.confidence,
                        source="extracted",
                    )
                )
            )
        return touched

    def update_skill_level(self, name: str, level: SkillLevel, confidence: Optional[float] = None) -> bool:
        skill = self.get_skill(name)
        if skill is None:
            return False
        skill.level = level
        if confidence is not None:
            skill.confidence = confidence
        skill.last_updated = _utcnow()
        return True

    def record_history(self, entry: LearningHistoryEntry) -> None:
        """Append ``entry`` or replace the one for the same course."""
        for i, current in enumerate(self.learning_history):
            if current.course_id == entry.course_id:
                self.learning_history[i] = entry
                return
        self.learning_history.append(entry)

    def completed_course_ids(self) -> Set[str]:
        return {h.course_id for h in self.learning_history if h.status == "completed"}

    def completion_rate(self) -> float:
        if not self.learning_history:
            return 0.0
        return len(self.completed_course_ids()) / len(self.learning_history) * 100

    def skill_level_distribution(self) -> Dict[str, int]:
        distribution = {level: 0 for level in SKILL_LEVELS}
        for skill in self.skills:
            distribution[skill.level] += 1
        return distribution

    def learning_analytics(self) -> LearningAnalytics:
        """Completion counts, time spent and mean rating over the history.

        Unrated completed courses count as 0 in the average.
        """
        completed = [h for h in self.learning_history if h.status == "completed"]
        average = None
        if completed:
            average = sum(h.rating or 0.0 for h in completed) / len(completed)
        return LearningAnalytics(
            courses_completed=len(completed),
            total_learning_time=sum(h.time_spent for h in self.learning_history),
            average_rating=average,
            completion_rate=self.completion_rate(),
        )


class ExtractedSkill(BaseModel):
    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    level: SkillLevel = "intermediate"
    methods: Set[ExtractionMethodId] = Field(default_factory=set)
    context: Optional[str] = None


class SkillSuggestion(BaseModel):
    skill: str
    reason: str
    priority: GoalPriority
    category: str
    deadline: Optional[datetime] = None


class TrendingSkill(BaseModel):
    skill: str
    growth_rate: float
    demand_level: DemandLevel = "low"


class MarketTrends(BaseModel):
    trending_skills: List[TrendingSkill] = Field(default_factory=list)


class SourceContribution(BaseModel):
    type: str
    score: float
    reason: str


class ScoredCandidate(BaseModel):
    course_id: str
    score: float
    sources: List[SourceContribution] = Field(default_factory=list)

    @property
    def reason(self) -> str:
        return self.sources[0].reason if self.sources else ""


class Explanation(BaseModel):
    primary_reason: str
    sources: List[SourceContribution]
    confidence: float


class Recommendation(BaseModel):
    course_id: str
    score: float
    course: Course
    explanation: Optional[Explanation] = None


class RecommendationOptions(BaseModel):
    limit: int = Field(10, ge=1)
    include_explanations: bool = True
    filter_completed: bool = True
    diversity_factor: float = Field(0.3, ge=0.0, le=1.0)

    def cache_fragment(self) -> str:
        return self.model_dump_json()
