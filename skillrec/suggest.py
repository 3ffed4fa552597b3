from __future__ import annotations

"""
Skill-improvement suggestions for a user profile.

Three sources feed the list: trending skills the user lacks, skills
required by career goals that the user has not covered, and a small
table of skills that complement ones already held.  Suggestions are
ordered by priority and capped.
"""

from typing import Iterable, List, Sequence

from loguru import logger

from .catalog import DEFAULT_CATALOG, SkillCatalog
from .config import COMPLEMENTARY_SKILLS, PRIORITY_WEIGHTS, SUGGESTION_LIMIT
from .models import CareerGoal, Skill, SkillSuggestion, TrendingSkill


def trend_priority(trend: TrendingSkill) -> str:
    if trend.growth_rate > 40:
        return "critical"
    if trend.growth_rate > 25:
        return "high"
    if trend.growth_rate > 15:
        return "medium"
    return "low"


def covers(user_skill: str, required: str) -> bool:
    """Substring match in either direction, case-insensitive."""
    a, b = user_skill.lower(), required.lower()
    return a in b or b in a


def complementary_skills(user_skills: Sequence[Skill], catalog: SkillCatalog = DEFAULT_CATALOG) -> List[SkillSuggestion]:
    names = [s.name for s in user_skills]
    out: List[SkillSuggestion] = []
    for name in names:
        for related in COMPLEMENTARY_SKILLS.get(name, []):
            if related not in names:
                out.append(
                    SkillSuggestion(
                        skill=related,
                        reason=f"Complements your {name} skills",
                        priority="medium",
                        category=catalog.category_of(related),
                    )
                )
    return out


def suggest_skill_improvements(
    user_skills: Sequence[Skill],
    market_trends: Iterable[TrendingSkill] = (),
    career_goals: Iterable[CareerGoal] = (),
    catalog: SkillCatalog = DEFAULT_CATALOG,
    limit: int = SUGGESTION_LIMIT,
) -> List[SkillSuggestion]:
    names = [s.name for s in user_skills]
    suggestions: List[SkillSuggestion] = []

    for trend in market_trends:
        wanted = trend.skill.lower()
        if not any(wanted in n for n in names):
            suggestions.append(
                SkillSuggestion(
                    skill=trend.skill,
                    reason=f"High market demand with {trend.growth_rate:g}% growth",
                    priority=trend_priority(trend),
                    category=catalog.category_of(trend.skill),
                )
            )

    for goal in career_goals:
        for required in goal.required_skills:
            if not any(covers(n, required) for n in names):
                suggestions.append(
                    SkillSuggestion(
                        skill=required,
                        reason=f"Required for career goal: {goal.title}",
                        priority="high",
                        category=catalog.category_of(required),
                        deadline=goal.target_date,
                    )
                )

    suggestions.extend(complementary_skills(user_skills, catalog))
    suggestions.sort(key=lambda s: -PRIORITY_WEIGHTS.get(s.priority, 1))
    logger.info("Built {} skill suggestions ({} kept)", len(suggestions), min(len(suggestions), limit))
    return suggestions[:limit]
