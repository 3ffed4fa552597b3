from __future__ import annotations

"""
FastAPI application for the skill-aware course recommender.

- Snapshot stores are loaded once at startup (empty stores if the
  snapshot file is missing) and can be swapped with :func:`init_state`
- NotFound -> 404, UpstreamUnavailable -> 503, blank text -> 422
- Profile writes invalidate that user's cached recommendations
"""

from dataclasses import dataclass
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from .config import (
    DIVERSITY_FACTOR,
    MARKET_DATA_URL,
    RESULT_DEFAULT_LIMIT,
    SNAPSHOT_PATH,
    ExtractedSkillItem,
    ExtractRequest,
    ExtractResponse,
    HealthResponse,
)
from .engine import RecommendationEngine
from .errors import NotFound, UpstreamUnavailable
from .extraction import SkillExtractor
from .models import (
    ExtractedSkill,
    LearningAnalytics,
    Recommendation,
    RecommendationOptions,
    Skill,
    SkillSuggestion,
)
from .stores import (
    HttpMarketDataProvider,
    InMemoryCourseStore,
    InMemoryUserStore,
    MarketDataProvider,
    StaticMarketData,
    TTLCache,
    load_snapshot,
)
from .suggest import suggest_skill_improvements


class RecommendResponse(BaseModel):
    user_id: str
    recommendations: List[Recommendation]


class SkillsResponse(BaseModel):
    user_id: str
    skills: List[Skill]


class SuggestionsResponse(BaseModel):
    user_id: str
    suggestions: List[SkillSuggestion]


class SimilarUsersResponse(BaseModel):
    user_id: str
    similar_user_ids: List[str]


@dataclass
class AppState:
    users: InMemoryUserStore
    courses: InMemoryCourseStore
    market: MarketDataProvider
    engine: RecommendationEngine
    extractor: SkillExtractor


_state: Optional[AppState] = None


def init_state(
    users: InMemoryUserStore,
    courses: InMemoryCourseStore,
    market: Optional[MarketDataProvider] = None,
    extractor: Optional[SkillExtractor] = None,
) -> AppState:
    global _state
    market = market or StaticMarketData()
    _state = AppState(
        users=users,
        courses=courses,
        market=market,
        engine=RecommendationEngine(users, courses, market_data=market, cache=TTLCache()),
        extractor=extractor or SkillExtractor(),
    )
    return _state


def _default_state() -> AppState:
    if SNAPSHOT_PATH.exists():
        users, courses = load_snapshot(SNAPSHOT_PATH)
    else:
        logger.warning("Snapshot {} missing; starting with empty stores", SNAPSHOT_PATH)
        users, courses = InMemoryUserStore(), InMemoryCourseStore()
    market = HttpMarketDataProvider(MARKET_DATA_URL) if MARKET_DATA_URL else StaticMarketData()
    return init_state(users, courses, market)


def get_state() -> AppState:
    return _state if _state is not None else _default_state()


def _to_items(skills: List[ExtractedSkill]) -> List[ExtractedSkillItem]:
    return [
        ExtractedSkillItem(
            name=s.name,
            confidence=s.confidence,
            level=s.level,
            methods=sorted(m.value for m in s.methods),
            context=s.context,
        )
        for s in skills
    ]


def _require_text(text: str) -> None:
    if not text.strip():
        raise HTTPException(status_code=422, detail="Text must be non-empty")


# =============================================================================
# FastAPI app + startup
# =============================================================================

app = FastAPI(title="skillrec")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("Starting app warmup...")
    if _state is None:
        _default_state()
    logger.info("Warmup complete.")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/skills/extract", response_model=ExtractResponse)
def extract_skills(req: ExtractRequest) -> ExtractResponse:
    _require_text(req.text)
    skills = get_state().extractor.extract(
        req.text,
        min_confidence=req.min_confidence,
        max_skills=req.max_skills,
        include_context=req.include_context,
    )
    return ExtractResponse(skills=_to_items(skills))


@app.post("/users/{user_id}/skills/extract", response_model=SkillsResponse)
def extract_into_profile(user_id: str, req: ExtractRequest) -> SkillsResponse:
    _require_text(req.text)
    state = get_state()
    try:
        state.users.get(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    extracted = state.extractor.extract(
        req.text, min_confidence=req.min_confidence, max_skills=req.max_skills
    )
    try:
        user, _ = state.users.update(user_id, lambda u: u.merge_extracted(extracted))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    state.engine.invalidate_user(user_id)
    logger.info("Merged {} extracted skills into user {}", len(extracted), user_id)
    return SkillsResponse(user_id=user_id, skills=user.skills)


@app.get("/users/{user_id}/skill-suggestions", response_model=SuggestionsResponse)
def skill_suggestions(user_id: str) -> SuggestionsResponse:
    state = get_state()
    try:
        user = state.users.get(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        trends = state.market.get_trends().trending_skills
    except UpstreamUnavailable as e:
        logger.warning("Market data unavailable for suggestions: {}", e)
        trends = []
    suggestions = suggest_skill_improvements(user.skills, trends, user.career_goals)
    return SuggestionsResponse(user_id=user_id, suggestions=suggestions)


@app.get("/recommendations/{user_id}", response_model=RecommendResponse)
def recommendations(
    user_id: str,
    limit: int = Query(RESULT_DEFAULT_LIMIT, ge=1, le=50),
    include_explanations: bool = True,
    filter_completed: bool = True,
    diversity_factor: float = Query(DIVERSITY_FACTOR, ge=0.0, le=1.0),
) -> RecommendResponse:
    options = RecommendationOptions(
        limit=limit,
        include_explanations=include_explanations,
        filter_completed=filter_completed,
        diversity_factor=diversity_factor,
    )
    try:
        recs = get_state().engine.generate_recommendations(user_id, options)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamUnavailable as e:
        logger.error("Recommendations unavailable for {}: {}", user_id, e)
        raise HTTPException(status_code=503, detail="Recommendation service unavailable")
    return RecommendResponse(user_id=user_id, recommendations=recs)


@app.get("/users/{user_id}/analytics", response_model=LearningAnalytics)
def learning_analytics(user_id: str) -> LearningAnalytics:
    try:
        user = get_state().users.get(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return user.learning_analytics()


@app.get("/users/{user_id}/similar", response_model=SimilarUsersResponse)
def similar_users(user_id: str, limit: int = Query(10, ge=1, le=50)) -> SimilarUsersResponse:
    state = get_state()
    try:
        user = state.users.get(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    similar = state.users.find_similar_users(user_id, user.skill_names(), limit=limit)
    return SimilarUsersResponse(user_id=user_id, similar_user_ids=[u.id for u in similar])
