from __future__ import annotations

"""
Request orchestration for the hybrid recommender.

For every request a :class:`RecommendationContext` is built from a fresh
snapshot of users and courses; nothing mutable is shared between
requests.  The four scorers run concurrently on a thread pool over that
context and are joined before fusion.  A scorer that raises contributes
nothing (the failure is logged); only when every scorer fails does the
request fail with :class:`~skillrec.errors.UpstreamUnavailable`.

Example::

    from skillrec.engine import RecommendationEngine
    from skillrec.stores import load_snapshot

    users, courses = load_snapshot()
    engine = RecommendationEngine(users, courses)
    for rec in engine.generate_recommendations("u1"):
        print(rec.course_id, round(rec.score, 3), rec.explanation.primary_reason)

"""

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from .combine import combine, completed_filter, diversity_filter, enrich, validate_weights
from .config import CACHE_TTL_SECONDS, MAX_WORKERS, SOURCE_WEIGHTS
from .errors import NotFound, ScorerPartialFailure, UpstreamUnavailable
from .interaction import InteractionMatrix, build_interaction_matrix
from .models import Course, Recommendation, RecommendationOptions, ScoredCandidate, UserProfile
from .scorers import BehavioralScorer, CollaborativeScorer, ContentScorer, MarketScorer
from .stores import Cache, CourseStore, MarketDataProvider, StaticMarketData, UserStore

CANCEL_POLL_SECONDS = 0.05


@dataclass(frozen=True)
class RecommendationContext:
    """Immutable per-request snapshot; derived structures are built lazily."""

    user: UserProfile
    users: Tuple[UserProfile, ...]
    courses: Tuple[Course, ...]
    options: RecommendationOptions = field(default_factory=RecommendationOptions)

    @cached_property
    def matrix(self) -> InteractionMatrix:
        return build_interaction_matrix(self.users, self.courses)

    @cached_property
    def courses_by_id(self) -> Dict[str, Course]:
        return {c.id: c for c in self.courses}


@dataclass
class ScoringOutcome:
    candidates: Dict[str, List[ScoredCandidate]]
    failed: List[str]
    cancelled: List[str]


class RecommendationEngine:
    def __init__(
        self,
        user_store: UserStore,
        course_store: CourseStore,
        market_data: Optional[MarketDataProvider] = None,
        cache: Optional[Cache] = None,
        weights: Mapping[str, float] = SOURCE_WEIGHTS,
        max_workers: int = MAX_WORKERS,
        cache_ttl: int = CACHE_TTL_SECONDS,
    ):
        validate_weights(weights)
        self.user_store = user_store
        self.course_store = course_store
        self.market_data = market_data or StaticMarketData()
        self.cache = cache
        self.weights = dict(weights)
        self.max_workers = max_workers
        self.cache_ttl = cache_ttl
        self.collaborative = CollaborativeScorer()
        self.content = ContentScorer()
        self.market = MarketScorer()
        self.behavioral = BehavioralScorer()

    # ---------------------------
    # Snapshot
    # ---------------------------

    def load_context(self, user_id: str, options: Optional[RecommendationOptions] = None) -> RecommendationContext:
        """Load the requester and a users/courses snapshot.

        ``NotFound`` for the requester propagates; any other store
        failure is reported as ``UpstreamUnavailable``.
        """
        try:
            user = self.user_store.get(user_id)
            users = tuple(self.user_store.list_all())
            courses = tuple(self.course_store.list_all())
        except NotFound:
            raise
        except Exception as e:
            raise UpstreamUnavailable(f"snapshot load failed: {e}") from e
        return RecommendationContext(
            user=user, users=users, courses=courses, options=options or RecommendationOptions()
        )

    # ---------------------------
    # Scoring
    # ---------------------------

    def _tasks(self, ctx: RecommendationContext) -> Dict[str, Callable[[], List[ScoredCandidate]]]:
        return {
            self.collaborative.source_type: lambda: self.collaborative.score(
                ctx.user.id, ctx.users, ctx.courses, matrix=ctx.matrix
            ),
            self.content.source_type: lambda: self.content.score(ctx.user, ctx.courses),
            self.market.source_type: lambda: self.market.score(
                ctx.user, self.market_data.get_trends(), ctx.courses
            ),
            self.behavioral.source_type: lambda: self.behavioral.score(ctx.user, ctx.courses),
        }

    def score_sources(
        self, ctx: RecommendationContext, cancel_event: Optional[threading.Event] = None
    ) -> ScoringOutcome:
        """Run every scorer concurrently; failures and cancellations yield ``[]``."""
        tasks = self._tasks(ctx)
        results: Dict[str, List[ScoredCandidate]] = {name: [] for name in tasks}
        failed: List[str] = []
        cancelled: List[str] = []

        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="scorer")
        try:
            futures: Dict[Future, str] = {pool.submit(fn): name for name, fn in tasks.items()}
            pending = set(futures)
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = [futures[fut] for fut in pending]
                    logger.info("Request cancelled; abandoning scorers {}", cancelled)
                    break
                done, pending = wait(pending, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for fut in done:
                    name = futures[fut]
                    try:
                        results[name] = fut.result()
                        logger.info("{} scorer produced {} candidates", name, len(results[name]))
                    except Exception as e:
                        failed.append(name)
                        logger.exception("{}", ScorerPartialFailure(name, e))
        finally:
            # abandoned scorers finish in the background; their output is ignored
            pool.shutdown(wait=not cancelled, cancel_futures=bool(cancelled))

        if len(failed) == len(tasks):
            raise UpstreamUnavailable("all scorers failed")
        return ScoringOutcome(candidates=results, failed=failed, cancelled=cancelled)

    def rank(self, ctx: RecommendationContext, outcome: ScoringOutcome) -> List[ScoredCandidate]:
        opts = ctx.options
        fused = combine(
            (outcome.candidates[name], self.weights[name], name) for name in outcome.candidates
        )
        ranked = diversity_filter(fused, ctx.courses_by_id, opts.diversity_factor)
        if opts.filter_completed:
            ranked = completed_filter(ranked, ctx.user.learning_history)
        return ranked[: opts.limit]

    # ---------------------------
    # Entry point
    # ---------------------------

    @staticmethod
    def cache_key(user_id: str, options: RecommendationOptions) -> str:
        return f"recommendations:{user_id}:{options.cache_fragment()}"

    def _cache_get(self, key: str) -> Optional[List[Recommendation]]:
        if self.cache is None:
            return None
        try:
            cached = self.cache.get(key)
        except Exception as e:
            logger.warning("Cache get failed for {}: {}", key, e)
            return None
        if cached is None:
            return None
        return [r.model_copy(deep=True) for r in cached]

    def _cache_set(self, key: str, recs: List[Recommendation]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, [r.model_copy(deep=True) for r in recs], self.cache_ttl)
        except Exception as e:
            logger.warning("Cache set failed for {}: {}", key, e)

    def generate_recommendations(
        self,
        user_id: str,
        options: Optional[RecommendationOptions] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Recommendation]:
        options = options or RecommendationOptions()
        key = self.cache_key(user_id, options)
        cached = self._cache_get(key)
        if cached is not None:
            logger.info("Returning cached recommendations for user {}", user_id)
            return cached

        ctx = self.load_context(user_id, options)
        logger.info(
            "Generating recommendations for user {} ({} users, {} courses)",
            user_id, len(ctx.users), len(ctx.courses),
        )
        outcome = self.score_sources(ctx, cancel_event)
        ranked = self.rank(ctx, outcome)
        recs = enrich(ranked, ctx.courses_by_id, options.include_explanations)

        if outcome.cancelled:
            logger.info("Skipping cache for cancelled request of user {}", user_id)
        else:
            self._cache_set(key, recs)
        logger.info("Generated {} recommendations for user {}", len(recs), user_id)
        return recs

    def invalidate_user(self, user_id: str) -> None:
        """Drop cached recommendations for ``user_id`` after a profile write."""
        invalidate = getattr(self.cache, "invalidate", None)
        if invalidate is not None:
            removed = invalidate(f"recommendations:{user_id}:")
            logger.info("Invalidated {} cached entries for user {}", removed, user_id)
