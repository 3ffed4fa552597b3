from __future__ import annotations

"""
External collaborators of the recommender core and simple adapters.

The engine only talks to the protocols declared here (user store,
course store, market data, cache).  The adapters are what the CLI, the
API and the tests plug in: thread-safe in-memory stores loadable from a
JSON snapshot or a course table, the static trend list the recommender
ships with, an HTTP trend provider, and a TTL cache.
"""

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, TypeVar

import httpx
import pandas as pd
from loguru import logger

from .config import (
    DEFAULT_TRENDING_SKILLS,
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_BYTES,
    HTTP_MAX_REDIRECTS,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    SNAPSHOT_PATH,
)
from .errors import NotFound, UpstreamUnavailable
from .models import Course, MarketTrends, UserProfile

T = TypeVar("T")


class UserStore(Protocol):
    def get(self, user_id: str) -> UserProfile: ...

    def list_all(self) -> List[UserProfile]: ...


class CourseStore(Protocol):
    def list_all(self) -> List[Course]: ...

    def find_by_skill(self, pattern: str) -> List[Course]: ...


class MarketDataProvider(Protocol):
    def get_trends(self) -> MarketTrends: ...


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...


# ---------------------------
# In-memory stores
# ---------------------------

class InMemoryUserStore:
    def __init__(self, users: Iterable[UserProfile] = ()):
        self._lock = threading.Lock()
        self._users: Dict[str, UserProfile] = {u.id: u for u in users}

    def get(self, user_id: str) -> UserProfile:
        with self._lock:
            user = self._users.get(user_id)
        if user is None:
            raise NotFound("user", user_id)
        return user.model_copy(deep=True)

    def list_all(self) -> List[UserProfile]:
        with self._lock:
            return [u.model_copy(deep=True) for u in self._users.values()]

    def save(self, user: UserProfile) -> None:
        with self._lock:
            self._users[user.id] = user.model_copy(deep=True)

    def update(self, user_id: str, mutate: Callable[[UserProfile], T]) -> Tuple[UserProfile, T]:
        """Apply ``mutate`` to a copy of the user and store it, atomically.

        Concurrent updates for the same user are serialised, so none of
        them is lost.  Returns a copy of the stored profile and whatever
        ``mutate`` returned.
        """
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                raise NotFound("user", user_id)
            user = current.model_copy(deep=True)
            result = mutate(user)
            self._users[user_id] = user
            return user.model_copy(deep=True), result

    def find_similar_users(self, user_id: str, skills: Iterable[str], limit: int = 10) -> List[UserProfile]:
        """Other users holding any of ``skills``, most shared skills first."""
        wanted = {s.strip().lower() for s in skills if s and s.strip()}
        if not wanted:
            return []
        scored: List[Tuple[int, int, UserProfile]] = []
        with self._lock:
            for pos, user in enumerate(self._users.values()):
                if user.id == user_id:
                    continue
                shared = len(wanted & set(user.skill_names()))
                if shared:
                    scored.append((shared, pos, user))
        scored.sort(key=lambda t: (-t[0], t[1]))
        return [u.model_copy(deep=True) for _, _, u in scored[:limit]]


class InMemoryCourseStore:
    def __init__(self, courses: Iterable[Course] = ()):
        self._lock = threading.Lock()
        self._courses: Dict[str, Course] = {c.id: c for c in courses}

    def list_all(self) -> List[Course]:
        with self._lock:
            return list(self._courses.values())

    def find_by_skill(self, pattern: str) -> List[Course]:
        needle = pattern.lower()
        return [c for c in self.list_all() if any(needle in s.lower() for s in c.skills)]

    def add(self, course: Course) -> None:
        with self._lock:
            self._courses[course.id] = course


def _split_skills(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return []
    return [p.strip() for p in str(value).replace(";", ",").split(",") if p.strip()]


def _opt_str(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)


def load_courses_frame(path: Path) -> List[Course]:
    """Read a course table (Parquet or CSV) into :class:`Course` records.

    Expected columns: ``id, title, description, skills, category,
    provider, difficulty``; ``skills`` may be a list column or a
    comma/semicolon separated string.
    """
    logger.info("Loading course table from {}", path)
    if path.suffix.lower() == ".parquet":
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)
    courses: List[Course] = []
    for row in df.to_dict(orient="records"):
        courses.append(
            Course(
                id=str(row["id"]),
                title=str(row.get("title") or ""),
                description=str(row.get("description") or ""),
                skills=_split_skills(row.get("skills")),
                category=_opt_str(row.get("category")),
                provider=_opt_str(row.get("provider")),
                difficulty=_opt_str(row.get("difficulty")),
            )
        )
    logger.info("Loaded {} courses", len(courses))
    return courses


def load_snapshot(path: Path = SNAPSHOT_PATH) -> Tuple[InMemoryUserStore, InMemoryCourseStore]:
    """Build stores from a JSON snapshot ``{"users": [...], "courses": [...]}``."""
    logger.info("Loading snapshot from {}", path)
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    users = [UserProfile.model_validate(u) for u in raw.get("users", [])]
    courses = [Course.model_validate(c) for c in raw.get("courses", [])]
    logger.info("Loaded snapshot with {} users and {} courses", len(users), len(courses))
    return InMemoryUserStore(users), InMemoryCourseStore(courses)


# ---------------------------
# Market data
# ---------------------------

class StaticMarketData:
    """Fixed trend list; the default when no market feed is configured."""

    def __init__(self, trending_skills: Optional[List[dict]] = None):
        self._trends = MarketTrends.model_validate(
            {"trending_skills": trending_skills if trending_skills is not None else DEFAULT_TRENDING_SKILLS}
        )

    def get_trends(self) -> MarketTrends:
        return self._trends.model_copy(deep=True)


class HttpMarketDataProvider:
    """Fetch ``{"trending_skills": [...]}`` JSON from a market-data endpoint."""

    def __init__(self, url: str, client: Optional[httpx.Client] = None):
        self.url = url
        self._client = client

    def _make_client(self) -> httpx.Client:
        return httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
            max_redirects=HTTP_MAX_REDIRECTS,
            headers={"User-Agent": HTTP_USER_AGENT},
        )

    def get_trends(self) -> MarketTrends:
        client = self._client or self._make_client()
        try:
            r = client.get(self.url)
            if r.status_code >= 400:
                raise UpstreamUnavailable(f"market data: HTTP {r.status_code} for {self.url}")
            if len(r.content) > HTTP_MAX_BYTES:
                raise UpstreamUnavailable(f"market data: {len(r.content)} bytes > {HTTP_MAX_BYTES} limit")
            return MarketTrends.model_validate(r.json())
        except UpstreamUnavailable:
            raise
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"market data timeout for {self.url}") from e
        except Exception as e:
            raise UpstreamUnavailable(f"market data fetch failed for {self.url}: {e}") from e
        finally:
            if self._client is None:
                client.close()


# ---------------------------
# Cache
# ---------------------------

class TTLCache:
    """Thread-safe in-process cache with per-entry expiry."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._data: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            hit = self._data.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (self._clock() + ttl_seconds, value)

    def invalidate(self, prefix: str = "") -> int:
        with self._lock:
            doomed = [k for k in self._data if k.startswith(prefix)]
            for k in doomed:
                del self._data[k]
        return len(doomed)
