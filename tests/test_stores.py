"""Tests for store adapters, snapshot loading, market providers and the TTL cache."""

import json
import threading
import time

import httpx
import pytest

from skillrec.errors import NotFound, UpstreamUnavailable
from skillrec.models import Course, Skill, UserProfile
from skillrec.stores import (
    HttpMarketDataProvider,
    InMemoryUserStore,
    StaticMarketData,
    TTLCache,
    load_courses_frame,
    load_snapshot,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestUserStore:
    def test_get_returns_copies(self, users) -> None:
        store = InMemoryUserStore(users)
        user = store.get("u1")
        user.skills.append(Skill(name="rust"))
        assert store.get("u1").get_skill("rust") is None

    def test_save_then_get(self, users) -> None:
        store = InMemoryUserStore(users)
        user = store.get("u2")
        user.add_skill(Skill(name="go"))
        store.save(user)
        assert store.get("u2").get_skill("go") is not None

    def test_missing_user(self) -> None:
        with pytest.raises(NotFound):
            InMemoryUserStore().get("nobody")


def test_course_store_find_by_skill(course_store) -> None:
    assert [c.id for c in course_store.find_by_skill("PYTHON")] == ["c1", "c2"]
    course_store.add(Course(id="c9", title="Advanced Python", skills=["python 3"]))
    assert [c.id for c in course_store.find_by_skill("python")] == ["c1", "c2", "c9"]


class TestLoaders:
    def test_load_snapshot(self, tmp_path, users, courses) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps(
                {
                    "users": [u.model_dump(mode="json") for u in users],
                    "courses": [c.model_dump(mode="json") for c in courses],
                }
            ),
            encoding="utf-8",
        )
        user_store, course_store = load_snapshot(path)
        assert len(user_store.list_all()) == 3
        assert len(course_store.list_all()) == 5
        assert user_store.get("u1").get_skill("python").level == "intermediate"

    def test_load_courses_csv(self, tmp_path) -> None:
        path = tmp_path / "courses.csv"
        path.write_text(
            "id,title,description,skills,category,provider,difficulty\n"
            "k1,Intro,Basics,\"python; sql\",datascience,,beginner\n",
            encoding="utf-8",
        )
        (course,) = load_courses_frame(path)
        assert course.id == "k1"
        assert course.skills == ["python", "sql"]
        assert course.provider is None
        assert course.difficulty == "beginner"


class TestMarketData:
    def test_static_defaults(self) -> None:
        trends = StaticMarketData().get_trends().trending_skills
        assert trends[0].skill == "artificial intelligence"
        assert len(trends) == 5

    def test_http_provider_parses_trends(self) -> None:
        payload = {"trending_skills": [{"skill": "rust", "growth_rate": 30, "demand_level": "medium"}]}
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)))
        trends = HttpMarketDataProvider("http://market.test/trends", client=client).get_trends()
        assert [t.skill for t in trends.trending_skills] == ["rust"]

    def test_http_error_is_upstream_unavailable(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        with pytest.raises(UpstreamUnavailable):
            HttpMarketDataProvider("http://market.test/trends", client=client).get_trends()

    def test_bad_payload_is_upstream_unavailable(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="nope")))
        with pytest.raises(UpstreamUnavailable):
            HttpMarketDataProvider("http://market.test/trends", client=client).get_trends()

    def test_timeout_is_upstream_unavailable(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamUnavailable):
            HttpMarketDataProvider("http://market.test/trends", client=client).get_trends()


class TestTTLCache:
    def test_entries_expire(self) -> None:
        clock = FakeClock()
        cache = TTLCache(clock=clock)
        cache.set("k", 1, ttl_seconds=10)
        clock.now = 9.9
        assert cache.get("k") == 1
        clock.now = 10.0
        assert cache.get("k") is None

    def test_invalidate_by_prefix(self) -> None:
        cache = TTLCache()
        cache.set("recommendations:u1:a", 1, 60)
        cache.set("recommendations:u1:b", 2, 60)
        cache.set("recommendations:u2:a", 3, 60)
        assert cache.invalidate("recommendations:u1:") == 2
        assert cache.get("recommendations:u2:a") == 3


class TestUserStoreUpdates:
    def test_update_applies_and_returns(self, users) -> None:
        store = InMemoryUserStore(users)
        user, added = store.update("u2", lambda u: u.add_skill(Skill(name="rust")))
        assert added.name == "rust"
        assert user.get_skill("rust") is not None
        assert store.get("u2").get_skill("rust") is not None

    def test_update_missing_user(self) -> None:
        with pytest.raises(NotFound):
            InMemoryUserStore().update("nobody", lambda u: None)

    def test_concurrent_updates_are_not_lost(self, users) -> None:
        store = InMemoryUserStore(users)

        def add(name: str) -> None:
            def mutate(user):
                time.sleep(0.05)
                user.add_skill(Skill(name=name))

            store.update("u2", mutate)

        threads = [threading.Thread(target=add, args=(n,)) for n in ("go", "rust", "sql")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert {"go", "rust", "sql"} <= set(store.get("u2").skill_names())

    def test_find_similar_users(self) -> None:
        store = InMemoryUserStore(
            [
                UserProfile(id="me", skills=[Skill(name="python"), Skill(name="sql")]),
                UserProfile(id="one", skills=[Skill(name="python")]),
                UserProfile(id="two", skills=[Skill(name="python"), Skill(name="sql")]),
                UserProfile(id="none", skills=[Skill(name="rust")]),
            ]
        )
        similar = store.find_similar_users("me", ["Python", "sql"])
        assert [u.id for u in similar] == ["two", "one"]
        assert [u.id for u in store.find_similar_users("me", ["python"], limit=1)] == ["one"]
        assert store.find_similar_users("me", []) == []
