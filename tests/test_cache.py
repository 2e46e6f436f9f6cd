"""Tests for the sentence cache and practice session registry."""
import random

from cache import SentenceCache, SessionRegistry, new_session_id
from settings import UserSettings


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _sentence(chinese):
    return {"id": chinese, "chinese": chinese, "pinyin": "", "english": "x"}


def test_put_respects_cap_and_duplicates():
    cache = SentenceCache(max_size=2)
    assert cache.put("beginner", _sentence("一"))
    assert not cache.put("beginner", _sentence("一"))
    assert cache.put("beginner", _sentence("二"))
    assert not cache.put("beginner", _sentence("三"))
    assert cache.size("beginner") == 2
    assert not cache.needs_fill("beginner")
    assert cache.needs_fill("advanced")


def test_pop_removes_entry():
    cache = SentenceCache(rng=random.Random(3))
    cache.put("beginner", _sentence("一"))
    cache.put("beginner", _sentence("二"))
    first = cache.pop("beginner")
    second = cache.pop("beginner")
    assert {first["chinese"], second["chinese"]} == {"一", "二"}
    assert cache.pop("beginner") is None


def test_entries_expire():
    clock = FakeClock()
    cache = SentenceCache(ttl=3600, clock=clock)
    cache.put("intermediate", _sentence("一"))
    clock.now += 3601
    assert cache.pop("intermediate") is None
    assert cache.stats()["tiers"]["intermediate"] == 0


def test_session_registry_expiry():
    clock = FakeClock()
    sessions = SessionRegistry(ttl=60, clock=clock)
    session = sessions.create(UserSettings(), total_words=5)
    assert sessions.get(session.session_id) is session
    assert session.stats.total_words == 5

    clock.now += 30
    assert sessions.get(session.session_id) is session
    clock.now += 61
    assert sessions.get(session.session_id) is None
    assert sessions.get("missing") is None


def test_cleanup_drops_stale_sessions():
    clock = FakeClock()
    sessions = SessionRegistry(ttl=60, clock=clock)
    sessions.create(UserSettings())
    clock.now += 120
    fresh = sessions.create(UserSettings())
    assert list(sessions._sessions) == [fresh.session_id]


def test_session_ids_are_unique():
    assert new_session_id() != new_session_id()
