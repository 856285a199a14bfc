"""Tests for devops_mcp.mcp.sessions — session lifecycle, expiry and thread safety."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from devops_mcp.mcp.sessions import SessionStore, _to_base36, generate_session_id
from devops_mcp.mcp.sweeper import SessionSweeper


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSessionIds:
    def test_generated_ids_are_unique(self):
        ids = {generate_session_id() for _ in range(500)}
        assert len(ids) == 500

    def test_generated_id_has_random_prefix(self):
        session_id = generate_session_id()
        assert len(session_id) > 32
        int(session_id[:32], 16)

    def test_base36(self):
        assert _to_base36(0) == "0"
        assert _to_base36(35) == "z"
        assert _to_base36(36) == "10"


class TestGetOrCreate:
    def test_absent_id_generates_new_session(self):
        store = SessionStore()
        session = store.get_or_create()
        assert session.id
        assert session.initialized is False
        assert session.id in store

    def test_empty_string_is_treated_as_absent(self):
        store = SessionStore(id_factory=lambda: "generated")
        assert store.get_or_create("").id == "generated"

    def test_unknown_id_is_adopted(self):
        store = SessionStore()
        session = store.get_or_create("client-chosen-id")
        assert session.id == "client-chosen-id"
        assert len(store) == 1

    def test_known_id_returns_same_session(self):
        store = SessionStore()
        first = store.get_or_create("abc")
        store.mark_initialized(first)
        second = store.get_or_create("abc")
        assert second is first
        assert second.initialized is True

    def test_generated_id_skips_collisions(self):
        ids = iter(["dup", "dup", "fresh"])
        store = SessionStore(id_factory=lambda: next(ids))
        assert store.get_or_create().id == "dup"
        assert store.get_or_create().id == "fresh"

    def test_get_does_not_create(self):
        store = SessionStore()
        assert store.get("nope") is None
        assert len(store) == 0


class TestMarkInitialized:
    def test_transition_is_monotonic_and_reported_once(self):
        store = SessionStore()
        session = store.get_or_create("abc")
        assert store.mark_initialized(session) is True
        assert store.mark_initialized(session) is False
        assert session.initialized is True

    def test_promotion_survives_purge_after_resolution(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        session = store.get_or_create("abc")
        clock.now += 11
        assert store.purge_expired() == 1

        assert store.mark_initialized(session) is True
        assert store.get("abc") is session
        assert store.get_or_create("abc").initialized is True

    def test_promotion_refreshes_last_seen(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        session = store.get_or_create("abc")
        clock.now += 8
        store.mark_initialized(session)
        clock.now += 8
        assert store.purge_expired() == 0

    def test_promotion_does_not_displace_newer_session(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        stale = store.get_or_create("abc")
        clock.now += 11
        fresh = store.get_or_create("abc")

        store.mark_initialized(stale)
        assert store.get("abc") is fresh
        assert fresh.initialized is False

    def test_concurrent_promotion_reports_single_transition(self):
        store = SessionStore()
        session = store.get_or_create("abc")
        barrier = threading.Barrier(8)

        def promote(_):
            barrier.wait()
            return store.mark_initialized(session)

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(promote, range(8)))
        assert outcomes.count(True) == 1


class TestConcurrency:
    def test_same_unknown_id_creates_one_session(self):
        store = SessionStore()
        workers = 16
        barrier = threading.Barrier(workers)

        def resolve(_):
            barrier.wait()
            return store.get_or_create("shared-id")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            sessions = list(pool.map(resolve, range(workers)))

        assert len({id(session) for session in sessions}) == 1
        assert len(store) == 1

    def test_distinct_ids_are_all_stored(self):
        store = SessionStore(max_retained=None)
        workers = 8
        per_worker = 200
        barrier = threading.Barrier(workers)

        def create_many(worker_id):
            barrier.wait()
            for i in range(per_worker):
                store.get_or_create(f"w{worker_id}-{i}")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(create_many, range(workers)))

        assert len(store) == workers * per_worker


class TestExpiry:
    def test_idle_sessions_are_purged(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.get_or_create("old")
        clock.now += 5
        store.get_or_create("young")
        clock.now += 6
        assert store.purge_expired() == 1
        assert "old" not in store
        assert "young" in store

    def test_activity_refreshes_ttl(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.get_or_create("abc")
        clock.now += 8
        store.get_or_create("abc")
        clock.now += 8
        assert store.purge_expired() == 0
        assert "abc" in store

    def test_expired_id_is_recreated_uninitialized(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        first = store.get_or_create("abc")
        store.mark_initialized(first)
        clock.now += 11
        second = store.get_or_create("abc")
        assert second is not first
        assert second.id == "abc"
        assert second.initialized is False

    def test_ttl_none_disables_expiry(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=None, clock=clock)
        store.get_or_create("abc")
        clock.now += 10 ** 9
        assert store.purge_expired() == 0

    def test_retention_cap_evicts_least_recently_seen(self):
        store = SessionStore(max_retained=2)
        store.get_or_create("a")
        store.get_or_create("b")
        store.get_or_create("a")
        store.get_or_create("c")
        assert "b" not in store
        assert "a" in store and "c" in store
        assert len(store) == 2


class TestSessionSweeper:
    pytestmark = pytest.mark.asyncio

    async def test_start_and_stop(self):
        sweeper = SessionSweeper(SessionStore(), interval_seconds=60)
        assert await sweeper.start() is True
        assert await sweeper.start() is False
        assert sweeper.running is True
        assert await sweeper.stop() is True
        assert await sweeper.stop() is False

    async def test_sweep_once_purges(self):
        clock = _Clock()
        store = SessionStore(ttl_seconds=1, clock=clock)
        store.get_or_create("abc")
        clock.now += 2
        assert SessionSweeper(store).sweep_once() == 1
        assert len(store) == 0
