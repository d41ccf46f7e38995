"""Tests for the in-memory session store."""

import asyncio
from datetime import datetime, timedelta

import pytest

from autoflow_ai.conversation.store import InMemorySessionStore
from autoflow_ai.models import ConversationSession, Message, MessageRole


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 10, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _session(user_id: str, at: datetime) -> ConversationSession:
    return ConversationSession(user_id=user_id, created_at=at, last_activity=at)


class TestInMemorySessionStore:
    def test_create_and_get(self):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)
        store.create(_session("user_1", clock()))

        session = store.get("user_1")
        assert session is not None
        assert session.user_id == "user_1"

    def test_get_missing(self):
        assert InMemorySessionStore().get("ghost") is None

    def test_get_returns_a_copy(self):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)
        store.create(_session("user_1", clock()))

        session = store.get("user_1")
        session.history.append(Message(
            id="msg_1", role=MessageRole.USER, content="oi", timestamp=clock(),
        ))
        session.industry = "ecommerce"

        stored = store.get("user_1")
        assert stored.history == []
        assert stored.industry == "geral"

    def test_update_publishes_changes(self):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)
        store.create(_session("user_1", clock()))

        session = store.get("user_1")
        session.industry = "servicos"
        store.update(session)

        assert store.get("user_1").industry == "servicos"

    def test_delete(self):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)
        store.create(_session("user_1", clock()))

        assert store.delete("user_1") is True
        assert store.get("user_1") is None
        assert store.delete("user_1") is False

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=3600, clock=clock)
        store.create(_session("idle", clock()))

        clock.advance(minutes=30)
        store.create(_session("active", clock()))

        clock.advance(minutes=45)
        assert store.get("idle") is None
        assert store.get("active") is not None

    def test_least_recently_used_evicted_over_capacity(self):
        clock = FakeClock()
        store = InMemorySessionStore(max_sessions=2, clock=clock)
        store.create(_session("a", clock()))
        store.create(_session("b", clock()))

        store.get("a")  # "b" becomes least recently used
        store.create(_session("c", clock()))

        assert store.get("b") is None
        assert store.get("a") is not None
        assert store.get("c") is not None

    @pytest.mark.asyncio
    async def test_lock_serializes_same_user(self):
        store = InMemorySessionStore()
        events = []

        async def turn(name):
            async with store.lock("user_1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(turn("a"), turn("b"))

        assert events == ["a-in", "a-out", "b-in", "b-out"]

    @pytest.mark.asyncio
    async def test_different_users_do_not_block(self):
        store = InMemorySessionStore()
        async with store.lock("user_1"):
            await asyncio.wait_for(self._enter(store, "user_2"), timeout=1.0)

    @staticmethod
    async def _enter(store, user_id):
        async with store.lock(user_id):
            pass

    @pytest.mark.asyncio
    async def test_delete_during_hand_off_keeps_turns_serialized(self):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)
        store.create(_session("user_1", clock()))
        events = []
        first_in = asyncio.Event()
        release_first = asyncio.Event()

        async def first():
            async with store.lock("user_1"):
                first_in.set()
                await release_first.wait()

        async def queued():
            async with store.lock("user_1"):
                events.append("queued-in")
                await asyncio.sleep(0.01)
                events.append("queued-out")

        async def late():
            async with store.lock("user_1"):
                events.append("late-in")

        holder = asyncio.create_task(first())
        await first_in.wait()
        waiter = asyncio.create_task(queued())
        await asyncio.sleep(0)

        release_first.set()
        await holder
        store.delete("user_1")
        await asyncio.gather(waiter, late())

        assert events == ["queued-in", "queued-out", "late-in"]

    @pytest.mark.asyncio
    async def test_eviction_does_not_drop_held_lock(self):
        clock = FakeClock()
        store = InMemorySessionStore(ttl_seconds=60, clock=clock)
        store.create(_session("user_1", clock()))

        async with store.lock("user_1"):
            clock.advance(minutes=5)
            assert store.get("user_1") is None
            assert "user_1" in store._locks

    @pytest.mark.asyncio
    async def test_lock_entry_released_after_last_turn(self):
        store = InMemorySessionStore()

        async with store.lock("ghost"):
            pass

        assert store._locks == {}

    @pytest.mark.asyncio
    async def test_lock_entry_released_when_turn_raises(self):
        store = InMemorySessionStore()

        with pytest.raises(ValueError):
            async with store.lock("ghost"):
                raise ValueError("bad context")

        assert store._locks == {}
