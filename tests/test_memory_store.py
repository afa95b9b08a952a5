"""Tests for src.adapters.memory_store — in-memory AttendanceStore."""

import pytest

from src.adapters.memory_store import MemoryAttendanceStore
from src.data.models import Member


class TestMemoryRoster:
    @pytest.mark.asyncio
    async def test_empty_chat_lists_nothing(self, memory_store):
        assert await memory_store.list_members("C1") == []

    @pytest.mark.asyncio
    async def test_upsert_and_list(self, memory_store):
        await memory_store.upsert_member("C1", "U1", "Alice")
        assert await memory_store.list_members("C1") == [Member(id="U1", name="Alice")]

    @pytest.mark.asyncio
    async def test_upsert_overwrites_name(self, memory_store):
        await memory_store.upsert_member("C1", "U1", "Alice")
        await memory_store.upsert_member("C1", "U1", "王小明")
        assert await memory_store.list_members("C1") == [Member(id="U1", name="王小明")]

    @pytest.mark.asyncio
    async def test_chats_are_isolated(self, memory_store):
        await memory_store.upsert_member("C1", "U1", "Alice")
        assert await memory_store.list_members("C2") == []


class TestMemoryCompletions:
    @pytest.mark.asyncio
    async def test_empty_day(self, memory_store):
        assert await memory_store.completed_ids("C1", "2025-08-01") == set()

    @pytest.mark.asyncio
    async def test_mark_is_idempotent(self, memory_store):
        await memory_store.mark_complete("C1", "2025-08-01", "U1")
        once = await memory_store.completed_ids("C1", "2025-08-01")
        await memory_store.mark_complete("C1", "2025-08-01", "U1")
        assert await memory_store.completed_ids("C1", "2025-08-01") == once == {"U1"}

    @pytest.mark.asyncio
    async def test_dates_and_chats_are_separate(self, memory_store):
        await memory_store.mark_complete("C1", "2025-08-01", "U1")
        assert await memory_store.completed_ids("C1", "2025-08-02") == set()
        assert await memory_store.completed_ids("C2", "2025-08-01") == set()

    @pytest.mark.asyncio
    async def test_returned_set_is_a_copy(self, memory_store):
        await memory_store.mark_complete("C1", "2025-08-01", "U1")
        ids = await memory_store.completed_ids("C1", "2025-08-01")
        ids.add("U2")
        assert await memory_store.completed_ids("C1", "2025-08-01") == {"U1"}

    @pytest.mark.asyncio
    async def test_instances_do_not_share_state(self):
        a, b = MemoryAttendanceStore(), MemoryAttendanceStore()
        await a.mark_complete("C1", "2025-08-01", "U1")
        assert await b.completed_ids("C1", "2025-08-01") == set()
