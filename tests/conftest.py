"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like an in-memory store and a mock messenger.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("LINE_CHANNEL_SECRET", "fake-secret-for-tests")
os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "fake-token-for-tests")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("TIMEZONE", "Asia/Taipei")

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def memory_store():
    """Return an empty MemoryAttendanceStore."""
    from src.adapters.memory_store import MemoryAttendanceStore
    return MemoryAttendanceStore()


@pytest.fixture
def messaging():
    """Return a MessagingPort mock. Profile lookups find nobody by default."""
    mock = MagicMock()
    mock.send_reply = AsyncMock()
    mock.send_push = AsyncMock()
    mock.lookup_profile = AsyncMock(return_value=None)
    mock.count_members = AsyncMock(return_value=None)
    return mock
