"""Shared test fixtures for convsync."""

import asyncio
from datetime import datetime, timezone

import pytest

from convsync import server
from convsync.client import ConversationClient
from convsync.core import ChatMessage, Role
from convsync.engine import ConversationSyncEngine
from convsync.events import EventRecorder
from convsync.storage import KeyValueStorage, MemoryStorage
from convsync.store import LocalHistoryStore
from convsync.errors import PersistenceError


class FakeClient(ConversationClient):
    """Scripted ConversationClient.

    ``history_gate`` / ``send_gate`` hold a call open until the test sets the
    event, which lets tests act while a request is in flight.
    """

    def __init__(self):
        self.history: list[ChatMessage] = []
        self.reply = "ack"
        self.history_error: Exception | None = None
        self.send_error: Exception | None = None
        self.history_delay = 0.0
        self.history_gate: asyncio.Event | None = None
        self.send_gate: asyncio.Event | None = None
        self.history_calls: list[str] = []
        self.sent: list[tuple[str, str]] = []

    async def fetch_history(self, user_id):
        self.history_calls.append(user_id)
        if self.history_delay:
            await asyncio.sleep(self.history_delay)
        if self.history_gate:
            await self.history_gate.wait()
        if self.history_error:
            raise self.history_error
        return list(self.history)

    async def send_message(self, content, user_id):
        self.sent.append((content, user_id))
        if self.send_gate:
            await self.send_gate.wait()
        if self.send_error:
            raise self.send_error
        return self.reply


class BrokenStorage(KeyValueStorage):
    """Storage where every call fails, like a browser with storage disabled."""

    def get_item(self, key):
        raise PersistenceError("storage disabled")

    def set_item(self, key, value):
        raise PersistenceError("storage disabled")

    def remove_item(self, key):
        raise PersistenceError("storage disabled")


def make_message(content, role=Role.USER, user_id="user_test", minute=0):
    return ChatMessage(
        role=role,
        content=content,
        user_id=user_id,
        timestamp=datetime(2025, 1, 15, 10, minute, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def store(storage, recorder):
    return LocalHistoryStore(storage, on_event=recorder)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def engine(fake_client, store, recorder):
    return ConversationSyncEngine(fake_client, store, on_event=recorder)


@pytest.fixture(autouse=True)
def reset_reference_service():
    """Reset the reference service's in-memory state around each test."""
    server.reset()
    yield
    server.reset()
