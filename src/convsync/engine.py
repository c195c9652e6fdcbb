"""Conversation sync engine.

Keeps the in-memory view of one conversation in step with the remote service
and the local cache:

- ``load()`` runs once. It fetches the remote history (bounded by
  ``history_timeout``), merges it ahead of the cached history, drops repeated
  content and writes the result back to the cache.
- ``send()`` appends the user's message to the view straight away, then
  appends either the assistant's reply or a synthetic failure notice.
- ``clear()`` empties the view and the cache but keeps the user id.
- ``close()`` detaches the engine; replies that arrive later are dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from .client import ConversationClient
from .core import (
    ChatMessage,
    assistant_message,
    failure_notice,
    merge_histories,
    user_message,
)
from .errors import ServerError, TransportError
from .events import EventHook, emit, log_event
from .store import LocalHistoryStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_TIMEOUT = 5.0

LOAD_FAILED = "Could not fetch chat history"
SEND_FAILED = "Failed to send message"


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"


class ConversationSyncEngine:
    """State holder for one conversation session."""

    def __init__(
        self,
        client: ConversationClient,
        store: LocalHistoryStore,
        on_event: Optional[EventHook] = None,
        history_timeout: float = DEFAULT_HISTORY_TIMEOUT,
    ):
        self.client = client
        self.store = store
        self.on_event = on_event or log_event
        self.history_timeout = history_timeout

        self.state = SyncState.IDLE
        self.user_id: Optional[str] = None
        self.input_buffer = ""
        self.error: Optional[str] = None
        self.is_loading = False
        self._messages: list[ChatMessage] = []
        # Bumped by clear() so a reply to a send issued before the clear is dropped.
        self._generation = 0

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        """The active view, oldest first."""
        return tuple(self._messages)

    @property
    def closed(self) -> bool:
        return self.state is SyncState.CLOSED

    # ── Initial load ─────────────────────────────────────────────────

    async def load(self) -> bool:
        """Fetch, merge and publish the history. Only the first call has effect."""
        if self.state is not SyncState.IDLE:
            logger.info("Ignoring load() in state %s", self.state.value)
            return False

        self.state = SyncState.LOADING
        self.user_id = self.store.get_user_id()

        try:
            emit(self.on_event, "load.start", {"user_id": self.user_id})
            remote = await self._fetch_remote(self.user_id)
            if self.closed:
                emit(self.on_event, "load.discarded", {"user_id": self.user_id})
                return False

            local = self.store.read_all()
            merged = merge_histories(remote, local)
            emit(self.on_event, "merge.result", {
                "remote": len(remote),
                "local": len(local),
                "merged": len(merged),
            })
            self._messages = merged
            self.store.replace(merged)
        except Exception as e:
            if self.closed:
                return False
            logger.exception("Loading chat history failed, using local cache")
            self._messages = self.store.read_all()
            self.error = LOAD_FAILED
            emit(self.on_event, "load.fallback", {"error": str(e), "count": len(self._messages)})

        self.state = SyncState.READY
        emit(self.on_event, "load.end", {"count": len(self._messages)})
        return True

    async def _fetch_remote(self, user_id: str) -> list[ChatMessage]:
        """Remote history, or [] when the service is slow or unavailable."""
        try:
            return await asyncio.wait_for(
                self.client.fetch_history(user_id), timeout=self.history_timeout
            )
        except asyncio.TimeoutError:
            error = f"timed out after {self.history_timeout}s"
        except (TransportError, ServerError) as e:
            error = str(e)

        logger.error("Remote chat history unavailable: %s", error)
        emit(self.on_event, "load.remote_failed", {"error": error})
        return []

    # ── Sending ──────────────────────────────────────────────────────

    async def send(self, text: Optional[str] = None) -> bool:
        """Send ``text`` (or the current input buffer) to the service.

        The input buffer is only cleared when it was the source of the message.

        Returns True when the service answered and the exchange was stored.
        Blank input, a send while another is pending, and a send before the
        initial load has finished are rejected without touching the view.
        """
        content = self.input_buffer if text is None else text
        if not content.strip():
            return False

        if self.state is not SyncState.READY or self.is_loading:
            emit(self.on_event, "send.rejected", {
                "state": self.state.value,
                "pending": self.is_loading,
            })
            return False

        user_id = self.user_id
        sent = user_message(content, user_id)
        generation = self._generation
        self._messages.append(sent)

        try:
            self.is_loading = True
            emit(self.on_event, "send.start", {"user_id": user_id, "length": len(content)})
            reply = await self.client.send_message(content, user_id)
        except (TransportError, ServerError) as e:
            if not self._is_current(generation):
                return False
            logger.error("Sending message failed: %s", e)
            self._messages.append(failure_notice(user_id))
            self.error = SEND_FAILED
            emit(self.on_event, "send.failed", {"error": str(e)})
            return False
        except Exception:
            if self._is_current(generation) and self._messages and self._messages[-1] is sent:
                self._messages.pop()
            raise
        finally:
            self.is_loading = False

        if not self._is_current(generation):
            emit(self.on_event, "send.discarded", {"user_id": user_id})
            return False

        answer = assistant_message(reply, user_id)
        self._messages.append(answer)
        self.store.append(sent)
        self.store.append(answer)
        if text is None:
            self.input_buffer = ""
        self.error = None
        emit(self.on_event, "send.end", {"count": len(self._messages)})
        return True

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation

    # ── Clearing and teardown ────────────────────────────────────────

    def clear(self) -> bool:
        """Empty the view and the cached history. The user id survives.

        The view is always emptied; returns False if the cache kept its copy.
        """
        self._messages = []
        self._generation += 1
        stored = self.store.clear()
        emit(self.on_event, "history.cleared", {"user_id": self.user_id, "stored": stored})
        return stored

    def close(self) -> None:
        """Detach the engine. Results of calls still in flight are dropped."""
        self.state = SyncState.CLOSED
