"""Session-scoped cache of the conversation history and the user id."""

import json
import logging
import secrets
import string
from typing import Iterable, Optional

from .core import ChatMessage
from .errors import PersistenceError, ServerError
from .events import EventHook, emit, log_event
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

CHAT_HISTORY_KEY = "chatHistory"
USER_ID_KEY = "userId"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_user_id() -> str:
    return "user_" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(13))


class LocalHistoryStore:
    """Wrap a KeyValueStorage with the chat history and user id layout.

    No method raises on storage trouble: reads degrade to "nothing stored"
    and writes are dropped, leaving the previously stored value in place.
    """

    def __init__(self, storage: KeyValueStorage, on_event: Optional[EventHook] = None):
        self.storage = storage
        self.on_event = on_event or log_event
        self._user_id: Optional[str] = None

    def get_user_id(self) -> str:
        """Return the stored user id, creating and storing one on first use."""
        if self._user_id:
            return self._user_id

        try:
            existing = self.storage.get_item(USER_ID_KEY)
        except PersistenceError as e:
            logger.error("Failed to read user id: %s", e)
            emit(self.on_event, "store.read_failed", {"key": USER_ID_KEY, "error": str(e)})
            existing = None

        if existing:
            self._user_id = existing
            return existing

        user_id = generate_user_id()
        try:
            self.storage.set_item(USER_ID_KEY, user_id)
        except PersistenceError as e:
            logger.error("Failed to persist user id: %s", e)
            emit(self.on_event, "store.write_failed", {"key": USER_ID_KEY, "error": str(e)})
        self._user_id = user_id
        return user_id

    def read_all(self) -> list[ChatMessage]:
        """Return the stored history, or an empty list if absent or corrupt."""
        try:
            raw = self.storage.get_item(CHAT_HISTORY_KEY)
        except PersistenceError as e:
            logger.error("Failed to read chat history: %s", e)
            emit(self.on_event, "store.read_failed", {"key": CHAT_HISTORY_KEY, "error": str(e)})
            return []

        if not raw:
            return []

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("chat history is not a list")
            return [ChatMessage.from_dict(entry) for entry in entries]
        except (ValueError, ServerError) as e:
            logger.error("Discarding corrupt chat history: %s", e)
            emit(self.on_event, "store.corrupt", {"key": CHAT_HISTORY_KEY, "error": str(e)})
            return []

    def append(self, message: ChatMessage) -> None:
        """Add one message to the end of the stored history."""
        self._write(self.read_all() + [message])

    def replace(self, messages: Iterable[ChatMessage]) -> None:
        """Overwrite the stored history with ``messages``, in order."""
        self._write(list(messages))

    def clear(self) -> bool:
        """Forget the stored history. The user id is kept.

        Returns False when the storage refused the change.
        """
        try:
            self.storage.remove_item(CHAT_HISTORY_KEY)
        except PersistenceError as e:
            logger.error("Failed to clear chat history: %s", e)
            emit(self.on_event, "store.write_failed", {"key": CHAT_HISTORY_KEY, "error": str(e)})
            return False
        return True

    def _write(self, messages: list[ChatMessage]) -> None:
        try:
            payload = json.dumps([m.to_dict() for m in messages], ensure_ascii=False)
            self.storage.set_item(CHAT_HISTORY_KEY, payload)
        except (PersistenceError, TypeError, ValueError) as e:
            logger.error("Failed to write chat history: %s", e)
            emit(self.on_event, "store.write_failed", {"key": CHAT_HISTORY_KEY, "error": str(e)})
