"""Client-side conversation cache synchronizer."""

from .core import ChatMessage, Role, merge_histories
from .engine import ConversationSyncEngine, SyncState
from .errors import ConvsyncError, PersistenceError, ServerError, TransportError
from .store import LocalHistoryStore

__version__ = "0.1.0"

__all__ = [
    "ChatMessage",
    "ConversationSyncEngine",
    "ConvsyncError",
    "LocalHistoryStore",
    "PersistenceError",
    "Role",
    "ServerError",
    "SyncState",
    "TransportError",
    "merge_histories",
]
