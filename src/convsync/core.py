"""Core data models for convsync."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from .errors import ServerError

FAILURE_NOTICE = "Sorry, there was an error processing your message."


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with a trailing Z."""
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class ChatMessage:
    """A single message in a conversation.

    Messages are never patched in place; build a new one instead.
    """

    role: Role
    content: str
    user_id: str
    timestamp: datetime = field(default_factory=utcnow)
    synthetic: bool = False  # locally generated failure notice

    @property
    def sender(self) -> str:
        """UI-facing alias of ``role``: "user" or "ai"."""
        return "user" if self.role == Role.USER else "ai"

    def to_dict(self) -> dict:
        data = {
            "role": self.role.value,
            "content": self.content,
            "sender": self.sender,
            "userId": self.user_id,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.synthetic:
            data["synthetic"] = True
        return data

    @classmethod
    def from_dict(cls, data, user_id: Optional[str] = None) -> "ChatMessage":
        """Build a message from its wire or persisted form.

        A missing role falls back to the ``sender`` alias, a missing timestamp
        to now and a missing userId to ``user_id``. Raises ServerError when the
        entry is malformed.
        """
        if not isinstance(data, dict):
            raise ServerError(f"Message entry is not an object: {data!r}")

        content = data.get("content")
        if not isinstance(content, str):
            raise ServerError("Message entry has no text content")

        raw_role = data.get("role")
        if not raw_role:
            raw_role = "user" if data.get("sender") == "user" else "assistant"
        try:
            role = Role(raw_role)
        except ValueError:
            raise ServerError(f"Unknown message role: {raw_role!r}")

        raw_ts = data.get("timestamp")
        try:
            timestamp = parse_timestamp(raw_ts) if raw_ts else utcnow()
        except (TypeError, ValueError):
            raise ServerError(f"Bad message timestamp: {raw_ts!r}")

        return cls(
            role=role,
            content=content,
            user_id=data.get("userId") or user_id or "",
            timestamp=timestamp,
            synthetic=bool(data.get("synthetic", False)),
        )


def user_message(content: str, user_id: str) -> ChatMessage:
    return ChatMessage(role=Role.USER, content=content, user_id=user_id)


def assistant_message(content: str, user_id: str) -> ChatMessage:
    return ChatMessage(role=Role.ASSISTANT, content=content, user_id=user_id)


def failure_notice(user_id: str) -> ChatMessage:
    return ChatMessage(
        role=Role.ASSISTANT,
        content=FAILURE_NOTICE,
        user_id=user_id,
        synthetic=True,
    )


def merge_histories(*histories: Iterable[ChatMessage]) -> list[ChatMessage]:
    """Concatenate histories in order and drop repeated content.

    The first message carrying a given ``content`` wins, so callers pass the
    authoritative (remote) history first. Synthetic failure notices are left
    out entirely.
    """
    seen: set[str] = set()
    merged = []
    for history in histories:
        for msg in history:
            if msg.synthetic or msg.content in seen:
                continue
            seen.add(msg.content)
            merged.append(msg)
    return merged
