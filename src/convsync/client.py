"""Clients for the remote conversation service."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .core import ChatMessage
from .errors import ServerError, TransportError

logger = logging.getLogger(__name__)

HISTORY_PATH = "/api/chat/history"
MESSAGE_PATH = "/api/chat/message"


class ConversationClient(ABC):
    """Remote side of a conversation.

    Implementations raise TransportError when the service cannot be reached
    and ServerError when it answers with a failure or an unreadable body.
    """

    @abstractmethod
    async def fetch_history(self, user_id: str) -> list[ChatMessage]:
        """Return the server-side history for ``user_id``, oldest first."""
        ...

    @abstractmethod
    async def send_message(self, content: str, user_id: str) -> str:
        """Send one user message and return the assistant's reply text."""
        ...

    async def aclose(self) -> None:
        """Release any held connections."""


class HttpConversationClient(ConversationClient):
    """ConversationClient speaking JSON over HTTP with httpx."""

    def __init__(
        self,
        base_url: str,
        history_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.history_timeout = history_timeout
        # Sends carry no client-side timeout; only the history fetch is bounded.
        self._client = httpx.AsyncClient(
            base_url=self.base_url, transport=transport, timeout=None
        )

    async def fetch_history(self, user_id: str) -> list[ChatMessage]:
        data = await self._request(
            "GET",
            HISTORY_PATH,
            params={"userId": user_id},
            timeout=self.history_timeout,
        )
        if not data:
            return []
        if not isinstance(data, list):
            raise ServerError("History response is not a list")
        return [ChatMessage.from_dict(entry, user_id=user_id) for entry in data]

    async def send_message(self, content: str, user_id: str) -> str:
        data = await self._request(
            "POST",
            MESSAGE_PATH,
            json={"content": content, "userId": user_id},
            headers={"X-User-ID": user_id},
        )
        reply = data.get("response") if isinstance(data, dict) else None
        if not isinstance(reply, str):
            raise ServerError("Message response has no 'response' text")
        return reply

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs):
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        logger.debug("%s %s -> HTTP %s", method, path, resp.status_code)
        if resp.is_error:
            raise ServerError(f"{method} {path} returned HTTP {resp.status_code}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ServerError(f"{method} {path} returned invalid JSON") from e
