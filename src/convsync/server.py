"""Reference conversation service built on FastAPI.

Serves the two endpoints the sync engine talks to from an in-memory,
per-user history. Replies come from a pluggable responder; the default one
echoes the user's message back.
"""

import logging
from typing import Callable

from fastapi import FastAPI, Header, HTTPException, Query
from pydantic import BaseModel

from .core import ChatMessage, assistant_message, user_message

logger = logging.getLogger(__name__)

app = FastAPI(title="convsync", version="0.1.0")

Responder = Callable[[str, list[ChatMessage]], str]


def echo_responder(content: str, history: list[ChatMessage]) -> str:
    return f"You said: {content}"


# Per-user history, keyed by user id
_histories: dict[str, list[ChatMessage]] = {}
_responder: Responder = echo_responder


def set_responder(responder: Responder) -> None:
    """Replace the function that produces assistant replies."""
    global _responder
    _responder = responder


def reset() -> None:
    """Forget all histories and restore the echo responder."""
    global _responder
    _histories.clear()
    _responder = echo_responder


class MessageIn(BaseModel):
    content: str
    userId: str


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/chat/history")
async def get_history(userId: str = Query(..., min_length=1, description="User id")):
    """Return the stored history for a user, oldest first."""
    return [m.to_dict() for m in _histories.get(userId, [])]


@app.post("/api/chat/message")
async def post_message(
    body: MessageIn,
    x_user_id: str | None = Header(None),
):
    """Record a user message and answer it."""
    if not body.content.strip():
        raise HTTPException(status_code=422, detail="Message content is empty")
    if x_user_id and x_user_id != body.userId:
        raise HTTPException(status_code=400, detail="X-User-ID does not match userId")

    history = _histories.setdefault(body.userId, [])
    try:
        reply = _responder(body.content, list(history))
    except Exception as e:
        logger.error("Responder failed for %s: %s", body.userId, e)
        raise HTTPException(status_code=500, detail="Failed to generate a reply")

    history.append(user_message(body.content, body.userId))
    history.append(assistant_message(reply, body.userId))
    logger.info("Stored exchange for %s (%d messages)", body.userId, len(history))
    return {"response": reply}
