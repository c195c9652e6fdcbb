"""Export a conversation history to Markdown and JSON formats."""

import json
from typing import Sequence

from .core import ChatMessage


def history_to_markdown(messages: Sequence[ChatMessage], title: str = "Conversation") -> str:
    """Export messages as clean Markdown."""
    lines = [f"# {title}", ""]
    if messages:
        lines.append(f"**User:** {messages[0].user_id}")
    lines.append(f"**Messages:** {len(messages)}")
    lines.extend(["", "---", ""])

    for msg in messages:
        role_label = "You" if msg.sender == "user" else "AI"
        ts = f" ({msg.timestamp.strftime('%Y-%m-%d %H:%M')})"
        lines.append(f"## {role_label}{ts}")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def history_to_json(messages: Sequence[ChatMessage]) -> str:
    """Export messages as a JSON array in the wire format."""
    return json.dumps([m.to_dict() for m in messages], indent=2, ensure_ascii=False)
