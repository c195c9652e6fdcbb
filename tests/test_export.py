"""Tests for export functionality."""

import json

import pytest

from convsync.core import Role
from convsync.export import history_to_json, history_to_markdown

from conftest import make_message


@pytest.fixture
def sample_messages():
    return [
        make_message("Fix the login bug in auth.ts", Role.USER, minute=0),
        make_message(
            "Here's the change:\n\n```typescript\nconst token = await validateToken(input);\n```",
            Role.ASSISTANT,
            minute=1,
        ),
        make_message("Looks good, thanks!", Role.USER, minute=2),
    ]


class TestMarkdownExport:
    def test_includes_title_and_count(self, sample_messages):
        result = history_to_markdown(sample_messages, title="Auth fix")
        assert "# Auth fix" in result
        assert "**Messages:** 3" in result
        assert "**User:** user_test" in result

    def test_labels_and_timestamps(self, sample_messages):
        result = history_to_markdown(sample_messages)
        assert "## You (2025-01-15 10:00)" in result
        assert "## AI (2025-01-15 10:01)" in result

    def test_preserves_code_blocks(self, sample_messages):
        result = history_to_markdown(sample_messages)
        assert "```typescript" in result

    def test_empty_history(self):
        result = history_to_markdown([])
        assert "**Messages:** 0" in result
        assert "**User:**" not in result


class TestJsonExport:
    def test_wire_format(self, sample_messages):
        data = json.loads(history_to_json(sample_messages))
        assert len(data) == 3
        assert data[0] == {
            "role": "user",
            "content": "Fix the login bug in auth.ts",
            "sender": "user",
            "userId": "user_test",
            "timestamp": "2025-01-15T10:00:00Z",
        }
        assert data[1]["sender"] == "ai"

    def test_unicode_preserved(self):
        result = history_to_json([make_message("héllo wörld")])
        assert "héllo wörld" in result
