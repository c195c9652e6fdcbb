"""Tests for the command line interface."""

import json
from unittest.mock import patch

import httpx
from click.testing import CliRunner

from convsync.cli import main
from convsync.client import HttpConversationClient
from convsync.storage import JsonFileStorage
from convsync.store import LocalHistoryStore

from conftest import make_message


def seed(path, *contents):
    store = LocalHistoryStore(JsonFileStorage(path))
    store.replace([make_message(c) for c in contents])
    return store


def test_history_markdown(tmp_path):
    path = tmp_path / "session.json"
    seed(path, "hi there")

    result = CliRunner().invoke(main, ["history", "--storage", str(path)])

    assert result.exit_code == 0
    assert "hi there" in result.output
    assert "**Messages:** 1" in result.output


def test_history_json(tmp_path):
    path = tmp_path / "session.json"
    seed(path, "one", "two")

    result = CliRunner().invoke(main, ["history", "--format", "json", "--storage", str(path)])

    assert result.exit_code == 0
    assert [m["content"] for m in json.loads(result.output)] == ["one", "two"]


def test_history_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "env-session.json"
    seed(path, "from env")
    monkeypatch.setenv("CONVSYNC_STORAGE_PATH", str(path))

    result = CliRunner().invoke(main, ["history", "--format", "json"])

    assert result.exit_code == 0
    assert "from env" in result.output


def test_clear_keeps_user_id(tmp_path):
    path = tmp_path / "session.json"
    user_id = seed(path, "hi").get_user_id()

    result = CliRunner().invoke(main, ["clear", "--storage", str(path)])

    assert result.exit_code == 0
    store = LocalHistoryStore(JsonFileStorage(path))
    assert store.read_all() == []
    assert store.get_user_id() == user_id


def test_chat_session_offline(tmp_path):
    """With the service unreachable the session still starts and reports failures."""
    path = tmp_path / "session.json"
    seed(path, "cached line")

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    def offline_client(url, history_timeout):
        return HttpConversationClient(url, history_timeout=history_timeout, transport=httpx.MockTransport(refuse))

    with patch("convsync.cli.HttpConversationClient", side_effect=offline_client):
        result = CliRunner().invoke(
            main,
            ["chat", "--url", "http://test", "--storage", str(path)],
            input="hello\n/quit\n",
        )

    assert result.exit_code == 0
    assert "You: cached line" in result.output
    assert "AI: Sorry, there was an error processing your message." in result.output
    assert "Failed to send message" in result.output


def test_clear_reports_unreadable_cache(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("not json", encoding="utf-8")

    result = CliRunner().invoke(main, ["clear", "--storage", str(path)])

    assert result.exit_code == 1
    assert "Could not clear the local chat history" in result.output
    assert "Local chat history cleared." not in result.output
    assert path.read_text(encoding="utf-8") == "not json"
