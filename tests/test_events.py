"""Tests for the event hook helpers."""

import logging

from convsync.events import EventRecorder, emit, log_event


def test_emit_calls_hook():
    recorder = EventRecorder()
    emit(recorder, "send.start", {"length": 4})
    assert recorder.events == [("send.start", {"length": 4})]


def test_emit_logs_failing_hook(caplog):
    def broken(event, fields):
        raise RuntimeError("hook broke")

    with caplog.at_level(logging.ERROR, logger="convsync.events"):
        emit(broken, "load.start", {})

    assert "Event hook failed on load.start" in caplog.text


def test_default_hook_levels(caplog):
    with caplog.at_level(logging.INFO, logger="convsync.events"):
        log_event("load.end", {"count": 2})
        log_event("send.failed", {"error": "down"})

    levels = {r.getMessage().split()[0]: r.levelno for r in caplog.records}
    assert levels == {"load.end": logging.INFO, "send.failed": logging.WARNING}
