"""Environment-driven settings: service URL, cache location, timeouts."""

import os
import sys
from pathlib import Path

DEFAULT_SERVICE_URL = "http://127.0.0.1:8080"
DEFAULT_HISTORY_TIMEOUT = 5.0


def get_service_url() -> str:
    """Return the base URL of the conversation service."""
    return os.environ.get("CONVSYNC_SERVICE_URL") or DEFAULT_SERVICE_URL


def get_storage_path() -> Path:
    """Return the path of the JSON file holding the local cache."""
    env = os.environ.get("CONVSYNC_STORAGE_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "convsync" / "session.json"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "convsync" / "session.json"
    else:  # Linux
        return Path.home() / ".local" / "share" / "convsync" / "session.json"


def get_history_timeout() -> float:
    """Return the history fetch timeout in seconds."""
    env = os.environ.get("CONVSYNC_HISTORY_TIMEOUT")
    if env:
        try:
            return float(env)
        except ValueError:
            pass
    return DEFAULT_HISTORY_TIMEOUT
