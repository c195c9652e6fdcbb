"""CLI entry point for convsync."""

import asyncio
import logging
from pathlib import Path

import click
import uvicorn

from .client import HttpConversationClient
from .config import get_history_timeout, get_service_url, get_storage_path
from .core import ChatMessage
from .engine import ConversationSyncEngine
from .export import history_to_json, history_to_markdown
from .storage import JsonFileStorage
from .store import LocalHistoryStore

storage_option = click.option(
    "--storage",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Cache file (defaults to CONVSYNC_STORAGE_PATH or the user data dir).",
)


def _open_store(storage: Path | None) -> LocalHistoryStore:
    return LocalHistoryStore(JsonFileStorage(storage or get_storage_path()))


def _echo_message(msg: ChatMessage) -> None:
    label = "You" if msg.sender == "user" else "AI"
    click.echo(f"{label}: {msg.content}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log sync lifecycle events.")
def main(verbose: bool):
    """Keep a chat transcript in sync between a conversation service and a local cache."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.ERROR,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the reference conversation service."""
    click.echo(f"Starting convsync service on http://{host}:{port}")
    uvicorn.run("convsync.server:app", host=host, port=port, reload=False)


@main.command()
@click.option("--url", default=None, help="Conversation service URL.")
@click.option("--timeout", type=float, default=None, help="History fetch timeout in seconds.")
@storage_option
def chat(url: str | None, timeout: float | None, storage: Path | None):
    """Open an interactive chat session. Type /clear to reset, /quit to leave."""
    asyncio.run(_chat_session(
        url or get_service_url(),
        timeout if timeout is not None else get_history_timeout(),
        _open_store(storage),
    ))


async def _chat_session(url: str, timeout: float, store: LocalHistoryStore) -> None:
    client = HttpConversationClient(url, history_timeout=timeout)
    engine = ConversationSyncEngine(client, store, history_timeout=timeout)
    try:
        await engine.load()
        if engine.error:
            click.echo(f"! {engine.error}", err=True)
        for msg in engine.messages:
            _echo_message(msg)

        while True:
            try:
                text = click.prompt("You", default="", show_default=False, prompt_suffix="> ")
            except click.Abort:
                break

            command = text.strip()
            if command == "/quit":
                break
            if command == "/clear":
                if engine.clear():
                    click.echo("History cleared.")
                else:
                    click.echo("! History cleared from this session only; the local cache could not be updated.", err=True)
                continue

            seen = len(engine.messages)
            await engine.send(text)
            for msg in engine.messages[seen + 1:]:
                _echo_message(msg)
            if engine.error:
                click.echo(f"! {engine.error}", err=True)
    finally:
        engine.close()
        await client.aclose()


@main.command()
@click.option("--format", "fmt", type=click.Choice(["md", "json"]), default="md", help="Output format.")
@storage_option
def history(fmt: str, storage: Path | None):
    """Print the locally cached history."""
    messages = _open_store(storage).read_all()
    if fmt == "json":
        click.echo(history_to_json(messages))
    else:
        click.echo(history_to_markdown(messages))


@main.command()
@storage_option
def clear(storage: Path | None):
    """Clear the locally cached history. The user id is kept."""
    if not _open_store(storage).clear():
        raise click.ClickException("Could not clear the local chat history; the cache is unreadable or not writable.")
    click.echo("Local chat history cleared.")
