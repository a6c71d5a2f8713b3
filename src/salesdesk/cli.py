"""Command-line entry point: run the backend, chat with the agent, set up the database."""

from __future__ import annotations

import asyncio
import sys

import click
import httpx

from salesdesk.application.exceptions import LiveChatError
from salesdesk.client.live_chat import LiveChatSession
from salesdesk.client.session import FileTokenStore, Session
from salesdesk.config import get_settings
from salesdesk.infrastructure.catalog_store import SqlCatalogStore

DEFAULT_TOKEN_FILE = "~/.salesdesk/session"


@click.group()
def cli():
    """SalesDesk admin backend for the WhatsApp AI sales agent."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Restart on code changes (development).")
def serve(host: str, port: int, reload: bool):
    """Run the proxy API under uvicorn."""
    import uvicorn

    uvicorn.run("salesdesk.main:app", host=host, port=port, reload=reload)


@cli.command(name="init-db")
def init_db():
    """Create the product and chat tables in DATABASE_URL if they are missing."""
    settings = get_settings()
    if not settings.database_url:
        click.echo("✗ DATABASE_URL is not set", err=True)
        sys.exit(1)

    store = SqlCatalogStore(settings.database_url, create_schema=True)
    try:
        store.connect()
        click.echo(f"✓ Tables ready: {', '.join(store.list_tables())}")
    except Exception as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


@cli.command()
@click.option("--url", default="http://127.0.0.1:8000", show_default=True, help="Backend base URL.")
@click.option("--username", default=None, help="Admin username (prompts when a login is needed).")
@click.option("--token-file", default=DEFAULT_TOKEN_FILE, show_default=True)
def chat(url: str, username: str | None, token_file: str):
    """Talk to the sales agent through the live chat proxy."""
    asyncio.run(_chat_loop(url, username, token_file))


async def _chat_loop(url: str, username: str | None, token_file: str) -> None:
    session = Session(FileTokenStore(token_file))
    async with httpx.AsyncClient(base_url=url, timeout=120.0) as http:
        if not await session.validate(http):
            user = username or click.prompt("Username")
            password = click.prompt("Password", hide_input=True)
            if not await session.login(http, user, password):
                click.echo("✗ Invalid username or password", err=True)
                sys.exit(1)

        live = LiveChatSession(http, headers=session.auth_headers(), welcome=None)
        click.echo("Connected. Type a message, or 'exit' to quit.\n")
        while True:
            try:
                text = click.prompt("you", prompt_suffix="> ")
            except click.Abort:
                break
            if text.strip().lower() in {"exit", "quit"}:
                break
            try:
                reply = await live.send(text)
            except LiveChatError as exc:
                click.echo(f"✗ {exc.notice}", err=True)
                continue
            click.echo(f"agent> {reply}\n")
        live.close()


if __name__ == "__main__":
    cli()
