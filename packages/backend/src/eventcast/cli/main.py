"""eventcast CLI — run the server, submit events, watch the stream.

Usage:
    eventcast serve --port 3000                          # Run the API server
    eventcast submit click 2024-01-01T00:00:00Z x y z    # Submit an event
    eventcast listen                                     # Print events as they arrive
    eventcast listen --count 5                           # ...stop after five
    eventcast history --limit 20                         # Stored events
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from eventcast import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("EVENTCAST_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the eventcast server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "—")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def parse_sse_data(line: str) -> Optional[dict]:
    """Decode one `data: <json>` line; None for comments/blank lines."""
    if not line.startswith("data:"):
        return None
    return json.loads(line[len("data:"):].strip())


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="eventcast")
def main():
    """eventcast — submit events and stream them live over SSE."""


# ---------------------------------------------------------------------------
# eventcast serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: EVENTCAST_HOST or 0.0.0.0)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: PORT / EVENTCAST_PORT or 3000)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the eventcast API server with uvicorn."""
    import structlog
    import uvicorn

    from eventcast.config import settings

    host = host or settings.host
    port = port or settings.port
    structlog.get_logger().info("eventcast.serving", host=host, port=port, reload=reload)

    if reload:
        # The reloader imports the app in a worker process, so the plain
        # server is used; the graceful timeout still bounds open streams.
        uvicorn.run(
            "eventcast.main:app",
            host=host,
            port=port,
            reload=True,
            log_config=None,  # structlog owns output
            timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
        )
        return

    from eventcast.main import app
    from eventcast.server import StreamingServer

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )
    StreamingServer(config, app.state.registry).run()


# ---------------------------------------------------------------------------
# eventcast submit
# ---------------------------------------------------------------------------


@main.command()
@click.argument("event_name")
@click.argument("event_timestamp")
@click.argument("prop1")
@click.argument("prop2")
@click.argument("prop3")
@click.option("--img-url", default=None, help="Optional image URL")
def submit(event_name: str, event_timestamp: str, prop1: str, prop2: str,
           prop3: str, img_url: Optional[str]):
    """Submit an event; it is broadcast to every open stream."""
    body = {
        "eventName": event_name,
        "eventTimestamp": event_timestamp,
        "prop1": prop1,
        "prop2": prop2,
        "prop3": prop3,
    }
    if img_url:
        body["imgURL"] = img_url
    _run(_submit_impl(body))


async def _submit_impl(body: dict):
    async with _client() as c:
        r = await c.post("/events", json=body)
    if r.status_code == 400:
        _fail(r.json().get("detail", r.text))
    r.raise_for_status()
    event = r.json()
    click.secho(f"Event #{event['id']} stored", fg="green")
    click.echo(_pretty_json(event))


# ---------------------------------------------------------------------------
# eventcast listen
# ---------------------------------------------------------------------------


@main.command()
@click.option("--count", "-n", type=int, default=None, help="Exit after N events")
def listen(count: Optional[int]):
    """Open the event stream and print each event as it arrives."""
    try:
        _run(_listen_impl(count))
    except KeyboardInterrupt:
        pass


async def _listen_impl(count: Optional[int]):
    received = 0
    async with _client() as c:
        async with c.stream("GET", "/events", timeout=None) as r:
            r.raise_for_status()
            click.secho(f"Listening on {_api_url()}/events", fg="cyan", err=True)
            async for line in r.aiter_lines():
                event = parse_sse_data(line)
                if event is None:
                    continue
                click.echo(json.dumps(event))
                received += 1
                if count is not None and received >= count:
                    return


# ---------------------------------------------------------------------------
# eventcast history
# ---------------------------------------------------------------------------


@main.command()
@click.option("--after-id", type=int, default=0, help="Only events after this id")
@click.option("--limit", "-l", type=int, default=50, help="Max results")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def history(after_id: int, limit: int, as_json: bool):
    """List stored events, oldest first."""
    _run(_history_impl(after_id, limit, as_json))


async def _history_impl(after_id: int, limit: int, as_json: bool):
    async with _client() as c:
        r = await c.get("/events/history", params={"after_id": after_id, "limit": limit})
        r.raise_for_status()
        events = r.json()

    if as_json:
        click.echo(_pretty_json(events))
        return
    if not events:
        click.echo("No events.")
        return
    _print_table(events, [
        ("ID", "id", 6),
        ("NAME", "eventName", 16),
        ("TIMESTAMP", "eventTimestamp", 24),
        ("PROP1", "prop1", 12),
        ("PROP2", "prop2", 12),
        ("PROP3", "prop3", 12),
    ])


if __name__ == "__main__":
    main()
