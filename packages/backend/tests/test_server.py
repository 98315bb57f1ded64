"""Server shutdown with an open event stream.

Learn: uvicorn waits for open connections before it runs the lifespan
shutdown, so an SSE stream must end when shutdown starts or the process
never exits. This runs a real server on an ephemeral port, keeps a stream
open, and asks the server to exit.
"""

import asyncio

import httpx
import uvicorn

from conftest import CLICK_EVENT, sse_events, wait_for_listeners
from eventcast.server import StreamingServer


async def _start(app) -> tuple[StreamingServer, asyncio.Task, int]:
    config = uvicorn.Config(
        app, host="127.0.0.1", port=0, lifespan="off", log_config=None,
        timeout_graceful_shutdown=30,
    )
    server = StreamingServer(config, app.state.registry)
    serving = asyncio.create_task(server.serve())
    for _ in range(500):
        if server.started:
            break
        await asyncio.sleep(0.01)
    else:
        raise AssertionError("server did not start")
    port = server.servers[0].sockets[0].getsockname()[1]
    return server, serving, port


async def test_shutdown_ends_open_streams(app):
    registry = app.state.registry
    server, serving, port = await _start(app)
    try:
        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{port}", timeout=10) as client:
            async with client.stream("GET", "/events") as resp:
                assert resp.status_code == 200
                await wait_for_listeners(registry, 1)
                submitted = (await client.post("/events", json=CLICK_EVENT)).json()

                server.should_exit = True
                body = (await asyncio.wait_for(resp.aread(), timeout=5)).decode()

        # Well inside timeout_graceful_shutdown: the stream ended on its own
        await asyncio.wait_for(serving, timeout=5)
    finally:
        server.should_exit = True
        if not serving.done():
            serving.cancel()

    assert sse_events(body) == [submitted]
    assert len(registry) == 0
