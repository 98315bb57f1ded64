"""uvicorn server that ends open SSE streams when shutdown begins.

Learn: On SIGINT/SIGTERM uvicorn stops accepting connections, waits for
every open connection to finish, and only then runs the lifespan shutdown.
An SSE stream never finishes on its own (keepalives keep it busy), so a
close in the lifespan would never be reached while a browser is attached.
Listeners are closed at the start of shutdown instead: each stream drains
what it had buffered, its response completes, and uvicorn carries on.
"""

import socket
from typing import Optional

import structlog
import uvicorn

from eventcast.realtime.registry import BroadcastRegistry

logger = structlog.get_logger()


class StreamingServer(uvicorn.Server):
    """uvicorn.Server that closes every listener before draining connections."""

    def __init__(self, config: uvicorn.Config, registry: BroadcastRegistry):
        super().__init__(config)
        self.registry = registry

    async def shutdown(self, sockets: Optional[list[socket.socket]] = None) -> None:
        logger.info("eventcast.closing_streams", listeners=len(self.registry))
        self.registry.close()
        await super().shutdown(sockets=sockets)
