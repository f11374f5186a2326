"""Websocket driver for the in-process app.

httpx's ASGITransport only speaks HTTP, so websocket routes are exercised by
calling the ASGI app directly on the test's event loop. That keeps the
dependency overrides and the in-memory database shared with ``client``.
"""

import asyncio
import json
from typing import Any, AsyncIterator

TIMEOUT = 1


class AsgiWebSocket:
    def __init__(self, app, path: str):
        self.app = app
        self.path = path
        self._inbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    def _scope(self) -> dict[str, Any]:
        return {
            "type": "websocket",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "scheme": "ws",
            "server": ("test", 80),
            "client": ("127.0.0.1", 50000),
            "root_path": "",
            "path": self.path,
            "raw_path": self.path.encode(),
            "query_string": b"",
            "headers": [(b"host", b"test")],
            "subprotocols": [],
            "state": {},
        }

    async def __aenter__(self) -> "AsgiWebSocket":
        await self._inbox.put({"type": "websocket.connect"})
        self._task = asyncio.create_task(
            self.app(self._scope(), self._inbox.get, self._outbox.put)
        )
        message = await self._next()
        assert message["type"] == "websocket.accept", message
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._task.done():
            return
        await self._inbox.put({"type": "websocket.disconnect", "code": 1000})
        await asyncio.wait_for(self._task, TIMEOUT)

    async def abort(self) -> None:
        """Cancel the server side as a dropped worker or shutdown would."""
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)

    async def _next(self) -> dict[str, Any]:
        return await asyncio.wait_for(self._outbox.get(), TIMEOUT)

    async def receive_json(self) -> Any:
        message = await self._next()
        assert message["type"] == "websocket.send", message
        return json.loads(message["text"])

    async def messages(self) -> AsyncIterator[Any]:
        """Yield JSON messages until the server closes the socket."""
        while True:
            message = await self._outbox.get()
            if message["type"] != "websocket.send":
                return
            yield json.loads(message["text"])
