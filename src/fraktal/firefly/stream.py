"""
FireFly WebSocket event stream.

Opens an ephemeral, auto-acknowledged subscription on the FireFly ``/ws``
endpoint and hands every delivered event to a callback. Each event is
processed on its own asyncio task, so the receive loop keeps reading while
earlier callbacks are still running. There is no reconnect: when the
server closes the connection the stream ends. A connection that cannot be
established ends the stream as well; `wait_connected` reports it as a
NetworkError.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Awaitable, Callable
from typing import Any

import websockets

from fraktal.core.exceptions import NetworkError
from fraktal.core.logging import get_logger

logger = get_logger("firefly.stream")

EventCallback = Callable[[dict[str, Any]], "Awaitable[None] | None"]


def build_start_frame(namespace: str, subscription: dict[str, Any]) -> dict[str, Any]:
    """The ``start`` frame FireFly expects to open an ephemeral subscription."""
    frame = {
        "type": "start",
        "namespace": namespace,
        "ephemeral": True,
        "autoack": True,
    }
    frame.update(subscription)
    return frame


class FireFlyEventStream:
    """One WebSocket subscription to FireFly push notifications."""

    def __init__(
        self,
        ws_url: str,
        namespace: str,
        subscription: dict[str, Any],
        callback: EventCallback,
    ) -> None:
        self._url = f"{ws_url.rstrip('/')}/ws"
        self._namespace = namespace
        self._subscription = subscription
        self._callback = callback
        self._task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()
        self._connected = asyncio.Event()
        self._error: BaseException | None = None
        self._closed = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the receive loop on the running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def wait_connected(self, timeout: float | None = None) -> None:
        """
        Wait until the start frame has been sent.

        Raises:
            NetworkError: If the stream ended before connecting, or did not
                connect within `timeout` seconds
        """
        if self._connected.is_set():
            return
        if self._task is None:
            raise NetworkError("Event stream not started", url=self._url)

        connected = asyncio.ensure_future(self._connected.wait())
        try:
            await asyncio.wait(
                {connected, self._task}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            connected.cancel()

        if self._connected.is_set():
            return
        if not self._task.done():
            raise NetworkError(f"Timed out connecting to {self._url}", url=self._url)
        reason = self._error or "connection closed before subscribing"
        raise NetworkError(f"Could not connect to {self._url}: {reason}", url=self._url)

    async def _run(self) -> None:
        try:
            async with websockets.connect(self._url) as ws:
                await ws.send(json.dumps(build_start_frame(self._namespace, self._subscription)))
                self._connected.set()
                logger.debug(f"Subscribed on {self._url}: {self._subscription}")
                async for raw in ws:
                    self.deliver(raw)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning(f"FireFly event stream closed: {e}")
        except (OSError, websockets.exceptions.WebSocketException) as e:
            self._error = e
            logger.error(f"FireFly event stream connection failed: {e}")

    def deliver(self, raw: str | bytes) -> asyncio.Task | None:
        """Parse one frame and schedule the callback for it."""
        try:
            event = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Dropping non-JSON frame")
            return None

        if not isinstance(event, dict):
            return None
        if event.get("type") == "protocol_error":
            logger.warning(f"FireFly protocol error: {event.get('error')}")
            return None

        task = asyncio.get_running_loop().create_task(self._invoke(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _invoke(self, event: dict[str, Any]) -> None:
        try:
            result = self._callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Event callback failed for {event.get('id')}")

    async def close(self) -> None:
        """Cancel the receive loop and any in-flight callbacks."""
        if self._closed:
            return
        self._closed = True
        tasks = [t for t in (self._task, *self._pending) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()
        self._task = None
