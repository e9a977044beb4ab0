"""
Event dispatch over FireFly push notifications.

The dispatcher owns a HandlerRegistry and wires it to two independently
filtered FireFly subscriptions:

- ``message_confirmed``: every JSON data item of a confirmed message is
  fetched and delivered to handlers registered under ``"message"``.
- ``blockchain_event``: named contract events are delivered to the handlers
  registered under the event name.

Remote contract listeners are created idempotently: existing listeners are
looked up before anything is created, so initialization can be repeated
against an already configured node.

Example:
    >>> dispatcher = EventDispatcher(ff, "pm3package", ["CreatePackage"])
    >>> dispatcher.register_handler("CreatePackage", lambda e: print(e.output))
    >>> await dispatcher.ensure_remote_listeners(api_id)
    >>> dispatcher.start()
"""

from __future__ import annotations

import inspect
import threading
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from fraktal.core.exceptions import FraktalError, NetworkError
from fraktal.core.logging import get_logger
from fraktal.events.registry import EventHandler, HandlerRegistry
from fraktal.events.types import (
    JSON_VALIDATOR,
    MESSAGE_EVENT,
    BlockchainEventDelivery,
    DatatypeMessage,
    EventHeader,
)

if TYPE_CHECKING:
    from fraktal.firefly.client import FireFlyClient
    from fraktal.firefly.stream import FireFlyEventStream

logger = get_logger("events.dispatcher")

MESSAGE_SUBSCRIPTION = {
    "filter": {"events": "message_confirmed"},
    "options": {"withData": True},
}

BLOCKCHAIN_EVENT_SUBSCRIPTION = {
    "filter": {"events": "blockchain_event"},
    "options": {"withData": True},
}


def listener_name(event_name: str) -> str:
    return f"listen_{event_name}_events"


def listener_topic(api_id: str) -> str:
    return f"ff_contractapi_{api_id}_events"


class EventDispatcher:
    """
    Demultiplexes FireFly notifications onto locally registered handlers.

    Handlers for one event name run in registration order, one notification
    at a time per task. A failing handler is logged and does not stop the
    handlers after it.
    """

    def __init__(
        self,
        ff: FireFlyClient,
        api_name: str,
        event_names: Iterable[str],
        dedupe_window: int = 1024,
    ) -> None:
        """
        Args:
            ff: FireFly client used for listener setup, subscriptions and data fetches
            api_name: Contract API the events belong to
            event_names: Event names declared by the contract interface
            dedupe_window: Number of recent notification ids remembered to
                drop redeliveries (0 disables)
        """
        self._ff = ff
        self._api_name = api_name
        self._event_names = list(event_names)
        self._registry = HandlerRegistry()
        self._dedupe_window = dedupe_window
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._seen_lock = threading.Lock()
        self._message_stream: FireFlyEventStream | None = None
        self._event_stream: FireFlyEventStream | None = None

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def event_names(self) -> list[str]:
        return list(self._event_names)

    @property
    def started(self) -> bool:
        return self._message_stream is not None and self._event_stream is not None

    def register_handler(self, event_name: str, handler: EventHandler) -> None:
        """
        Register a handler for a contract event name, or ``"message"``.

        The handler receives every matching notification from now on.
        Plain callables and coroutine functions are both accepted.
        """
        self._registry.register(event_name, handler)
        logger.debug(f"Registered handler {handler!r} for '{event_name}'")

    # ─── Remote setup ───────────────────────────────────────────────

    async def ensure_remote_listeners(self, api_id: str) -> list[str]:
        """
        Create one FireFly listener per declared event unless it already exists.

        Errors from FireFly propagate unchanged.

        Returns:
            Names of the events a listener was created for.
        """
        created = []
        for event_name in self._event_names:
            existing = await self._ff.get_contract_api_listeners(self._api_name, event_name)
            if existing:
                logger.debug(f"Listener for {self._api_name}.{event_name} already exists")
                continue

            await self._ff.create_contract_api_listener(
                self._api_name,
                event_name,
                {
                    "event": {"name": event_name},
                    "name": listener_name(event_name),
                    "topic": listener_topic(api_id),
                },
                publish=True,
                confirm=True,
            )
            logger.info(f"Created listener for {self._api_name}.{event_name}")
            created.append(event_name)
        return created

    def start_message_subscription(self) -> FireFlyEventStream:
        """Subscribe to confirmed data messages (once)."""
        if self._message_stream is None:
            self._message_stream = self._ff.listen(
                MESSAGE_SUBSCRIPTION, self.handle_message_notification
            )
            logger.info("Subscribed to message_confirmed notifications")
        return self._message_stream

    def start_blockchain_event_subscription(self) -> FireFlyEventStream:
        """Subscribe to contract events (once)."""
        if self._event_stream is None:
            self._event_stream = self._ff.listen(
                BLOCKCHAIN_EVENT_SUBSCRIPTION, self.handle_blockchain_notification
            )
            logger.info("Subscribed to blockchain_event notifications")
        return self._event_stream

    def start(self) -> None:
        """Open both subscriptions. Safe to call repeatedly."""
        self.start_message_subscription()
        self.start_blockchain_event_subscription()

    async def wait_connected(self, timeout: float | None = None) -> None:
        """
        Wait until both subscriptions are established.

        On failure both subscriptions are closed, so a later `start` opens
        fresh connections, and the NetworkError propagates.
        """
        try:
            for stream in (self._message_stream, self._event_stream):
                if stream is not None:
                    await stream.wait_connected(timeout)
        except NetworkError:
            await self.close()
            raise

    # ─── Notification handling ──────────────────────────────────────

    async def handle_message_notification(self, event: Mapping[str, Any]) -> None:
        """Fan out the JSON data items of a confirmed message."""
        if self._is_duplicate(event):
            return

        message = event.get("message") if isinstance(event, Mapping) else None
        if not isinstance(message, Mapping):
            logger.debug("Dropping message notification without a message body")
            return

        if not self._registry.has_handlers(MESSAGE_EVENT):
            return

        header = message.get("header")
        for ref in message.get("data") or []:
            data_id = ref.get("id") if isinstance(ref, Mapping) else None
            if not data_id:
                continue

            try:
                record = await self._ff.get_data(data_id)
            except FraktalError as e:
                logger.warning(f"Could not fetch data {data_id}: {e}")
                continue

            if not record or record.get("validator") != JSON_VALIDATOR:
                logger.debug(f"Skipping data {data_id}: not a JSON datatype record")
                continue

            envelope = DatatypeMessage.from_data_record(record, header)
            await self._dispatch(MESSAGE_EVENT, envelope)

    async def handle_blockchain_notification(self, event: Mapping[str, Any]) -> None:
        """Deliver a named contract event to its handlers."""
        if self._is_duplicate(event):
            return

        blockchain_event = event.get("blockchainEvent") if isinstance(event, Mapping) else None
        if not isinstance(blockchain_event, Mapping) or not blockchain_event.get("name"):
            logger.debug("Dropping blockchain notification without an event name")
            return

        name = blockchain_event["name"]
        if not self._registry.has_handlers(name):
            logger.debug(f"No handlers for '{name}', dropping")
            return

        tx = blockchain_event.get("tx")
        envelope = BlockchainEventDelivery(
            name=name,
            output=blockchain_event.get("output") or {},
            timestamp=blockchain_event.get("timestamp") or "",
            header=EventHeader(),
            transaction_id=tx.get("blockchainId") if isinstance(tx, Mapping) else None,
            event_id=event.get("id"),
        )
        await self._dispatch(name, envelope)

    async def _dispatch(self, event_name: str, envelope: Any) -> int:
        """Invoke every handler for `event_name` in order; returns successes."""
        delivered = 0
        for handler in self._registry.handlers_for(event_name):
            try:
                result = handler(envelope)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception(f"Handler {handler!r} failed for '{event_name}'")
        return delivered

    def _is_duplicate(self, event: Any) -> bool:
        """Remember the notification id; True if it was seen recently."""
        if self._dedupe_window <= 0 or not isinstance(event, Mapping):
            return False
        event_id = event.get("id")
        if not event_id:
            return False

        with self._seen_lock:
            if event_id in self._seen:
                logger.debug(f"Dropping redelivered notification {event_id}")
                return True
            self._seen[event_id] = None
            while len(self._seen) > self._dedupe_window:
                self._seen.popitem(last=False)
        return False

    async def close(self) -> None:
        """Stop both subscriptions."""
        for stream in (self._message_stream, self._event_stream):
            if stream is not None:
                await stream.close()
        self._message_stream = None
        self._event_stream = None
