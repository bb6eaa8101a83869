"""
Process-wide notifications for the RxStorage client.

Two channels are provided:

- SessionEvents: a payload-less "session expired" broadcast. The token
  refresh flow fires it once per failed refresh cycle; the presentation
  layer subscribes and forces a sign-out.
- EventBus: entity change events (created/updated/deleted) that let list
  controllers refresh themselves after edits made elsewhere.

Usage:
    from rxstorage.events import session_events

    unsubscribe = session_events.subscribe(lambda: print("Please sign in"))
    ...
    unsubscribe()
"""

import asyncio
import enum
from dataclasses import dataclass
from threading import Lock
from typing import AsyncIterator, Callable

from rxstorage.lib import logs

LOG = logs.logger(__file__)

Unsubscribe = Callable[[], None]


class SessionEvents:
    """
    Thread-safe broadcast of the session-expired signal.

    Subscriber exceptions are logged and do not stop delivery to the
    remaining subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: list[Callable[[], None]] = []
        self._lock = Lock()

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register a callback; returns a function that removes it again."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def notify_session_expired(self) -> None:
        """Call every subscriber. Safe to call from any thread."""
        with self._lock:
            subscribers = list(self._subscribers)
        LOG.warning("Session expired - notifying %s subscriber(s)", len(subscribers))
        for callback in subscribers:
            try:
                callback()
            except Exception:
                LOG.exception("Session expired subscriber failed")


session_events = SessionEvents()


class EntityKind(str, enum.Enum):
    ITEM = "item"
    CATEGORY = "category"
    LOCATION = "location"
    AUTHOR = "author"
    POSITION_SCHEMA = "position_schema"


class EventAction(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class AppEvent:
    """
    An entity change.

    Attributes:
        kind: Which entity type changed.
        action: What happened to it.
        entity_id: Id of the changed entity.
    """

    kind: EntityKind
    action: EventAction
    entity_id: int

    @classmethod
    def created(cls, kind: EntityKind, entity_id: int) -> "AppEvent":
        return cls(kind, EventAction.CREATED, entity_id)

    @classmethod
    def updated(cls, kind: EntityKind, entity_id: int) -> "AppEvent":
        return cls(kind, EventAction.UPDATED, entity_id)

    @classmethod
    def deleted(cls, kind: EntityKind, entity_id: int) -> "AppEvent":
        return cls(kind, EventAction.DELETED, entity_id)


class EventBus:
    """
    In-process publisher of AppEvents.

    Each stream() consumer gets its own queue holding at most
    ``buffer_size`` events; when full, the oldest event is dropped.
    """

    def __init__(self, buffer_size: int = 20) -> None:
        self.buffer_size = buffer_size
        self._queues: set[asyncio.Queue] = set()
        self._callbacks: list[Callable[[AppEvent], None]] = []

    def emit(self, event: AppEvent) -> None:
        """Deliver an event to every stream and callback subscriber."""
        LOG.debug("emit - %s", event)
        for queue in list(self._queues):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(event)
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                LOG.exception("Event subscriber failed for %s", event)

    def subscribe(self, callback: Callable[[AppEvent], None]) -> Unsubscribe:
        """Register a synchronous callback; returns its unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def stream(self) -> AsyncIterator[AppEvent]:
        """Yield events as they are emitted until the consumer stops iterating."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.buffer_size)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)
