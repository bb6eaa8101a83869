"""
Debounced, cursor-paginated search over an EntityService.

One controller backs one list or picker. The view layer drives it:

    controller = PaginatedSearchController(get_service(EntityKind.CATEGORY, client=client))
    await controller.load_initial()
    controller.set_query("dri")           # debounced, 0.3 s
    if controller.should_load_more(row):  # while scrolling
        await controller.load_more()

Every first-page load (initial, search or refresh) starts a new generation.
A response that arrives after a newer generation has started is dropped, so
a slow reply to an old query never replaces the results of a newer one.
Overlapping first-page loads are not cancelled; the latest one wins.
"""

import asyncio
from dataclasses import replace
from typing import Generic, Iterable, List, TypeVar

from rxstorage.errors import is_cancellation
from rxstorage.events import AppEvent, EventAction, EventBus, Unsubscribe
from rxstorage.lib import logs
from rxstorage.lib.debounce import Debouncer
from rxstorage.models.common import PAGE_SIZE, ListFilters, PaginatedResponse
from rxstorage.services.base import EntityService

LOG = logs.logger(__file__)

T = TypeVar("T")

# Quiet period before a typed query is dispatched
DEBOUNCE_SECONDS = 0.3
# Prefetch when a row this close to the end becomes visible
LOAD_MORE_THRESHOLD = 3

_REFRESH_ACTIONS = frozenset(
    {EventAction.CREATED, EventAction.UPDATED, EventAction.DELETED}
)


class PaginatedSearchController(Generic[T]):
    """
    List state for one entity collection.

    Attributes:
        items: Loaded entities in server order, unique by id.
        is_loading: A non-search first page is being fetched.
        is_searching: A search first page is being fetched.
        is_loading_more: A follow-up page is being fetched.
        has_next_page: The server reported more rows after ``items``.
        next_cursor: Cursor for the next page, None before the first load.
        search_text: Raw query text as last typed.
        error: Last failure, for display; cleared when a new load starts.
    """

    def __init__(
        self,
        service: EntityService[T],
        filters: ListFilters | None = None,
        page_size: int = PAGE_SIZE,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        event_bus: EventBus | None = None,
    ) -> None:
        self.service = service
        self.filters = filters if filters is not None else ListFilters()
        self.page_size = page_size
        self.event_bus = event_bus

        self.items: List[T] = []
        self.is_loading = False
        self.is_searching = False
        self.is_loading_more = False
        self.has_next_page = True
        self.next_cursor: str | None = None
        self.search_text = ""
        self.error: Exception | None = None

        self._generation = 0
        self._last_dispatched: str | None = None
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._dispatch)
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe: Unsubscribe | None = None
        if event_bus is not None:
            self.watch(event_bus)

    @property
    def generation(self) -> int:
        """Number of first-page loads started so far."""
        return self._generation

    @property
    def is_busy(self) -> bool:
        return self.is_loading or self.is_searching or self.is_loading_more

    def set_query(self, text: str) -> None:
        """Record ``text`` and dispatch it once typing has paused."""
        self.search_text = text
        self._debouncer.submit(text)

    async def load_initial(self) -> None:
        """Fetch page one for the current query and filters, replacing ``items``."""
        await self._load_first_page(searching=False)

    async def search(self, text: str) -> None:
        """Run a search for ``text`` immediately, bypassing the debounce."""
        self.search_text = text
        await self._load_first_page(searching=bool(text.strip()))

    async def refresh(self) -> None:
        """Reload page one for the current query."""
        await self._load_first_page(searching=bool(self.search_text.strip()))

    async def load_more(self) -> None:
        """
        Append the next page.

        A no-op while any load is running, when the server reported no more
        rows, or before a cursor is known.
        """
        if not self._can_load_more():
            return
        self.is_loading_more = True
        generation = self._generation
        try:
            page = await self.service.list_paginated(self._page_filters(self.next_cursor))
        except asyncio.CancelledError:
            self.is_loading_more = False
            raise
        except Exception as exc:
            self.is_loading_more = False
            if generation == self._generation:
                self._record_error("load more", exc)
            return

        self.is_loading_more = False
        if generation != self._generation:
            LOG.debug("Discarding stale page - generation:%s current:%s", generation, self._generation)
            return
        self.items.extend(_unseen(page.data, self.items))
        self._update_cursor(page)

    def should_load_more(self, item: T) -> bool:
        """True when ``item`` is within the last few rows and another page can load."""
        if not self.has_next_page or self.is_busy:
            return False
        for index, candidate in enumerate(self.items):
            if candidate.id == item.id:
                return index >= len(self.items) - LOAD_MORE_THRESHOLD
        return False

    async def delete(self, entity: T) -> None:
        """
        Delete ``entity`` through the service and drop it from ``items``.

        Raises:
            APIError: The service call failed; ``items`` is unchanged.
        """
        await self.service.delete(entity.id)
        self.items = [item for item in self.items if item.id != entity.id]
        if self.event_bus is not None:
            self.event_bus.emit(AppEvent.deleted(self.service.kind, entity.id))

    def watch(self, event_bus: EventBus) -> None:
        """Refresh whenever ``event_bus`` reports a change to this entity type."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.event_bus = event_bus
        self._unsubscribe = event_bus.subscribe(self._on_event)

    def clear_error(self) -> None:
        self.error = None

    async def settle(self) -> None:
        """Wait for debounced dispatches and event-driven refreshes to finish."""
        while True:
            await self._debouncer.drain()
            tasks = [task for task in self._tasks if not task.done()]
            if not tasks and not self._debouncer.pending:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        """Stop the debounce timer, pending refreshes and the event subscription."""
        self._debouncer.cancel()
        for task in list(self._tasks):
            task.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def reset_pagination(self) -> None:
        """Forget the cursor and the last dispatched query."""
        self.next_cursor = None
        self.has_next_page = True
        self._last_dispatched = None

    async def _dispatch(self, text: str) -> None:
        if text == self._last_dispatched:
            LOG.debug("Skipping duplicate query - text:%r", text)
            return
        self._last_dispatched = text
        await self.search(text)

    async def _load_first_page(self, searching: bool) -> None:
        self._generation += 1
        generation = self._generation
        self.is_searching = searching
        self.is_loading = not searching
        self.error = None
        self.next_cursor = None
        self.has_next_page = True

        try:
            page = await self.service.list_paginated(self._page_filters(None))
        except asyncio.CancelledError:
            if generation == self._generation:
                self._reset_flags()
            raise
        except Exception as exc:
            if generation == self._generation:
                self._reset_flags()
                self._record_error("search" if searching else "load", exc)
            return

        if generation != self._generation:
            LOG.debug("Discarding stale page - generation:%s current:%s", generation, self._generation)
            return
        self.items = list(_unseen(page.data, []))
        self._update_cursor(page)
        self._reset_flags()

    def _page_filters(self, cursor: str | None) -> ListFilters:
        query = self.search_text.strip()
        return replace(self.filters, search=query or None).page(
            cursor=cursor, limit=self.page_size
        )

    def _can_load_more(self) -> bool:
        return (
            not self.is_busy
            and self.has_next_page
            and self.next_cursor is not None
        )

    def _update_cursor(self, page: PaginatedResponse[T]) -> None:
        self.next_cursor = page.pagination.next_cursor
        self.has_next_page = page.pagination.has_next_page

    def _reset_flags(self) -> None:
        self.is_loading = False
        self.is_searching = False

    def _record_error(self, operation: str, exc: Exception) -> None:
        if is_cancellation(exc):
            LOG.debug("Request cancelled - operation:%s", operation)
            return
        LOG.error("Failed to %s - kind:%s error:%s", operation, self.service.kind.value, exc)
        self.error = exc

    def _on_event(self, event: AppEvent) -> None:
        if event.kind != self.service.kind or event.action not in _REFRESH_ACTIONS:
            return
        LOG.debug("Refreshing after %s", event)
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def _unseen(entities: Iterable[T], existing: Iterable[T]) -> List[T]:
    """Entities whose id is not in ``existing`` nor earlier in ``entities``."""
    seen = {entity.id for entity in existing}
    fresh = []
    for entity in entities:
        if entity.id in seen:
            continue
        seen.add(entity.id)
        fresh.append(entity)
    return fresh
