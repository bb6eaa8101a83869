import asyncio

import pytest

from rxstorage.events import AppEvent, EntityKind, EventAction, EventBus, SessionEvents


class TestSessionEvents:
    def test_subscribers_are_notified(self):
        events = SessionEvents()
        calls = []
        events.subscribe(lambda: calls.append("a"))
        events.subscribe(lambda: calls.append("b"))

        events.notify_session_expired()

        assert calls == ["a", "b"]

    def test_unsubscribe(self):
        events = SessionEvents()
        calls = []
        unsubscribe = events.subscribe(lambda: calls.append(1))

        unsubscribe()
        unsubscribe()
        events.notify_session_expired()

        assert calls == []

    def test_failing_subscriber_does_not_block_others(self):
        events = SessionEvents()
        calls = []

        def broken():
            raise RuntimeError("boom")

        events.subscribe(broken)
        events.subscribe(lambda: calls.append(1))

        events.notify_session_expired()

        assert calls == [1]


class TestEventBus:
    def test_callbacks_receive_events(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)

        bus.emit(AppEvent.created(EntityKind.ITEM, 1))
        unsubscribe()
        bus.emit(AppEvent.deleted(EntityKind.ITEM, 1))

        assert received == [AppEvent(EntityKind.ITEM, EventAction.CREATED, 1)]

    @pytest.mark.asyncio
    async def test_stream_yields_emitted_events(self):
        bus = EventBus()
        received = []

        async def consume():
            async for event in bus.stream():
                received.append(event)
                if len(received) == 2:
                    return

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        bus.emit(AppEvent.created(EntityKind.CATEGORY, 1))
        bus.emit(AppEvent.updated(EntityKind.CATEGORY, 1))
        await asyncio.wait_for(consumer, timeout=1)

        assert [event.action for event in received] == [EventAction.CREATED, EventAction.UPDATED]

    @pytest.mark.asyncio
    async def test_full_stream_drops_oldest(self):
        bus = EventBus(buffer_size=2)
        stream = bus.stream()
        first = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0)

        for entity_id in range(1, 5):
            bus.emit(AppEvent.updated(EntityKind.ITEM, entity_id))

        assert (await first).entity_id == 3
        assert (await stream.__anext__()).entity_id == 4
        await stream.aclose()
