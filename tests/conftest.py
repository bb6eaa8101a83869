"""Shared fixtures: a controllable clock, token state, fake HTTP endpoints and services."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List

import httpx
import pytest

from rxstorage.auth.middleware import AuthenticationMiddleware
from rxstorage.auth.token_storage import MemoryTokenStorage
from rxstorage.config import AppConfiguration
from rxstorage.events import EntityKind, SessionEvents
from rxstorage.models.common import ListFilters, PaginatedResponse, PaginationInfo
from rxstorage.networking.client import APIClient
from rxstorage.services.base import EntityService

START = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class RecordingEndpoint:
    """
    MockTransport handler that records requests and answers from a script.

    Each entry of ``responses`` is an httpx.Response or a coroutine function
    taking the request; the last entry repeats once the script runs out.
    """

    def __init__(self, *responses: httpx.Response | Callable[[httpx.Request], Awaitable[httpx.Response]]) -> None:
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if callable(response):
            return await response(request)
        # Fresh copy so a repeated entry is never a consumed response.
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def token_response(
    access_token: str = "new-access",
    refresh_token: str | None = "refresh-2",
    expires_in: int = 3600,
) -> httpx.Response:
    body: dict[str, Any] = {"access_token": access_token, "expires_in": expires_in}
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return httpx.Response(200, json=body)


async def echo_authorization(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"authorization": request.headers.get("Authorization")})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def configuration(tmp_path) -> AppConfiguration:
    return AppConfiguration(
        api_base_url="https://storage.test",
        auth_issuer="https://auth.test",
        auth_client_id="cli",
        token_cache_dir=tmp_path / "tokens",
    )


@pytest.fixture
def token_storage(clock) -> MemoryTokenStorage:
    """Valid access token for the next hour."""
    return MemoryTokenStorage(
        access_token="old-access",
        refresh_token="refresh-1",
        expires_at=clock() + timedelta(hours=1),
        clock=clock,
    )


@pytest.fixture
def expired_storage(token_storage, clock) -> MemoryTokenStorage:
    token_storage.save_expires_at(clock() - timedelta(minutes=1))
    return token_storage


@pytest.fixture
def session_events() -> SessionEvents:
    return SessionEvents()


@pytest.fixture
def expirations(session_events) -> List[int]:
    """Records one entry per session-expired notification."""
    fired: List[int] = []
    session_events.subscribe(lambda: fired.append(1))
    return fired


@dataclass
class Stack:
    client: APIClient
    auth: AuthenticationMiddleware
    api: RecordingEndpoint
    token: RecordingEndpoint


@pytest.fixture
def build_stack(configuration, session_events):
    """Factory wiring APIClient -> AuthenticationMiddleware over fake endpoints."""

    def build(storage, api: RecordingEndpoint, token: RecordingEndpoint) -> Stack:
        auth = AuthenticationMiddleware(
            storage,
            configuration,
            events=session_events,
            http_client=httpx.AsyncClient(transport=token.transport()),
        )
        client = APIClient(
            configuration,
            middlewares=[auth],
            http_client=httpx.AsyncClient(transport=api.transport()),
        )
        return Stack(client=client, auth=auth, api=api, token=token)

    return build


@dataclass
class Row:
    id: int
    name: str

    def searchable_terms(self) -> List[str]:
        return [self.name.lower()]


def page_of(ids, next_cursor: str | None = None) -> PaginatedResponse[Row]:
    return PaginatedResponse(
        data=[Row(id=i, name=f"row {i}") for i in ids],
        pagination=PaginationInfo(next_cursor=next_cursor, has_next_page=next_cursor is not None),
    )


class ScriptedService(EntityService[Row]):
    """
    EntityService fake that records every request.

    ``pages`` maps a search text (None for no search) to a list of pages
    served in cursor order. ``gates`` optionally holds a search text's
    responses until its event is set.
    """

    kind = EntityKind.CATEGORY

    def __init__(self, pages: dict | None = None) -> None:
        self.pages = pages or {}
        self.gates: dict[str | None, asyncio.Event] = {}
        self.calls: List[ListFilters] = []
        self.deleted: List[int] = []
        self.error: Exception | None = None

    async def list_paginated(self, filters: ListFilters) -> PaginatedResponse[Row]:
        self.calls.append(filters)
        gate = self.gates.get(filters.search)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        pages = self.pages.get(filters.search, [page_of([])])
        index = int(filters.cursor) if filters.cursor else 0
        return pages[index]

    async def get(self, entity_id: int) -> Row:
        return Row(id=entity_id, name=f"row {entity_id}")

    async def delete(self, entity_id: int) -> None:
        self.deleted.append(entity_id)


@pytest.fixture
def service() -> ScriptedService:
    """Two pages without search: ids 1-3 then 3-5 (3 overlaps)."""
    return ScriptedService(
        {
            None: [page_of([1, 2, 3], next_cursor="1"), page_of([3, 4, 5])],
            "abc": [page_of([10, 11])],
        }
    )
