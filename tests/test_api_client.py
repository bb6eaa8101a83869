import json
import logging
from datetime import datetime, timezone

import httpx
import pytest
from conftest import RecordingEndpoint

from rxstorage.errors import (
    BadRequestError,
    DecodingError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestCancelledError,
    ServerError,
    UnauthorizedError,
)
from rxstorage.models.common import ListFilters
from rxstorage.networking.client import APIClient
from rxstorage.networking.middleware import LoggingMiddleware, Middleware
from rxstorage.services.api import CategoryService, ItemService


def client_for(configuration, endpoint, middlewares=()):
    return APIClient(
        configuration,
        middlewares=middlewares,
        http_client=httpx.AsyncClient(transport=endpoint.transport()),
    )


class TestRequests:
    @pytest.mark.asyncio
    async def test_paths_are_resolved_below_api_root(self, configuration):
        endpoint = RecordingEndpoint(httpx.Response(200, json={"data": []}))
        client = client_for(configuration, endpoint)

        await client.get("items", params={"search": "drill", "cursor": None, "limit": 20})

        url = endpoint.requests[0].url
        assert url.path == "/api/items"
        assert dict(url.params) == {"search": "drill", "limit": "20"}

    @pytest.mark.asyncio
    async def test_json_body_is_sent(self, configuration):
        endpoint = RecordingEndpoint(httpx.Response(201, json={"id": 7}))
        client = client_for(configuration, endpoint)

        body = await client.post("/categories", json={"name": "Tools"})

        assert body == {"id": 7}
        assert endpoint.requests[0].method == "POST"
        assert json.loads(endpoint.requests[0].content) == {"name": "Tools"}

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self, configuration):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(204)))

        assert await client.delete("items/3") is None

    @pytest.mark.asyncio
    async def test_middlewares_run_in_order(self, configuration):
        seen = []

        class Tag(Middleware):
            def __init__(self, name):
                self.name = name

            async def intercept(self, request, call_next):
                seen.append(self.name)
                request.headers[f"X-{self.name}"] = "1"
                return await call_next(request)

        endpoint = RecordingEndpoint(httpx.Response(200, json={}))
        client = client_for(configuration, endpoint, [Tag("outer"), Tag("inner")])

        await client.get("items")

        assert seen == ["outer", "inner"]
        assert endpoint.requests[0].headers["X-outer"] == "1"
        assert endpoint.requests[0].headers["X-inner"] == "1"


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error",
        [
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (404, NotFoundError),
            (500, ServerError),
            (502, ServerError),
        ],
    )
    async def test_status_codes(self, configuration, status, error):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(status)))

        with pytest.raises(error):
            await client.get("items")

    @pytest.mark.asyncio
    async def test_bad_request_uses_server_message(self, configuration):
        client = client_for(
            configuration, RecordingEndpoint(httpx.Response(400, json={"error": "Title is required"}))
        )

        with pytest.raises(BadRequestError, match="Title is required"):
            await client.post("items", json={})

    @pytest.mark.asyncio
    async def test_bad_request_without_message(self, configuration):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(400, text="nope")))

        with pytest.raises(BadRequestError, match="Invalid request"):
            await client.get("items")

    @pytest.mark.asyncio
    async def test_server_error_detail(self, configuration):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(503)))

        with pytest.raises(ServerError) as excinfo:
            await client.get("items")
        assert excinfo.value.detail == "HTTP 503"
        assert str(excinfo.value) == "Server error: HTTP 503"

    @pytest.mark.asyncio
    async def test_invalid_json_is_decoding_error(self, configuration):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(200, text="<html>")))

        with pytest.raises(DecodingError):
            await client.get("items")

    @pytest.mark.asyncio
    async def test_transport_failure_is_network_error(self, configuration):
        async def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = client_for(configuration, RecordingEndpoint(refuse))

        with pytest.raises(NetworkError) as excinfo:
            await client.get("items")
        assert isinstance(excinfo.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_closed_client_is_a_cancellation(self, configuration):
        client = client_for(configuration, RecordingEndpoint(httpx.Response(200, json={})))
        await client.aclose()

        with pytest.raises(RequestCancelledError) as excinfo:
            await client.get("items")
        assert excinfo.value.is_cancellation

    def test_only_unauthorized_is_an_authentication_error(self):
        assert UnauthorizedError().is_authentication_error
        assert not ForbiddenError().is_authentication_error
        assert not NetworkError().is_cancellation


class TestLoggingMiddleware:
    @pytest.mark.asyncio
    async def test_failures_are_logged_with_body_preview(self, configuration, caplog):
        endpoint = RecordingEndpoint(httpx.Response(404, text="missing item"))
        client = client_for(configuration, endpoint, [LoggingMiddleware()])

        with caplog.at_level(logging.INFO, logger="rxstorage"):
            with pytest.raises(NotFoundError):
                await client.get("items/9")

        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert "status:404" in failures[0].getMessage()
        assert "missing item" in failures[0].getMessage()

    @pytest.mark.asyncio
    async def test_success_is_logged_at_info(self, configuration, caplog):
        client = client_for(
            configuration, RecordingEndpoint(httpx.Response(200, json={})), [LoggingMiddleware()]
        )

        with caplog.at_level(logging.INFO, logger="rxstorage"):
            await client.get("items")

        assert any(
            r.levelno == logging.INFO and "Request succeeded" in r.getMessage()
            for r in caplog.records
        )


class TestApiServices:
    @pytest.mark.asyncio
    async def test_category_page_is_parsed(self, configuration):
        endpoint = RecordingEndpoint(
            httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": 1,
                            "name": "Tools",
                            "createdAt": "2025-01-06T09:00:00Z",
                            "updatedAt": "2025-01-07T10:30:00Z",
                        }
                    ],
                    "pagination": {"hasNextPage": False},
                },
            )
        )
        service = CategoryService(client_for(configuration, endpoint))

        page = await service.list_paginated(ListFilters())

        assert [c.name for c in page.data] == ["Tools"]
        assert page.data[0].updated_at == datetime(2025, 1, 7, 10, 30, tzinfo=timezone.utc)
        assert not page.pagination.has_next_page
        assert dict(endpoint.requests[0].url.params) == {"limit": "20"}

    @pytest.mark.asyncio
    async def test_item_is_fetched_by_id(self, configuration):
        endpoint = RecordingEndpoint(
            httpx.Response(200, json={"id": 12, "title": "Cordless Drill"})
        )
        service = ItemService(client_for(configuration, endpoint))

        item = await service.get(12)

        assert item.title == "Cordless Drill"
        assert item.updated_at is None
        assert endpoint.requests[0].url.path == "/api/items/12"
