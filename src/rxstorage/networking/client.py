"""
HTTP client for the RxStorage REST API.

APIClient builds httpx requests against the configured API root, runs them
through the middleware chain (logging, authentication) and maps responses
onto the error taxonomy in rxstorage.errors.
"""

from typing import Any, Mapping, Sequence

import httpx

from rxstorage.config import AppConfiguration
from rxstorage.errors import (
    APIError,
    BadRequestError,
    DecodingError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestCancelledError,
    ServerError,
    UnauthorizedError,
)
from rxstorage.lib import logs
from rxstorage.networking.middleware import CallNext, Middleware, build_handler

LOG = logs.logger(__file__)

_STATUS_ERRORS: dict[int, type[APIError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}


class APIClient:
    """
    Thin async JSON client with a middleware chain.

    Args:
        configuration: Supplies the API root and timeout.
        middlewares: Interceptors, outermost first.
        http_client: Pre-built httpx client (tests pass one with a
            MockTransport). Its base_url is replaced with the API root.
    """

    def __init__(
        self,
        configuration: AppConfiguration,
        middlewares: Sequence[Middleware] = (),
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.configuration = configuration
        self._http = http_client or httpx.AsyncClient(timeout=configuration.request_timeout)
        self._http.base_url = configuration.api_url
        self._handler: CallNext = build_handler(list(middlewares), self._send)

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Returns:
            The decoded body, or None for 204 / empty responses.

        Raises:
            APIError: Non-success status, undecodable body or transport failure.
            AuthenticationError: The authentication middleware could not
                obtain a token.
        """
        if self._http.is_closed:
            raise RequestCancelledError()
        request = self._http.build_request(
            method,
            path.lstrip("/"),
            params=_clean(params),
            json=json,
        )
        try:
            response = await self._handler(request)
        except httpx.TransportError as exc:
            raise NetworkError(exc) from exc
        except RuntimeError as exc:
            # httpx refuses to send once the client has been closed.
            if self._http.is_closed:
                raise RequestCancelledError() from exc
            raise
        return self._decode(response)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _send(self, request: httpx.Request) -> httpx.Response:
        return await self._http.send(request)

    def _decode(self, response: httpx.Response) -> Any:
        status = response.status_code
        if 200 <= status < 300:
            if status == httpx.codes.NO_CONTENT or not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise DecodingError(exc) from exc

        if status == httpx.codes.BAD_REQUEST:
            raise BadRequestError(_error_message(response) or "Invalid request")
        if status in _STATUS_ERRORS:
            raise _STATUS_ERRORS[status]()
        if status == httpx.codes.INTERNAL_SERVER_ERROR:
            raise ServerError("Internal server error")
        raise ServerError(f"HTTP {status}")


def _clean(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    return {key: value for key, value in params.items() if value is not None}


def _error_message(response: httpx.Response) -> str | None:
    """Extract ``{"error": "..."}`` from an error body, if present."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping) and isinstance(body.get("error"), str):
        return body["error"]
    return None
