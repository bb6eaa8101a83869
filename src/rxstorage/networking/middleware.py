"""
Client-side middleware chain for outbound API requests.

A middleware receives the outgoing httpx.Request and a ``call_next``
coroutine that performs the rest of the chain (ending in the actual network
send). It may modify the request, call ``call_next`` zero or more times, and
return any response:

    class HeaderMiddleware(Middleware):
        async def intercept(self, request, call_next):
            request.headers["X-Client"] = "rxstorage"
            return await call_next(request)

Middlewares run in list order; the first one sees the request first and the
response last.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Sequence

import httpx

from rxstorage.lib import logs

LOG = logs.logger(__file__)

CallNext = Callable[[httpx.Request], Awaitable[httpx.Response]]

BODY_PREVIEW_LENGTH = 500


class Middleware(ABC):
    """Base class for request interceptors."""

    @abstractmethod
    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        """Handle a request, delegating to ``call_next`` to continue the chain."""


def build_handler(middlewares: Sequence[Middleware], send: CallNext) -> CallNext:
    """
    Compose middlewares around the terminal ``send`` coroutine.

    Args:
        middlewares: Interceptors, outermost first.
        send: Performs the network call.

    Returns:
        A coroutine function that runs the whole chain for one request.
    """
    handler = send
    for middleware in reversed(middlewares):
        handler = _bind(middleware, handler)
    return handler


def _bind(middleware: Middleware, call_next: CallNext) -> CallNext:
    async def handle(request: httpx.Request) -> httpx.Response:
        return await middleware.intercept(request, call_next)

    return handle


class LoggingMiddleware(Middleware):
    """
    Logs the outcome of every request.

    Responses with status >= 400 are logged at error level together with a
    preview of the body; transport errors are logged and re-raised.
    """

    def __init__(self, name: str = "api") -> None:
        self._log = logs.logger(name)

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        try:
            response = await call_next(request)
        except httpx.TransportError as exc:
            self._log.error(
                "Request error - method:%s path:%s error:%r",
                request.method,
                request.url.path,
                exc,
            )
            raise

        await response.aread()
        preview = response.text[:BODY_PREVIEW_LENGTH] if response.content else "N/A"
        if response.status_code >= 400:
            self._log.error(
                "Request failed - method:%s path:%s status:%s body:%s",
                request.method,
                request.url.path,
                response.status_code,
                preview,
            )
        else:
            self._log.info(
                "Request succeeded - method:%s path:%s status:%s",
                request.method,
                request.url.path,
                response.status_code,
            )
            self._log.debug("Response body - path:%s body:%s", request.url.path, preview)
        return response
