"""
Bearer token injection with single-flight OAuth token refresh.

AuthenticationMiddleware wraps every authenticated API call:

1. Before sending, a locally expired access token is refreshed first.
2. The request is sent with ``Authorization: Bearer <access token>``.
3. On a 401 the refresh protocol runs once and the request is retried once
   with the new token. The retry's response is returned as-is.

Only one refresh talks to the token endpoint at a time. Callers that need a
token while a refresh is in flight park on a future and are released in a
batch with the refresh outcome: all succeed, or all raise the same error.
Every failed refresh cycle fires exactly one session-expired notification.

All state is owned by the event loop the middleware runs on; the flag and
waiter list are only mutated between suspension points.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from rxstorage.auth.token_storage import TokenStorage
from rxstorage.config import AppConfiguration
from rxstorage.errors import (
    InvalidResponseError,
    NetworkError,
    NoRefreshTokenError,
    RefreshFailedError,
)
from rxstorage.events import SessionEvents, session_events
from rxstorage.lib import logs
from rxstorage.networking.middleware import CallNext, Middleware

LOG = logs.logger(__file__)

REFRESH_GRANT_TYPE = "refresh_token"


@dataclass(frozen=True, slots=True)
class TokenResponse:
    """Successful body of the token endpoint."""

    access_token: str
    expires_in: float
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> "TokenResponse":
        """
        Validate a decoded token endpoint body.

        Raises:
            InvalidResponseError: Required fields are missing or mistyped.
        """
        if not isinstance(payload, Mapping):
            raise InvalidResponseError()
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        refresh_token = payload.get("refresh_token")
        if not isinstance(access_token, str) or not access_token:
            raise InvalidResponseError()
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise InvalidResponseError()
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise InvalidResponseError()
        return cls(
            access_token=access_token,
            expires_in=float(expires_in),
            refresh_token=refresh_token or None,
        )


class AuthenticationMiddleware(Middleware):
    """
    Injects the bearer token and recovers from token expiry.

    Args:
        token_storage: Holder of the token state; this middleware is its
            only writer.
        configuration: Supplies the token endpoint and OAuth client id.
        events: Receives the session-expired notification. Defaults to the
            process-wide ``session_events``.
        http_client: Client used for the token endpoint. It must not route
            through this middleware. Created on first use when omitted.
    """

    def __init__(
        self,
        token_storage: TokenStorage,
        configuration: AppConfiguration,
        events: SessionEvents | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._storage = token_storage
        self._configuration = configuration
        self._events = events or session_events
        self._http = http_client
        self._owns_http = http_client is None
        self._is_refreshing = False
        self._waiters: list[asyncio.Future] = []

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def waiter_count(self) -> int:
        """Number of callers currently parked on the in-flight refresh."""
        return len(self._waiters)

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        await self.ensure_valid_token()
        sent_token = self._authorize(request)

        response = await call_next(request)
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        LOG.info(
            "Received 401, attempting token refresh - method:%s path:%s",
            request.method,
            request.url.path,
        )
        await response.aclose()
        await self._recover_from_unauthorized(sent_token)
        return await call_next(self._rebuild(request))

    async def ensure_valid_token(self, force: bool = False) -> None:
        """
        Make sure a usable access token is stored.

        Args:
            force: Refresh even if the token is not locally expired (the
                server rejected it).

        Raises:
            AuthenticationError: The refresh cycle failed.
            NetworkError: The token endpoint could not be reached.
        """
        while True:
            if self._is_refreshing:
                waiter = asyncio.get_running_loop().create_future()
                self._waiters.append(waiter)
                if await waiter:
                    return
                # The refreshing task was cancelled; compete to take over.
                continue

            if not force and not self._storage.is_token_expired():
                return

            await self._refresh()
            return

    async def aclose(self) -> None:
        """Close the token endpoint client if this middleware created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def _recover_from_unauthorized(self, sent_token: str | None) -> None:
        current = self._storage.get_access_token()
        if current and current != sent_token and not self._storage.is_token_expired():
            LOG.debug("Token was rotated while the request was in flight; retrying")
            return
        await self.ensure_valid_token(force=True)

    async def _refresh(self) -> None:
        if self._storage.get_refresh_token() is None:
            LOG.error("No refresh token available")
            self._events.notify_session_expired()
            raise NoRefreshTokenError()

        self._is_refreshing = True
        try:
            LOG.info("Refreshing access token")
            await self._perform_token_refresh()
        except asyncio.CancelledError:
            LOG.warning("Token refresh cancelled - waking %s waiter(s)", len(self._waiters))
            self._release(completed=False)
            raise
        except Exception as exc:
            LOG.error("Token refresh failed - error:%s", exc)
            self._release(error=exc)
            self._events.notify_session_expired()
            raise
        LOG.info("Access token refreshed successfully")
        self._release()

    def _release(self, error: Exception | None = None, completed: bool = True) -> None:
        waiters, self._waiters = self._waiters, []
        self._is_refreshing = False
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(completed)

    async def _perform_token_refresh(self) -> None:
        refresh_token = self._storage.get_refresh_token()
        if refresh_token is None:
            raise NoRefreshTokenError()

        token_url = self._configuration.token_url
        form = {
            "grant_type": REFRESH_GRANT_TYPE,
            "refresh_token": refresh_token,
            "client_id": self._configuration.auth_client_id,
        }
        try:
            response = await self._client().post(
                token_url, data=form, headers={"Accept": "application/json"}
            )
        except httpx.TransportError as exc:
            raise NetworkError(exc) from exc

        if response.status_code != httpx.codes.OK:
            LOG.error(
                "Token refresh failed - status:%s response:%s",
                response.status_code,
                response.text[: RefreshFailedError.BODY_PREVIEW_LENGTH],
            )
            raise RefreshFailedError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidResponseError() from exc
        token = TokenResponse.from_dict(payload)

        expires_at = self._storage.save_tokens(
            token.access_token, token.refresh_token, token.expires_in
        )
        LOG.debug(
            "Stored refreshed token - expires_at:%s rotated_refresh_token:%s",
            expires_at.isoformat(),
            token.refresh_token is not None,
        )

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._configuration.request_timeout)
        return self._http

    def _authorize(self, request: httpx.Request) -> str | None:
        token = self._storage.get_access_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return token

    def _rebuild(self, request: httpx.Request) -> httpx.Request:
        retry = httpx.Request(
            request.method,
            request.url,
            headers=request.headers.copy(),
            content=request.content,
            extensions=request.extensions,
        )
        self._authorize(retry)
        return retry


class OptionalAuthMiddleware(Middleware):
    """
    Adds the bearer token when one is stored, without requiring it.

    Used for endpoints that also serve anonymous callers, such as public
    item previews. Never refreshes and never fails for a missing token.
    """

    def __init__(self, token_storage: TokenStorage) -> None:
        self._storage = token_storage

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        token = self._storage.get_access_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return await call_next(request)
