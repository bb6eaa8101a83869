"""
Holders for the OAuth token state.

The token state (access token, refresh token, expiry) is read before every
outbound request and written only by the refresh flow in
AuthenticationMiddleware. Implementations:

- MemoryTokenStorage: process-local, used by tests and short-lived tools.
- DiskTokenStorage: persisted with diskcache so a session survives restarts.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from rxstorage.lib import logs
from rxstorage.lib.caches import DiskCache

LOG = logs.logger(__file__)

Clock = Callable[[], datetime]

# Tokens this close to expiry are refreshed before they are used.
EXPIRY_MARGIN = timedelta(minutes=10)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenStorage(ABC):
    """
    Abstract token store.

    Subclasses provide the raw get/set/delete primitives; expiry logic lives
    here so every backend applies the same proactive refresh margin.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self.clock = clock

    @abstractmethod
    def get_access_token(self) -> str | None: ...

    @abstractmethod
    def save_access_token(self, token: str) -> None: ...

    @abstractmethod
    def get_refresh_token(self) -> str | None: ...

    @abstractmethod
    def save_refresh_token(self, token: str) -> None: ...

    @abstractmethod
    def get_expires_at(self) -> datetime | None: ...

    @abstractmethod
    def save_expires_at(self, expires_at: datetime) -> None: ...

    @abstractmethod
    def clear_all(self) -> None:
        """Forget every stored token."""

    def is_token_expired(self) -> bool:
        """
        Return True when the access token should not be used as-is.

        A token without a recorded expiry counts as expired, as does one
        that expires within EXPIRY_MARGIN from now.
        """
        expires_at = self.get_expires_at()
        if expires_at is None:
            return True
        return self.clock() + EXPIRY_MARGIN >= expires_at

    def save_tokens(
        self,
        access_token: str,
        refresh_token: str | None,
        expires_in: float,
    ) -> datetime:
        """
        Persist the outcome of a token grant.

        The refresh token is only replaced when a new one was issued.

        Returns:
            The computed expiry timestamp.
        """
        expires_at = self.clock() + timedelta(seconds=expires_in)
        self.save_access_token(access_token)
        if refresh_token:
            self.save_refresh_token(refresh_token)
        self.save_expires_at(expires_at)
        return expires_at


class MemoryTokenStorage(TokenStorage):
    """Token store kept in instance attributes."""

    def __init__(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
        expires_at: datetime | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(clock)
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._expires_at = expires_at

    def get_access_token(self) -> str | None:
        return self._access_token

    def save_access_token(self, token: str) -> None:
        self._access_token = token

    def get_refresh_token(self) -> str | None:
        return self._refresh_token

    def save_refresh_token(self, token: str) -> None:
        self._refresh_token = token

    def get_expires_at(self) -> datetime | None:
        return self._expires_at

    def save_expires_at(self, expires_at: datetime) -> None:
        self._expires_at = expires_at

    def clear_all(self) -> None:
        self._access_token = None
        self._refresh_token = None
        self._expires_at = None


class DiskTokenStorage(TokenStorage):
    """
    Token store persisted in a diskcache directory.

    Expiry is stored as a POSIX timestamp so the cache contents stay
    readable by other tools.
    """

    ACCESS_TOKEN_KEY = "accessToken"
    REFRESH_TOKEN_KEY = "refreshToken"
    EXPIRES_AT_KEY = "expiresAt"

    def __init__(self, cache_dir: str | Path, clock: Clock = utcnow) -> None:
        super().__init__(clock)
        self._cache = DiskCache(cache_dir)

    def get_access_token(self) -> str | None:
        return self._cache.get(self.ACCESS_TOKEN_KEY)

    def save_access_token(self, token: str) -> None:
        self._cache.set(self.ACCESS_TOKEN_KEY, token)

    def get_refresh_token(self) -> str | None:
        return self._cache.get(self.REFRESH_TOKEN_KEY)

    def save_refresh_token(self, token: str) -> None:
        self._cache.set(self.REFRESH_TOKEN_KEY, token)

    def get_expires_at(self) -> datetime | None:
        timestamp = self._cache.get(self.EXPIRES_AT_KEY)
        if timestamp is None:
            return None
        try:
            return datetime.fromtimestamp(float(timestamp), tz=timezone.utc)
        except (TypeError, ValueError):
            LOG.warning("Ignoring unreadable token expiry: %r", timestamp)
            return None

    def save_expires_at(self, expires_at: datetime) -> None:
        self._cache.set(self.EXPIRES_AT_KEY, expires_at.timestamp())

    def clear_all(self) -> None:
        for key in (self.ACCESS_TOKEN_KEY, self.REFRESH_TOKEN_KEY, self.EXPIRES_AT_KEY):
            self._cache.delete(key)

    def close(self) -> None:
        self._cache.close()
