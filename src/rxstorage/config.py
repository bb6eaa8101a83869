"""
Runtime configuration for the RxStorage client.

Settings come from environment variables. When RXSTORAGE_API_BASE_URL is not
set, placeholder values for a local test environment are used, so the
package can be imported and exercised without any deployment settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from rxstorage.errors import InvalidURLError
from rxstorage.lib import paths

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_AUTH_ISSUER = "https://auth.test.local"
DEFAULT_AUTH_CLIENT_ID = "test_client_id"
DEFAULT_AUTH_REDIRECT_URI = "rxstorage://oauth-callback"
DEFAULT_AUTH_SCOPES = ("openid", "email", "profile", "offline_access")
DEFAULT_REQUEST_TIMEOUT = 30.0

TOKEN_ENDPOINT_PATH = "/oauth/token"
API_PATH_PREFIX = "/api"


@dataclass(frozen=True)
class AppConfiguration:
    """
    Connection and OAuth settings.

    Attributes:
        api_base_url: Server root, e.g. "https://storage.example.com".
        auth_issuer: OAuth issuer root, e.g. "https://auth.rxlab.app".
        auth_client_id: OAuth client id sent with refresh requests.
        auth_redirect_uri: Redirect URI registered for the sign-in flow.
        auth_scopes: Requested OAuth scopes.
        request_timeout: Per-request timeout in seconds.
        token_cache_dir: Directory used by DiskTokenStorage.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    auth_issuer: str = DEFAULT_AUTH_ISSUER
    auth_client_id: str = DEFAULT_AUTH_CLIENT_ID
    auth_redirect_uri: str = DEFAULT_AUTH_REDIRECT_URI
    auth_scopes: tuple[str, ...] = DEFAULT_AUTH_SCOPES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    token_cache_dir: Path = field(default_factory=paths.token_cache_dir)

    @classmethod
    def from_env(cls) -> "AppConfiguration":
        """Build a configuration from RXSTORAGE_* environment variables."""
        base_url = os.getenv("RXSTORAGE_API_BASE_URL", "").strip()
        if not base_url:
            return cls(request_timeout=_env_float("RXSTORAGE_REQUEST_TIMEOUT"))

        scopes = os.getenv("RXSTORAGE_AUTH_SCOPES")
        return cls(
            api_base_url=base_url,
            auth_issuer=os.getenv("RXSTORAGE_AUTH_ISSUER", DEFAULT_AUTH_ISSUER),
            auth_client_id=os.getenv("RXSTORAGE_AUTH_CLIENT_ID", DEFAULT_AUTH_CLIENT_ID),
            auth_redirect_uri=os.getenv(
                "RXSTORAGE_AUTH_REDIRECT_URI", DEFAULT_AUTH_REDIRECT_URI
            ),
            auth_scopes=tuple(scopes.split()) if scopes else DEFAULT_AUTH_SCOPES,
            request_timeout=_env_float("RXSTORAGE_REQUEST_TIMEOUT"),
        )

    @property
    def api_url(self) -> str:
        """Base URL of the REST API, with the "/api" prefix appended once."""
        base = self.api_base_url.rstrip("/")
        return base if base.endswith(API_PATH_PREFIX) else base + API_PATH_PREFIX

    def api_url_for(self, path: str) -> str:
        """Full API URL for a path such as "items" or "/items/4"."""
        clean_path = path if path.startswith("/") else f"/{path}"
        return f"{self.api_url}{clean_path}"

    @property
    def token_url(self) -> str:
        """
        OAuth token endpoint.

        Raises:
            InvalidURLError: The issuer is not an absolute http(s) URL.
        """
        issuer_root = self.auth_issuer.strip().rstrip("/")
        try:
            issuer = httpx.URL(issuer_root)
        except (httpx.InvalidURL, TypeError) as exc:
            raise InvalidURLError() from exc
        if issuer.scheme not in {"http", "https"} or not issuer.host:
            raise InvalidURLError()
        return issuer_root + TOKEN_ENDPOINT_PATH


def _env_float(name: str, default: float = DEFAULT_REQUEST_TIMEOUT) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
