"""
Client configuration: credentials, endpoint, timeout and header derivation.

Values not passed explicitly are read from the environment (a ``.env`` file
is honoured through python-dotenv):

- ``DEEPGRAM_API_KEY``
- ``DEEPGRAM_ACCESS_TOKEN``
- ``DEEPGRAM_BASE_URL``
"""

import os
import platform
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from src.deepgram_client.errors import AuthenticationError, ConfigError
from src.deepgram_client.utils import (
    QueryParams,
    encode_query,
    to_websocket_scheme,
)
from src.deepgram_client.version import __version__

load_dotenv()

DEFAULT_BASE_URL = "https://api.deepgram.com"
DEFAULT_TIMEOUT = 30.0
API_VERSION = "v1"


class ClientConfig:
    """
    Immutable-by-convention transport settings shared by REST calls and live sessions.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        api_key = api_key or os.getenv("DEEPGRAM_API_KEY") or None
        access_token = access_token or os.getenv("DEEPGRAM_ACCESS_TOKEN") or None

        if api_key is None and access_token is None:
            raise AuthenticationError("Neither API key nor access token provided")

        # Access token wins when both are available
        self.access_token: Optional[str] = access_token
        self.api_key: Optional[str] = None if access_token else api_key

        self.base_url: str = self._normalize_url(
            base_url if base_url is not None else os.getenv("DEEPGRAM_BASE_URL", DEFAULT_BASE_URL)
        )
        self.timeout: float = self._validate_timeout(timeout)
        self.headers: Dict[str, str] = dict(headers or {})
        self.options: Dict[str, Any] = dict(options or {})
        self.api_version: str = API_VERSION

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        return cls(**overrides)

    def __repr__(self) -> str:
        scheme = "bearer" if self.access_token else "token"
        return f"ClientConfig(base_url={self.base_url!r}, auth={scheme}, timeout={self.timeout})"

    # ------------------------------------------------------------------ #
    # Header derivation
    # ------------------------------------------------------------------ #
    def auth_header(self) -> str:
        if self.access_token:
            return f"Bearer {self.access_token}"
        return f"Token {self.api_key}"

    @staticmethod
    def user_agent() -> str:
        return f"deepgram-python-client/{__version__} python/{platform.python_version()}"

    def default_headers(self) -> Dict[str, str]:
        """
        Headers sent with every REST call. Caller-supplied headers override defaults.
        """
        return {
            "Accept": "application/json",
            "Authorization": self.auth_header(),
            "User-Agent": self.user_agent(),
            **self.headers,
        }

    def websocket_headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.auth_header(),
            "User-Agent": self.user_agent(),
        }

    # ------------------------------------------------------------------ #
    # URL derivation
    # ------------------------------------------------------------------ #
    def http_url(self, path: str, params: Optional[QueryParams] = None) -> str:
        url = f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"
        if params:
            return f"{url}?{encode_query(params)}"
        return url

    def websocket_url(self, path: str, params: Optional[QueryParams] = None) -> str:
        return to_websocket_scheme(self.http_url(path, params))

    # ------------------------------------------------------------------ #
    # Validation helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _normalize_url(url: str) -> str:
        url = (url or "").strip().rstrip("/")
        if not url:
            raise ConfigError("Base URL cannot be empty", key="base_url")
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        return url

    @staticmethod
    def _validate_timeout(timeout: Optional[float]) -> float:
        if timeout is None:
            return DEFAULT_TIMEOUT
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"Timeout must be a positive number of seconds, got {timeout!r}", key="timeout")
        return float(timeout)
