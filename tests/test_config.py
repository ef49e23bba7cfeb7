"""
Tests for ClientConfig credential resolution and derivation.
"""

import platform

import pytest

from src.deepgram_client.config import DEFAULT_BASE_URL, ClientConfig
from src.deepgram_client.errors import AuthenticationError, ConfigError
from src.deepgram_client.version import __version__


class TestCredentials:
    def test_api_key(self, clean_env):
        config = ClientConfig(api_key="key-1")
        assert config.auth_header() == "Token key-1"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout == 30.0

    def test_access_token_wins(self, clean_env):
        config = ClientConfig(api_key="key-1", access_token="tok-1")
        assert config.auth_header() == "Bearer tok-1"
        assert config.api_key is None

    def test_env_fallback(self, clean_env):
        clean_env.setenv("DEEPGRAM_API_KEY", "env-key")
        clean_env.setenv("DEEPGRAM_BASE_URL", "custom.example.com/")
        config = ClientConfig()
        assert config.auth_header() == "Token env-key"
        assert config.base_url == "https://custom.example.com"

    def test_env_token_wins_over_env_key(self, clean_env):
        clean_env.setenv("DEEPGRAM_API_KEY", "env-key")
        clean_env.setenv("DEEPGRAM_ACCESS_TOKEN", "env-token")
        assert ClientConfig.from_env().auth_header() == "Bearer env-token"

    def test_missing_credentials(self, clean_env):
        with pytest.raises(AuthenticationError):
            ClientConfig()

    def test_repr_hides_secrets(self, clean_env):
        config = ClientConfig(api_key="super-secret")
        assert "super-secret" not in repr(config)


class TestValidation:
    @pytest.mark.parametrize("url", ["", "   ", "/"])
    def test_empty_base_url(self, clean_env, url):
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig(api_key="k", base_url=url)
        assert exc_info.value.key == "base_url"

    @pytest.mark.parametrize("timeout", [0, -1, "10", True])
    def test_invalid_timeout(self, clean_env, timeout):
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig(api_key="k", timeout=timeout)
        assert exc_info.value.key == "timeout"

    def test_base_url_normalization(self, clean_env):
        config = ClientConfig(api_key="k", base_url="  http://localhost:8080///  ")
        assert config.base_url == "http://localhost:8080"


class TestDerivation:
    def test_user_agent(self):
        assert ClientConfig.user_agent() == (
            f"deepgram-python-client/{__version__} python/{platform.python_version()}"
        )

    def test_default_headers_caller_overrides(self, clean_env):
        config = ClientConfig(api_key="k", headers={"Accept": "text/plain", "X-Trace": "1"})
        headers = config.default_headers()
        assert headers["Accept"] == "text/plain"
        assert headers["X-Trace"] == "1"
        assert headers["Authorization"] == "Token k"

    def test_websocket_headers(self, config):
        assert set(config.websocket_headers()) == {"Authorization", "User-Agent"}

    def test_urls(self, config):
        assert config.http_url("listen") == "https://api.example.com/v1/listen"
        assert config.http_url("read", [("language", "en")]) == "https://api.example.com/v1/read?language=en"
        assert config.websocket_url("speak", [("model", "aura")]) == "wss://api.example.com/v1/speak?model=aura"
