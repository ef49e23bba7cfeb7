"""
Tests for the error taxonomy.
"""

import pytest

from src.deepgram_client.errors import (
    ApiError,
    ArgumentError,
    AuthenticationError,
    ConfigError,
    DeepgramError,
    HttpError,
    JsonError,
    RequestTimeoutError,
    WebSocketError,
)


@pytest.mark.parametrize(
    "error",
    [
        AuthenticationError("no key"),
        ApiError("failed", 500, "boom"),
        ArgumentError("bad", "str", "int"),
        HttpError("down", reason="econnrefused"),
        WebSocketError("closed", reason="going away", code=1001),
        JsonError("bad json", data="{x"),
        ConfigError("bad", key="timeout"),
        RequestTimeoutError("slow", timeout=5),
    ],
)
def test_every_error_is_a_deepgram_error(error):
    assert isinstance(error, DeepgramError)
    assert str(error)


def test_api_error_from_response():
    error = ApiError.from_response(401, '{"err_code":"INVALID_AUTH"}')
    assert error.status_code == 401
    assert error.response_body == '{"err_code":"INVALID_AUTH"}'
    assert "401" in str(error)


def test_argument_error_is_value_error():
    error = ArgumentError("Text cannot be empty", "non-empty string", "empty string")
    assert isinstance(error, ValueError)
    assert str(error) == "Text cannot be empty (expected non-empty string, got empty string)"


def test_timeout_error_is_builtin_timeout():
    error = RequestTimeoutError("slow", timeout=2.5)
    assert isinstance(error, TimeoutError)
    assert "2.5" in str(error)


def test_reason_in_message():
    error = HttpError("HTTP request failed", reason="timeout")
    assert str(error) == "HTTP request failed: 'timeout'"
    assert error.reason == "timeout"


def test_websocket_error_code():
    assert WebSocketError("closed", code=1011).code == 1011


def test_config_error_key():
    assert str(ConfigError("bad value", key="timeout")) == "bad value (key=timeout)"
