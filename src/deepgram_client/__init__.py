"""
Deepgram Client Package

Provides classes and utilities for:
- Prerecorded transcription, synthesis and text analysis over REST
- Live transcription, synthesis and voice agent sessions over WebSocket
- Project, key and usage management
- Typed options, events and commands
"""

from .client import DeepgramClient
from .config import ClientConfig
from .errors import (
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
from .event_handler import SessionEventHandler
from .live import AgentSession, ListenSession, LiveSession, SpeakSession
from .options import (
    AgentSettings,
    AnalyzeOptions,
    KeyOptions,
    LiveOptions,
    PrerecordedOptions,
    SpeakLiveOptions,
    SpeakOptions,
)
from .version import __version__


def version() -> str:
    return __version__


__all__ = [
    "DeepgramClient",
    "ClientConfig",
    "SessionEventHandler",
    "LiveSession",
    "ListenSession",
    "SpeakSession",
    "AgentSession",
    "AgentSettings",
    "AnalyzeOptions",
    "KeyOptions",
    "LiveOptions",
    "PrerecordedOptions",
    "SpeakLiveOptions",
    "SpeakOptions",
    "DeepgramError",
    "ApiError",
    "ArgumentError",
    "AuthenticationError",
    "ConfigError",
    "HttpError",
    "JsonError",
    "RequestTimeoutError",
    "WebSocketError",
    "version",
    "__version__",
]
