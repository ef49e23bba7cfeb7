"""
Inbound events delivered to a session's event sink.

Text frames are JSON objects tagged by their ``type`` field and decode into
one of the models below; binary frames become ``AudioEvent`` (speak, agent).
Decoding never raises: unknown tags become ``UnhandledEvent`` and undecodable
payloads become ``DecodeErrorEvent``, so the receive loop keeps running.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.deepgram_client.errors import JsonError, WebSocketError


class LiveEvent(BaseModel):
    """Base of every event; unknown server fields are kept as extras."""

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True, protected_namespaces=())

    type: str

    @property
    def payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Client-side lifecycle notifications
# ---------------------------------------------------------------------------
class ConnectedEvent(LiveEvent):
    type: Literal["Connected"] = "Connected"
    url: str


class DisconnectedEvent(LiveEvent):
    """Terminal notification; always the last event a session delivers."""

    type: Literal["Disconnected"] = "Disconnected"
    reason: str
    code: Optional[int] = None
    initiator: Literal["client", "server", "transport"] = "server"


class DecodeErrorEvent(LiveEvent):
    type: Literal["DecodeError"] = "DecodeError"
    error: JsonError
    data: Any = None


class AudioEvent(LiveEvent):
    type: Literal["Audio"] = "Audio"
    data: bytes


class UnhandledEvent(LiveEvent):
    """A well-formed message whose ``type`` this client does not know."""

    type: Literal["Unhandled"] = "Unhandled"
    payload_type: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    @property
    def payload(self) -> Dict[str, Any]:
        return self.raw


# ---------------------------------------------------------------------------
# Shared server messages
# ---------------------------------------------------------------------------
class OpenEvent(LiveEvent):
    type: Literal["Open"] = "Open"


class CloseEvent(LiveEvent):
    type: Literal["Close"] = "Close"


class ErrorEvent(LiveEvent):
    type: Literal["Error"] = "Error"
    message: Optional[str] = None
    description: Optional[str] = None
    variant: Optional[str] = None
    err_code: Any = None
    code: Any = None

    @property
    def text(self) -> str:
        return self.description or self.message or ""

    def to_exception(self) -> WebSocketError:
        return WebSocketError(self.text or "WebSocket error", reason=self.payload)


class MetadataEvent(LiveEvent):
    type: Literal["Metadata"] = "Metadata"
    request_id: Optional[str] = None
    model_name: Optional[str] = None
    model_uuid: Optional[str] = None


# ---------------------------------------------------------------------------
# Listen
# ---------------------------------------------------------------------------
class ResultsEvent(LiveEvent):
    """
    A transcript. ``is_final``/``speech_final`` are passed through untouched;
    the caller decides what interim vs final means for them.
    """

    type: Literal["Results"] = "Results"
    is_final: bool = False
    speech_final: bool = False
    from_finalize: Optional[bool] = None
    start: Optional[float] = None
    duration: Optional[float] = None
    channel_index: Optional[List[int]] = None
    channel: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def transcript(self) -> str:
        alternatives = (self.channel or {}).get("alternatives") or []
        if not alternatives:
            return ""
        return alternatives[0].get("transcript", "")


class SpeechStartedEvent(LiveEvent):
    type: Literal["SpeechStarted"] = "SpeechStarted"
    channel: Optional[List[int]] = None
    timestamp: Optional[float] = None


class UtteranceEndEvent(LiveEvent):
    type: Literal["UtteranceEnd"] = "UtteranceEnd"
    channel: Optional[List[int]] = None
    last_word_end: Optional[float] = None


# ---------------------------------------------------------------------------
# Speak
# ---------------------------------------------------------------------------
class FlushedEvent(LiveEvent):
    type: Literal["Flushed"] = "Flushed"
    sequence_id: Optional[int] = None


class ClearedEvent(LiveEvent):
    type: Literal["Cleared"] = "Cleared"
    sequence_id: Optional[int] = None


class WarningEvent(LiveEvent):
    type: Literal["Warning"] = "Warning"
    description: Optional[str] = None
    warn_code: Optional[str] = None


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------
class WelcomeEvent(LiveEvent):
    type: Literal["Welcome"] = "Welcome"
    request_id: Optional[str] = None
    message: Optional[str] = None


class SettingsAppliedEvent(LiveEvent):
    type: Literal["SettingsApplied"] = "SettingsApplied"
    settings: Optional[Dict[str, Any]] = None


class ConversationTextEvent(LiveEvent):
    type: Literal["ConversationText"] = "ConversationText"
    role: Optional[str] = None
    content: Optional[str] = None
    text: Optional[str] = None


class UserStartedSpeakingEvent(LiveEvent):
    type: Literal["UserStartedSpeaking"] = "UserStartedSpeaking"
    timestamp: Any = None


class AgentThinkingEvent(LiveEvent):
    type: Literal["AgentThinking"] = "AgentThinking"
    content: Optional[str] = None
    thinking: Optional[bool] = None


class AgentStartedSpeakingEvent(LiveEvent):
    type: Literal["AgentStartedSpeaking"] = "AgentStartedSpeaking"
    total_latency: Optional[float] = None
    tts_latency: Optional[float] = None
    ttt_latency: Optional[float] = None
    timestamp: Any = None


class AgentAudioDoneEvent(LiveEvent):
    type: Literal["AgentAudioDone"] = "AgentAudioDone"
    timestamp: Any = None


class FunctionCallRequestEvent(LiveEvent):
    """
    The agent asks the caller to run a function. This client never runs it;
    answer with ``AgentSession.respond_to_function_call(function_call_id, result)``.
    """

    type: Literal["FunctionCallRequest"] = "FunctionCallRequest"
    function_call_id: Optional[str] = None
    function_name: Optional[str] = None
    arguments: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_function_call(cls, data: Any) -> Any:
        # Accept the nested {"function_call": {"id", "name", "arguments"}} shape
        if isinstance(data, dict) and isinstance(data.get("function_call"), dict):
            nested = data["function_call"]
            data = dict(data)
            data.setdefault("function_call_id", nested.get("id"))
            data.setdefault("function_name", nested.get("name"))
            data.setdefault("arguments", nested.get("arguments"))
        if isinstance(data, dict) and data.get("arguments") is not None and not isinstance(data["arguments"], str):
            data = {**data, "arguments": json.dumps(data["arguments"])}
        return data

    def parse_arguments(self) -> Dict[str, Any]:
        if not self.arguments:
            return {}
        try:
            parsed = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise JsonError("Function call arguments are not valid JSON", data=self.arguments, reason=str(e)) from e
        if not isinstance(parsed, dict):
            raise JsonError("Function call arguments must be a JSON object", data=self.arguments)
        return parsed


class InjectionRefusedEvent(LiveEvent):
    type: Literal["InjectionRefused"] = "InjectionRefused"
    message: Optional[str] = None
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Per-endpoint vocabularies
# ---------------------------------------------------------------------------
EventRegistry = Mapping[str, Type[LiveEvent]]

_COMMON: Dict[str, Type[LiveEvent]] = {
    "Open": OpenEvent,
    "Close": CloseEvent,
    "Error": ErrorEvent,
}

LISTEN_EVENTS: EventRegistry = {
    **_COMMON,
    "Results": ResultsEvent,
    "Metadata": MetadataEvent,
    "SpeechStarted": SpeechStartedEvent,
    "UtteranceEnd": UtteranceEndEvent,
}

SPEAK_EVENTS: EventRegistry = {
    **_COMMON,
    "Metadata": MetadataEvent,
    "Flushed": FlushedEvent,
    "Cleared": ClearedEvent,
    "Warning": WarningEvent,
}

AGENT_EVENTS: EventRegistry = {
    **_COMMON,
    "Welcome": WelcomeEvent,
    "SettingsApplied": SettingsAppliedEvent,
    "ConversationText": ConversationTextEvent,
    "UserStartedSpeaking": UserStartedSpeakingEvent,
    "AgentThinking": AgentThinkingEvent,
    "AgentStartedSpeaking": AgentStartedSpeakingEvent,
    "AgentAudioDone": AgentAudioDoneEvent,
    "FunctionCallRequest": FunctionCallRequestEvent,
    "InjectionRefused": InjectionRefusedEvent,
}


def decode_text_frame(text: str, registry: EventRegistry) -> LiveEvent:
    """
    Decode one JSON text frame into the matching event.

    Never raises. Invalid JSON or a non-object document yields
    ``DecodeErrorEvent``. A known ``type`` always yields its event, even when a
    field does not match the model; an unknown ``type``
    yields ``UnhandledEvent`` carrying the decoded payload.
    """
    try:
        message = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        return DecodeErrorEvent(
            error=JsonError("Failed to parse WebSocket message", data=text, reason=str(e)),
            data=text,
        )

    if not isinstance(message, dict):
        return DecodeErrorEvent(
            error=JsonError("WebSocket message is not a JSON object", data=text),
            data=text,
        )

    message_type = message.get("type")
    event_cls = registry.get(message_type) if isinstance(message_type, str) else None
    if event_cls is None:
        return UnhandledEvent(payload_type=message_type if isinstance(message_type, str) else None, raw=message)

    try:
        return event_cls.model_validate(message)
    except ValidationError:
        # typed by its tag; field values pass through unvalidated
        return event_cls.model_construct(**message)
