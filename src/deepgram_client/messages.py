"""
Outbound commands and their wire encoding.

Audio goes out as a binary frame exactly as given. Every other command is a
compact JSON text frame whose first key is the ``type`` discriminator.
"""

import json
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.deepgram_client.errors import ArgumentError
from src.deepgram_client.options import AgentSettings
from src.deepgram_client.utils import to_options

AudioData = Union[bytes, bytearray, memoryview]
Frame = Union[str, bytes]


class ClientMessage(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: str

    def to_json(self) -> str:
        body = self.model_dump(exclude_none=True)
        return json.dumps({"type": body.pop("type"), **body}, separators=(",", ":"))


class KeepAlive(ClientMessage):
    type: Literal["KeepAlive"] = "KeepAlive"


class CloseStream(ClientMessage):
    type: Literal["CloseStream"] = "CloseStream"


class Close(ClientMessage):
    type: Literal["Close"] = "Close"


class SpeakText(ClientMessage):
    type: Literal["Speak"] = "Speak"
    text: str

    @field_validator("text")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("text cannot be empty")
        return value


class Flush(ClientMessage):
    type: Literal["Flush"] = "Flush"


class Clear(ClientMessage):
    type: Literal["Clear"] = "Clear"


class UserMessage(ClientMessage):
    type: Literal["user_message"] = "user_message"
    text: str

    @field_validator("text")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("text cannot be empty")
        return value


class FunctionCallResponse(ClientMessage):
    type: Literal["function_call_response"] = "function_call_response"
    function_call_id: str
    result: Any = None

    @field_validator("function_call_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("function_call_id cannot be empty")
        return value


class InjectMessage(ClientMessage):
    """A message injected into the agent conversation, serialized as given."""

    type: str
    role: str
    content: str

    @field_validator("type", "role", "content")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


class SettingsConfiguration(ClientMessage):
    type: Literal["SettingsConfiguration"] = "SettingsConfiguration"
    settings: Dict[str, Any]

    @classmethod
    def from_settings(cls, settings: Union[AgentSettings, Dict[str, Any]]) -> "SettingsConfiguration":
        return cls(settings=to_options(settings))


Command = Union[ClientMessage, AudioData]


def build_message(message_cls: type, **fields: Any) -> ClientMessage:
    """
    Construct a command, turning pydantic validation failures into ArgumentError.
    """
    try:
        return message_cls(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or message_cls.__name__
        raise ArgumentError(
            f"Invalid {message_cls.__name__}: {field} {first.get('msg', 'is invalid')}",
            expected=message_cls.__name__,
            actual=repr(fields)[:200],
        ) from e


def encode_frame(command: Command) -> Frame:
    """
    Serialize one outbound command to a single WebSocket frame.

    Raises:
        ArgumentError: If the value is neither audio nor a known command.
    """
    if isinstance(command, (bytes, bytearray, memoryview)):
        return bytes(command)
    if isinstance(command, ClientMessage):
        return command.to_json()
    raise ArgumentError("Unsupported command", "audio bytes or ClientMessage", type(command).__name__)
