from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel

from src.deepgram_client.config import ClientConfig
from src.deepgram_client.errors import ArgumentError
from src.deepgram_client.event_handler import EventSink
from src.deepgram_client.events import AGENT_EVENTS, EventRegistry
from src.deepgram_client.live.session import (
    DEFAULT_MAX_PENDING_EVENTS,
    KEEPALIVE_INTERVAL,
    LiveSession,
)
from src.deepgram_client.messages import (
    AudioData,
    ClientMessage,
    Close,
    Frame,
    FunctionCallResponse,
    InjectMessage,
    KeepAlive,
    SettingsConfiguration,
    UserMessage,
    build_message,
    encode_frame,
)
from src.deepgram_client.options import AgentSettings
from src.deepgram_client.utils import to_options
from src.enums.session_state import SessionKind
from utils.ml_logging import get_logger

logger = get_logger(__name__)

Settings = Union[AgentSettings, Mapping[str, Any]]


class AgentSession(LiveSession):
    """
    Voice agent conversation over ``/v1/agent``.

    The settings are sent as the first frame, before any caller command can
    be written. Function calls requested by the agent are only delivered as
    ``FunctionCallRequestEvent``; the caller runs them and answers with
    ``respond_to_function_call``.
    """

    kind: ClassVar[SessionKind] = SessionKind.AGENT
    events: ClassVar[EventRegistry] = AGENT_EVENTS
    close_message: ClassVar[Type[ClientMessage]] = Close
    accepted_messages: ClassVar[Tuple[Type[ClientMessage], ...]] = (
        UserMessage,
        FunctionCallResponse,
        InjectMessage,
        SettingsConfiguration,
        KeepAlive,
        Close,
    )
    accepts_audio: ClassVar[bool] = True
    forwards_audio: ClassVar[bool] = True
    uses_query_options: ClassVar[bool] = False

    def __init__(
        self,
        config: ClientConfig,
        settings: Optional[Settings],
        sink: EventSink,
        *,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS,
    ) -> None:
        super().__init__(
            config,
            sink,
            keepalive_interval=keepalive_interval,
            max_pending_events=max_pending_events,
        )
        if settings is None:
            settings = AgentSettings.default()
        self.settings: Dict[str, Any] = _settings_dict(settings)

    def _initial_frames(self) -> List[Frame]:
        return [encode_frame(SettingsConfiguration.from_settings(self.settings))]

    async def send_audio(self, data: AudioData) -> None:
        await self.send(data)

    async def send_text(self, text: str) -> None:
        """Send a user turn as text instead of audio."""
        await self.send(build_message(UserMessage, text=text))

    async def respond_to_function_call(self, function_call_id: str, result: Any) -> None:
        """
        Answer a ``FunctionCallRequestEvent``.

        Args:
            function_call_id (str): The id carried by the request event.
            result (Any): JSON-serializable function output.
        """
        await self.send(build_message(FunctionCallResponse, function_call_id=function_call_id, result=result))

    async def inject_message(
        self,
        message: Union[Mapping[str, Any], str],
        role: Optional[str] = None,
        content: Optional[str] = None,
    ) -> None:
        """
        Inject a message into the conversation.

        Accepts either a mapping ``{"type", "role", "content"}`` or the three
        values as arguments (``message`` is then the type).
        """
        if isinstance(message, Mapping):
            fields = dict(message)
        else:
            fields = {"type": message, "role": role, "content": content}
        await self.send(build_message(InjectMessage, **fields))

    async def update_settings(self, settings: Settings) -> None:
        """Replace the agent configuration mid-session."""
        updated = _settings_dict(settings)
        await self.send(SettingsConfiguration.from_settings(updated))
        self.settings = updated
        logger.info("Agent settings updated", extra=self._log_extra)


def _settings_dict(settings: Settings) -> Dict[str, Any]:
    if not isinstance(settings, (Mapping, BaseModel)):
        raise ArgumentError("Invalid agent settings", "AgentSettings or mapping", type(settings).__name__)
    return to_options(settings)
