from typing import Any, Mapping, Optional, Union

from src.deepgram_client.config import ClientConfig
from src.deepgram_client.event_handler import EventSink
from src.deepgram_client.live.agent import AgentSession
from src.deepgram_client.options import AgentSettings


class AgentClient:
    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    async def start_session(
        self,
        settings: Optional[Union[AgentSettings, Mapping[str, Any]]],
        sink: EventSink,
        **session_kwargs: Any,
    ) -> AgentSession:
        """
        Open a voice agent session. ``settings`` is sent before anything else;
        ``None`` uses ``AgentSettings.default()``.
        """
        session = AgentSession(self.config, settings, sink, **session_kwargs)
        return await session.start()
