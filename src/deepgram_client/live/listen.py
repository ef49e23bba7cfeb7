from typing import ClassVar, Tuple, Type

from src.deepgram_client.events import LISTEN_EVENTS, EventRegistry
from src.deepgram_client.live.session import LiveSession
from src.deepgram_client.messages import AudioData, ClientMessage, CloseStream, KeepAlive
from src.enums.session_state import SessionKind
from utils.ml_logging import get_logger

logger = get_logger(__name__)


class ListenSession(LiveSession):
    """
    Streaming transcription over ``/v1/listen``.

    Options go into the connection URL. Results are passed through as-is;
    ``is_final``/``speech_final`` are for the caller to interpret.
    """

    kind: ClassVar[SessionKind] = SessionKind.LISTEN
    events: ClassVar[EventRegistry] = LISTEN_EVENTS
    close_message: ClassVar[Type[ClientMessage]] = CloseStream
    accepted_messages: ClassVar[Tuple[Type[ClientMessage], ...]] = (KeepAlive, CloseStream)
    accepts_audio: ClassVar[bool] = True
    forwards_audio: ClassVar[bool] = False

    async def send_audio(self, data: AudioData) -> None:
        """Write one chunk of audio as a single binary frame."""
        await self.send(data)

    async def finish(self) -> None:
        """
        Tell the server no more audio is coming. The server flushes the final
        results and then closes the socket, which ends the session.
        """
        logger.info("Finishing listen stream", extra=self._log_extra)
        await self.send(CloseStream())
