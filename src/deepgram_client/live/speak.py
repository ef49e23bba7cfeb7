from typing import ClassVar, Tuple, Type

from src.deepgram_client.events import SPEAK_EVENTS, EventRegistry
from src.deepgram_client.live.session import LiveSession
from src.deepgram_client.messages import (
    Clear,
    ClientMessage,
    Close,
    Flush,
    KeepAlive,
    SpeakText,
    build_message,
)
from src.enums.session_state import SessionKind


class SpeakSession(LiveSession):
    """
    Streaming synthesis over ``/v1/speak``. Audio arrives as ``AudioEvent``.
    """

    kind: ClassVar[SessionKind] = SessionKind.SPEAK
    events: ClassVar[EventRegistry] = SPEAK_EVENTS
    close_message: ClassVar[Type[ClientMessage]] = Close
    accepted_messages: ClassVar[Tuple[Type[ClientMessage], ...]] = (SpeakText, Flush, Clear, Close, KeepAlive)
    accepts_audio: ClassVar[bool] = False
    forwards_audio: ClassVar[bool] = True

    async def send_text(self, text: str) -> None:
        await self.send(build_message(SpeakText, text=text))

    async def flush(self) -> None:
        """Ask the server to emit audio for all text sent so far."""
        await self.send(Flush())

    async def clear(self) -> None:
        """Discard text and audio the server has buffered but not sent."""
        await self.send(Clear())
