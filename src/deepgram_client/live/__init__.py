from src.deepgram_client.live.agent import AgentSession
from src.deepgram_client.live.listen import ListenSession
from src.deepgram_client.live.session import LiveSession
from src.deepgram_client.live.speak import SpeakSession

__all__ = ["LiveSession", "ListenSession", "SpeakSession", "AgentSession"]
