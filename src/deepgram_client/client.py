from typing import Any, Optional

from src.deepgram_client.agent import AgentClient
from src.deepgram_client.config import ClientConfig
from src.deepgram_client.listen import ListenClient
from src.deepgram_client.manage import ManageClient
from src.deepgram_client.read import ReadClient
from src.deepgram_client.rest import RestClient
from src.deepgram_client.speak import SpeakClient
from utils.ml_logging import get_logger

logger = get_logger(__name__)


class DeepgramClient:
    """
    Entry point bundling every service behind one configuration.

    Usage:
        async with DeepgramClient(api_key="...") as client:
            result = await client.listen.transcribe_url({"url": "https://..."})
    """

    def __init__(self, config: Optional[ClientConfig] = None, **config_kwargs: Any) -> None:
        self.config = config or ClientConfig(**config_kwargs)
        self.rest = RestClient(self.config)
        self.listen = ListenClient(self.rest)
        self.speak = SpeakClient(self.rest)
        self.read = ReadClient(self.rest)
        self.manage = ManageClient(self.rest)
        self.agent = AgentClient(self.config)
        logger.debug(f"DeepgramClient created with {self.config!r}")

    async def close(self) -> None:
        await self.rest.close()

    async def __aenter__(self) -> "DeepgramClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
