"""
Speech-to-text: prerecorded REST transcription and live sessions.
"""

from typing import Any, Dict, Mapping, Union
from urllib.parse import urlsplit

from pydantic import BaseModel

from src.deepgram_client.errors import ArgumentError
from src.deepgram_client.event_handler import EventSink
from src.deepgram_client.live.listen import ListenSession
from src.deepgram_client.rest import RestClient
from src.deepgram_client.utils import build_query_params, to_options
from utils.ml_logging import get_logger

logger = get_logger(__name__)

Options = Union[Mapping[str, Any], BaseModel, None]


class ListenClient:
    def __init__(self, rest: RestClient) -> None:
        self.rest = rest
        self.config = rest.config

    async def transcribe_url(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        """
        Transcribe audio hosted at a URL.

        Args:
            source (Mapping): ``{"url": "https://..."}``.
            options: ``PrerecordedOptions`` or a dict.

        Returns:
            dict: The transcription response.
        """
        body = _validate_url_source(source)
        params = build_query_params(options)
        return await self.rest.request("POST", "listen", params=params, json=body)

    async def transcribe_file(
        self,
        data: bytes,
        options: Options = None,
        content_type: str = "audio/wav",
    ) -> Dict[str, Any]:
        """Transcribe audio bytes uploaded in the request body."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ArgumentError("Invalid file data", "bytes", type(data).__name__)
        if len(data) == 0:
            raise ArgumentError("File data cannot be empty", "non-empty bytes", "empty bytes")
        params = build_query_params(options)
        logger.debug(f"Uploading {len(data)} bytes for transcription")
        return await self.rest.request(
            "POST", "listen", params=params, data=bytes(data), content_type=content_type
        )

    async def transcribe_url_callback(
        self, source: Mapping[str, Any], callback_url: str, options: Options = None
    ) -> Dict[str, Any]:
        """Asynchronous variant: the result is POSTed to ``callback_url``."""
        return await self.transcribe_url(source, _with_callback(options, callback_url))

    async def transcribe_file_callback(
        self, data: bytes, callback_url: str, options: Options = None, content_type: str = "audio/wav"
    ) -> Dict[str, Any]:
        return await self.transcribe_file(data, _with_callback(options, callback_url), content_type)

    async def live(self, options: Options, sink: EventSink, **session_kwargs: Any) -> ListenSession:
        """
        Open a live transcription session.

        Returns:
            ListenSession: A connected session; close it when done.
        """
        session = ListenSession(self.config, sink, options, **session_kwargs)
        return await session.start()


def _validate_url_source(source: Any) -> Dict[str, str]:
    if not isinstance(source, Mapping) or "url" not in source:
        raise ArgumentError("Invalid source", "mapping with a 'url' key", type(source).__name__)
    url = source["url"]
    if not isinstance(url, str) or urlsplit(url).scheme not in ("http", "https"):
        raise ArgumentError("Invalid URL format", "http(s) URL", repr(url))
    return {"url": url}


def _with_callback(options: Options, callback_url: str) -> Dict[str, Any]:
    if not callback_url:
        raise ArgumentError("Callback URL cannot be empty", "non-empty string", repr(callback_url))
    return {**to_options(options), "callback": callback_url}
