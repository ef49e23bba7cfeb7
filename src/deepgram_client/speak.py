"""
Text-to-speech: REST synthesis and live sessions.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel

from src.deepgram_client.errors import ArgumentError, DeepgramError
from src.deepgram_client.event_handler import EventSink
from src.deepgram_client.live.speak import SpeakSession
from src.deepgram_client.rest import RestClient
from src.deepgram_client.utils import build_query_params, to_options
from utils.ml_logging import get_logger

logger = get_logger(__name__)

Options = Union[Mapping[str, Any], BaseModel, None]


class SpeakClient:
    def __init__(self, rest: RestClient) -> None:
        self.rest = rest
        self.config = rest.config

    async def synthesize(self, source: Mapping[str, Any], options: Options = None) -> bytes:
        """
        Synthesize ``{"text": ...}`` and return the audio bytes.
        """
        audio, _ = await self._synthesize(source, options)
        return audio

    async def save_to_file(
        self, path: Union[str, Path], source: Mapping[str, Any], options: Options = None
    ) -> Dict[str, Any]:
        """
        Synthesize text and write the audio to ``path``.

        Returns:
            dict: Response metadata (content_type, request_id, model_uuid,
            model_name, characters, transfer_encoding, date).
        """
        body = _validate_text_source(source)
        audio, headers = await self._synthesize(body, options)
        try:
            Path(path).write_bytes(audio)
        except OSError as e:
            raise DeepgramError(f"Could not write audio to {path}", reason=str(e)) from e
        logger.info(f"Saved {len(audio)} bytes of audio to {path}")

        headers = {k.lower(): v for k, v in headers.items()}
        opts = to_options(options)
        return {
            "content_type": headers.get("content-type", "audio/wav"),
            "request_id": headers.get("dg-request-id", "unknown"),
            "model_uuid": headers.get("dg-model-uuid", "unknown"),
            "model_name": headers.get("dg-model-name", opts.get("model", "unknown")),
            "characters": _char_count(headers.get("dg-char-count"), body["text"]),
            "transfer_encoding": headers.get("transfer-encoding", "chunked"),
            "date": headers.get("date", datetime.now(timezone.utc).isoformat()),
        }

    async def synthesize_callback(
        self, source: Mapping[str, Any], callback_url: str, options: Options = None
    ) -> Any:
        if not callback_url:
            raise ArgumentError("Callback URL cannot be empty", "non-empty string", repr(callback_url))
        body = _validate_text_source(source)
        params = build_query_params({**to_options(options), "callback": callback_url})
        return await self.rest.request("POST", "speak", params=params, json=body)

    async def live(self, options: Options, sink: EventSink, **session_kwargs: Any) -> SpeakSession:
        """Open a live synthesis session; audio arrives as ``AudioEvent``."""
        session = SpeakSession(self.config, sink, options, **session_kwargs)
        return await session.start()

    async def _synthesize(self, source: Mapping[str, Any], options: Options):
        body = _validate_text_source(source)
        params = build_query_params(options)
        return await self.rest.request(
            "POST", "speak", params=params, json=body, expect="bytes", with_headers=True
        )


def _validate_text_source(source: Any) -> Dict[str, str]:
    if not isinstance(source, Mapping) or "text" not in source:
        raise ArgumentError("Invalid text source", "mapping with a 'text' key", type(source).__name__)
    text = source["text"]
    if not isinstance(text, str):
        raise ArgumentError("Invalid text source", "string", type(text).__name__)
    if not text:
        raise ArgumentError("Text cannot be empty", "non-empty string", "empty string")
    return {"text": text}


def _char_count(header: Any, text: str) -> int:
    if header is None:
        return len(text)
    try:
        return int(header)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric dg-char-count header: {header!r}")
        return len(text)
