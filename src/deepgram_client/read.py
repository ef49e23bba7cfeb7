"""
Text intelligence: sentiment, topics, intents and summaries.
"""

from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel

from src.deepgram_client.errors import ArgumentError
from src.deepgram_client.rest import RestClient
from src.deepgram_client.speak import _validate_text_source
from src.deepgram_client.utils import build_query_params, to_options

Options = Union[Mapping[str, Any], BaseModel, None]

DEFAULT_LANGUAGE = "en"


class ReadClient:
    def __init__(self, rest: RestClient) -> None:
        self.rest = rest

    async def analyze(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        """
        Analyze ``{"text": ...}``. ``language`` defaults to "en", which the
        endpoint requires.
        """
        body = _validate_text_source(source)
        opts = to_options(options)
        opts.setdefault("language", DEFAULT_LANGUAGE)
        return await self.rest.request("POST", "read", params=build_query_params(opts), json=body)

    async def analyze_sentiment(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        return await self.analyze(source, {**to_options(options), "sentiment": True})

    async def analyze_topics(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        return await self.analyze(source, {**to_options(options), "topics": True})

    async def analyze_intents(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        return await self.analyze(source, {**to_options(options), "intents": True})

    async def summarize(self, source: Mapping[str, Any], options: Options = None) -> Dict[str, Any]:
        return await self.analyze(source, {**to_options(options), "summarize": True})

    async def summarize_with_model(
        self, source: Mapping[str, Any], model: str, options: Options = None
    ) -> Dict[str, Any]:
        """Summarize with a named summarization model (e.g. "v2")."""
        if not model:
            raise ArgumentError("Summarization model cannot be empty", "non-empty string", repr(model))
        return await self.analyze(source, {**to_options(options), "summarize": model})
