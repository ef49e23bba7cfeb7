"""
Request executor for the REST endpoints: one attempt per call, no retry.
"""

import asyncio
import json
from typing import Any, Dict, Literal, Optional, Tuple, Union
from urllib.parse import urlsplit

import aiohttp
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from src.deepgram_client.config import ClientConfig
from src.deepgram_client.errors import ApiError, HttpError, JsonError, RequestTimeoutError
from src.deepgram_client.utils import QueryParams
from src.deepgram_client.version import __version__
from src.enums.monitoring import SpanAttr
from utils.ml_logging import get_logger

logger = get_logger(__name__)

Expect = Literal["json", "bytes"]


class RestClient:
    """
    Thin wrapper over a lazily created ``aiohttp.ClientSession``.

    Status mapping:
        2xx       -> decoded JSON (or raw bytes when ``expect="bytes"``)
        other     -> ApiError(status_code, response_body)
        network   -> HttpError
        timeout   -> RequestTimeoutError
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self.tracer = trace.get_tracer(__name__)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.config.default_headers(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        return self._session

    def _rest_span(self, method: str, path: str):
        host = urlsplit(self.config.base_url).hostname or ""
        return self.tracer.start_as_current_span(
            f"deepgram.rest.{method.lower()} /{path}",
            kind=SpanKind.CLIENT,
            attributes={
                SpanAttr.PEER_SERVICE.value: "deepgram",
                SpanAttr.SERVER_ADDRESS.value: host,
                SpanAttr.HTTP_METHOD.value: method,
                SpanAttr.HTTP_ROUTE.value: f"/{self.config.api_version}/{path}",
                SpanAttr.SERVICE_VERSION.value: __version__,
            },
        )

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[QueryParams] = None,
        json: Any = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
        expect: Expect = "json",
        with_headers: bool = False,
    ) -> Union[Any, Tuple[Any, Dict[str, str]]]:
        """
        Issue one request against ``{base_url}/v1/{path}``.

        Args:
            method (str): HTTP verb.
            path (str): Path below the API version, e.g. ``"listen"``.
            params (QueryParams, optional): Pre-formatted query pairs.
            json (Any, optional): JSON body.
            data (bytes, optional): Raw body; sent with ``content_type``.
            content_type (str, optional): Content-Type for ``data``.
            expect (str): ``"json"`` to decode the body, ``"bytes"`` for raw content.
            with_headers (bool): Also return the response headers.

        Returns:
            The decoded body, or ``(body, headers)`` when ``with_headers`` is set.
        """
        url = self.config.http_url(path, params)
        headers = {"Content-Type": content_type} if content_type else None
        logger.debug(f"{method} {url}")

        with self._rest_span(method, path) as span:
            try:
                session = self._get_session()
                async with session.request(method, url, json=json, data=data, headers=headers) as response:
                    span.set_attribute(SpanAttr.STATUS_CODE.value, response.status)
                    body = await response.read()
                    response_headers = dict(response.headers)
            except asyncio.TimeoutError as e:
                span.set_status(Status(StatusCode.ERROR, "timeout"))
                span.set_attribute(SpanAttr.ERROR_TYPE.value, "timeout")
                logger.error(f"{method} {url} timed out after {self.config.timeout}s")
                raise RequestTimeoutError(f"{method} /{path} timed out", timeout=self.config.timeout) from e
            except aiohttp.ClientError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                logger.error(f"{method} {url} failed: {e}")
                raise HttpError(f"{method} /{path} failed", reason=str(e)) from e

            if not 200 <= response.status < 300:
                text = body.decode("utf-8", errors="replace")
                span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status}"))
                span.set_attribute(SpanAttr.ERROR_TYPE.value, str(response.status))
                logger.warning(f"{method} /{path} returned {response.status}")
                raise ApiError.from_response(response.status, text)

            result = body if expect == "bytes" else _decode_json(body)

        return (result, response_headers) if with_headers else result

    async def get(self, path: str, params: Optional[QueryParams] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, params: Optional[QueryParams] = None, json: Any = None) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def delete(self, path: str, params: Optional[QueryParams] = None) -> Any:
        return await self.request("DELETE", path, params=params)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _decode_json(body: bytes) -> Any:
    if not body:
        return {}
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonError("Failed to decode response body", data=body[:1000], reason=str(e)) from e
