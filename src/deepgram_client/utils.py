from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from pydantic import BaseModel

from src.deepgram_client.errors import ArgumentError

QueryParams = List[Tuple[str, str]]


def to_options(options: Union[Mapping[str, Any], BaseModel, None]) -> Dict[str, Any]:
    """
    Normalize an options argument to a plain dict.

    Args:
        options: A mapping, a pydantic options model, or None.

    Returns:
        dict: Options without ``None`` values.
    """
    if options is None:
        return {}
    if isinstance(options, BaseModel):
        return options.model_dump(exclude_none=True)
    if isinstance(options, Mapping):
        return {str(k): v for k, v in options.items() if v is not None}
    raise ArgumentError("Invalid options", "mapping or options model", type(options).__name__)


def format_query_param(key: Any, value: Any) -> Optional[Tuple[str, str]]:
    """
    Format one option as a query parameter.

    Lists join with commas, booleans become ``true``/``false``, numbers and
    enum members are stringified, strings pass through. Any other value type
    is dropped by returning ``None``.
    """
    key = key.value if isinstance(key, Enum) else str(key)
    if isinstance(value, (list, tuple)):
        return key, ",".join(_scalar(item) for item in value)
    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return key, "true" if value else "false"
    if isinstance(value, Enum):
        return key, str(value.value)
    if isinstance(value, (int, float)):
        return key, str(value)
    if isinstance(value, str):
        return key, value
    return None


def _scalar(item: Any) -> str:
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, Enum):
        return str(item.value)
    return str(item)


def build_query_params(options: Union[Mapping[str, Any], BaseModel, None]) -> QueryParams:
    """
    Build the ordered query parameter list for REST and WebSocket URLs.
    """
    params: QueryParams = []
    for key, value in to_options(options).items():
        formatted = format_query_param(key, value)
        if formatted is not None:
            params.append(formatted)
    return params


def encode_query(params: QueryParams) -> str:
    return urlencode(params)


def to_websocket_scheme(url: str) -> str:
    """Rewrite http(s) to ws(s); other schemes are returned unchanged."""
    if url.startswith("https://"):
        return "wss://" + url[len("https://"):]
    if url.startswith("http://"):
        return "ws://" + url[len("http://"):]
    return url
