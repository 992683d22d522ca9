"""BotID wire protocol: header names, message construction and URL helpers."""

from collections.abc import Mapping, Sequence
from typing import Optional, Union
from urllib.parse import urlsplit

HEADER_BOT_ID = "X-BotID"
HEADER_SIGNATURE = "X-BotID-Signature"
HEADER_TIMESTAMP = "X-BotID-Timestamp"

IDENTITY_HEADERS = (HEADER_BOT_ID, HEADER_SIGNATURE, HEADER_TIMESTAMP)

DEFAULT_API_URL = "https://botid.net"

HeaderValue = Union[str, Sequence[str], None]


def normalize_url(url: Optional[str] = None) -> str:
    """Return the registry base URL without trailing slashes."""
    return (url or DEFAULT_API_URL).rstrip("/")


def request_path(url_or_path: str) -> str:
    """Extract the path component of a URL or raw request target.

    The path is kept exactly as written (percent-encoding and repeated
    slashes included). Query string and fragment are dropped; an empty path
    becomes "/".
    """
    if url_or_path.startswith("/"):
        path = url_or_path.split("?", 1)[0].split("#", 1)[0]
    else:
        path = urlsplit(url_or_path).path
    return path or "/"


def raw_request_path(raw_path: Union[bytes, str]) -> str:
    """Signed path for an undecoded request target such as ``httpx.URL.raw_path``."""
    if isinstance(raw_path, bytes):
        raw_path = raw_path.decode("latin-1")
    return request_path(raw_path)


def build_message(timestamp: int, bot_id: str, method: str, path: str) -> str:
    """Build the canonical signed message.

    Format: ``{timestamp}.{bot_id}.{METHOD}.{path}``. Every signer and
    verifier goes through this function.
    """
    return f"{timestamp}.{bot_id}.{method.upper()}.{request_path(path)}"


def normalize_headers(headers: Mapping[str, HeaderValue]) -> dict[str, str]:
    """Lower-case header names and collapse multi-valued headers.

    A sequence value is reduced to its first element; empty values are
    dropped so that they read as absent.
    """
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        if value is None:
            continue
        if not isinstance(value, str):
            value = next(iter(value), "")
        if value:
            normalized.setdefault(name.lower(), value)
    return normalized
