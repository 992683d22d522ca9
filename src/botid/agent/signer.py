"""Outbound request signing for BotID agents."""

import time
from typing import Any, Generator, Optional

import httpx

from ..core.crypto import sign
from ..core.models import VerificationResult
from ..core.protocol import (
    HEADER_BOT_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    build_message,
    normalize_url,
    raw_request_path,
    request_path,
)
from ..registry import RegistryClient

HEALTH_CHECK_METHOD = "POST"
HEALTH_CHECK_PATH = "/api/verify"


class BotIDClient:
    """Signs HTTP requests with a bot's BotID identity.

    Example:
        client = BotIDClient(bot_id="bot_abc123", private_key="<hex>")
        response = await client.fetch("https://example.com/api/data")
    """

    def __init__(
        self,
        bot_id: str,
        private_key: str,
        api_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client.

        Args:
            bot_id: Registry-assigned bot identifier
            private_key: Hex PKCS8 DER private key
            api_url: Registry URL (default https://botid.net)
            http_client: Optional HTTP client used for fetch() and verify()
        """
        self.bot_id = bot_id
        self._private_key = private_key
        self.api_url = normalize_url(api_url)
        self._http_client = http_client
        self.registry = RegistryClient(api_url=self.api_url, http_client=http_client)

    def __repr__(self) -> str:
        return f"BotIDClient(bot_id={self.bot_id!r}, api_url={self.api_url!r})"

    def sign_headers(
        self, method: str, url: str, timestamp: Optional[int] = None
    ) -> dict[str, str]:
        """Build the identity headers for a request.

        Args:
            method: HTTP method
            url: Request URL or path
            timestamp: Unix time in seconds (default: now)

        Returns:
            Dictionary with X-BotID, X-BotID-Signature and X-BotID-Timestamp
        """
        if timestamp is None:
            timestamp = int(time.time())
        message = build_message(timestamp, self.bot_id, method, request_path(url))
        return {
            HEADER_BOT_ID: self.bot_id,
            HEADER_SIGNATURE: sign(message, self._private_key),
            HEADER_TIMESTAMP: str(timestamp),
        }

    def sign_request(self, request: httpx.Request) -> httpx.Request:
        """Sign an HTTP request.

        Caller headers and extensions (timeouts etc.) are kept; the identity
        headers are always rewritten. A streamed body that has not been read
        is passed through as the same stream.

        Returns:
            New request with identity headers added
        """
        new_headers = httpx.Headers(request.headers)
        new_headers.update(
            self.sign_headers(request.method, raw_request_path(request.url.raw_path))
        )

        try:
            body: dict[str, Any] = {"content": request.content}
        except httpx.RequestNotRead:
            body = {"stream": request.stream}

        return httpx.Request(
            method=request.method,
            url=request.url,
            headers=new_headers,
            extensions=request.extensions,
            **body,
        )

    def auth(self) -> "BotIDAuth":
        """httpx auth hook signing every request sent with it."""
        return BotIDAuth(self)

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a signed request.

        Extra keyword arguments are passed to ``httpx.AsyncClient.request``.
        """
        if self._http_client is not None:
            return await self._http_client.request(
                method, url, headers=headers, auth=self.auth(), **kwargs
            )
        async with httpx.AsyncClient() as client:
            return await client.request(
                method, url, headers=headers, auth=self.auth(), **kwargs
            )

    async def verify(self) -> VerificationResult:
        """Check this bot's identity against the registry (health check)."""
        timestamp = int(time.time())
        message = build_message(
            timestamp, self.bot_id, HEALTH_CHECK_METHOD, HEALTH_CHECK_PATH
        )
        return await self.registry.verify(
            {
                "botId": self.bot_id,
                "signature": sign(message, self._private_key),
                "timestamp": timestamp,
                "method": HEALTH_CHECK_METHOD,
                "path": HEALTH_CHECK_PATH,
            }
        )


class BotIDAuth(httpx.Auth):
    """httpx authentication that adds BotID identity headers."""

    def __init__(self, client: BotIDClient):
        self.client = client

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        for name, value in self.client.sign_headers(
            request.method, raw_request_path(request.url.raw_path)
        ).items():
            request.headers[name] = value
        yield request
