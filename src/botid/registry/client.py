"""Async client for the BotID registry API."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from ..core.errors import (
    IdentityRevokedError,
    RegistrationError,
    ServiceUnavailableError,
)
from ..core.models import (
    DeviceCodeResponse,
    KeyLookup,
    PollResponse,
    RegistrationResponse,
    VerificationResult,
)
from ..core.protocol import normalize_url

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RegistryClient:
    """Client for the registry endpoints used by agents and verifiers."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize registry client.

        Args:
            api_url: Registry base URL (default https://botid.net)
            timeout: Request timeout in seconds
            http_client: Optional HTTP client to use; it is not closed by
                this client
        """
        self.api_url = normalize_url(api_url)
        self.timeout = timeout
        self._http_client = http_client

    async def get_public_key(self, bot_id: str) -> KeyLookup:
        """Look up the registered public key for a bot.

        Raises:
            IdentityRevokedError: If the registry reports the bot as revoked
            ServiceUnavailableError: If the lookup fails for any other reason
        """
        response = await self._send("GET", f"/api/keys/{quote(bot_id, safe='')}")

        if response.status_code == 403:
            body = _json_or_none(response)
            if isinstance(body, dict) and body.get("revoked"):
                raise IdentityRevokedError(
                    body.get("error") or f"Bot {bot_id} has been revoked"
                )

        if not response.is_success:
            raise ServiceUnavailableError(
                f"Public key lookup failed ({response.status_code})"
            )
        return _parse(KeyLookup, response)

    async def request_device_code(self) -> DeviceCodeResponse:
        """Start a device authorization."""
        response = await self._send(
            "POST", "/api/device/code", headers={"Content-Type": "application/json"}
        )
        if not response.is_success:
            raise ServiceUnavailableError(
                f"Failed to request device code ({response.status_code})"
            )
        return _parse(DeviceCodeResponse, response)

    async def poll_device_auth(self, device_code: str) -> PollResponse:
        """Poll the status of a device authorization."""
        response = await self._send(
            "POST", "/api/device/poll", json={"deviceCode": device_code}
        )
        if not response.is_success:
            raise ServiceUnavailableError(
                f"Device poll failed ({response.status_code})"
            )
        return _parse(PollResponse, response)

    async def register(
        self, name: str, public_key: str, access_token: str
    ) -> RegistrationResponse:
        """Register an agent's public key under the authenticated deployer.

        Raises:
            RegistrationError: If the registry rejects the request
            ServiceUnavailableError: If the registry cannot be reached
        """
        response = await self._send(
            "POST",
            "/api/register",
            json={"name": name, "publicKey": public_key},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not response.is_success:
            raise RegistrationError(
                f"BotID registration failed (HTTP {response.status_code})"
            )
        return _parse(RegistrationResponse, response)

    async def verify(self, payload: dict[str, Any]) -> VerificationResult:
        """Ask the registry to verify a signed payload.

        The registry answers with a verification result for both outcomes,
        so the status code is not checked.
        """
        response = await self._send("POST", "/api/verify", json=payload)
        return _parse(VerificationResult, response)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_url}{path}"
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Registry request %s %s failed: %s", method, url, e)
            raise ServiceUnavailableError(f"Registry request failed: {e}") from e


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _parse(model: type[ModelT], response: httpx.Response) -> ModelT:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise ServiceUnavailableError(
            f"Invalid registry response for {response.request.url.path}: {e}"
        ) from e
