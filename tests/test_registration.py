"""Tests for agent registration."""

import json

import httpx
import pytest

from botid import init
from botid.core.crypto import public_key_from_private
from botid.core.errors import (
    AuthenticationRequiredError,
    RegistrationError,
    ServiceUnavailableError,
)
from botid.core.models import AuthSession, StoredCredentials
from botid.storage import FileCredentialStore, MemoryCredentialStore

REGISTRY_URL = "https://registry.test"


def register_handler(captured, response=None):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        if request.url.path == "/api/register":
            return response or httpx.Response(
                200,
                json={"botId": "bot_new", "deployer": "octocat", "success": True},
            )
        return httpx.Response(404)

    return handler


@pytest.mark.asyncio
async def test_first_run_registers_and_stores(make_registry):
    """A new agent registers its public key and stores the private key."""
    captured = []
    store = MemoryCredentialStore()

    client = await init(
        "research-agent",
        access_token="tok",
        store=store,
        registry=make_registry(register_handler(captured)),
    )

    assert client.bot_id == "bot_new"
    assert client.api_url == REGISTRY_URL

    request = captured[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer tok"
    body = json.loads(request.content)
    assert body["name"] == "research-agent"

    creds = store.get("research-agent")
    assert creds.bot_id == "bot_new"
    assert creds.deployer == "octocat"
    assert creds.registry_url == REGISTRY_URL
    assert public_key_from_private(creds.private_key) == body["publicKey"]
    assert creds.private_key not in request.content.decode()


@pytest.mark.asyncio
async def test_existing_credentials_skip_network(make_registry):
    """Stored credentials are reused without contacting the registry."""
    captured = []
    store = MemoryCredentialStore()
    store.save(
        StoredCredentials(
            agent_name="research-agent",
            bot_id="bot_old",
            private_key="00" * 48,
            deployer="octocat",
            registry_url="https://stored.test",
        )
    )

    client = await init(
        "research-agent",
        store=store,
        registry=make_registry(register_handler(captured)),
    )

    assert client.bot_id == "bot_old"
    assert client.api_url == "https://stored.test"
    assert captured == []


@pytest.mark.asyncio
async def test_token_from_environment(make_registry, monkeypatch):
    monkeypatch.setenv("BOTID_TOKEN", "env-tok")
    captured = []

    await init(
        "a",
        store=MemoryCredentialStore(),
        registry=make_registry(register_handler(captured)),
    )

    assert captured[0].headers["Authorization"] == "Bearer env-tok"


@pytest.mark.asyncio
async def test_token_from_stored_session(make_registry):
    captured = []
    store = MemoryCredentialStore()
    store.save_session(AuthSession(access_token="session-tok", registry_url=REGISTRY_URL))

    await init("a", store=store, registry=make_registry(register_handler(captured)))

    assert captured[0].headers["Authorization"] == "Bearer session-tok"


@pytest.mark.asyncio
async def test_explicit_token_wins(make_registry, monkeypatch):
    monkeypatch.setenv("BOTID_TOKEN", "env-tok")
    captured = []
    store = MemoryCredentialStore()
    store.save_session(AuthSession(access_token="session-tok", registry_url=REGISTRY_URL))

    await init(
        "a",
        access_token="explicit",
        store=store,
        registry=make_registry(register_handler(captured)),
    )

    assert captured[0].headers["Authorization"] == "Bearer explicit"


@pytest.mark.asyncio
async def test_no_token_raises(make_registry):
    captured = []

    with pytest.raises(AuthenticationRequiredError):
        await init(
            "a",
            store=MemoryCredentialStore(),
            registry=make_registry(register_handler(captured)),
        )

    assert captured == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response,match",
    [
        (httpx.Response(401, json={"error": "bad token"}), "HTTP 401"),
        (httpx.Response(200, json={"success": False, "error": "name taken"}), "name taken"),
        (httpx.Response(200, json={"success": True}), "Unknown error"),
    ],
)
async def test_registration_failures(make_registry, response, match):
    store = MemoryCredentialStore()

    with pytest.raises(RegistrationError, match=match):
        await init(
            "a",
            access_token="tok",
            store=store,
            registry=make_registry(register_handler([], response)),
        )

    assert store.list() == []


@pytest.mark.asyncio
async def test_registry_unreachable(make_registry):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ServiceUnavailableError):
        await init(
            "a",
            access_token="tok",
            store=MemoryCredentialStore(),
            registry=make_registry(handler),
        )


@pytest.mark.asyncio
async def test_default_file_store(make_registry, isolated_home):
    await init("a", access_token="tok", registry=make_registry(register_handler([])))

    assert FileCredentialStore().get("a").bot_id == "bot_new"
    assert (isolated_home / "credentials.json").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
