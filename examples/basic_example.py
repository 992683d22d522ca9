#!/usr/bin/env python3
"""
Basic example demonstrating the BotID workflow against a local fake registry:
1. Agent registers and stores its private key
2. Agent signs a request
3. Merchant verifies the request through the registry
"""

import asyncio
import json

import httpx

from botid import BotIDVerifier, MemoryCredentialStore, RegistryClient, init
from botid.core.protocol import raw_request_path

REGISTRY_URL = "https://registry.example.com"

# bot_id -> public key hex, as published by the registry
published_keys: dict[str, str] = {}


def fake_registry(request: httpx.Request) -> httpx.Response:
    """Tiny stand-in for the public registry API."""
    if request.url.path == "/api/register":
        body = json.loads(request.content)
        published_keys["bot_demo"] = body["publicKey"]
        return httpx.Response(
            200, json={"botId": "bot_demo", "deployer": "octocat", "success": True}
        )
    if request.url.path == "/api/keys/bot_demo":
        return httpx.Response(
            200,
            json={
                "publicKey": published_keys["bot_demo"],
                "name": "shopping-agent",
                "deployer": "octocat",
            },
        )
    return httpx.Response(404, json={"error": "Bot not found"})


async def main():
    print("=== BotID - Basic Example ===\n")

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_registry))
    registry = RegistryClient(api_url=REGISTRY_URL, http_client=http_client)

    # ============================================================================
    # STEP 1: Agent registers with the registry
    # ============================================================================
    print("1. Registering agent...")
    store = MemoryCredentialStore()
    agent = await init(
        "shopping-agent", access_token="demo-token", store=store, registry=registry
    )
    print(f"   ✓ Bot ID: {agent.bot_id}")
    print(f"   ✓ Stored agents: {store.list()}\n")

    # ============================================================================
    # STEP 2: Agent signs a purchase request
    # ============================================================================
    print("2. Agent signing purchase request...")
    request = httpx.Request(
        "POST",
        "https://merchant.example.com/api/purchase?ref=demo",
        json={"product_id": "WIDGET-123", "quantity": 2},
    )
    signed = agent.sign_request(request)
    for name in ("X-BotID", "X-BotID-Timestamp", "X-BotID-Signature"):
        print(f"   - {name}: {signed.headers[name][:32]}")
    print()

    # ============================================================================
    # STEP 3: Merchant verifies the request
    # ============================================================================
    print("3. Merchant verifying request...")
    verifier = BotIDVerifier(registry=registry)
    outcome = await verifier.verify(
        signed.headers, signed.method, raw_request_path(signed.url.raw_path)
    )

    if outcome.verified:
        print("   ✓ Verification SUCCESS")
        print(f"   - Bot: {outcome.result.bot.name} ({outcome.result.bot.id})")
        print(f"   - Deployer: {outcome.result.bot.deployer}\n")
    else:
        print(f"   ✗ Verification FAILED: {outcome.result.error}\n")
        return

    # ============================================================================
    # STEP 4: A replayed request for another path is rejected
    # ============================================================================
    print("4. Replaying the headers against another path...")
    outcome = await verifier.verify(signed.headers, "POST", "/api/refund")
    status, body = outcome.rejection()
    print(f"   ✓ Rejected with {status}: {body['error']}\n")

    await http_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
