#!/usr/bin/env python3
"""FastAPI Integration Example - BotID verification middleware."""

from typing import Optional

from fastapi import Depends, FastAPI, Request

from botid.core.models import BotInfo
from botid.integrations.fastapi import (
    BotIDMiddleware,
    get_bot_info,
    require_verified_bot,
)

# Create FastAPI app
app = FastAPI(title="Agent Commerce API")

# Unverified requests still reach the routes; each route decides what it needs
app.add_middleware(BotIDMiddleware, enforce=False)


# Public endpoint - no identity required
@app.get("/products")
async def list_products(bot: Optional[BotInfo] = Depends(get_bot_info(required=False))):
    """List products - optionally personalized for verified bots."""
    if bot:
        return {
            "products": ["Widget A", "Widget B"],
            "personalized": True,
            "for_bot": bot.id,
        }
    return {"products": ["Widget A", "Widget B"], "personalized": False}


# Protected endpoint - requires a verified bot
@app.post("/purchase")
async def purchase(product_id: str, bot: BotInfo = Depends(require_verified_bot())):
    """Make purchase - requires a verified BotID identity."""
    return {"status": "purchased", "product_id": product_id, "bot": bot.id}


# Diagnostics - the full verification result
@app.get("/whoami")
async def whoami(request: Request):
    return request.state.botid.model_dump()


def main():
    print("=== FastAPI Integration Example ===\n")
    print("FastAPI app configured with BotID verification!\n")
    print("Endpoints:")
    print("  GET  /products        - Public (optional identity)")
    print("  POST /purchase        - Requires a verified bot")
    print("  GET  /whoami          - Shows the verification result\n")
    print("To run:")
    print("  uvicorn fastapi_example:app --reload\n")
    print("Example signed request from an agent:")
    print("  agent = await botid.init('shopping-agent')")
    print("  await agent.fetch('http://localhost:8000/purchase?product_id=W1', method='POST')")


if __name__ == "__main__":
    # For demo purposes - in production use uvicorn
    main()
