"""FastAPI integration for botid."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ..core.config import BotIDSettings, get_settings
from ..core.models import BotInfo, VerificationResult
from ..core.protocol import IDENTITY_HEADERS, raw_request_path
from ..registry import RegistryClient
from ..validator import BotIDVerifier

logger = logging.getLogger(__name__)

UnverifiedHandler = Callable[
    [Request, VerificationResult], Union[Response, Awaitable[Response]]
]


class BotIDMiddleware(BaseHTTPMiddleware):
    """Middleware that verifies BotID headers on every request.

    The verification result is always stored on ``request.state.botid``.
    """

    def __init__(
        self,
        app,
        enforce: Optional[bool] = None,
        api_url: Optional[str] = None,
        on_unverified: Optional[UnverifiedHandler] = None,
        registry: Optional[RegistryClient] = None,
        settings: Optional[BotIDSettings] = None,
    ):
        """Initialize middleware.

        Args:
            app: ASGI application
            enforce: Reject requests that do not verify (default from
                settings, which defaults to True)
            api_url: Registry URL (default from settings)
            on_unverified: Handler that builds the response for rejected
                requests instead of the default JSON error; only used when
                enforcing
            registry: Registry client (overrides api_url)
            settings: Settings (default: from environment)
        """
        super().__init__(app)
        settings = settings or get_settings()
        self.enforce = settings.enforce if enforce is None else enforce
        self.on_unverified = on_unverified
        self.verifier = BotIDVerifier(
            registry=registry
            or RegistryClient(
                api_url=api_url or settings.api_url,
                timeout=settings.request_timeout,
            ),
            timestamp_window=settings.timestamp_window,
        )

    async def dispatch(self, request: Request, call_next):
        """Process request."""
        headers = {name: request.headers.getlist(name) for name in IDENTITY_HEADERS}
        # Signatures cover the path as sent, before percent-decoding.
        raw_path = request.scope.get("raw_path")
        path = raw_request_path(raw_path) if raw_path else request.url.path
        outcome = await self.verifier.verify(headers, request.method, path)

        request.state.botid = outcome.result

        if self.enforce and not outcome.verified:
            if self.on_unverified is not None:
                response = self.on_unverified(request, outcome.result)
                if inspect.isawaitable(response):
                    response = await response
                return response

            status_code, body = outcome.rejection()
            logger.info(
                "Rejected %s %s: %s", request.method, request.url.path, body["error"]
            )
            return JSONResponse(body, status_code=status_code)

        return await call_next(request)


def get_verification_result():
    """Dependency returning the verification result stored by the middleware."""

    async def _get_verification_result(request: Request) -> Optional[VerificationResult]:
        return getattr(request.state, "botid", None)

    return _get_verification_result


def get_bot_info(required: bool = False):
    """Dependency to get the verified bot from a request.

    Args:
        required: If True, raise 403 when the request is not verified

    Returns:
        BotInfo or None
    """

    async def _get_bot_info(request: Request) -> Optional[BotInfo]:
        result: Any = getattr(request.state, "botid", None)
        bot = result.bot if result is not None and result.verified else None
        if required and bot is None:
            raise HTTPException(status_code=403, detail="BotID verification required")
        return bot

    return _get_bot_info


def require_verified_bot():
    """Dependency that requires a verified bot identity."""
    return get_bot_info(required=True)
