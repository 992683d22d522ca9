"""Inbound request verification against the BotID registry."""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..core.crypto import TIMESTAMP_WINDOW_SECONDS, is_timestamp_valid, verify
from ..core.errors import (
    AuthExpiredError,
    BotIDError,
    IdentityRevokedError,
    IncompleteHeadersError,
    MissingIdentityError,
    ServiceUnavailableError,
    SignatureInvalidError,
)
from ..core.models import BotInfo, VerificationResult
from ..core.protocol import (
    HEADER_BOT_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    HeaderValue,
    build_message,
    normalize_headers,
    request_path,
)
from ..registry import RegistryClient

logger = logging.getLogger(__name__)


class VerificationState(str, Enum):
    """Terminal states of a single verification."""

    NO_IDENTITY = "no_identity"
    INCOMPLETE_HEADERS = "incomplete_headers"
    STALE_TIMESTAMP = "stale_timestamp"
    REVOKED = "revoked"
    SERVICE_UNAVAILABLE = "service_unavailable"
    SIGNATURE_INVALID = "signature_invalid"
    VERIFIED = "verified"


# status code, error message, error class
_REJECTIONS: dict[VerificationState, tuple[int, str, type[BotIDError]]] = {
    VerificationState.NO_IDENTITY: (
        403,
        "BotID verification required",
        MissingIdentityError,
    ),
    VerificationState.INCOMPLETE_HEADERS: (
        400,
        "Incomplete BotID headers",
        IncompleteHeadersError,
    ),
    VerificationState.STALE_TIMESTAMP: (
        403,
        "Timestamp outside valid window",
        AuthExpiredError,
    ),
    VerificationState.REVOKED: (
        403,
        "Bot identity has been revoked",
        IdentityRevokedError,
    ),
    VerificationState.SERVICE_UNAVAILABLE: (
        503,
        "BotID verification service unavailable",
        ServiceUnavailableError,
    ),
    VerificationState.SIGNATURE_INVALID: (
        403,
        "Bot identity verification failed",
        SignatureInvalidError,
    ),
}


@dataclass(frozen=True)
class VerificationOutcome:
    """Terminal state plus the result to attach to the request."""

    state: VerificationState
    result: VerificationResult

    @property
    def verified(self) -> bool:
        return self.state is VerificationState.VERIFIED

    def rejection(self) -> Optional[tuple[int, dict[str, Any]]]:
        """Default rejection as (status_code, json_body), None when verified."""
        if self.verified:
            return None
        status_code, message, _ = _REJECTIONS[self.state]
        body: dict[str, Any] = {"error": message}
        if self.state is VerificationState.REVOKED:
            body["revoked"] = True
        return status_code, body

    def raise_for_state(self) -> None:
        """Raise the error mapped to a non-verified state."""
        if self.verified:
            return
        _, message, error_cls = _REJECTIONS[self.state]
        raise error_cls(self.result.error or message)


class BotIDVerifier:
    """Verifies BotID headers on inbound requests.

    Steps run strictly in order and the first terminal state wins:
    presence of headers, completeness, replay window, registry key lookup
    (revocation or failure), signature check.
    """

    def __init__(
        self,
        registry: Optional[RegistryClient] = None,
        api_url: Optional[str] = None,
        timestamp_window: int = TIMESTAMP_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize verifier.

        Args:
            registry: Registry client used for key lookups
            api_url: Registry URL when no client is given
            timestamp_window: Allowed clock skew in seconds
            clock: Source of the current time in seconds
        """
        self.registry = registry or RegistryClient(api_url=api_url)
        self.timestamp_window = timestamp_window
        self._clock = clock

    async def verify(
        self,
        headers: Mapping[str, HeaderValue],
        method: str,
        path: str,
    ) -> VerificationOutcome:
        """Verify the identity presented on a request.

        Args:
            headers: Request headers; names are matched case-insensitively
                and multi-valued entries collapse to their first value
            method: HTTP method
            path: Request path or URL; query string is ignored

        Returns:
            VerificationOutcome with the terminal state and result
        """
        now = int(self._clock())
        normalized = normalize_headers(headers)
        bot_id = normalized.get(HEADER_BOT_ID.lower())
        signature = normalized.get(HEADER_SIGNATURE.lower())
        timestamp_raw = normalized.get(HEADER_TIMESTAMP.lower())

        if not (bot_id or signature or timestamp_raw):
            return self._outcome(
                VerificationState.NO_IDENTITY,
                VerificationResult(verified=False, timestamp=now),
            )

        if not (bot_id and signature and timestamp_raw):
            return self._outcome(
                VerificationState.INCOMPLETE_HEADERS,
                VerificationResult(
                    verified=False, timestamp=now, error="Incomplete BotID headers"
                ),
            )

        try:
            timestamp = int(timestamp_raw)
        except ValueError:
            return self._outcome(
                VerificationState.STALE_TIMESTAMP,
                VerificationResult(
                    verified=False, timestamp=now, error="Invalid timestamp"
                ),
            )

        if not is_timestamp_valid(timestamp, now=now, window=self.timestamp_window):
            return self._outcome(
                VerificationState.STALE_TIMESTAMP,
                VerificationResult(
                    verified=False,
                    timestamp=timestamp,
                    error="Timestamp outside valid window",
                ),
            )

        try:
            key = await self.registry.get_public_key(bot_id)
        except IdentityRevokedError:
            return self._outcome(
                VerificationState.REVOKED,
                VerificationResult(
                    verified=False,
                    revoked=True,
                    timestamp=timestamp,
                    error="Bot identity has been revoked",
                ),
            )
        except ServiceUnavailableError:
            return self._outcome(
                VerificationState.SERVICE_UNAVAILABLE,
                VerificationResult(
                    verified=False,
                    timestamp=int(self._clock()),
                    error="Verification service unavailable",
                ),
            )

        message = build_message(timestamp, bot_id, method, request_path(path))
        if not verify(message, signature, key.public_key):
            return self._outcome(
                VerificationState.SIGNATURE_INVALID,
                VerificationResult(
                    verified=False,
                    timestamp=timestamp,
                    error="Bot identity verification failed",
                ),
            )

        return self._outcome(
            VerificationState.VERIFIED,
            VerificationResult(
                verified=True,
                bot=BotInfo(
                    id=bot_id,
                    name=key.name or bot_id,
                    deployer=key.deployer or "",
                ),
                timestamp=timestamp,
            ),
        )

    async def verify_or_raise(
        self,
        headers: Mapping[str, HeaderValue],
        method: str,
        path: str,
    ) -> VerificationResult:
        """Verify a request and raise the mapped error unless verified.

        Raises:
            MissingIdentityError, IncompleteHeadersError, AuthExpiredError,
            IdentityRevokedError, ServiceUnavailableError,
            SignatureInvalidError
        """
        outcome = await self.verify(headers, method, path)
        outcome.raise_for_state()
        return outcome.result

    def _outcome(
        self, state: VerificationState, result: VerificationResult
    ) -> VerificationOutcome:
        logger.debug("BotID verification finished in state %s", state.value)
        return VerificationOutcome(state=state, result=result)
