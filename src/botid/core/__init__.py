"""Core functionality for botid."""

from .config import BotIDSettings, get_settings
from .crypto import (
    TIMESTAMP_WINDOW_SECONDS,
    generate_keypair,
    is_timestamp_valid,
    public_key_from_private,
    sign,
    verify,
)
from .errors import (
    BotIDError,
    ClientError,
    MissingIdentityError,
    IncompleteHeadersError,
    AuthExpiredError,
    IdentityRevokedError,
    SignatureInvalidError,
    ServiceUnavailableError,
    StorageCorruptError,
    ConfigurationError,
    AuthenticationRequiredError,
    RegistrationError,
    DeviceAuthError,
    DeviceCodeExpiredError,
    DeviceCodeConsumedError,
    DeviceAuthTimeoutError,
    DeviceAuthServerError,
    DeviceAuthCancelledError,
)
from .models import (
    AuthSession,
    BotInfo,
    StoredCredentials,
    VerificationResult,
)
from .protocol import (
    DEFAULT_API_URL,
    HEADER_BOT_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    build_message,
    normalize_url,
)

__all__ = [
    # Config
    "BotIDSettings",
    "get_settings",
    # Crypto
    "TIMESTAMP_WINDOW_SECONDS",
    "generate_keypair",
    "is_timestamp_valid",
    "public_key_from_private",
    "sign",
    "verify",
    # Errors
    "BotIDError",
    "ClientError",
    "MissingIdentityError",
    "IncompleteHeadersError",
    "AuthExpiredError",
    "IdentityRevokedError",
    "SignatureInvalidError",
    "ServiceUnavailableError",
    "StorageCorruptError",
    "ConfigurationError",
    "AuthenticationRequiredError",
    "RegistrationError",
    "DeviceAuthError",
    "DeviceCodeExpiredError",
    "DeviceCodeConsumedError",
    "DeviceAuthTimeoutError",
    "DeviceAuthServerError",
    "DeviceAuthCancelledError",
    # Models
    "AuthSession",
    "BotInfo",
    "StoredCredentials",
    "VerificationResult",
    # Protocol
    "DEFAULT_API_URL",
    "HEADER_BOT_ID",
    "HEADER_SIGNATURE",
    "HEADER_TIMESTAMP",
    "build_message",
    "normalize_url",
]
