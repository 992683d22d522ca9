"""BotID - Verifiable cryptographic identity for AI agents."""

from .agent import BotIDAuth, BotIDClient, init
from .auth import device_login, get_access_token, is_logged_in, logout
from .core import (
    DEFAULT_API_URL,
    HEADER_BOT_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    BotIDSettings,
    VerificationResult,
    generate_keypair,
    is_timestamp_valid,
    normalize_url,
    sign,
    verify,
)
from .registry import RegistryClient
from .storage import FileCredentialStore, MemoryCredentialStore
from .validator import BotIDVerifier, VerificationState

__version__ = "0.1.0"

__all__ = [
    # Agent
    "BotIDAuth",
    "BotIDClient",
    "init",
    # Auth
    "device_login",
    "get_access_token",
    "is_logged_in",
    "logout",
    # Core
    "DEFAULT_API_URL",
    "HEADER_BOT_ID",
    "HEADER_SIGNATURE",
    "HEADER_TIMESTAMP",
    "BotIDSettings",
    "VerificationResult",
    "generate_keypair",
    "is_timestamp_valid",
    "normalize_url",
    "sign",
    "verify",
    # Registry
    "RegistryClient",
    # Storage
    "FileCredentialStore",
    "MemoryCredentialStore",
    # Validator
    "BotIDVerifier",
    "VerificationState",
]
