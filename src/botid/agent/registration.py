"""Agent registration and credential bootstrap."""

import logging
from typing import Optional

from ..core.config import get_settings
from ..core.crypto import generate_keypair
from ..core.errors import AuthenticationRequiredError, RegistrationError
from ..core.models import StoredCredentials
from ..registry import RegistryClient
from ..storage import CredentialStore, FileCredentialStore
from .signer import BotIDClient

logger = logging.getLogger(__name__)


async def init(
    name: str,
    access_token: Optional[str] = None,
    api_url: Optional[str] = None,
    store: Optional[CredentialStore] = None,
    registry: Optional[RegistryClient] = None,
) -> BotIDClient:
    """Register (or load) a BotID agent.

    On first use the keypair is generated locally, the public key is
    registered with the registry and the credentials are stored. Later calls
    with the same name load the stored credentials without contacting the
    registry.

    Args:
        name: Agent name, also the storage key
        access_token: Token for the registration call; falls back to the
            BOTID_TOKEN setting, then to the stored login session
        api_url: Registry URL (default from settings)
        store: Credential store (default: FileCredentialStore)
        registry: Registry client (default: one for api_url)

    Returns:
        Client signing requests as the agent

    Raises:
        AuthenticationRequiredError: If no access token is available
        RegistrationError: If the registry rejects the registration
    """
    settings = get_settings()
    store = store or FileCredentialStore()

    existing = store.get(name)
    if existing is not None:
        logger.debug("Loaded stored credentials for agent %s", name)
        return BotIDClient(
            bot_id=existing.bot_id,
            private_key=existing.private_key,
            api_url=existing.registry_url,
        )

    registry = registry or RegistryClient(
        api_url=api_url or settings.api_url, timeout=settings.request_timeout
    )

    if access_token is None:
        access_token = settings.token
    if access_token is None:
        session = store.get_session()
        access_token = session.access_token if session else None
    if not access_token:
        raise AuthenticationRequiredError(
            "Authentication required. Log in first, or set the BOTID_TOKEN "
            "environment variable."
        )

    # Private key never leaves this machine.
    public_key, private_key = generate_keypair()

    response = await registry.register(name, public_key, access_token)
    if not response.success or not response.bot_id:
        raise RegistrationError(
            f"BotID registration failed: {response.error or 'Unknown error'}"
        )

    store.save(
        StoredCredentials(
            agent_name=name,
            bot_id=response.bot_id,
            private_key=private_key,
            deployer=response.deployer,
            registry_url=registry.api_url,
        )
    )
    logger.info("Registered agent %s as %s", name, response.bot_id)

    return BotIDClient(
        bot_id=response.bot_id, private_key=private_key, api_url=registry.api_url
    )
