"""Exception hierarchy for botid."""


class BotIDError(Exception):
    """Base exception for all botid errors."""

    pass


# Request errors
class ClientError(BotIDError):
    """Malformed or incomplete caller input."""

    pass


class MissingIdentityError(ClientError):
    """No BotID identity headers were presented."""

    pass


class IncompleteHeadersError(ClientError):
    """Some, but not all, BotID identity headers were presented."""

    pass


class AuthExpiredError(BotIDError):
    """Signed timestamp is outside the replay window."""

    pass


class IdentityRevokedError(BotIDError):
    """Bot identity has been revoked by the registry."""

    pass


class SignatureInvalidError(BotIDError):
    """Signature does not verify under the registered public key."""

    pass


class ServiceUnavailableError(BotIDError):
    """Registry could not be reached or returned an unusable response."""

    pass


# Storage errors
class StorageCorruptError(BotIDError):
    """Local credential storage could not be read or parsed."""

    pass


# Configuration errors
class ConfigurationError(BotIDError):
    """Base exception for configuration errors."""

    pass


class AuthenticationRequiredError(ConfigurationError):
    """No access token is available for an authenticated registry call."""

    pass


class RegistrationError(BotIDError):
    """Registry refused to register an agent."""

    pass


# Device authorization errors
class DeviceAuthError(BotIDError):
    """Base exception for device authorization failures."""

    pass


class DeviceCodeExpiredError(DeviceAuthError):
    """Device code expired before the user completed sign-in."""

    pass


class DeviceCodeConsumedError(DeviceAuthError):
    """Device code was already exchanged for a token."""

    pass


class DeviceAuthTimeoutError(DeviceAuthError):
    """Polling ran past the device code lifetime."""

    pass


class DeviceAuthServerError(DeviceAuthError):
    """Registry reported an error while polling."""

    pass


class DeviceAuthCancelledError(DeviceAuthError):
    """Caller aborted the poll loop."""

    pass
