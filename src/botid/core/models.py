"""Core data models for botid."""

import time
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class StoredCredentials(BaseModel):
    """Identity record for a locally registered agent."""

    model_config = ConfigDict(populate_by_name=True)

    agent_name: str = Field(alias="name", description="Local agent name (store key)")
    bot_id: str = Field(alias="botId", description="Registry-assigned bot identifier")
    private_key: str = Field(
        alias="privateKey", description="Hex PKCS8 DER private key"
    )
    deployer: str = Field(default="", description="Deployer that owns the bot")
    registry_url: str = Field(alias="apiUrl", description="Registry base URL")
    created_at: str = Field(
        default_factory=utcnow_iso, alias="createdAt", description="Creation time"
    )


class AuthSession(BaseModel):
    """Access token obtained from a device login."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    registry_url: str = Field(alias="apiUrl")
    authenticated_at: str = Field(default_factory=utcnow_iso, alias="authenticatedAt")


class BotInfo(BaseModel):
    """Identity details for a verified bot."""

    id: str
    name: str
    deployer: str = Field(
        default="", validation_alias=AliasChoices("deployer", "deployer_id")
    )


class VerificationResult(BaseModel):
    """Result of verifying a bot identity."""

    verified: bool = Field(description="Whether verification succeeded")
    bot: Optional[BotInfo] = Field(default=None, description="Verified bot")
    timestamp: int = Field(
        default_factory=lambda: int(time.time()), description="Signed or observed time"
    )
    error: Optional[str] = Field(default=None, description="Error message if not verified")
    revoked: Optional[bool] = Field(
        default=None, description="True if the identity was revoked"
    )

    def __bool__(self) -> bool:
        """Allow using VerificationResult in boolean context."""
        return self.verified


class KeyLookup(BaseModel):
    """Registry response for a public key lookup."""

    model_config = ConfigDict(populate_by_name=True)

    public_key: str = Field(alias="publicKey")
    name: Optional[str] = None
    deployer: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("deployer", "deployer_id")
    )


class DeviceCodeResponse(BaseModel):
    """Registry response for a device code request."""

    model_config = ConfigDict(populate_by_name=True)

    device_code: str = Field(alias="deviceCode")
    user_code: str = Field(alias="userCode")
    verification_url: str = Field(alias="verificationUrl")
    expires_in: float = Field(alias="expiresIn")
    interval: float = Field(default=5, alias="interval")


class PollResponse(BaseModel):
    """Registry response for a device poll."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["pending", "complete", "expired", "consumed", "error"]
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    error: Optional[str] = None


class RegistrationResponse(BaseModel):
    """Registry response for agent registration."""

    model_config = ConfigDict(populate_by_name=True)

    bot_id: Optional[str] = Field(default=None, alias="botId")
    deployer: str = ""
    success: bool = False
    error: Optional[str] = None
