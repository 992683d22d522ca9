"""BotID registry access."""

from .client import RegistryClient

__all__ = ["RegistryClient"]
