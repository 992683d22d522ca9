"""Agent-side functionality for signing requests."""

from .registration import init
from .signer import BotIDAuth, BotIDClient

__all__ = ["BotIDAuth", "BotIDClient", "init"]
