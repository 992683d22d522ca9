"""Validator-side functionality for verifying bot requests."""

from .verifier import BotIDVerifier, VerificationOutcome, VerificationState

__all__ = ["BotIDVerifier", "VerificationOutcome", "VerificationState"]
