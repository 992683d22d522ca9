"""Local credential and session storage."""

from .store import CredentialStore, FileCredentialStore, MemoryCredentialStore

__all__ = ["CredentialStore", "FileCredentialStore", "MemoryCredentialStore"]
