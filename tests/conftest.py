"""Shared fixtures for botid tests."""

from typing import Callable

import httpx
import pytest

from botid import generate_keypair
from botid.registry import RegistryClient

REGISTRY_URL = "https://registry.test"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep default file stores out of the real home directory."""
    home = tmp_path / "botid-home"
    monkeypatch.setenv("BOTID_HOME", str(home))
    monkeypatch.delenv("BOTID_TOKEN", raising=False)
    monkeypatch.delenv("BOTID_API_URL", raising=False)
    monkeypatch.delenv("BOTID_ENFORCE", raising=False)
    return home


@pytest.fixture
def keypair() -> tuple[str, str]:
    """(public_key_hex, private_key_hex)."""
    return generate_keypair()


@pytest.fixture
def make_registry() -> Callable[[Callable[[httpx.Request], httpx.Response]], RegistryClient]:
    """Build a RegistryClient whose HTTP calls go to a handler function."""

    def _make(handler):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RegistryClient(api_url=REGISTRY_URL, http_client=http_client)

    return _make
