"""Tests for credential and session storage."""

import json
import os
import stat
import sys

import pytest

from botid.core.models import AuthSession, StoredCredentials
from botid.storage import FileCredentialStore, MemoryCredentialStore


def make_credentials(name: str = "research-agent") -> StoredCredentials:
    return StoredCredentials(
        agent_name=name,
        bot_id=f"bot_{name}",
        private_key="00" * 48,
        deployer="octocat",
        registry_url="https://registry.test",
        created_at="2026-01-01T00:00:00+00:00",
    )


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path):
    if request.param == "file":
        return FileCredentialStore(tmp_path / "store")
    return MemoryCredentialStore()


def test_save_then_get_returns_identical_record(store):
    """A saved record reads back unchanged."""
    creds = make_credentials("A")
    store.save(creds)
    assert store.get("A") == creds


def test_get_unknown_returns_none(store):
    assert store.get("nobody") is None


def test_save_overwrites_whole_record(store):
    """Re-saving under the same name replaces the record."""
    store.save(make_credentials("A"))
    replacement = make_credentials("A").model_copy(update={"bot_id": "bot_new"})
    store.save(replacement)

    assert store.get("A").bot_id == "bot_new"
    assert store.list() == ["A"]


def test_list_agents(store):
    store.save(make_credentials("A"))
    store.save(make_credentials("B"))
    assert set(store.list()) == {"A", "B"}


def test_remove(store):
    """Removing reports whether a record existed."""
    assert store.remove("unknown") is False

    store.save(make_credentials("A"))
    assert store.remove("A") is True
    assert store.get("A") is None
    assert store.remove("A") is False


def test_session_lifecycle(store):
    """Session can be saved, replaced and cleared."""
    assert store.get_session() is None
    assert store.clear_session() is False

    first = AuthSession(access_token="tok-1", registry_url="https://registry.test")
    store.save_session(first)
    assert store.get_session() == first

    second = AuthSession(access_token="tok-2", registry_url="https://registry.test")
    store.save_session(second)
    assert store.get_session().access_token == "tok-2"

    assert store.clear_session() is True
    assert store.get_session() is None


def test_file_layout_uses_camel_case_keys(tmp_path):
    """Files hold {"agents": {...}} and a session object."""
    store = FileCredentialStore(tmp_path / "store")
    store.save(make_credentials("A"))
    store.save_session(
        AuthSession(
            access_token="tok",
            registry_url="https://registry.test",
            authenticated_at="2026-01-01T00:00:00+00:00",
        )
    )

    data = json.loads((tmp_path / "store" / "credentials.json").read_text())
    assert data["agents"]["A"] == {
        "name": "A",
        "botId": "bot_A",
        "privateKey": "00" * 48,
        "deployer": "octocat",
        "apiUrl": "https://registry.test",
        "createdAt": "2026-01-01T00:00:00+00:00",
    }
    session = json.loads((tmp_path / "store" / "auth.json").read_text())
    assert session == {
        "accessToken": "tok",
        "apiUrl": "https://registry.test",
        "authenticatedAt": "2026-01-01T00:00:00+00:00",
    }


def test_file_store_persists_across_instances(tmp_path):
    FileCredentialStore(tmp_path / "store").save(make_credentials("A"))
    assert FileCredentialStore(tmp_path / "store").get("A") == make_credentials("A")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_file_store_permissions(tmp_path):
    """Directory is 0700 and files are 0600."""
    directory = tmp_path / "store"
    store = FileCredentialStore(directory)
    store.save(make_credentials("A"))
    store.save_session(AuthSession(access_token="t", registry_url="https://r.test"))

    assert stat.S_IMODE(os.stat(directory).st_mode) == 0o700
    assert stat.S_IMODE(os.stat(directory / "credentials.json").st_mode) == 0o600
    assert stat.S_IMODE(os.stat(directory / "auth.json").st_mode) == 0o600


@pytest.mark.parametrize(
    "content",
    ["{not json", "[]", '{"agents": []}', '"string"', ""],
)
def test_corrupt_credentials_read_as_empty(tmp_path, content):
    """Unparseable credentials never raise."""
    directory = tmp_path / "store"
    directory.mkdir()
    (directory / "credentials.json").write_text(content)

    store = FileCredentialStore(directory)
    assert store.get("A") is None
    assert store.list() == []
    assert store.remove("A") is False


def test_corrupt_credentials_are_replaced_on_save(tmp_path):
    directory = tmp_path / "store"
    directory.mkdir()
    (directory / "credentials.json").write_text("{garbage")

    store = FileCredentialStore(directory)
    store.save(make_credentials("A"))
    assert store.list() == ["A"]


def test_malformed_record_reads_as_absent(tmp_path):
    directory = tmp_path / "store"
    directory.mkdir()
    (directory / "credentials.json").write_text(
        json.dumps({"agents": {"A": {"name": "A"}}})
    )

    store = FileCredentialStore(directory)
    assert store.get("A") is None
    assert store.list() == ["A"]


@pytest.mark.parametrize("content", ["{oops", '{"accessToken": 1}', "[]"])
def test_corrupt_session_reads_as_absent(tmp_path, content):
    directory = tmp_path / "store"
    directory.mkdir()
    (directory / "auth.json").write_text(content)

    assert FileCredentialStore(directory).get_session() is None


def test_default_directory_from_settings(isolated_home):
    """Without a directory the store lives under BOTID_HOME."""
    store = FileCredentialStore()
    store.save(make_credentials("A"))
    assert (isolated_home / "credentials.json").exists()


def test_uncreatable_directory_reads_as_empty(tmp_path):
    """A storage directory that cannot be created never breaks reads."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    store = FileCredentialStore(blocker / "botid")

    assert store.get("research-agent") is None
    assert store.list() == []
    assert store.remove("research-agent") is False
    assert store.get_session() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
