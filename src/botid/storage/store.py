"""Local persistence for agent credentials and the login session.

Writers are not coordinated. Two processes saving at the same time race on a
whole-file read-modify-write and the last writer wins; no stronger atomicity
than a single file write is provided.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..core.config import get_settings
from ..core.errors import StorageCorruptError
from ..core.models import AuthSession, StoredCredentials

logger = logging.getLogger(__name__)

CREDENTIALS_FILE = "credentials.json"
AUTH_FILE = "auth.json"

DIR_MODE = 0o700
FILE_MODE = 0o600


class CredentialStore(ABC):
    """Mapping from agent name to identity record plus one session slot."""

    @abstractmethod
    def get(self, name: str) -> Optional[StoredCredentials]:
        """Return the record for ``name``, or None."""

    @abstractmethod
    def save(self, credentials: StoredCredentials) -> None:
        """Insert or replace the record keyed by ``credentials.agent_name``."""

    @abstractmethod
    def list(self) -> list[str]:
        """Names of all stored agents."""

    @abstractmethod
    def remove(self, name: str) -> bool:
        """Delete a record. Returns False if it did not exist."""

    @abstractmethod
    def save_session(self, session: AuthSession) -> None:
        """Replace the current session."""

    @abstractmethod
    def get_session(self) -> Optional[AuthSession]:
        """Return the current session, or None."""

    @abstractmethod
    def clear_session(self) -> bool:
        """Delete the current session. Returns False if none was stored."""


class MemoryCredentialStore(CredentialStore):
    """In-process credential store."""

    def __init__(self):
        self._agents: dict[str, StoredCredentials] = {}
        self._session: Optional[AuthSession] = None

    def get(self, name: str) -> Optional[StoredCredentials]:
        return self._agents.get(name)

    def save(self, credentials: StoredCredentials) -> None:
        self._agents[credentials.agent_name] = credentials

    def list(self) -> list[str]:
        return list(self._agents)

    def remove(self, name: str) -> bool:
        if name not in self._agents:
            return False
        del self._agents[name]
        return True

    def save_session(self, session: AuthSession) -> None:
        self._session = session

    def get_session(self) -> Optional[AuthSession]:
        return self._session

    def clear_session(self) -> bool:
        had_session = self._session is not None
        self._session = None
        return had_session


class FileCredentialStore(CredentialStore):
    """Credential store backed by JSON files in an owner-only directory.

    Layout::

        <directory>/credentials.json   {"agents": {name: record}}
        <directory>/auth.json          session

    Unreadable or corrupt files read as empty.
    """

    def __init__(self, directory: Optional[str | Path] = None):
        """Initialize store.

        Args:
            directory: Storage directory (default: settings ``home``,
                i.e. ``~/.botid``)
        """
        self.directory = Path(directory) if directory else get_settings().home
        self.credentials_path = self.directory / CREDENTIALS_FILE
        self.auth_path = self.directory / AUTH_FILE

    # -- credentials --------------------------------------------------------

    def get(self, name: str) -> Optional[StoredCredentials]:
        raw = self._read_agents().get(name)
        if raw is None:
            return None
        try:
            return StoredCredentials.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring malformed credentials for agent %s", name)
            return None

    def save(self, credentials: StoredCredentials) -> None:
        agents = self._read_agents()
        agents[credentials.agent_name] = credentials.model_dump(by_alias=True)
        self._write_json(self.credentials_path, {"agents": agents})
        logger.info("Saved credentials for agent %s", credentials.agent_name)

    def list(self) -> list[str]:
        return list(self._read_agents())

    def remove(self, name: str) -> bool:
        agents = self._read_agents()
        if name not in agents:
            return False
        del agents[name]
        self._write_json(self.credentials_path, {"agents": agents})
        logger.info("Removed credentials for agent %s", name)
        return True

    # -- session ------------------------------------------------------------

    def save_session(self, session: AuthSession) -> None:
        self._write_json(self.auth_path, session.model_dump(by_alias=True))
        logger.info("Saved auth session for %s", session.registry_url)

    def get_session(self) -> Optional[AuthSession]:
        try:
            data = self._read_json(self.auth_path)
            if data is None:
                return None
            return AuthSession.model_validate(data)
        except (StorageCorruptError, ValidationError) as e:
            logger.warning("Ignoring unreadable auth session: %s", e)
            return None

    def clear_session(self) -> bool:
        try:
            self.auth_path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Cleared auth session")
        return True

    # -- file helpers -------------------------------------------------------

    def _ensure_dir(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(mode=DIR_MODE, parents=True)
            # mkdir honours the umask; set the mode explicitly.
            os.chmod(self.directory, DIR_MODE)

    def _read_agents(self) -> dict[str, Any]:
        try:
            data = self._read_json(self.credentials_path)
        except StorageCorruptError as e:
            logger.warning("Treating credential store as empty: %s", e)
            return {}
        if data is None:
            return {}
        agents = data.get("agents") if isinstance(data, dict) else None
        if not isinstance(agents, dict):
            logger.warning("Treating credential store as empty: no agents mapping")
            return {}
        return agents

    def _read_json(self, path: Path) -> Optional[Any]:
        """Read a JSON file.

        Returns:
            Parsed data, or None if the file does not exist

        Raises:
            StorageCorruptError: If the file cannot be read or parsed, or the
                storage directory cannot be created
        """
        try:
            self._ensure_dir()
        except OSError as e:
            raise StorageCorruptError(
                f"Cannot create storage directory {self.directory}: {e}"
            ) from e
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise StorageCorruptError(f"Failed to read {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        self._ensure_dir()
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        # O_CREAT only applies the mode to new files.
        os.chmod(path, FILE_MODE)
