"""Key/value stores backing the session token, PKCE state and cart.

Every store holds string values under string keys and exposes the same
three operations, so the auth flow and the shop controller never touch a
concrete storage medium:

- MemoryStore: lives as long as the process (one browsing session).
- JsonFileStore: a JSON file in the data directory, survives restarts.
- KeyringStore: the system keychain, for credentials that should survive
  restarts.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

__all__ = ["SessionStore", "MemoryStore", "JsonFileStore", "KeyringStore"]

logger = logging.getLogger(__name__)

SERVICE_NAME = "VOID MARKET"


@runtime_checkable
class SessionStore(Protocol):
    """Interface for a string-valued key/value cell store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Survives page navigation, not a restart."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Durable store kept as a single JSON object on disk."""

    def __init__(self, path: Path):
        """Initialize the file store.

        Args:
            path: JSON file to read and write (created on first write)
        """
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        """Write through a temp file renamed over the target."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def clear(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class KeyringStore:
    """Store backed by the system keychain.

    Keychain failures are logged and reported as a missing value, so a
    broken keychain degrades to "logged out" rather than crashing.
    """

    def __init__(self, service_name: str = SERVICE_NAME):
        """Initialize keyring store.

        Args:
            service_name: Service name for keychain entries
        """
        self.service_name = service_name

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError as e:
            logger.error(f"Failed to load {key} from keychain: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        try:
            keyring.set_password(self.service_name, key, value)
        except KeyringError as e:
            logger.error(f"Failed to store {key} in keychain: {e}")

    def clear(self, key: str) -> None:
        try:
            keyring.delete_password(self.service_name, key)
        except PasswordDeleteError:
            # Nothing stored
            pass
        except KeyringError as e:
            logger.error(f"Failed to delete {key} from keychain: {e}")
