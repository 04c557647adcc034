# fleettrack/core/storage.py
"""
Persistent key/value storage for the session token and identity.

Values are always strings. Three backends:
  - MemoryStorage: tests and throwaway sessions
  - JsonFileStorage: desktop runs without Flet client storage
  - ClientStorage: Flet `page.client_storage` (browser localStorage / shared prefs)
"""
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

TOKEN_KEY = "jwt_token"
USER_KEY = "user"


class Storage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as ex:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, ex)
            return {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        val = self._read().get(key)
        return val if isinstance(val, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class ClientStorage:
    """Adapter over Flet's page.client_storage; keys are namespaced per app."""

    def __init__(self, client_storage, prefix: str = "fleettrack."):
        self._cs = client_storage
        self.prefix = prefix

    def get(self, key: str) -> Optional[str]:
        val = self._cs.get(self.prefix + key)
        return val if isinstance(val, str) else None

    def set(self, key: str, value: str) -> None:
        self._cs.set(self.prefix + key, value)

    def remove(self, key: str) -> None:
        if self._cs.contains_key(self.prefix + key):
            self._cs.remove(self.prefix + key)
