"""Credential storage: one bearer token in a durable key-value file.

``LocalStorage`` is a tiny JSON-file key-value store, the console's
equivalent of a browser profile's local storage.  ``CredentialStore`` owns
the single ``rag_token`` entry in it.

Schema of the storage file::

    {"rag_token": "<opaque bearer token>"}
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

TOKEN_KEY = "rag_token"


class LocalStorage:
    """JSON-file-backed string key-value store.

    With ``path=None`` the store lives in memory only (used by tests and
    throwaway sessions).  Reads go to disk every time so a sign-out in one
    process is seen by the next call in another.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self._lock = threading.RLock()
        self._path: Optional[Path] = Path(path) if path else None
        self._memory: Dict[str, str] = {}

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
            return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    # ── Internal helpers ────────────────────────────────────────

    def _load(self) -> Dict[str, str]:
        if self._path is None:
            return dict(self._memory)
        if not self._path.exists() or self._path.stat().st_size == 0:
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable storage file %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        """Atomically save data; the file is readable by its owner only."""
        if self._path is None:
            self._memory = dict(data)
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self._path)


class CredentialStore:
    """Holds the single active bearer credential.

    No validation and no expiry tracking: an expired token looks exactly
    like a valid one until the backend rejects it.
    """

    def __init__(self, storage: Optional[LocalStorage] = None) -> None:
        self._storage = storage if storage is not None else LocalStorage()

    @classmethod
    def at(cls, path: Union[str, Path]) -> "CredentialStore":
        return cls(LocalStorage(path))

    def get(self) -> Optional[str]:
        return self._storage.get_item(TOKEN_KEY)

    def set(self, token: Optional[str]) -> None:
        """Store ``token``; ``None`` or an empty string signs out."""
        if token:
            self._storage.set_item(TOKEN_KEY, token)
            logger.debug("Credential stored")
        else:
            self._storage.remove_item(TOKEN_KEY)
            logger.debug("Credential cleared")

    def clear(self) -> None:
        self.set(None)
