"""Validation token (ETag) store for cached tarballs."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


def _token_key(name: str, version: str) -> str:
    return f"{name}-{version}"


class TokenStore:
    """Per-package ETags kept in memory and mirrored to a JSON file.

    With ``persist_eagerly`` every ``put_token`` rewrites the file. Without it
    updates stay in memory until ``persist`` is called.
    """

    def __init__(self, path: Path | None, *, persist_eagerly: bool = True) -> None:
        self.path = path
        self.persist_eagerly = persist_eagerly
        self._lock = threading.Lock()
        self._tokens: dict[str, str] = self._load()

    def get_token(self, name: str, version: str) -> str | None:
        with self._lock:
            return self._tokens.get(_token_key(name, version))

    def put_token(self, name: str, version: str, token: str | None) -> None:
        with self._lock:
            key = _token_key(name, version)
            if token:
                self._tokens[key] = token
            else:
                self._tokens.pop(key, None)
            if self.persist_eagerly:
                self._write_locked()

    def persist(self) -> None:
        with self._lock:
            self._write_locked()

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("ignoring unreadable token store %s", self.path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items() if value}

    def _write_locked(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        temp_path.write_text(json.dumps(self._tokens, sort_keys=True, indent=2), encoding="utf-8")
        os.replace(temp_path, self.path)
