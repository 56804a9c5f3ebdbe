"""Persistent key-value store: the only state that survives a context restart."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from collector_ai.models import Checkpoint

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = Path(".collector_state")

ACTIVE_KEY = "active"
CHECKPOINT_KEY = "checkpoint"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")

_MISSING = object()


class StoreCorruptedError(Exception):
    """Raised when a persisted value cannot be decoded. Clear the store to recover."""


class KeyValueStore:
    """Stores JSON-encoded values as one file per key in a state directory."""

    def __init__(self, state_dir: Path | None = None) -> None:
        self._dir = Path(state_dir) if state_dir else DEFAULT_STATE_DIR
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key '{key}'")
        return self._dir / f"{key}.json"

    def has(self, key: str) -> bool:
        return self._path(key).exists()

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StoreCorruptedError(f"Stored value for '{key}' is corrupted: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        """Write atomically: a crash leaves either the old or the new value, never half of one."""
        path = self._path(key)
        payload = json.dumps(value, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Stored %s (%d bytes)", key, len(payload))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self._dir.glob("*.json"))

    def clear(self) -> None:
        """Remove all stored values."""
        for f in self._dir.glob("*.json"):
            f.unlink()
        logger.info("State store cleared")


class CheckpointStore:
    """Checkpoint persistence on top of a KeyValueStore.

    The active flag lives under its own key so a stop request never races
    with the pipeline's checkpoint writes: the pipeline rewrites the
    checkpoint document after every unit of work but only ``start``,
    ``request_stop`` and ``clear`` ever touch the flag.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @classmethod
    def at(cls, state_dir: Path | str | None = None) -> CheckpointStore:
        return cls(KeyValueStore(Path(state_dir) if state_dir else None))

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def is_active(self) -> bool:
        return self._store.get(ACTIVE_KEY, False) is True

    def exists(self) -> bool:
        return self._store.has(CHECKPOINT_KEY)

    def load(self) -> Checkpoint | None:
        raw = self._store.get(CHECKPOINT_KEY, _MISSING)
        if raw is _MISSING:
            return None
        try:
            checkpoint = Checkpoint.model_validate(raw)
        except ValidationError as exc:
            raise StoreCorruptedError(f"Stored checkpoint is invalid: {exc}") from exc
        checkpoint.active = self.is_active()
        return checkpoint

    def save(self, checkpoint: Checkpoint) -> None:
        self._store.set(CHECKPOINT_KEY, checkpoint.model_dump(mode="json"))

    def start(self, checkpoint: Checkpoint) -> None:
        self.save(checkpoint)
        self._store.set(ACTIVE_KEY, True)
        checkpoint.active = True

    def request_stop(self) -> None:
        if self.is_active():
            logger.info("Stop requested")
        self._store.set(ACTIVE_KEY, False)

    def clear(self) -> None:
        self._store.delete(CHECKPOINT_KEY)
        self._store.delete(ACTIVE_KEY)
        logger.info("Session state cleared")
