"""Durable device registry backed by a flat directory of files.

``DirectoryStore`` keeps one file per key directly under its base path.
``DeviceRegistry`` layers the device record format and the conflict-note
convention on top of any :class:`KeyValueStore`.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from btwardrive._constants import CONFLICT_KEY_PREFIX
from btwardrive.exceptions import (
    RegistryCorruptError,
    RegistryError,
    RegistryReadError,
    RegistryWriteError,
)
from btwardrive.models.device import DeviceRecord, normalize_identifier

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Structural byte store interface used by :class:`DeviceRegistry`.

    Keeping this a protocol lets tests pass in-memory or failing doubles.
    """

    def read(self, key: str) -> bytes | None:
        ...

    def write(self, key: str, value: bytes) -> None:
        ...

    def exists(self, key: str) -> bool:
        ...

    def keys(self) -> Iterator[str]:
        ...


def _validate_key(key: str) -> str:
    if not key or key.startswith(".") or "/" in key or "\\" in key or "\0" in key:
        raise RegistryError(f"Invalid store key: {key!r}", key=key)
    return key


class DirectoryStore:
    """Key-value store with one file per key in a single directory.

    Writes go to a temporary file in the same directory and are renamed
    into place, so a reader sees either the old or the new value.
    """

    def __init__(self, base_path: str | os.PathLike[str]) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def _path(self, key: str) -> Path:
        return self._base / _validate_key(key)

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise RegistryReadError(f"Cannot read {path}: {exc}", key=key) from exc

    def write(self, key: str, value: bytes) -> None:
        path = self._path(key)
        try:
            self._base.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._base, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise RegistryWriteError(f"Cannot write {path}: {exc}", key=key) from exc

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def keys(self) -> Iterator[str]:
        if not self._base.is_dir():
            return
        for entry in sorted(self._base.iterdir()):
            if entry.is_file() and not entry.name.startswith("."):
                yield entry.name


class DeviceRegistry:
    """Last-known :class:`DeviceRecord` per device identifier.

    Corrupt records are logged and reported as absent unless the registry
    is opened with ``strict=True``, in which case
    :class:`RegistryCorruptError` is raised.
    """

    def __init__(self, store: KeyValueStore, *, strict: bool = False) -> None:
        self._store = store
        self._strict = strict

    @classmethod
    def open(cls, path: str | os.PathLike[str], *, strict: bool = False) -> DeviceRegistry:
        return cls(DirectoryStore(path), strict=strict)

    def read(self, identifier: str) -> DeviceRecord | None:
        key = normalize_identifier(identifier)
        raw = self._store.read(key)
        if raw is None:
            return None
        try:
            return DeviceRecord.model_validate_json(raw)
        except ValidationError as exc:
            if self._strict:
                raise RegistryCorruptError(f"Corrupt record for {key}: {exc}", key=key) from exc
            _logger.warning("Ignoring corrupt record for %s: %s", key, exc)
            return None

    def exists(self, identifier: str) -> bool:
        return self._store.exists(normalize_identifier(identifier))

    def write(self, identifier: str, record: DeviceRecord) -> None:
        """Persist *record*; raises :class:`RegistryWriteError` on failure."""
        key = normalize_identifier(identifier)
        self._store.write(key, record.model_dump_json(by_alias=True).encode("utf-8"))
        _logger.debug("Persisted %s: %s", key, record)

    def record_conflict(self, identifier: str, detail: str, *, timestamp: int) -> bool:
        """Best-effort note about a name conflict. Never raises."""
        key = f"{CONFLICT_KEY_PREFIX}-{normalize_identifier(identifier)}-{timestamp}"
        try:
            self._store.write(key, detail.encode("utf-8"))
        except RegistryError as exc:
            _logger.error("Could not record conflict for %s: %s", identifier, exc)
            return False
        return True

    def known_identifiers(self) -> Iterator[str]:
        """Identifiers of stored device records (conflict notes excluded)."""
        for key in self._store.keys():
            if not key.startswith(CONFLICT_KEY_PREFIX):
                yield key
