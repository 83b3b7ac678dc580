from __future__ import annotations

import json
from collections.abc import Iterator

import pytest

from btwardrive.exceptions import RegistryCorruptError, RegistryError, RegistryWriteError
from btwardrive.models.device import DeviceRecord
from btwardrive.registry import DeviceRegistry, DirectoryStore

MAC = "aa:bb:cc:dd:ee:ff"


class _FailingStore:
    """Store double whose writes always fail."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}

    def read(self, key: str) -> bytes | None:
        return self.data.get(key)

    def write(self, key: str, value: bytes) -> None:
        raise RegistryWriteError("disk full", key=key)

    def exists(self, key: str) -> bool:
        return key in self.data

    def keys(self) -> Iterator[str]:
        return iter(sorted(self.data))


def test_read_missing_device_is_absent(tmp_path) -> None:
    registry = DeviceRegistry.open(tmp_path / "store")
    assert registry.read(MAC) is None
    assert registry.exists(MAC) is False


def test_write_then_read_uses_camel_case_on_disk(tmp_path) -> None:
    registry = DeviceRegistry.open(tmp_path)
    registry.write("AA:BB:CC:DD:EE:FF", DeviceRecord(name="Phone", count=2, last_seen=1_700_000_000))

    on_disk = json.loads((tmp_path / MAC).read_text())
    assert on_disk == {"name": "Phone", "count": 2, "lastSeen": 1_700_000_000}
    assert registry.read(MAC) == DeviceRecord(name="Phone", count=2, last_seen=1_700_000_000)
    assert registry.exists("AA:BB:CC:DD:EE:FF")


def test_write_leaves_no_temp_files(tmp_path) -> None:
    registry = DeviceRegistry.open(tmp_path)
    registry.write(MAC, DeviceRecord(name="a", count=1, last_seen=1))
    registry.write(MAC, DeviceRecord(name="b", count=2, last_seen=2))
    assert [p.name for p in tmp_path.iterdir()] == [MAC]


def test_corrupt_record_is_absent_by_default(tmp_path) -> None:
    (tmp_path / MAC).write_text("{not json")
    registry = DeviceRegistry.open(tmp_path)
    assert registry.read(MAC) is None


def test_corrupt_record_raises_in_strict_mode(tmp_path) -> None:
    (tmp_path / MAC).write_text('{"name": "x"}')
    registry = DeviceRegistry.open(tmp_path, strict=True)
    with pytest.raises(RegistryCorruptError):
        registry.read(MAC)


def test_record_conflict_writes_note_and_is_excluded_from_known(tmp_path) -> None:
    registry = DeviceRegistry.open(tmp_path)
    registry.write(MAC, DeviceRecord(name="Alice", count=1, last_seen=1))

    assert registry.record_conflict(MAC, f"{MAC}, Bob (new) vs. Alice (known)", timestamp=42)

    note = (tmp_path / f"nameclash-{MAC}-42").read_text()
    assert "Alice" in note and "Bob" in note and MAC in note
    assert list(registry.known_identifiers()) == [MAC]


def test_record_conflict_failure_is_not_raised() -> None:
    registry = DeviceRegistry(_FailingStore())
    assert registry.record_conflict(MAC, "detail", timestamp=1) is False


def test_write_failure_raises() -> None:
    registry = DeviceRegistry(_FailingStore())
    with pytest.raises(RegistryWriteError):
        registry.write(MAC, DeviceRecord(name="x", count=1, last_seen=1))


@pytest.mark.parametrize("key", ["", ".hidden", "a/b", "..", "a\\b"])
def test_directory_store_rejects_unsafe_keys(tmp_path, key: str) -> None:
    store = DirectoryStore(tmp_path)
    with pytest.raises(RegistryError):
        store.write(key, b"x")


def test_directory_store_write_into_unwritable_path_raises(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")
    store = DirectoryStore(blocker / "sub")
    with pytest.raises(RegistryWriteError):
        store.write("key", b"x")


def test_directory_store_keys_on_missing_dir(tmp_path) -> None:
    assert list(DirectoryStore(tmp_path / "missing").keys()) == []
