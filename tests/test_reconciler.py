from __future__ import annotations

from collections.abc import Iterator

from btwardrive.display import DisplayBuffer
from btwardrive.exceptions import RegistryWriteError
from btwardrive.models.device import DeviceRecord, Sighting
from btwardrive.models.reconcile import ReconcileOutcome
from btwardrive.reconciler import ObservationReconciler
from btwardrive.registry import DeviceRegistry

NOW = 1_760_000_000
HOUR = 3600
MAC = "aa:bb:cc:dd:ee:ff"


class _MemoryStore:
    def __init__(self, fail_writes_for: set[str] | None = None) -> None:
        self.data: dict[str, bytes] = {}
        self._fail = fail_writes_for or set()

    def read(self, key: str) -> bytes | None:
        return self.data.get(key)

    def write(self, key: str, value: bytes) -> None:
        if key in self._fail:
            raise RegistryWriteError("read-only", key=key)
        self.data[key] = value

    def exists(self, key: str) -> bool:
        return key in self.data

    def keys(self) -> Iterator[str]:
        return iter(sorted(self.data))


def _setup(
    store: _MemoryStore | None = None, *, strict: bool = False
) -> tuple[ObservationReconciler, DeviceRegistry, DisplayBuffer]:
    registry = DeviceRegistry(store or _MemoryStore(), strict=strict)
    display = DisplayBuffer(8)
    return ObservationReconciler(registry, display), registry, display


def _sighting(name: str = "Phone", identifier: str = MAC, at: int = NOW) -> Sighting:
    return Sighting(identifier=identifier, name=name, observed_at=at)


def test_new_device_is_persisted_with_count_one_and_displayed() -> None:
    reconciler, registry, display = _setup()

    result = reconciler.reconcile(_sighting("Phone"))

    assert result.outcome == ReconcileOutcome.NEW
    assert result.notable
    assert registry.read(MAC) == DeviceRecord(name="Phone", count=1, last_seen=NOW)
    assert display.lines[0] == "new device: Phone"


def test_new_device_without_name_uses_identifier() -> None:
    reconciler, registry, display = _setup()

    reconciler.reconcile(_sighting(""))

    record = registry.read(MAC)
    assert record is not None
    assert record.name == MAC
    assert display.lines[0] == f"new device: {MAC}"


def test_sighting_inside_debounce_window_is_ignored() -> None:
    reconciler, registry, display = _setup()
    stored = DeviceRecord(name="Phone", count=3, last_seen=NOW - HOUR)
    registry.write(MAC, stored)

    result = reconciler.reconcile(_sighting("Phone"))

    assert result.outcome == ReconcileOutcome.IGNORED
    assert not result.notable
    assert registry.read(MAC) == stored
    assert len(display) == 0


def test_reobservation_past_window_increments_count() -> None:
    reconciler, registry, display = _setup()
    registry.write(MAC, DeviceRecord(name="Phone", count=3, last_seen=NOW - 6 * HOUR))

    result = reconciler.reconcile(_sighting("Phone"))

    assert result.outcome == ReconcileOutcome.KNOWN
    assert result.notable
    assert not result.conflict
    assert registry.read(MAC) == DeviceRecord(name="Phone", count=4, last_seen=NOW)
    assert display.lines[0] == "4x known device: Phone"


def test_exactly_at_window_boundary_is_a_reobservation() -> None:
    reconciler, registry, _ = _setup()
    registry.write(MAC, DeviceRecord(name="Phone", count=1, last_seen=NOW - 5 * HOUR))

    assert reconciler.reconcile(_sighting("Phone")).outcome == ReconcileOutcome.KNOWN


def test_name_conflict_is_recorded_and_new_name_wins() -> None:
    store = _MemoryStore()
    reconciler, registry, display = _setup(store)
    registry.write(MAC, DeviceRecord(name="Alice", count=1, last_seen=NOW - 5 * HOUR))

    result = reconciler.reconcile(_sighting("Bob"))

    assert result.conflict
    assert result.outcome == ReconcileOutcome.KNOWN
    notes = [v.decode() for k, v in store.data.items() if k.startswith("nameclash")]
    assert len(notes) == 1
    assert "Alice" in notes[0] and "Bob" in notes[0] and MAC in notes[0]
    record = registry.read(MAC)
    assert record is not None
    assert record.name == "Bob"
    assert record.count == 2
    assert display.lines[0] == "2x known device: Bob"


def test_write_failure_is_isolated_per_device() -> None:
    other = "11:22:33:44:55:66"
    reconciler, registry, display = _setup(_MemoryStore(fail_writes_for={MAC}))

    cycle = reconciler.reconcile_all([_sighting("Broken"), _sighting("Fine", identifier=other)])

    outcomes = {r.identifier: r.outcome for r in cycle.results}
    assert outcomes == {MAC: ReconcileOutcome.FAILED, other: ReconcileOutcome.NEW}
    assert cycle.notable
    assert registry.read(MAC) is None
    assert display.lines == ("new device: Fine",)


def test_same_name_on_different_identifiers_is_independent() -> None:
    reconciler, registry, _ = _setup()
    other = "11:22:33:44:55:66"

    reconciler.reconcile_all([_sighting("Phone"), _sighting("Phone", identifier=other)])

    assert registry.read(MAC) == DeviceRecord(name="Phone", count=1, last_seen=NOW)
    assert registry.read(other) == DeviceRecord(name="Phone", count=1, last_seen=NOW)


def test_cycle_is_not_notable_when_everything_is_ignored() -> None:
    reconciler, registry, _ = _setup()
    registry.write(MAC, DeviceRecord(name="Phone", count=1, last_seen=NOW - 60))

    cycle = reconciler.reconcile_all([_sighting("Phone")])

    assert not cycle.notable
    assert cycle.by_outcome(ReconcileOutcome.IGNORED)


def test_empty_cycle_changes_nothing() -> None:
    store = _MemoryStore()
    reconciler, _, display = _setup(store)

    cycle = reconciler.reconcile_all([])

    assert not cycle.notable
    assert store.data == {}
    assert len(display) == 0


def test_failed_conflict_note_does_not_block_reobservation() -> None:
    store = _MemoryStore(fail_writes_for={f"nameclash-{MAC}-{NOW}"})
    reconciler, registry, display = _setup(store)
    registry.write(MAC, DeviceRecord(name="Alice", count=2, last_seen=NOW - 6 * HOUR))

    result = reconciler.reconcile(_sighting("Bob"))

    assert result.outcome == ReconcileOutcome.KNOWN
    assert result.conflict
    assert result.notable
    assert not [k for k in store.data if k.startswith("nameclash")]
    assert registry.read(MAC) == DeviceRecord(name="Bob", count=3, last_seen=NOW)
    assert display.lines == ("3x known device: Bob",)


def test_unreadable_record_fails_only_that_device_in_strict_mode() -> None:
    other = "11:22:33:44:55:66"
    store = _MemoryStore()
    store.data[MAC] = b"{bad"
    reconciler, _, display = _setup(store, strict=True)

    cycle = reconciler.reconcile_all([_sighting("Phone"), _sighting("Watch", identifier=other)])

    assert [r.outcome for r in cycle.results] == [ReconcileOutcome.FAILED, ReconcileOutcome.NEW]
    assert cycle.results[0].error
    assert cycle.notable
    assert store.data[MAC] == b"{bad"
    assert display.lines == ("new device: Watch",)


def test_corrupt_record_is_reregistered_as_new_by_default() -> None:
    store = _MemoryStore()
    store.data[MAC] = b"{bad"
    reconciler, registry, display = _setup(store)

    result = reconciler.reconcile(_sighting("Phone"))

    assert result.outcome == ReconcileOutcome.NEW
    assert registry.read(MAC) == DeviceRecord(name="Phone", count=1, last_seen=NOW)
    assert display.lines == ("new device: Phone",)
