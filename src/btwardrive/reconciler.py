"""Observation reconciler.

This is the only component allowed to write device records. For each
sighting it consults the registry, applies the debounce and conflict
policy, persists, and pushes a display line for notable events.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from btwardrive._constants import DEFAULT_DEBOUNCE_SECONDS
from btwardrive.display import DisplayBuffer
from btwardrive.exceptions import RegistryError
from btwardrive.models.device import DeviceRecord, Sighting
from btwardrive.models.reconcile import CycleResult, ReconcileOutcome, ReconcileResult
from btwardrive.policy import (
    conflict_detail,
    first_record,
    has_name_conflict,
    known_device_line,
    new_device_line,
    next_record,
    within_debounce,
)
from btwardrive.registry import DeviceRegistry

_logger = logging.getLogger(__name__)


class ObservationReconciler:
    """Merge sightings into the registry and the display buffer."""

    def __init__(
        self,
        registry: DeviceRegistry,
        display: DisplayBuffer,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._registry = registry
        self._display = display
        self._debounce_seconds = debounce_seconds

    def reconcile(self, sighting: Sighting) -> ReconcileResult:
        identifier = sighting.identifier
        try:
            known = self._registry.read(identifier)
        except RegistryError as exc:
            _logger.error("Cannot read record for %s: %s", identifier, exc)
            return ReconcileResult(identifier, ReconcileOutcome.FAILED, error=str(exc))

        if known is None:
            record = first_record(sighting)
            _logger.info("New device %s: %s", record.name, identifier)
            return self._commit(identifier, record, ReconcileOutcome.NEW, new_device_line(record))

        if within_debounce(known, sighting.observed_at, self._debounce_seconds):
            _logger.debug("Ignoring %s, last seen at %s", identifier, known.last_seen)
            return ReconcileResult(identifier, ReconcileOutcome.IGNORED, record=known)

        conflict = has_name_conflict(known, sighting)
        if conflict:
            _logger.warning(
                "Same MAC but different name: %s (new) vs. %s (known)",
                sighting.display_name,
                known.name,
            )
            self._registry.record_conflict(
                identifier,
                conflict_detail(identifier, sighting.display_name, known.name),
                timestamp=sighting.observed_at,
            )

        record = next_record(known, sighting)
        _logger.info("%sx Known device %s: %s", record.count, record.name, identifier)
        return self._commit(
            identifier,
            record,
            ReconcileOutcome.KNOWN,
            known_device_line(record),
            conflict=conflict,
        )

    def _commit(
        self,
        identifier: str,
        record: DeviceRecord,
        outcome: ReconcileOutcome,
        line: str,
        *,
        conflict: bool = False,
    ) -> ReconcileResult:
        # Persist first: a failed write must not leave a display line behind.
        try:
            self._registry.write(identifier, record)
        except RegistryError as exc:
            _logger.error("Persisting %s failed, update dropped: %s", identifier, exc)
            return ReconcileResult(
                identifier,
                ReconcileOutcome.FAILED,
                conflict=conflict,
                error=str(exc),
            )
        self._display.push(line)
        return ReconcileResult(identifier, outcome, record=record, conflict=conflict)

    def reconcile_all(self, sightings: Iterable[Sighting]) -> CycleResult:
        """Reconcile every sighting; one failure never stops the others."""
        cycle = CycleResult()
        for sighting in sightings:
            cycle.results.append(self.reconcile(sighting))
        return cycle
