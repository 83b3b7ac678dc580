"""Outcomes of reconciling sightings against the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from btwardrive.models.device import DeviceRecord


class ReconcileOutcome(StrEnum):
    NEW = "new"
    KNOWN = "known"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass(frozen=True)
class ReconcileResult:
    """Result of reconciling one sighting."""

    identifier: str
    outcome: ReconcileOutcome
    record: DeviceRecord | None = None
    conflict: bool = False
    error: str | None = None

    @property
    def notable(self) -> bool:
        return self.outcome in (ReconcileOutcome.NEW, ReconcileOutcome.KNOWN)


@dataclass
class CycleResult:
    """Aggregate of one polling cycle."""

    results: list[ReconcileResult] = field(default_factory=list)
    scan_failed: bool = False

    @property
    def notable(self) -> bool:
        """True if any sighting in the cycle was notable."""
        return any(result.notable for result in self.results)

    def by_outcome(self, outcome: ReconcileOutcome) -> list[ReconcileResult]:
        return [result for result in self.results if result.outcome == outcome]
