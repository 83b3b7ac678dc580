"""Data models for btwardrive."""

from btwardrive.models.device import DeviceRecord, Sighting, normalize_identifier
from btwardrive.models.reconcile import CycleResult, ReconcileOutcome, ReconcileResult

__all__ = [
    "CycleResult",
    "DeviceRecord",
    "ReconcileOutcome",
    "ReconcileResult",
    "Sighting",
    "normalize_identifier",
]
