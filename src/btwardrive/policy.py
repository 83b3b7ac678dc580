"""Deterministic sighting policy.

This module contains *no* I/O. The reconciler owns persistence and the
display; these helpers only decide.
"""

from __future__ import annotations

from btwardrive.models.device import DeviceRecord, Sighting


def within_debounce(record: DeviceRecord, now: int, window_seconds: float) -> bool:
    """True while a known device is still inside its quiet window."""
    return (now - record.last_seen) < window_seconds


def has_name_conflict(record: DeviceRecord, sighting: Sighting) -> bool:
    """Same identifier advertising a different name than the stored one."""
    return record.name != sighting.display_name


def first_record(sighting: Sighting) -> DeviceRecord:
    return DeviceRecord(name=sighting.display_name, count=1, last_seen=sighting.observed_at)


def next_record(record: DeviceRecord, sighting: Sighting) -> DeviceRecord:
    """Record after a notable re-observation; the newly observed name wins."""
    return DeviceRecord(
        name=sighting.display_name,
        count=record.count + 1,
        last_seen=sighting.observed_at,
    )


def conflict_detail(identifier: str, observed_name: str, known_name: str) -> str:
    return f"{identifier}, {observed_name} (new) vs. {known_name} (known)"


def new_device_line(record: DeviceRecord) -> str:
    return f"new device: {record.name}"


def known_device_line(record: DeviceRecord) -> str:
    return f"{record.count}x known device: {record.name}"
