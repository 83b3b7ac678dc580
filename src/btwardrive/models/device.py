"""Device identity, persisted records and per-cycle sightings."""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator

from btwardrive.models._base import WardriveBaseModel


def normalize_identifier(value: str) -> str:
    """Return the canonical (lower-case, stripped) form of a device address."""
    return value.strip().lower()


class DeviceRecord(WardriveBaseModel):
    """Last-known state of a device, as stored in the registry."""

    model_config = ConfigDict(frozen=True)

    name: str
    count: int = Field(default=1, ge=0, description="Number of notable sightings")
    last_seen: int = Field(..., description="Epoch seconds of the latest notable sighting")


class Sighting(WardriveBaseModel):
    """One parsed scan result. Never persisted directly."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    name: str = ""
    observed_at: int

    @field_validator("identifier")
    @classmethod
    def _normalize(cls, value: str) -> str:
        identifier = normalize_identifier(value)
        if not identifier:
            raise ValueError("identifier must be non-empty")
        return identifier

    @property
    def display_name(self) -> str:
        """Advertised name, or the identifier when nothing was advertised."""
        name = self.name.strip()
        return name if name else self.identifier
