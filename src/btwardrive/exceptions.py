"""Custom exception hierarchy for btwardrive."""

from __future__ import annotations

from collections.abc import Sequence


class WardriveError(Exception):
    """Base exception for all btwardrive errors."""


class WardriveConfigError(WardriveError):
    """Invalid or missing configuration."""


class CommandError(WardriveError):
    """External command failed (non-zero exit, timeout, or not executable)."""

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ScanError(CommandError):
    """The wireless scan command failed."""


class RegistryError(WardriveError):
    """Device registry / backing store failure."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class RegistryReadError(RegistryError):
    """A stored value exists but could not be read."""


class RegistryWriteError(RegistryError):
    """A value could not be persisted.

    The in-memory decision and the persisted state diverge for that key,
    so the update for that device must be treated as failed.
    """


class RegistryCorruptError(RegistryError):
    """A stored device record could not be deserialized.

    Only raised by registries opened with ``strict=True``; the default
    registry logs the corruption and reports the device as absent.
    """
