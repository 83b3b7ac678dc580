"""btwardrive - Bluetooth presence-detection daemon for small embedded devices."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("btwardrive")
except PackageNotFoundError:
    __version__ = "0+local"
from btwardrive.config import CommandSet, WardriveConfig
from btwardrive.display import DisplayBuffer
from btwardrive.driver import ScanLoopDriver
from btwardrive.exceptions import (
    CommandError,
    RegistryCorruptError,
    RegistryError,
    RegistryReadError,
    RegistryWriteError,
    ScanError,
    WardriveConfigError,
    WardriveError,
)
from btwardrive.models import (
    CycleResult,
    DeviceRecord,
    ReconcileOutcome,
    ReconcileResult,
    Sighting,
    normalize_identifier,
)
from btwardrive.parser import ScanMatch, match_line, parse_scan_output
from btwardrive.reconciler import ObservationReconciler
from btwardrive.registry import DeviceRegistry, DirectoryStore

__all__ = [
    "__version__",
    "CommandError",
    "CommandSet",
    "CycleResult",
    "DeviceRecord",
    "DeviceRegistry",
    "DirectoryStore",
    "DisplayBuffer",
    "ObservationReconciler",
    "ReconcileOutcome",
    "ReconcileResult",
    "RegistryCorruptError",
    "RegistryError",
    "RegistryReadError",
    "RegistryWriteError",
    "ScanError",
    "ScanLoopDriver",
    "ScanMatch",
    "Sighting",
    "WardriveConfig",
    "WardriveConfigError",
    "WardriveError",
    "match_line",
    "normalize_identifier",
    "parse_scan_output",
]
