"""Internal constants shared across the package."""

DEFAULT_STORE_PATH = "diskv-data"

#: Re-observations inside this window are ignored (5 hours).
DEFAULT_DEBOUNCE_SECONDS: float = 5 * 3600
DEFAULT_DISPLAY_CAPACITY = 8
DEFAULT_POLL_INTERVAL: float = 1.0
DEFAULT_SCAN_TIMEOUT: float = 30.0
DEFAULT_COMMAND_TIMEOUT: float = 10.0

#: Key prefix for name-conflict notes in the registry store.
CONFLICT_KEY_PREFIX = "nameclash"

# ------------------------------------------------------------------
# External commands (Onion Omega + OLED expansion defaults)
# ------------------------------------------------------------------

SCAN_COMMAND: tuple[str, ...] = ("hcitool", "scan", "--flush")
RADIO_COMMAND: tuple[str, ...] = ("hciconfig", "hci0", "up")
DISPLAY_INIT_COMMAND: tuple[str, ...] = ("oled-exp", "-i")
DISPLAY_COMMAND: tuple[str, ...] = ("/bin/sh", "write-oled.sh")
LIGHT_ON_COMMAND: tuple[str, ...] = ("expled", "0x0000ff")
LIGHT_OFF_COMMAND: tuple[str, ...] = ("expled", "0x000000")
