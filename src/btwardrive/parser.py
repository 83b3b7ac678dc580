"""Line-oriented parser for wireless scan output.

``hcitool scan`` prints one device per line::

    Scanning ...
    	AA:BB:CC:DD:EE:FF	Some Phone
    	11:22:33:44:55:66	n/a

Any line holding a MAC-like token (optionally preceded by non-hex
characters and optionally followed by a name) yields one match; every
other line is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import NamedTuple

from btwardrive.models.device import normalize_identifier

_LINE_RE = re.compile(
    r"^[^0-9a-f]*(?P<address>(?:[0-9a-f]{2}:){5}[0-9a-f]{2})\s*(?P<name>\S.*)?$",
    re.IGNORECASE,
)


class ScanMatch(NamedTuple):
    identifier: str
    name: str | None

    @property
    def display_name(self) -> str:
        return self.name if self.name else self.identifier


def match_line(line: str) -> ScanMatch | None:
    """Match a single scan line, or return ``None`` when it holds no address."""
    match = _LINE_RE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    name = match.group("name")
    if name is not None:
        name = name.strip() or None
    return ScanMatch(identifier=normalize_identifier(match.group("address")), name=name)


def iter_scan_matches(text: str) -> Iterator[ScanMatch]:
    """Yield every matching line of *text* in input order."""
    for line in text.splitlines():
        parsed = match_line(line)
        if parsed is not None:
            yield parsed


def parse_scan_output(text: str) -> dict[str, str]:
    """Map device identifier -> observed name for one scan result.

    Repeated identifiers keep the last match. A line without a name maps
    the identifier to itself. Never raises on malformed input.
    """
    if not text:
        return {}
    return {match.identifier: match.display_name for match in iter_scan_matches(text)}
