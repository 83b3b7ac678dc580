"""Rolling, fixed-capacity buffer of status lines."""

from __future__ import annotations

from collections import deque

from btwardrive._constants import DEFAULT_DISPLAY_CAPACITY


class DisplayBuffer:
    """Newest-first lines; pushing at capacity evicts the oldest line."""

    def __init__(self, capacity: int = DEFAULT_DISPLAY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def push(self, line: str) -> None:
        # appendleft on a bounded deque drops from the right end
        self._lines.appendleft(line)

    def render(self) -> str:
        return "\n".join(self._lines)
