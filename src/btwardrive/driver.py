"""Scan loop driver: one polling cycle, and the loop around it."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from btwardrive.config import WardriveConfig
from btwardrive.display import DisplayBuffer
from btwardrive.exceptions import ScanError
from btwardrive.hardware import Hardware
from btwardrive.models.device import Sighting
from btwardrive.models.reconcile import CycleResult, ReconcileOutcome
from btwardrive.parser import parse_scan_output
from btwardrive.reconciler import ObservationReconciler
from btwardrive.registry import DeviceRegistry

_logger = logging.getLogger(__name__)


def _epoch_seconds() -> int:
    return int(time.time())


class ScanLoopDriver:
    """Orchestrates scan -> parse -> reconcile -> flush/notify.

    Cycles never overlap. A stop request takes effect once the in-flight
    cycle has finished.
    """

    def __init__(
        self,
        hardware: Hardware,
        reconciler: ObservationReconciler,
        display: DisplayBuffer,
        *,
        poll_interval: float = 1.0,
        clock: Callable[[], int] = _epoch_seconds,
    ) -> None:
        self._hardware = hardware
        self._reconciler = reconciler
        self._display = display
        self._poll_interval = poll_interval
        self._clock = clock
        self.cycles = 0

    @classmethod
    def from_config(cls, config: WardriveConfig, *, hardware: Hardware | None = None) -> ScanLoopDriver:
        if hardware is None:
            hardware = Hardware.from_commands(
                config.commands,
                scan_timeout=config.scan_timeout,
                command_timeout=config.command_timeout,
            )
        display = DisplayBuffer(config.display_capacity)
        registry = DeviceRegistry.open(config.store_path, strict=config.strict_registry)
        reconciler = ObservationReconciler(registry, display, debounce_seconds=config.debounce_seconds)
        return cls(hardware, reconciler, display, poll_interval=config.poll_interval)

    @property
    def display(self) -> DisplayBuffer:
        return self._display

    async def startup(self) -> None:
        """Bring up the radio and initialise the display; failures are logged only."""
        await self._hardware.radio.up()
        await self._hardware.display.init()

    async def run_cycle(self) -> CycleResult:
        self.cycles += 1
        try:
            raw = await self._hardware.scanner.scan()
        except ScanError as exc:
            _logger.error("%s", exc)
            return CycleResult(scan_failed=True)

        now = self._clock()
        parsed = parse_scan_output(raw)
        _logger.debug("Cycle %d: %d device(s) in scan", self.cycles, len(parsed))
        cycle = self._reconciler.reconcile_all(
            Sighting(identifier=identifier, name=name, observed_at=now) for identifier, name in parsed.items()
        )
        _logger.debug(
            "Cycle %d: %d new, %d known, %d ignored, %d failed",
            self.cycles,
            len(cycle.by_outcome(ReconcileOutcome.NEW)),
            len(cycle.by_outcome(ReconcileOutcome.KNOWN)),
            len(cycle.by_outcome(ReconcileOutcome.IGNORED)),
            len(cycle.by_outcome(ReconcileOutcome.FAILED)),
        )

        if cycle.notable:
            await self._hardware.display.show(self._display.render())
            await self._hardware.light.pulse()
        return cycle

    async def run_cycle_safely(self) -> CycleResult | None:
        try:
            return await self.run_cycle()
        except Exception:
            _logger.exception("Cycle %d failed; continuing", self.cycles)
            return None

    async def run(self, stop: asyncio.Event) -> None:
        """Poll until *stop* is set: each wait is a tick versus the stop request."""
        while not stop.is_set():
            await self.run_cycle_safely()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=self._poll_interval)
        _logger.info("Quitting after %d cycle(s)", self.cycles)
