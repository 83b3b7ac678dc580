"""External collaborators: scan command, radio, display and light.

Each collaborator shells out through :func:`run_command`. The protocols
below are what the driver depends on, so tests can pass simple fakes.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from btwardrive._constants import DEFAULT_COMMAND_TIMEOUT, DEFAULT_SCAN_TIMEOUT
from btwardrive.config import CommandSet
from btwardrive.exceptions import CommandError, ScanError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


async def run_command(argv: Sequence[str], *, timeout: float) -> CommandResult:
    """Run *argv* to completion and capture its output.

    Raises :class:`CommandError` on a non-zero exit, a timeout (the process
    is killed), or when the executable cannot be started.
    """
    argv = tuple(argv)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise CommandError(f"Cannot start {argv[0]}: {exc}", argv=argv) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError as exc:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        raise CommandError(f"{shlex.join(argv)} timed out after {timeout}s", argv=argv) from exc

    result = CommandResult(
        argv=argv,
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if result.returncode != 0:
        raise CommandError(
            f"{shlex.join(argv)} exited with status {result.returncode}",
            argv=argv,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result


class ScanSource(Protocol):
    async def scan(self) -> str:
        ...


class DisplaySink(Protocol):
    async def init(self) -> bool:
        ...

    async def show(self, text: str) -> bool:
        ...


class NotificationLight(Protocol):
    async def pulse(self) -> bool:
        ...


class Radio(Protocol):
    async def up(self) -> bool:
        ...


class CommandScanner:
    """Runs the scan command (``hcitool scan --flush``) and returns its stdout."""

    def __init__(self, argv: Sequence[str], *, timeout: float) -> None:
        self._argv = tuple(argv)
        self._timeout = timeout

    async def scan(self) -> str:
        try:
            result = await run_command(self._argv, timeout=self._timeout)
        except CommandError as exc:
            raise ScanError(
                f"Scan failed: {exc}",
                argv=exc.argv,
                returncode=exc.returncode,
                stderr=exc.stderr,
            ) from exc
        return result.stdout


class CommandDisplay:
    """OLED display driven by an init command and a write command.

    The rendered buffer is passed as the last argument of the write command.
    """

    def __init__(self, init_argv: Sequence[str], write_argv: Sequence[str], *, timeout: float) -> None:
        self._init_argv = tuple(init_argv)
        self._write_argv = tuple(write_argv)
        self._timeout = timeout

    async def init(self) -> bool:
        try:
            await run_command(self._init_argv, timeout=self._timeout)
        except CommandError as exc:
            _logger.error("Display init failed: %s", exc)
            return False
        return True

    async def show(self, text: str) -> bool:
        argv = (*self._write_argv, text)
        _logger.info("==> Executing: %s", shlex.join(argv))
        try:
            result = await run_command(argv, timeout=self._timeout)
        except CommandError as exc:
            _logger.error("Display write failed: %s", exc)
            return False
        _logger.info("==> Output: %s", result.stdout.strip())
        return True


class CommandLight:
    """Notification LED: switch on, then off again."""

    def __init__(self, on_argv: Sequence[str], off_argv: Sequence[str], *, timeout: float) -> None:
        self._on_argv = tuple(on_argv)
        self._off_argv = tuple(off_argv)
        self._timeout = timeout

    async def pulse(self) -> bool:
        ok = True
        for argv in (self._on_argv, self._off_argv):
            # Always attempt "off", even if "on" failed.
            try:
                await run_command(argv, timeout=self._timeout)
            except CommandError as exc:
                _logger.error("Light command failed: %s", exc)
                ok = False
        return ok


class CommandRadio:
    """Bluetooth interface bring-up (``hciconfig hci0 up``). Non-fatal."""

    def __init__(self, argv: Sequence[str], *, timeout: float) -> None:
        self._argv = tuple(argv)
        self._timeout = timeout

    async def up(self) -> bool:
        try:
            await run_command(self._argv, timeout=self._timeout)
        except CommandError as exc:
            _logger.error("Radio bring-up failed: %s", exc)
            return False
        return True


@dataclass(frozen=True)
class Hardware:
    """The set of collaborators the driver talks to."""

    scanner: ScanSource
    display: DisplaySink
    light: NotificationLight
    radio: Radio

    @classmethod
    def from_commands(
        cls,
        commands: CommandSet,
        *,
        scan_timeout: float = DEFAULT_SCAN_TIMEOUT,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> Hardware:
        return cls(
            scanner=CommandScanner(commands.scan, timeout=scan_timeout),
            display=CommandDisplay(commands.display_init, commands.display, timeout=command_timeout),
            light=CommandLight(commands.light_on, commands.light_off, timeout=command_timeout),
            radio=CommandRadio(commands.radio_up, timeout=command_timeout),
        )
