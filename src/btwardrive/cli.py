"""Command line entry point for the btwardrive daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from typing import Any

from btwardrive.config import WardriveConfig
from btwardrive.driver import ScanLoopDriver
from btwardrive.exceptions import RegistryError, WardriveConfigError
from btwardrive.registry import DeviceRegistry

_logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="btwardrive",
        description="Scan for nearby Bluetooth devices and report new or returning ones.",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Registry directory (default: $BTWARDRIVE_STORE_PATH or ./diskv-data).",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds to wait between scan cycles.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan cycle and exit.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print known devices from the registry and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> WardriveConfig:
    overrides: dict[str, Any] = {}
    if args.store is not None:
        overrides["store_path"] = args.store
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    return WardriveConfig.from_env(**overrides)


def _print_known_devices(config: WardriveConfig) -> int:
    registry = DeviceRegistry.open(config.store_path, strict=config.strict_registry)
    for identifier in registry.known_identifiers():
        try:
            record = registry.read(identifier)
        except RegistryError as exc:
            print(f"{identifier}  <unreadable: {exc}>")
            continue
        if record is None:
            continue
        print(f"{identifier}  {record.count}x  last_seen={record.last_seen}  {record.name}")
    return 0


async def _run(config: WardriveConfig, *, once: bool) -> None:
    driver = ScanLoopDriver.from_config(config)
    await driver.startup()
    if once:
        await driver.run_cycle_safely()
        return

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _request_stop(signum: signal.Signals) -> None:
        _logger.info("Got signal: %s", signum.name)
        stop.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, _request_stop, signum)
    try:
        await driver.run(stop)
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except WardriveConfigError as exc:
        print(f"btwardrive: configuration error: {exc}", file=sys.stderr)
        return 2

    if args.list:
        return _print_known_devices(config)

    asyncio.run(_run(config, once=args.once))
    return 0
