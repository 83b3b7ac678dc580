"""Daemon configuration for btwardrive."""

from __future__ import annotations

import dataclasses
import os
import shlex
from typing import Any

from btwardrive import _constants
from btwardrive.exceptions import WardriveConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _split_command(value: str, env_key: str) -> tuple[str, ...]:
    try:
        argv = tuple(shlex.split(value))
    except ValueError as exc:
        raise WardriveConfigError(f"{env_key}: cannot parse command {value!r}: {exc}") from exc
    return argv


@dataclasses.dataclass(frozen=True)
class CommandSet:
    """External commands used by the hardware collaborators.

    Every command is an argv tuple; ``display`` gets the rendered buffer
    appended as its final argument.
    """

    scan: tuple[str, ...] = _constants.SCAN_COMMAND
    radio_up: tuple[str, ...] = _constants.RADIO_COMMAND
    display_init: tuple[str, ...] = _constants.DISPLAY_INIT_COMMAND
    display: tuple[str, ...] = _constants.DISPLAY_COMMAND
    light_on: tuple[str, ...] = _constants.LIGHT_ON_COMMAND
    light_off: tuple[str, ...] = _constants.LIGHT_OFF_COMMAND


@dataclasses.dataclass(frozen=True)
class WardriveConfig:
    """Daemon configuration.

    Parameters
    ----------
    store_path : str
        Directory backing the device registry. Created on first write.
    poll_interval : float
        Seconds to wait between the end of one cycle and the start of the next.
    debounce_seconds : float
        Re-observations of a known device inside this window are ignored.
        Defaults to 5 hours.
    display_capacity : int
        Number of lines kept in the rolling display buffer.
    scan_timeout : float
        Upper bound in seconds for one scan command.
    command_timeout : float
        Upper bound in seconds for radio, display and light commands.
    strict_registry : bool
        Raise on corrupt registry records instead of treating them as absent.
    commands : CommandSet
        External command lines.
    """

    store_path: str = _constants.DEFAULT_STORE_PATH
    poll_interval: float = _constants.DEFAULT_POLL_INTERVAL
    debounce_seconds: float = _constants.DEFAULT_DEBOUNCE_SECONDS
    display_capacity: int = _constants.DEFAULT_DISPLAY_CAPACITY
    scan_timeout: float = _constants.DEFAULT_SCAN_TIMEOUT
    command_timeout: float = _constants.DEFAULT_COMMAND_TIMEOUT
    strict_registry: bool = False
    commands: CommandSet = dataclasses.field(default_factory=CommandSet)

    def __post_init__(self) -> None:
        if not self.store_path:
            raise WardriveConfigError("store_path must be non-empty")
        if self.poll_interval < 0:
            raise WardriveConfigError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if self.debounce_seconds < 0:
            raise WardriveConfigError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")
        if self.display_capacity < 1:
            raise WardriveConfigError(f"display_capacity must be >= 1, got {self.display_capacity}")
        if self.scan_timeout <= 0 or self.command_timeout <= 0:
            raise WardriveConfigError("scan_timeout and command_timeout must be > 0")
        for field in dataclasses.fields(self.commands):
            if not getattr(self.commands, field.name):
                raise WardriveConfigError(f"command '{field.name}' must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> WardriveConfig:
        """Create configuration from environment variables.

        Reads optional ``BTWARDRIVE_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        WardriveConfig
            Populated configuration.
        """
        env = os.environ

        command_kwargs: dict[str, tuple[str, ...]] = {}
        _ENV_COMMAND_MAP = {
            "BTWARDRIVE_SCAN_COMMAND": "scan",
            "BTWARDRIVE_RADIO_COMMAND": "radio_up",
            "BTWARDRIVE_DISPLAY_INIT_COMMAND": "display_init",
            "BTWARDRIVE_DISPLAY_COMMAND": "display",
            "BTWARDRIVE_LIGHT_ON_COMMAND": "light_on",
            "BTWARDRIVE_LIGHT_OFF_COMMAND": "light_off",
        }
        for env_key, field_name in _ENV_COMMAND_MAP.items():
            val = env.get(env_key)
            if val is not None:
                command_kwargs[field_name] = _split_command(val, env_key)

        # Allow overriding individual commands via a nested dict
        command_overrides = overrides.pop("commands", None)
        if isinstance(command_overrides, dict):
            command_kwargs.update({k: tuple(v) for k, v in command_overrides.items()})
        elif isinstance(command_overrides, CommandSet):
            command_kwargs = dataclasses.asdict(command_overrides)

        config_kwargs: dict[str, Any] = {"commands": CommandSet(**command_kwargs)}

        store_env = env.get("BTWARDRIVE_STORE_PATH")
        if store_env is not None:
            config_kwargs["store_path"] = store_env

        _ENV_FLOAT_MAP = {
            "BTWARDRIVE_POLL_INTERVAL": "poll_interval",
            "BTWARDRIVE_DEBOUNCE_SECONDS": "debounce_seconds",
            "BTWARDRIVE_SCAN_TIMEOUT": "scan_timeout",
            "BTWARDRIVE_COMMAND_TIMEOUT": "command_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise WardriveConfigError(f"{env_key} must be a number, got {val!r}") from exc

        capacity_env = env.get("BTWARDRIVE_DISPLAY_CAPACITY")
        if capacity_env is not None and "display_capacity" not in overrides:
            try:
                config_kwargs["display_capacity"] = int(capacity_env)
            except ValueError as exc:
                raise WardriveConfigError(
                    f"BTWARDRIVE_DISPLAY_CAPACITY must be an integer, got {capacity_env!r}"
                ) from exc

        if "strict_registry" not in overrides:
            config_kwargs["strict_registry"] = _env_bool(env.get("BTWARDRIVE_STRICT_REGISTRY"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
