"""Loop logging utilities with channel toggles."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

DEFAULT_CHANNELS = {
    "loop": True,
    "fps": True,
    "panic": True,
    "config": False,
}

LOGGER_ROOT = "mainloop"


@dataclass
class LoggerConfig:
    """Configuration for runtime logging."""

    level: int = logging.INFO
    channels: Dict[str, bool] = None

    def __post_init__(self) -> None:
        if self.channels is None:
            self.channels = DEFAULT_CHANNELS.copy()

    @classmethod
    def from_settings(cls, settings_path: Path) -> "LoggerConfig":
        if not settings_path.exists():
            return cls(level=logging.INFO, channels=DEFAULT_CHANNELS.copy())
        try:
            data = json.loads(settings_path.read_text())
        except json.JSONDecodeError:
            return cls(level=logging.INFO, channels=DEFAULT_CHANNELS.copy())
        if not isinstance(data, dict):
            return cls(level=logging.INFO, channels=DEFAULT_CHANNELS.copy())
        level_name = str(data.get("logLevel", "INFO")).upper()
        level = getattr(logging, level_name, logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
        channels = DEFAULT_CHANNELS.copy()
        channels.update({k: bool(v) for k, v in data.get("logChannels", {}).items()})
        return cls(level=level, channels=channels)


class ChannelLogger:
    """Wrapper that only emits records when the channel is enabled."""

    def __init__(self, logger: logging.Logger, enabled: bool) -> None:
        self._logger = logger
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def _emit(self, level: int, msg: str, args: tuple) -> None:
        if self._enabled:
            self._logger.log(level, msg, *args)

    def debug(self, msg: str, *args) -> None:
        self._emit(logging.DEBUG, msg, args)

    def info(self, msg: str, *args) -> None:
        self._emit(logging.INFO, msg, args)

    def warning(self, msg: str, *args) -> None:
        self._emit(logging.WARNING, msg, args)


class LoopLogger:
    """Channel registry shared by a loop, its controls and its telemetry."""

    def __init__(self, config: Optional[LoggerConfig] = None, *, configure_root: bool = False) -> None:
        config = config or LoggerConfig()
        if configure_root:
            logging.basicConfig(
                level=config.level,
                format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                stream=sys.stdout,
            )
        self._channels: Dict[str, ChannelLogger] = {
            name: ChannelLogger(logging.getLogger(f"{LOGGER_ROOT}.{name}"), enabled)
            for name, enabled in config.channels.items()
        }

    def channel(self, name: str) -> ChannelLogger:
        # Unknown channels start disabled until explicitly enabled.
        return self._channels.setdefault(
            name, ChannelLogger(logging.getLogger(f"{LOGGER_ROOT}.{name}"), False)
        )

    def set_enabled(self, name: str, enabled: bool) -> None:
        self.channel(name).enabled = enabled

    def channels(self) -> Iterable[str]:
        return self._channels.keys()


def init_logger(settings_path: Optional[Path] = None) -> LoopLogger:
    """Initialise logging from settings.json."""

    settings_path = settings_path or Path("settings.json")
    config = LoggerConfig.from_settings(settings_path)
    return LoopLogger(config, configure_root=True)


__all__ = ["LoopLogger", "LoggerConfig", "ChannelLogger", "DEFAULT_CHANNELS", "init_logger"]
