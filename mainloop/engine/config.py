"""Loop tunables, their validators and settings.json loading."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

ONE_SECOND_MS = 1000.0
DEFAULT_SIM_HZ = 60
DEFAULT_FPS_UPDATE_INTERVAL = 1000.0
DEFAULT_FPS_ALPHA = 0.9
DEFAULT_MAX_UPDATE_STEPS = 240

MAX_SPEED_HZ = 600
MIN_STEPS_HZ = 1
MAX_STEPS_HZ = 144

# Fields restored by ``reset_default_values``; max_update_steps is not one of them.
TUNABLE_FIELDS: tuple[str, ...] = (
    "time_step",
    "simulation_time_step",
    "frame_delay",
    "fps_update_interval",
    "fps_alpha",
)


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        float(value)
    except OverflowError:
        # Integers beyond the float range cannot become durations.
        return False
    return True


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""

    return int(math.floor(value + 0.5))


def rate_to_duration(rate_hz: float) -> float:
    return ONE_SECOND_MS / round_half_up(rate_hz)


def duration_to_rate(duration_ms: float) -> float:
    if duration_ms <= 0:
        return math.inf
    rate = ONE_SECOND_MS / duration_ms
    if math.isinf(rate):
        return rate
    return round_half_up(rate)


def valid_time_step(value: Any) -> bool:
    return _is_number(value) and value >= 0


def valid_simulation_time_step(value: Any) -> bool:
    return _is_number(value) and value > 0


def valid_frame_delay(value: Any) -> bool:
    return _is_number(value) and value > 0


def valid_fps_update_interval(value: Any) -> bool:
    return _is_number(value) and value >= 0


def valid_fps_alpha(value: Any) -> bool:
    return _is_number(value) and 0 <= value <= 1


def valid_max_update_steps(value: Any) -> bool:
    return _is_number(value) and value > 0 and float(value).is_integer()


def valid_speed(value: Any) -> bool:
    return _is_number(value) and 0 < value <= MAX_SPEED_HZ and round_half_up(value) > 0


def valid_max_fps(value: Any) -> bool:
    return (
        _is_number(value)
        and math.isfinite(value)
        and value > 0
        and round_half_up(value) > 0
    )


def valid_steps(value: Any) -> bool:
    return _is_number(value) and MIN_STEPS_HZ <= value <= MAX_STEPS_HZ


@dataclass
class LoopSettings:
    """Timing tunables for a :class:`~mainloop.engine.loop.MainLoop`.

    All durations are milliseconds.
    """

    simulation_time_step: float = ONE_SECOND_MS / DEFAULT_SIM_HZ
    time_step: float = ONE_SECOND_MS / DEFAULT_SIM_HZ
    frame_delay: float = ONE_SECOND_MS / DEFAULT_SIM_HZ
    fps_update_interval: float = DEFAULT_FPS_UPDATE_INTERVAL
    fps_alpha: float = DEFAULT_FPS_ALPHA
    max_update_steps: int = DEFAULT_MAX_UPDATE_STEPS

    def copy(self) -> "LoopSettings":
        return replace(self)

    def restore_tunables(self, baseline: "LoopSettings") -> None:
        for name in TUNABLE_FIELDS:
            setattr(self, name, getattr(baseline, name))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoopSettings":
        settings = cls()
        sim_hz = data.get("simHz")
        if valid_speed(sim_hz):
            settings.simulation_time_step = rate_to_duration(sim_hz)
            # The update step and render cap follow the simulation rate unless overridden.
            settings.time_step = settings.simulation_time_step
            settings.frame_delay = settings.simulation_time_step
        step_hz = data.get("stepHz")
        if valid_steps(step_hz):
            settings.time_step = rate_to_duration(step_hz)
        max_fps = data.get("maxFps")
        if valid_max_fps(max_fps):
            settings.frame_delay = rate_to_duration(max_fps)
        interval = data.get("fpsUpdateInterval")
        if valid_fps_update_interval(interval):
            settings.fps_update_interval = float(interval)
        alpha = data.get("fpsAlpha")
        if valid_fps_alpha(alpha):
            settings.fps_alpha = float(alpha)
        max_steps = data.get("maxUpdateSteps")
        if valid_max_update_steps(max_steps):
            settings.max_update_steps = int(max_steps)
        return settings

    @classmethod
    def from_settings(cls, settings_path: Path) -> "LoopSettings":
        if not settings_path.exists():
            return cls()
        try:
            data = json.loads(settings_path.read_text())
        except json.JSONDecodeError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)


__all__ = [
    "LoopSettings",
    "ONE_SECOND_MS",
    "TUNABLE_FIELDS",
    "duration_to_rate",
    "rate_to_duration",
    "round_half_up",
    "valid_fps_alpha",
    "valid_fps_update_interval",
    "valid_frame_delay",
    "valid_max_fps",
    "valid_max_update_steps",
    "valid_simulation_time_step",
    "valid_speed",
    "valid_steps",
    "valid_time_step",
]
