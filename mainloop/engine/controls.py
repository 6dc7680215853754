"""Validated configuration views over a running loop.

Two groups address the same underlying settings. :class:`AdvancedControls`
works in milliseconds; :class:`DevControls` expresses the same quantities as
rates in Hz, rounding on the rate side. Every ``set_*`` method returns whether
the write was applied. Assigning through the properties discards that result,
so an invalid value is silently ignored and the previous one kept.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from mainloop.engine.config import (
    duration_to_rate,
    rate_to_duration,
    round_half_up,
    valid_fps_alpha,
    valid_fps_update_interval,
    valid_frame_delay,
    valid_max_fps,
    valid_max_update_steps,
    valid_simulation_time_step,
    valid_speed,
    valid_steps,
    valid_time_step,
)

if TYPE_CHECKING:
    from mainloop.engine.loop import MainLoop


class _Controls:
    def __init__(self, loop: "MainLoop") -> None:
        self._loop = loop

    def _apply(
        self,
        name: str,
        value: Any,
        valid: Callable[[Any], bool],
        assign: Callable[[Any], None],
    ) -> bool:
        if not valid(value):
            self._loop.logger.channel("config").debug("Ignored %s=%r", name, value)
            return False
        assign(value)
        self._loop.logger.channel("config").debug("Set %s=%r", name, value)
        return True


class AdvancedControls(_Controls):
    """Millisecond-level access to the loop's timing settings."""

    def set_time_step(self, value: Any) -> bool:
        return self._apply("time_step", value, valid_time_step, self._assign("time_step"))

    def set_simulation_time_step(self, value: Any) -> bool:
        return self._apply(
            "simulation_time_step",
            value,
            valid_simulation_time_step,
            self._assign("simulation_time_step"),
        )

    def set_frame_delay(self, value: Any) -> bool:
        return self._apply("frame_delay", value, valid_frame_delay, self._assign("frame_delay"))

    def set_fps_update_interval(self, value: Any) -> bool:
        return self._apply(
            "fps_update_interval",
            value,
            valid_fps_update_interval,
            self._assign("fps_update_interval"),
        )

    def set_fps_alpha(self, value: Any) -> bool:
        return self._apply("fps_alpha", value, valid_fps_alpha, self._assign("fps_alpha"))

    def set_max_update_steps(self, value: Any) -> bool:
        def assign(steps: Any) -> None:
            self._loop.settings.max_update_steps = int(steps)

        return self._apply("max_update_steps", value, valid_max_update_steps, assign)

    def _assign(self, field: str) -> Callable[[Any], None]:
        def assign(value: Any) -> None:
            setattr(self._loop.settings, field, float(value))

        return assign

    @property
    def time_step(self) -> float:
        return self._loop.settings.time_step

    @time_step.setter
    def time_step(self, value: Any) -> None:
        self.set_time_step(value)

    @property
    def simulation_time_step(self) -> float:
        return self._loop.settings.simulation_time_step

    @simulation_time_step.setter
    def simulation_time_step(self, value: Any) -> None:
        self.set_simulation_time_step(value)

    @property
    def frame_delay(self) -> float:
        return self._loop.settings.frame_delay

    @frame_delay.setter
    def frame_delay(self, value: Any) -> None:
        self.set_frame_delay(value)

    @property
    def fps_update_interval(self) -> float:
        return self._loop.settings.fps_update_interval

    @fps_update_interval.setter
    def fps_update_interval(self, value: Any) -> None:
        self.set_fps_update_interval(value)

    @property
    def fps_alpha(self) -> float:
        return self._loop.settings.fps_alpha

    @fps_alpha.setter
    def fps_alpha(self, value: Any) -> None:
        self.set_fps_alpha(value)

    @property
    def max_update_steps(self) -> int:
        return self._loop.settings.max_update_steps

    @max_update_steps.setter
    def max_update_steps(self, value: Any) -> None:
        self.set_max_update_steps(value)

    @property
    def fps(self) -> float:
        return self._loop.state.fps


class DevControls(_Controls):
    """Rate-level (Hz) access to the loop's timing settings."""

    def set_speed(self, value: Any) -> bool:
        def assign(rate: Any) -> None:
            self._loop.settings.simulation_time_step = rate_to_duration(rate)

        return self._apply("speed", value, valid_speed, assign)

    def set_max_fps(self, value: Any) -> bool:
        def assign(rate: Any) -> None:
            rounded = round_half_up(rate)
            # The cap doubles as the starting point for the smoothed estimate.
            self._loop.state.fps = float(rounded)
            self._loop.settings.frame_delay = rate_to_duration(rounded)

        return self._apply("max_fps", value, valid_max_fps, assign)

    def set_steps(self, value: Any) -> bool:
        def assign(rate: Any) -> None:
            self._loop.settings.time_step = rate_to_duration(rate)

        return self._apply("steps", value, valid_steps, assign)

    @property
    def speed(self) -> float:
        return duration_to_rate(self._loop.settings.simulation_time_step)

    @speed.setter
    def speed(self, value: Any) -> None:
        self.set_speed(value)

    @property
    def max_fps(self) -> float:
        return duration_to_rate(self._loop.settings.frame_delay)

    @max_fps.setter
    def max_fps(self, value: Any) -> None:
        self.set_max_fps(value)

    @property
    def steps(self) -> float:
        return duration_to_rate(self._loop.settings.time_step)

    @steps.setter
    def steps(self, value: Any) -> None:
        self.set_steps(value)

    @property
    def fps(self) -> int:
        return round_half_up(self._loop.state.fps)


__all__ = ["AdvancedControls", "DevControls"]
