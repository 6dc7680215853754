"""Lightweight runtime telemetry for the main loop."""
from __future__ import annotations

from dataclasses import dataclass

from mainloop.engine.logger import ChannelLogger

DEFAULT_REPORT_INTERVAL_MS = 5000.0


@dataclass
class LoopTelemetrySnapshot:
    processed_ticks: int
    throttled_ticks: int
    update_steps: int
    panics: int
    discarded_ms: float
    fps: float

    @property
    def total_ticks(self) -> int:
        return self.processed_ticks + self.throttled_ticks

    def throttle_ratio(self) -> float:
        total = self.total_ticks
        if total <= 0:
            return 0.0
        return self.throttled_ticks / total

    def steps_per_tick(self) -> float:
        if self.processed_ticks <= 0:
            return 0.0
        return self.update_steps / self.processed_ticks


@dataclass
class LoopTelemetry:
    """Aggregates tick, step and overload counts across a loop's lifetime."""

    processed_ticks: int = 0
    throttled_ticks: int = 0
    update_steps: int = 0
    panics: int = 0
    discarded_ms: float = 0.0
    fps: float = 0.0
    report_interval_ms: float = DEFAULT_REPORT_INTERVAL_MS
    _log_accumulator: float = 0.0

    def record_throttled(self) -> None:
        self.throttled_ticks += 1

    def record_processed(self, update_steps: int, panic: bool, fps: float) -> None:
        self.processed_ticks += 1
        self.update_steps += update_steps
        self.fps = fps
        if panic:
            self.panics += 1

    def record_discarded(self, discarded_ms: float) -> None:
        self.discarded_ms += discarded_ms

    def advance_time(self, elapsed_ms: float, logger: ChannelLogger | None = None) -> None:
        self._log_accumulator += elapsed_ms
        if self._log_accumulator >= self.report_interval_ms:
            self._log_accumulator = 0.0
            if logger and logger.enabled:
                logger.info(
                    "Loop: fps=%.1f ticks=%d throttled=%d steps=%d panics=%d discarded=%.1fms",
                    self.fps,
                    self.processed_ticks,
                    self.throttled_ticks,
                    self.update_steps,
                    self.panics,
                    self.discarded_ms,
                )

    def snapshot(self) -> LoopTelemetrySnapshot:
        return LoopTelemetrySnapshot(
            processed_ticks=self.processed_ticks,
            throttled_ticks=self.throttled_ticks,
            update_steps=self.update_steps,
            panics=self.panics,
            discarded_ms=self.discarded_ms,
            fps=self.fps,
        )


__all__ = ["LoopTelemetry", "LoopTelemetrySnapshot"]
