"""Fixed timestep main loop driven by a host's frame callbacks."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from mainloop.engine.config import LoopSettings
from mainloop.engine.controls import AdvancedControls, DevControls
from mainloop.engine.hooks import HOOK_NAMES, LoopHooks, TickSnapshot
from mainloop.engine.hosts import FrameHost, PygameHost, TickCallback
from mainloop.engine.logger import LoopLogger
from mainloop.engine.telemetry import LoopTelemetry


class ReentrantTickError(RuntimeError):
    """Raised when ``tick`` is invoked from inside one of the loop's hooks."""


@dataclass
class LoopState:
    """Mutable timing state. Only the loop and its controls write to it."""

    fps: float = 0.0
    frame_delta: float = 0.0
    last_frame_time_ms: float = 0.0
    elapsed: float = 0.0
    last_fps_update: float = 0.0
    frames_since_last_fps_update: int = 0
    num_update_steps: int = 0
    panic: bool = False
    running: bool = False
    started: bool = False


def _hook_property(name: str) -> property:
    def getter(self: "MainLoop") -> Callable[..., Any]:
        return self.hooks.get(name)

    def setter(self: "MainLoop", func: Any) -> None:
        self.hooks.install(name, func)

    return property(getter, setter, doc=f"The installed ``{name}`` hook.")


class MainLoop:
    """Advances a simulation in fixed steps and renders at a capped rate.

    The host calls :meth:`tick` with millisecond timestamps. Each processed
    tick converts elapsed real time into zero or more ``update`` calls of
    ``settings.simulation_time_step`` each, then calls ``draw`` with the
    fraction of a step left over. Ticks closer together than
    ``settings.frame_delay`` are throttled: only the ``raw`` hook sees them.

    When a tick needs ``max_update_steps`` updates or more, the loop stops
    early and raises ``panic`` for that tick. The leftover time stays in
    ``frame_delta`` until the consumer discards it with
    :meth:`reset_frame_delta`, normally from the ``end`` hook.

    ``stop()`` may be called from any hook; the current tick returns after that
    hook and no later tick runs. ``start()`` from a hook is deferred until the
    current tick returns. Calling ``tick()`` from a hook raises
    :class:`ReentrantTickError`. Calling it directly from outside replaces the
    pending host callback, and before the loop is primed it primes instead.
    """

    raw = _hook_property("raw")
    begin = _hook_property("begin")
    update = _hook_property("update")
    draw = _hook_property("draw")
    end = _hook_property("end")
    reset = _hook_property("reset")

    def __init__(
        self,
        host: FrameHost,
        settings: Optional[LoopSettings] = None,
        *,
        logger: Optional[LoopLogger] = None,
        telemetry: Optional[LoopTelemetry] = None,
    ) -> None:
        self.host = host
        self.settings = settings.copy() if settings else LoopSettings()
        self._defaults = self.settings.copy()
        self.state = LoopState()
        self.hooks = LoopHooks()
        self.logger = logger or LoopLogger()
        self.telemetry = telemetry or LoopTelemetry()
        self.advanced = AdvancedControls(self)
        self.dev = DevControls(self)
        self._handle: Optional[int] = None
        self._generation = 0
        self._in_tick = False
        self._deferred_start = False

    @property
    def is_running(self) -> bool:
        return self.state.running

    @property
    def started(self) -> bool:
        return self.state.started

    @property
    def defaults(self) -> LoopSettings:
        return self._defaults.copy()

    def set_hook(self, name: str, func: Any) -> bool:
        return self.hooks.install(name, func)

    def snapshot(self, timestamp: float) -> TickSnapshot:
        st = self.state
        return TickSnapshot(
            fps=st.fps,
            panic=st.panic,
            timestamp=timestamp,
            frame_delta=st.frame_delta,
            last_frame_time_ms=st.last_frame_time_ms,
            elapsed=st.elapsed,
            last_fps_update=st.last_fps_update,
            frames_since_last_fps_update=st.frames_since_last_fps_update,
            num_update_steps=st.num_update_steps,
        )

    # Lifecycle -----------------------------------------------------------
    def start(self) -> None:
        if self.state.started:
            return
        if self._in_tick:
            self._deferred_start = True
            return
        self.state.started = True
        self._generation += 1
        self.logger.channel("loop").info("Loop starting")
        self._request(self._prime)

    def stop(self) -> None:
        self._deferred_start = False
        was_started = self.state.started
        self.state.running = False
        self.state.started = False
        if self._handle is not None:
            self.host.cancel_tick(self._handle)
            self._handle = None
        if was_started:
            self.logger.channel("loop").info("Loop stopped")

    def _request(self, callback: TickCallback) -> None:
        # At most one callback is pending; a direct tick() replaces the scheduled one.
        if self._handle is not None:
            self.host.cancel_tick(self._handle)
            self._handle = None
        generation = self._generation
        handle: Optional[int] = None

        def deliver(timestamp: float) -> None:
            if self._handle == handle:
                self._handle = None
            # Drop callbacks from a previous start() the host failed to cancel.
            if generation != self._generation or not self.state.started:
                return
            callback(timestamp)

        handle = self.host.request_tick(deliver)
        self._handle = handle

    def _prime(self, timestamp: float) -> None:
        self._in_tick = True
        try:
            # Render the initial state before any update runs.
            try:
                self.hooks.draw(1.0)
            except Exception:
                # Leave the loop stopped so a later start() can prime again.
                self.state.started = False
                raise
            if not self.state.started:
                return
            st = self.state
            st.running = True
            st.last_frame_time_ms = timestamp
            st.last_fps_update = timestamp
            st.frames_since_last_fps_update = 0
            self.logger.channel("loop").debug("Primed at %.3fms", timestamp)
            self._request(self.tick)
        finally:
            self._leave_tick()

    def _leave_tick(self) -> None:
        self._in_tick = False
        if self._deferred_start:
            self._deferred_start = False
            self.start()

    # Tick ----------------------------------------------------------------
    def tick(self, timestamp: float) -> None:
        if self._in_tick:
            raise ReentrantTickError("tick() called from inside a loop hook")
        if not self.state.started:
            return
        if not self.state.running:
            # Called before the scheduled priming callback: prime now instead.
            self._prime(timestamp)
            return
        self._in_tick = True
        try:
            self._run_tick(timestamp)
        finally:
            self._leave_tick()

    def _run_tick(self, timestamp: float) -> None:
        st = self.state
        settings = self.settings

        # Reschedule first so slow hooks delay the next tick but never drop it.
        self._request(self.tick)

        elapsed = timestamp - st.last_frame_time_ms
        st.elapsed = elapsed
        self.hooks.call_snapshot("raw", self.snapshot(timestamp))
        if not st.started:
            return

        if elapsed < settings.frame_delay:
            self.telemetry.record_throttled()
            return

        st.frame_delta += elapsed
        # Keep the remainder so a frame_delay that does not divide the host interval does not drift.
        st.last_frame_time_ms = timestamp - (elapsed % settings.frame_delay)

        self.hooks.call_snapshot("begin", self.snapshot(timestamp))
        if not st.started:
            return

        if timestamp > st.last_fps_update + settings.fps_update_interval:
            alpha = settings.fps_alpha
            instant = st.frames_since_last_fps_update * 1000.0 / (timestamp - st.last_fps_update)
            st.fps = alpha * instant + (1.0 - alpha) * st.fps
            st.last_fps_update = timestamp
            st.frames_since_last_fps_update = 0

        st.frames_since_last_fps_update += 1
        st.panic = False

        st.num_update_steps = 0
        while st.frame_delta >= settings.simulation_time_step:
            self.hooks.update(settings.time_step)
            st.frame_delta -= settings.simulation_time_step
            st.num_update_steps += 1
            if st.num_update_steps >= settings.max_update_steps:
                st.panic = True
                self.logger.channel("panic").warning(
                    "Simulation fell behind: %d update steps this tick, %.1fms pending",
                    st.num_update_steps,
                    st.frame_delta,
                )
                break
            if not st.started:
                break

        self.telemetry.record_processed(st.num_update_steps, st.panic, st.fps)
        self.telemetry.advance_time(elapsed, self.logger.channel("fps"))
        if not st.started:
            return

        self.hooks.draw(st.frame_delta / settings.simulation_time_step)
        if not st.started:
            return

        self.hooks.call_snapshot("end", self.snapshot(timestamp))

    # Recovery and configuration -------------------------------------------
    def reset_frame_delta(self) -> float:
        """Zero the accumulator and return the discarded milliseconds."""

        discarded = self.state.frame_delta
        self.state.frame_delta = 0.0
        self.telemetry.record_discarded(discarded)
        self.logger.channel("panic").debug("Discarded %.1fms of unsimulated time", discarded)
        return discarded

    def reset_default_values(self) -> None:
        self.settings.restore_tunables(self._defaults)
        self.logger.channel("config").debug("Restored default timing values")

    def reset_user(self) -> None:
        self.hooks.reset()


_default_loop: Optional[MainLoop] = None


def default_loop() -> MainLoop:
    """Return the shared loop, creating one bound to a pygame host on first use."""

    global _default_loop
    if _default_loop is None:
        _default_loop = MainLoop(PygameHost())
    return _default_loop


def set_default_loop(loop: Optional[MainLoop]) -> None:
    global _default_loop
    _default_loop = loop


__all__ = [
    "HOOK_NAMES",
    "LoopState",
    "MainLoop",
    "ReentrantTickError",
    "default_loop",
    "set_default_loop",
]
