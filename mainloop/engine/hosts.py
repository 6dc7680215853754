"""Frame-request hosts that drive a loop's tick callback."""
from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional, Protocol

import pygame

TickCallback = Callable[[float], None]


class FrameHost(Protocol):
    """What a loop needs from its environment.

    ``request_tick`` schedules a one-shot invocation of ``callback`` with a
    millisecond timestamp and returns a handle; ``cancel_tick`` drops a pending
    request. Timestamps must be monotonic, the epoch is arbitrary.
    """

    def request_tick(self, callback: TickCallback) -> int:
        ...

    def cancel_tick(self, handle: int) -> None:
        ...


class ManualHost:
    """Scripted host: callbacks run only when the caller fires a frame.

    Like a display refresh, a frame delivers every callback that was pending
    when it began; callbacks requested during the frame wait for the next one.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self.now = start_time
        self.frames = 0
        self._pending: Dict[int, TickCallback] = {}
        self._next_handle = 1

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_tick(self, callback: TickCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_tick(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def fire(self, timestamp: Optional[float] = None) -> int:
        """Deliver one frame and return how many callbacks ran."""

        if timestamp is not None:
            self.now = timestamp
        self.frames += 1
        delivered = 0
        for handle in list(self._pending):
            # A callback earlier in this frame may have cancelled this one.
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback(self.now)
            delivered += 1
        return delivered

    def advance(self, elapsed_ms: float) -> int:
        return self.fire(self.now + elapsed_ms)

    def run_frames(self, count: int, interval_ms: float) -> List[int]:
        return [self.advance(interval_ms) for _ in range(count)]


class PygameHost(ManualHost):
    """Runs frames at a display-like refresh rate using ``pygame.time.Clock``.

    ``run`` returns once nothing is pending (the loop was stopped) or the window
    received ``QUIT``. Timestamps come from ``time.perf_counter`` in milliseconds.
    """

    def __init__(
        self,
        refresh_hz: float = 60.0,
        *,
        clock: Optional[pygame.time.Clock] = None,
        time_source: Callable[[], float] = time.perf_counter,
        pump_events: bool = True,
        on_event: Optional[Callable[[pygame.event.Event], None]] = None,
        on_quit: Optional[Callable[[], None]] = None,
    ) -> None:
        self._time_source = time_source
        super().__init__(start_time=self.now_ms())
        self.refresh_hz = refresh_hz
        self._clock = clock or pygame.time.Clock()
        self.pump_events = pump_events
        self.on_event = on_event
        self.on_quit = on_quit
        self._closing = False

    def now_ms(self) -> float:
        return self._time_source() * 1000.0

    def close(self) -> None:
        self._closing = True

    def _process_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._closing = True
                if self.on_quit:
                    self.on_quit()
                return
            if self.on_event:
                self.on_event(event)

    def run(self) -> None:
        self._closing = False
        while self.pending and not self._closing:
            self._clock.tick(self.refresh_hz)
            if self.pump_events:
                self._process_events()
                if self._closing:
                    break
            self.fire(self.now_ms())


__all__ = ["FrameHost", "ManualHost", "PygameHost", "TickCallback"]
