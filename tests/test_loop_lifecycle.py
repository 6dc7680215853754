from __future__ import annotations

import pytest

from mainloop import ManualHost, MainLoop, ReentrantTickError, default_loop, set_default_loop
from mainloop.engine.config import LoopSettings


class ForgetfulHost(ManualHost):
    """Host that ignores cancellation, delivering stale callbacks anyway."""

    def cancel_tick(self, handle: int) -> None:
        pass


def _loop(host: ManualHost | None = None) -> tuple[MainLoop, ManualHost]:
    host = host or ManualHost()
    loop = MainLoop(host, LoopSettings(simulation_time_step=10.0, frame_delay=10.0))
    return loop, host


def test_start_primes_with_a_full_draw_before_any_update():
    loop, host = _loop()
    calls: list[tuple[str, float]] = []
    loop.update = lambda dt: calls.append(("update", dt))
    loop.draw = lambda alpha: calls.append(("draw", alpha))

    loop.start()
    assert loop.started is True
    assert loop.is_running is False
    assert calls == []

    host.fire(100.0)
    assert calls == [("draw", 1.0)]
    assert loop.is_running is True
    assert loop.state.last_frame_time_ms == 100.0
    assert loop.state.last_fps_update == 100.0
    assert loop.state.frames_since_last_fps_update == 0
    assert host.pending == 1


def test_double_start_requests_a_single_priming_tick():
    loop, host = _loop()
    loop.start()
    loop.start()
    assert host.pending == 1


def test_stop_is_idempotent_and_cancels_pending_tick():
    loop, host = _loop()
    loop.start()
    host.fire(0.0)
    loop.stop()
    loop.stop()
    assert loop.is_running is False
    assert loop.started is False
    assert host.pending == 0


def test_no_hooks_run_after_stop():
    loop, host = _loop()
    count = {"hooks": 0}

    def bump(*_args) -> None:
        count["hooks"] += 1

    for name in ("raw", "begin", "update", "draw", "end"):
        loop.set_hook(name, bump)
    loop.start()
    host.fire(0.0)
    loop.stop()
    before = count["hooks"]
    host.run_frames(20, 50.0)
    loop.tick(5000.0)
    assert count["hooks"] == before


def test_stale_callbacks_from_previous_start_are_dropped():
    loop, host = _loop(ForgetfulHost())
    draws: list[float] = []
    updates: list[float] = []
    loop.draw = draws.append
    loop.update = updates.append
    loop.start()
    host.fire(0.0)
    loop.stop()
    loop.start()
    host.fire(100.0)
    assert draws == [1.0, 1.0]
    assert updates == []
    assert loop.state.last_frame_time_ms == 100.0


def test_stop_from_update_hook_ends_the_tick():
    loop, host = _loop()
    updates: list[float] = []
    draws: list[float] = []

    def update(dt: float) -> None:
        updates.append(dt)
        loop.stop()

    loop.update = update
    loop.draw = draws.append
    loop.start()
    host.fire(0.0)
    host.fire(50.0)
    assert len(updates) == 1
    assert draws == [1.0]
    assert host.pending == 0
    host.fire(100.0)
    assert len(updates) == 1


def test_stop_from_draw_during_priming_leaves_loop_stopped():
    loop, host = _loop()
    loop.draw = lambda _alpha: loop.stop()
    loop.start()
    host.fire(0.0)
    assert loop.is_running is False
    assert host.pending == 0


def test_restart_from_end_hook_is_deferred_until_tick_returns():
    loop, host = _loop()
    draws: list[float] = []
    restarted = {"done": False}

    def end(*_args) -> None:
        if not restarted["done"]:
            restarted["done"] = True
            loop.stop()
            loop.start()
            # Still stopped while the tick is in progress.
            assert loop.started is False

    loop.draw = draws.append
    loop.end = end
    loop.start()
    host.fire(0.0)
    host.fire(20.0)
    assert loop.started is True
    assert host.pending == 1
    host.fire(40.0)
    assert draws[-1] == 1.0
    assert loop.state.last_frame_time_ms == 40.0


def test_reentrant_tick_raises_and_loop_keeps_its_next_tick():
    loop, host = _loop()
    loop.update = lambda _dt: loop.tick(999.0)
    loop.start()
    host.fire(0.0)
    with pytest.raises(ReentrantTickError):
        host.fire(20.0)
    assert host.pending == 1
    loop.update = lambda _dt: None
    host.fire(40.0)
    assert loop.is_running is True


def test_direct_tick_replaces_the_pending_host_callback():
    loop, host = _loop()
    raws: list[float] = []
    loop.raw = lambda _fps, _panic, timestamp: raws.append(timestamp)
    loop.start()
    host.fire(0.0)
    loop.tick(5.0)
    assert host.pending == 1
    host.fire(10.0)
    host.fire(20.0)
    assert raws == [5.0, 10.0, 20.0]
    assert host.pending == 1
    loop.stop()
    assert host.pending == 0


def test_direct_tick_before_priming_primes_once():
    loop, host = _loop()
    draws: list[float] = []
    loop.draw = draws.append
    loop.start()
    loop.tick(50.0)
    assert draws == [1.0]
    assert loop.is_running is True
    assert loop.state.last_frame_time_ms == 50.0
    assert host.pending == 1
    host.fire(60.0)
    # The replaced priming callback never fires; the next frame is a regular tick.
    assert draws == [1.0, 0.0]


def test_failed_priming_draw_lets_start_retry():
    loop, host = _loop()

    def broken_draw(_alpha: float) -> None:
        raise ValueError("no surface")

    loop.draw = broken_draw
    loop.start()
    with pytest.raises(ValueError):
        host.fire(0.0)
    assert loop.started is False
    assert host.pending == 0

    draws: list[float] = []
    loop.draw = draws.append
    loop.start()
    host.fire(10.0)
    assert draws == [1.0]
    assert loop.is_running is True


def test_tick_before_start_does_nothing():
    loop, host = _loop()
    raws: list[tuple] = []
    loop.raw = lambda *args: raws.append(args)
    loop.tick(10.0)
    assert raws == []
    assert host.pending == 0


def test_default_loop_can_be_replaced():
    loop, _ = _loop()
    set_default_loop(loop)
    try:
        assert default_loop() is loop
    finally:
        set_default_loop(None)
