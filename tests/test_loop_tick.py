from __future__ import annotations

import pytest

from mainloop.engine.config import LoopSettings
from mainloop.engine.hosts import ManualHost
from mainloop.engine.loop import MainLoop


class _Recorder:
    def __init__(self, loop: MainLoop) -> None:
        self.raw: list[tuple] = []
        self.begin: list[tuple] = []
        self.updates: list[float] = []
        self.draws: list[float] = []
        self.ends: list[tuple] = []
        loop.raw = lambda *args: self.raw.append(args)
        loop.begin = lambda *args: self.begin.append(args)
        loop.update = self.updates.append
        loop.draw = self.draws.append
        loop.end = lambda *args: self.ends.append(args)


def _primed_loop(**overrides) -> tuple[MainLoop, ManualHost, _Recorder]:
    host = ManualHost()
    loop = MainLoop(host, LoopSettings(**overrides))
    recorder = _Recorder(loop)
    loop.start()
    host.fire(0.0)
    return loop, host, recorder


def test_tick_converts_elapsed_time_into_fixed_steps():
    loop, host, rec = _primed_loop(simulation_time_step=10.0, time_step=10.0, frame_delay=10.0)
    host.fire(25.0)
    assert rec.updates == [10.0, 10.0]
    assert rec.draws == [1.0, pytest.approx(0.5)]
    assert loop.state.frame_delta == pytest.approx(5.0)
    # The 5ms remainder of elapsed % frame_delay is kept for the next tick.
    assert loop.state.last_frame_time_ms == pytest.approx(20.0)
    assert len(rec.begin) == 1
    assert len(rec.ends) == 1


def test_throttled_ticks_only_reach_the_raw_hook():
    loop, host, rec = _primed_loop(simulation_time_step=10.0, frame_delay=10.0)
    for timestamp in (3.0, 6.0, 9.0):
        host.fire(timestamp)
    assert len(rec.raw) == 3
    assert rec.begin == []
    assert rec.updates == []
    assert rec.draws == [1.0]
    assert rec.ends == []
    assert loop.state.frames_since_last_fps_update == 0
    assert loop.telemetry.throttled_ticks == 3
    # Throttled ticks still reschedule themselves.
    assert host.pending == 1


def test_update_count_matches_whole_steps_in_accumulator():
    loop, host, rec = _primed_loop(simulation_time_step=10.0, frame_delay=1.0)
    host.fire(7.0)
    assert rec.updates == []
    assert rec.draws[-1] == pytest.approx(0.7)
    host.fire(30.0)
    assert len(rec.updates) == 3
    assert loop.state.num_update_steps == 3
    assert loop.state.frame_delta == pytest.approx(0.0)
    assert loop.state.panic is False


def test_update_hook_receives_time_step_not_simulation_step():
    _, host, rec = _primed_loop(simulation_time_step=10.0, time_step=5.0, frame_delay=10.0)
    host.fire(30.0)
    assert rec.updates == [5.0, 5.0, 5.0]


def test_overload_sets_panic_and_keeps_unsimulated_time():
    loop, host, rec = _primed_loop(
        simulation_time_step=16.67, time_step=16.67, frame_delay=16.67, max_update_steps=10
    )
    host.fire(1000.0)
    assert len(rec.updates) == 10
    assert loop.state.panic is True
    assert rec.ends[-1][1] is True
    assert loop.state.frame_delta == pytest.approx(1000 - 10 * 16.67)

    discarded = loop.reset_frame_delta()
    assert discarded == pytest.approx(833.3)
    assert loop.state.frame_delta == 0.0
    assert loop.telemetry.discarded_ms == pytest.approx(833.3)
    assert loop.telemetry.panics == 1


def test_panic_is_cleared_on_the_next_processed_tick():
    loop, host, rec = _primed_loop(
        simulation_time_step=16.67, frame_delay=16.67, max_update_steps=10
    )
    host.fire(1000.0)
    loop.reset_frame_delta()
    host.fire(1020.0)
    assert loop.state.panic is False
    assert rec.ends[-1][1] is False
    # The begin hook of the next tick still reports the previous tick's panic.
    assert rec.begin[-1][1] is True
    assert len(rec.updates) == 12


def test_interpolation_stays_within_unit_interval():
    _, host, rec = _primed_loop(simulation_time_step=7.0, frame_delay=1.0)
    for timestamp in range(3, 200, 3):
        host.fire(float(timestamp))
    assert all(0.0 <= value < 1.0 for value in rec.draws[1:])


def test_snapshot_hooks_receive_loop_state_in_order():
    loop, host, rec = _primed_loop(simulation_time_step=10.0, frame_delay=10.0)
    host.fire(15.0)
    fps, panic, timestamp, frame_delta, last_frame, elapsed, last_fps, frames, steps = rec.raw[0]
    assert timestamp == 15.0
    assert elapsed == 15.0
    assert last_frame == 0.0
    assert frame_delta == 0.0
    assert panic is False
    assert steps == 0
    end = rec.ends[0]
    assert len(end) == 9
    assert end[3] == pytest.approx(5.0)
    assert end[4] == pytest.approx(10.0)
    assert end[8] == 1


def test_two_argument_end_hook_receives_fps_and_panic():
    host = ManualHost()
    loop = MainLoop(host, LoopSettings(simulation_time_step=10.0, frame_delay=10.0))
    seen: list[tuple[float, bool]] = []

    def end(fps: float, panic: bool) -> None:
        seen.append((fps, panic))

    loop.end = end
    loop.start()
    host.fire(0.0)
    host.fire(10.0)
    assert seen == [(0.0, False)]


def _run_at_rate(alpha: float, interval_ms: float, duration_ms: float) -> MainLoop:
    host = ManualHost()
    loop = MainLoop(
        host,
        LoopSettings(frame_delay=1.0, fps_update_interval=1000.0, fps_alpha=alpha),
    )
    loop.start()
    host.fire(0.0)
    ticks = int(duration_ms / interval_ms)
    host.run_frames(ticks, interval_ms)
    return loop


def test_fps_converges_to_tick_rate():
    loop = _run_at_rate(0.9, 20.0, 10000.0)
    assert loop.state.fps == pytest.approx(50.0, abs=0.5)
    assert loop.advanced.fps == loop.state.fps
    assert loop.dev.fps == 50


def test_higher_alpha_converges_faster():
    fast = _run_at_rate(0.9, 20.0, 2100.0)
    slow = _run_at_rate(0.3, 20.0, 2100.0)
    assert abs(fast.state.fps - 50.0) < abs(slow.state.fps - 50.0)


def test_first_fps_window_blends_partial_rate():
    loop = _run_at_rate(0.9, 20.0, 1020.0)
    # 50 frames over 1020ms, blended with the initial estimate of zero.
    assert loop.state.fps == pytest.approx(0.9 * 50 * 1000 / 1020)
    assert loop.state.last_fps_update == 1020.0
    assert loop.state.frames_since_last_fps_update == 1
