"""Consumer extension points invoked by the main loop."""
from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, NamedTuple, Optional

HOOK_NAMES: tuple[str, ...] = ("raw", "begin", "update", "draw", "end", "reset")

# Hooks that receive the full state snapshot as positional arguments.
SNAPSHOT_HOOKS: tuple[str, ...] = ("raw", "begin", "end")


class TickSnapshot(NamedTuple):
    """Loop state handed to the raw, begin and end hooks, in call order."""

    fps: float
    panic: bool
    timestamp: float
    frame_delta: float
    last_frame_time_ms: float
    elapsed: float
    last_fps_update: float
    frames_since_last_fps_update: int
    num_update_steps: int


def _noop(*args: Any) -> None:
    pass


def positional_capacity(func: Callable[..., Any]) -> Optional[int]:
    """Return how many positional arguments ``func`` accepts, ``None`` if unbounded."""

    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Some builtins expose no signature; hand them everything.
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


class LoopHooks:
    """Holds the installed hook callables, defaulting each to a no-op."""

    def __init__(self) -> None:
        self._hooks: Dict[str, Callable[..., Any]] = {name: _noop for name in HOOK_NAMES}
        self._capacity: Dict[str, Optional[int]] = {name: None for name in HOOK_NAMES}

    def install(self, name: str, func: Any) -> bool:
        """Install ``func`` as hook ``name``; non-callables keep the current hook."""

        if name not in self._hooks:
            raise KeyError(f"Hook '{name}' is not a loop hook")
        if not callable(func):
            return False
        self._hooks[name] = func
        self._capacity[name] = positional_capacity(func) if name in SNAPSHOT_HOOKS else None
        return True

    def get(self, name: str) -> Callable[..., Any]:
        return self._hooks[name]

    def call_snapshot(self, name: str, snapshot: TickSnapshot) -> None:
        capacity = self._capacity[name]
        if capacity is None:
            self._hooks[name](*snapshot)
        else:
            self._hooks[name](*snapshot[:capacity])

    def update(self, time_step: float) -> None:
        self._hooks["update"](time_step)

    def draw(self, interpolation: float) -> None:
        self._hooks["draw"](interpolation)

    def reset(self) -> None:
        self._hooks["reset"]()


__all__ = ["HOOK_NAMES", "LoopHooks", "TickSnapshot", "positional_capacity"]
