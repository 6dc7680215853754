"""Fixed timestep simulation and render scheduling."""

from mainloop.engine.config import LoopSettings
from mainloop.engine.hooks import TickSnapshot
from mainloop.engine.hosts import ManualHost, PygameHost
from mainloop.engine.loop import MainLoop, ReentrantTickError, default_loop, set_default_loop

__all__ = [
    "LoopSettings",
    "MainLoop",
    "ManualHost",
    "PygameHost",
    "ReentrantTickError",
    "TickSnapshot",
    "default_loop",
    "set_default_loop",
]
