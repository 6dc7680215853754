"""Sample consumers of the main loop."""

from .planets import OrbitDemo, Planet, build_system

__all__ = ["OrbitDemo", "Planet", "build_system"]
