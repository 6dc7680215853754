"""Orbiting planets: a sample consumer of the main loop hooks."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

import pygame

from mainloop.engine.config import round_half_up
from mainloop.engine.loop import MainLoop

Color = Tuple[int, int, int]

BACKGROUND: Color = (0, 0, 0)
SUN_COLOR: Color = (255, 208, 0)
EARTH_COLOR: Color = (40, 90, 255)
MOON_COLOR: Color = (150, 150, 150)
JUPITER_COLOR: Color = (220, 40, 40)

logger = logging.getLogger("mainloop.demo")


class Anchor(Protocol):
    x: float
    y: float


@dataclass
class Point:
    x: float
    y: float


class Planet:
    """A circle orbiting ``center``, which may itself be a moving planet."""

    def __init__(
        self,
        center: Anchor,
        radius: float,
        orbit_radius: float = 0.0,
        velocity: float = 0.0,
        color: Color = (255, 255, 255),
    ) -> None:
        self.center = center
        self.radius = radius
        self.orbit_radius = orbit_radius
        # Radians per millisecond of simulated time.
        self.velocity = velocity
        self.color = color
        self.theta = 0.0
        self.x = center.x + orbit_radius
        self.y = center.y
        self.last_x = self.x
        self.last_y = self.y

    def update(self, delta_ms: float) -> None:
        self.last_x = self.x
        self.last_y = self.y
        self.theta += self.velocity * delta_ms
        self.x = self.center.x + math.cos(self.theta) * self.orbit_radius
        self.y = self.center.y + math.sin(self.theta) * self.orbit_radius

    def position(self, interpolation: float) -> tuple[float, float]:
        """Blend the previous and current position to hide step boundaries."""

        x = self.last_x + (self.x - self.last_x) * interpolation
        y = self.last_y + (self.y - self.last_y) * interpolation
        return x, y

    def draw(self, surface: pygame.Surface, interpolation: float) -> None:
        x, y = self.position(interpolation)
        pygame.draw.circle(surface, self.color, (int(x), int(y)), max(1, int(self.radius)))


def build_system(width: int, height: int) -> List[Planet]:
    smaller = min(width, height)
    earth_orbit = smaller * 0.38
    moon_orbit = smaller * 0.10
    sun = Planet(Point(width * 0.5, height * 0.5), earth_orbit * 0.5, color=SUN_COLOR)
    earth = Planet(sun, earth_orbit * 0.15, earth_orbit, math.radians(0.03), EARTH_COLOR)
    moon = Planet(earth, smaller * 0.01, moon_orbit, math.radians(0.1), MOON_COLOR)
    jupiter = Planet(sun, earth_orbit * 0.15, earth_orbit * 2, math.radians(0.1), JUPITER_COLOR)
    return [sun, earth, moon, jupiter]


class OrbitDemo:
    """Wires a planet system into a loop's update, draw, end and reset hooks."""

    def __init__(
        self,
        loop: MainLoop,
        surface: pygame.Surface,
        *,
        present: Optional[Callable[[], None]] = None,
        caption: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.loop = loop
        self.surface = surface
        self.present = present
        self.caption = caption
        self.planets = build_system(*surface.get_size())
        self.fps_label = "0 FPS"
        self.discarded_ms = 0.0

    def install(self) -> None:
        self.loop.update = self.update
        self.loop.draw = self.draw
        self.loop.end = self.end
        self.loop.reset = self.reset

    def update(self, delta_ms: float) -> None:
        for planet in self.planets:
            planet.update(delta_ms)

    def draw(self, interpolation: float) -> None:
        self.surface.fill(BACKGROUND)
        for planet in self.planets:
            planet.draw(self.surface, interpolation)
        if self.present:
            self.present()

    def end(self, fps: float, panic: bool) -> None:
        self.fps_label = f"{round_half_up(fps)} FPS"
        if self.caption:
            self.caption(self.fps_label)
        if panic:
            # Snapping ahead is preferable to fast-forwarding until the simulation catches up.
            discarded = self.loop.reset_frame_delta()
            self.discarded_ms += discarded
            logger.warning(
                "Main loop panicked, probably because the window was stalled. Discarding %dms",
                round_half_up(discarded),
            )

    def reset(self) -> None:
        self.planets = build_system(*self.surface.get_size())

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_UP:
            self.loop.dev.max_fps = self.loop.dev.max_fps + 10
        elif event.key == pygame.K_DOWN:
            self.loop.dev.max_fps = self.loop.dev.max_fps - 10
        elif event.key == pygame.K_RIGHT:
            self.loop.dev.speed = self.loop.dev.speed + 5
        elif event.key == pygame.K_LEFT:
            self.loop.dev.speed = self.loop.dev.speed - 5
        elif event.key == pygame.K_PAGEUP:
            self.loop.dev.steps = self.loop.dev.steps + 5
        elif event.key == pygame.K_PAGEDOWN:
            self.loop.dev.steps = self.loop.dev.steps - 5
        elif event.key == pygame.K_r:
            self.loop.reset_default_values()
            self.loop.reset_user()


__all__ = ["OrbitDemo", "Planet", "Point", "build_system"]
