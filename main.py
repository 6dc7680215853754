"""Entry point for the orbiting planets main loop demo."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pygame

from mainloop.demo.planets import OrbitDemo
from mainloop.engine.config import LoopSettings
from mainloop.engine.hosts import PygameHost
from mainloop.engine.logger import init_logger
from mainloop.engine.loop import MainLoop


SETTINGS_PATH = Path("settings.json")


def load_display_settings() -> Dict[str, Any]:
    if not SETTINGS_PATH.exists():
        return {"resolution": [960, 720], "refreshHz": 144}
    try:
        return json.loads(SETTINGS_PATH.read_text())
    except json.JSONDecodeError:
        return {"resolution": [960, 720], "refreshHz": 144}


def main() -> None:
    display = load_display_settings()
    pygame.init()
    resolution = tuple(display.get("resolution", [960, 720]))
    screen = pygame.display.set_mode(resolution)
    pygame.display.set_caption("Main loop demo")

    logger = init_logger(SETTINGS_PATH)
    host = PygameHost(refresh_hz=display.get("refreshHz", 144))
    loop = MainLoop(host, LoopSettings.from_settings(SETTINGS_PATH), logger=logger)

    demo = OrbitDemo(
        loop,
        screen,
        present=pygame.display.flip,
        caption=lambda label: pygame.display.set_caption(f"Main loop demo - {label}"),
    )
    demo.install()
    host.on_event = demo.handle_event
    host.on_quit = loop.stop

    try:
        loop.start()
        host.run()
    finally:
        loop.stop()
        summary = loop.telemetry.snapshot()
        pygame.quit()
        print("\nKeys: Up/Down max FPS, Left/Right simulation speed, PageUp/PageDown update step rate, R reset.")
        print(
            f"Processed {summary.processed_ticks} ticks ({summary.throttled_ticks} throttled), "
            f"{summary.update_steps} updates, {summary.panics} panics, "
            f"{summary.discarded_ms:.0f}ms discarded."
        )


if __name__ == "__main__":
    main()
