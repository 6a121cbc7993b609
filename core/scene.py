"""
core/scene.py — Viewer screens

The viewer never drives the simulation clock on its own: a scene owns
whatever it watches (normally a ``TownSim``) and ticks it from
``update``.  Only the scene on top of the app's stack is live; the ones
underneath keep their state but get no frames.

    class TownScene(Scene):
        def __init__(self, sim):
            self.sim = sim

        def update(self, dt, app):
            self.sim.tick(min(dt, 0.1))

        def caption(self):
            return self.sim.clock.label()
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pygame
    from core.app import App


class Scene:
    def on_enter(self, app: App):
        """Fit the view to ``app.size``; also called when revealed again."""
        pass

    def on_exit(self, app: App):
        pass

    def handle_event(self, event: pygame.event.Event, app: App):
        """Mouse positions are still window pixels; see ``app.to_virtual``."""
        pass

    def update(self, dt: float, app: App):
        """*dt* is real seconds, not simulated time."""
        pass

    def draw(self, surface: pygame.Surface, app: App):
        pass

    def caption(self) -> str | None:
        """Suffix for the window title, or None to leave it alone."""
        return None
