"""
core/app.py — Town viewer window

A thin pygame shell around the scenes that watch a ``TownSim``.  The
simulation packages never import it, so headless runs and the tests
work without a display.

The town is drawn at a fixed virtual resolution and stretched to the
window; scenes read ``app.size`` to fit the map and call
``app.to_virtual`` to turn a click back into surface pixels.  The
window title shows the base title plus the top scene's ``caption()``
(the simulated clock in the town view).

    app = App(title="Smalltown")
    app.push_scene(TownScene(sim))
    app.run()
"""

from __future__ import annotations
import pygame
from core.scene import Scene
from core.tuning import get as _tun


class App:
    def __init__(self, title: str = "Smalltown", width: int = 960,
                 height: int = 640):
        pygame.init()
        self.title = title
        self._virtual_size = (width, height)
        self._canvas = pygame.Surface((width, height))
        self._window_size = (width, height)
        self.screen = pygame.display.set_mode(self._window_size,
                                              pygame.RESIZABLE)
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.fps = int(_tun("viewer", "fps", 60))
        self.running = True
        self.fullscreen = False
        self._caption = ""

        self._scenes: list[Scene] = []

        self.font = pygame.font.SysFont("monospace", 14)
        self.font_sm = pygame.font.SysFont("monospace", 11)

    # -- Scenes --

    @property
    def scene(self) -> Scene | None:
        return self._scenes[-1] if self._scenes else None

    def push_scene(self, scene: Scene):
        if self.scene:
            self.scene.on_exit(self)
        self._scenes.append(scene)
        scene.on_enter(self)

    def pop_scene(self):
        """Drop the top scene; closing the last one ends the run."""
        if not self._scenes:
            return
        self._scenes.pop().on_exit(self)
        if self.scene:
            self.scene.on_enter(self)
        else:
            self.running = False

    # -- Surface --

    @property
    def size(self) -> tuple[int, int]:
        return self._virtual_size

    def to_virtual(self, pos: tuple[int, int]) -> tuple[int, int]:
        sw, sh = self.screen.get_size()
        vw, vh = self._virtual_size
        return int(pos[0] * vw / sw), int(pos[1] * vh / sh)

    def toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        if self.fullscreen:
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode(self._window_size,
                                                  pygame.RESIZABLE)

    def _window_event(self, event: pygame.event.Event) -> bool:
        """Handle quit / fullscreen / resize.  True when consumed."""
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_F11:
            self.toggle_fullscreen()
        elif event.type == pygame.VIDEORESIZE and not self.fullscreen:
            self._window_size = (event.w, event.h)
            self.screen = pygame.display.set_mode(self._window_size,
                                                  pygame.RESIZABLE)
        else:
            return False
        return True

    def _update_caption(self):
        extra = self.scene.caption() if self.scene else None
        if extra and extra != self._caption:
            pygame.display.set_caption(f"{self.title} - {extra}")
            self._caption = extra

    # -- Frame loop --

    def run(self):
        while self.running:
            dt = self.clock.tick(self.fps) / 1000.0

            for event in pygame.event.get():
                if not self._window_event(event) and self.scene:
                    self.scene.handle_event(event, self)

            scene = self.scene
            if scene:
                scene.update(dt, self)
                scene.draw(self._canvas, self)
                self._update_caption()

            pygame.transform.scale(self._canvas, self.screen.get_size(),
                                   self.screen)
            pygame.display.flip()

        pygame.quit()

    def draw_text(self, surface: pygame.Surface, text: str, x: int, y: int,
                  color=(255, 255, 255), font=None):
        """Blit one line of HUD text; returns its rect."""
        f = font or self.font
        return surface.blit(f.render(text, True, color), (x, y))
