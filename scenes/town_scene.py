"""scenes/town_scene.py — Live debug view of a running TownSim.

Keys
    SPACE   pause / resume
    + / -   double / halve the clock speed
    G       toggle road-graph overlay
    T       toggle movement trails
    P       toggle parking spots
    F5      reload tuning.toml
    click   select the nearest agent (shows its route and log)
    DEL     remove the selected agent
    ESC     quit
"""

from __future__ import annotations

import pygame
from core.app import App
from core.scene import Scene
from core import tuning as tuning_mod
from components import Position, Hidden, Identity, DevLog
from simulation.town_sim import TownSim
from scenes.town_draw import (
    View, draw_lots, draw_roads, draw_gates, draw_parking, draw_graph,
    draw_agents, draw_hud,
)

_MIN_SPEED = 15.0
_MAX_SPEED = 3840.0
_PICK_RADIUS = 12.0


class TownScene(Scene):
    def __init__(self, sim: TownSim):
        self.sim = sim
        self.view = View()
        self.paused = False
        self.show_graph = False
        self.show_trails = True
        self.show_parking = False
        self.selected: int | None = None

    def on_enter(self, app: App):
        w, h = app.size
        self.view = View.fit(self.sim.town.bounds, w, h, top=22)

    def handle_event(self, event: pygame.event.Event, app: App):
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                app.pop_scene()
            elif event.key == pygame.K_SPACE:
                self.paused = not self.paused
            elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                clock = self.sim.clock
                clock.speed = min(_MAX_SPEED, clock.speed * 2)
            elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                clock = self.sim.clock
                clock.speed = max(_MIN_SPEED, clock.speed / 2)
            elif event.key == pygame.K_g:
                self.show_graph = not self.show_graph
            elif event.key == pygame.K_t:
                self.show_trails = not self.show_trails
            elif event.key == pygame.K_p:
                self.show_parking = not self.show_parking
            elif event.key == pygame.K_F5:
                tuning_mod.reload()
            elif event.key == pygame.K_DELETE and self.selected is not None:
                self.sim.despawn(self.selected)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.selected = self._pick(*app.to_virtual(event.pos))

    def _pick(self, sx: int, sy: int) -> int | None:
        px, py = self.view.to_plane(sx, sy)
        radius = _PICK_RADIUS / self.view.scale
        best, best_d = None, radius * radius
        for eid, _pos, dsq in self.sim.world.nearby(px, py, radius, Position):
            if dsq < best_d and not self.sim.world.has(eid, Hidden):
                best, best_d = eid, dsq
        return best

    def update(self, dt: float, app: App):
        if not self.paused:
            # Cap a stalled frame so agents don't jump across town
            self.sim.tick(min(dt, tuning_mod.get("viewer", "max_frame", 0.1)))
        if self.selected is not None and not self.sim.world.alive(self.selected):
            self.selected = None

    def caption(self) -> str:
        return self.sim.clock.label() + (" (paused)" if self.paused else "")

    def draw(self, surface: pygame.Surface, app: App):
        surface.fill((24, 28, 24))
        sim = self.sim
        draw_lots(surface, self.view, sim.town.lots)
        draw_roads(surface, self.view, sim.town.roads)
        draw_gates(surface, self.view, sim.town.lots)
        if self.show_parking:
            draw_parking(surface, self.view, sim.town.lots)
        if self.show_graph:
            draw_graph(surface, self.view, sim.graph)
        draw_agents(surface, self.view, sim.world, self.show_trails,
                    self.selected)

        info = sim.debug_info()
        info["speed"] = sim.clock.speed
        log = sim.world.res(DevLog)
        if self.selected is not None:
            feed = log.for_eid(self.selected, 12)
            ident = sim.world.get(self.selected, Identity)
            if ident is not None:
                app.draw_text(surface, f"> {ident.name} ({ident.kind})",
                              6, 26, color=(255, 255, 255))
        else:
            feed = log.recent(12)
        draw_hud(surface, app, info, self.paused, feed)
