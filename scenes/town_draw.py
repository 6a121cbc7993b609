"""scenes/town_draw.py — Rendering helpers for the town scene.

Pure draw functions so that TownScene.draw() stays thin.  Every
function takes a ``View`` for plane → screen conversion and reads the
simulation state it is handed; nothing here mutates the world.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

import pygame
from core.app import App
from core.constants import COLOR_ROAD, COLOR_GATE, LOT_COLORS
from components import (
    Position, Kinematics, Sprite, Hidden, Lot, LotState, RoadSegment,
    TownBounds,
)
from core.ecs import World
from logic.road_graph import RoadGraph


@dataclass
class View:
    """Uniform scale + offset from map plane to surface pixels."""
    scale: float = 1.0
    ox: float = 0.0
    oy: float = 0.0

    @classmethod
    def fit(cls, bounds: TownBounds, width: int, height: int,
            margin: int = 12, top: int = 0) -> "View":
        bw = max(1.0, bounds.max_x - bounds.min_x)
        bh = max(1.0, bounds.max_y - bounds.min_y)
        scale = min((width - 2 * margin) / bw,
                    (height - top - 2 * margin) / bh)
        return cls(scale,
                   margin - bounds.min_x * scale,
                   top + margin - bounds.min_y * scale)

    def to_screen(self, x: float, y: float) -> tuple[int, int]:
        return int(self.ox + x * self.scale), int(self.oy + y * self.scale)

    def to_plane(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.ox) / self.scale, (sy - self.oy) / self.scale


# ── Map ─────────────────────────────────────────────────────────────

def draw_lots(surface: pygame.Surface, view: View, lots: list[Lot]):
    for lot in lots:
        if len(lot.points) < 3:
            continue
        color = LOT_COLORS.get(lot.usage.value, (255, 0, 255))
        if lot.state == LotState.ABANDONED:
            color = tuple(c // 2 for c in color)
        pts = [view.to_screen(x, y) for x, y in lot.points]
        pygame.draw.polygon(surface, color, pts)
        edge = (200, 200, 200) if lot.state == LotState.OCCUPIED else (90, 90, 90)
        pygame.draw.polygon(surface, edge, pts, 1)


def draw_roads(surface: pygame.Surface, view: View, roads: list[RoadSegment]):
    for road in roads:
        x, y = view.to_screen(road.x, road.y)
        w = max(1, int(road.width * view.scale))
        h = max(1, int(road.height * view.scale))
        pygame.draw.rect(surface, COLOR_ROAD, (x, y, w, h))


def draw_gates(surface: pygame.Surface, view: View, lots: list[Lot]):
    for lot in lots:
        for gx, gy in lot.gate_positions:
            pygame.draw.circle(surface, COLOR_GATE, view.to_screen(gx, gy), 3)


def draw_parking(surface: pygame.Surface, view: View, lots: list[Lot]):
    for lot in lots:
        for spot in lot.parking_spots:
            color = (90, 160, 220) if spot.free else (220, 120, 60)
            sx, sy = view.to_screen(spot.x, spot.y)
            pygame.draw.rect(surface, color, (sx - 2, sy - 2, 5, 5), 1)


def draw_graph(surface: pygame.Surface, view: View, graph: RoadGraph):
    for a, b in graph.edges():
        na, nb = graph.nodes[a], graph.nodes[b]
        pygame.draw.line(surface, (110, 110, 150),
                         view.to_screen(na.x, na.y), view.to_screen(nb.x, nb.y))
    for node in graph.nodes.values():
        pygame.draw.circle(surface, (160, 160, 220),
                           view.to_screen(node.x, node.y), 2)


# ── Agents ──────────────────────────────────────────────────────────

def draw_agents(surface: pygame.Surface, view: View, world: World,
                show_trails: bool, selected: int | None):
    agents = []
    for eid, pos, kin, sprite in world.query(Position, Kinematics, Sprite):
        if world.has(eid, Hidden):
            continue
        agents.append((sprite.layer, eid, pos, kin, sprite))
    agents.sort(key=lambda a: a[0])

    for _, eid, pos, kin, sprite in agents:
        if show_trails and len(kin.trail) > 1:
            pygame.draw.lines(surface, tuple(c // 2 for c in sprite.color),
                              False, [view.to_screen(x, y) for x, y in kin.trail])

        sx, sy = view.to_screen(pos.x, pos.y)
        r = max(2, int(sprite.size * view.scale * 0.5))
        pygame.draw.circle(surface, sprite.color, (sx, sy), r)
        # Heading tick
        hx = sx + int(math.cos(kin.heading) * (r + 3))
        hy = sy + int(math.sin(kin.heading) * (r + 3))
        pygame.draw.line(surface, (240, 240, 240), (sx, sy), (hx, hy))
        if kin.braking:
            pygame.draw.circle(surface, (255, 60, 60), (sx, sy), r + 2, 1)

        if eid == selected:
            pygame.draw.circle(surface, (255, 255, 255), (sx, sy), r + 5, 1)
            route = ([kin.target] if kin.target else []) + list(kin.path)
            if route:
                pts = [(sx, sy)] + [view.to_screen(x, y) for x, y in route]
                pygame.draw.lines(surface, (255, 255, 255), False, pts)


# ── HUD ─────────────────────────────────────────────────────────────

def draw_hud(surface: pygame.Surface, app: App, info: dict, paused: bool,
             feed: list[dict]):
    pygame.draw.rect(surface, (16, 16, 20), (0, 0, surface.get_width(), 22))
    states = "  ".join(f"{k}:{v}" for k, v in sorted(info["states"].items()))
    line = (f"{info['time']}  x{info['speed']:.0f}"
            f"{'  PAUSED' if paused else ''}  "
            f"res {info['residents']}  cars {info['cars']}  "
            f"moving {info['moving']}")
    app.draw_text(surface, line, 6, 3, color=(230, 230, 230))
    app.draw_text(surface, states, 6, surface.get_height() - 16,
                  color=(170, 170, 170), font=app.font_sm)

    y = 28
    for entry in feed:
        text = f"[{entry['cat']}] {entry['name'] or entry['eid']}: {entry['msg']}"
        app.draw_text(surface, text[:70], surface.get_width() - 430, y,
                      color=(200, 200, 160), font=app.font_sm)
        y += 13
