"""components.rendering — Visual identity and display."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Identity:
    name: str = "unnamed"
    kind: str = "resident"     # "resident", "car", "tourist", "bus"


@dataclass
class Sprite:
    color: tuple = (255, 255, 255)
    size: float = 4.0          # footprint in plane units (from mover profile)
    layer: int = 0             # draw order
