"""core/events.py — Lightweight event bus.

Decouples systems that need to *signal* something (a resident changed
activity, a parking spot was taken) from systems that *react* to it (the
viewer's event feed, tests).  The bus lives as an ECS resource::

    from core.events import EventBus
    bus = world.res(EventBus)
    bus.emit(ActivityChanged(eid=42, activity="at_bar", lot_id=7))

Consumers subscribe with a callable::

    bus.subscribe("ActivityChanged", my_handler)

And ``TownSim.tick`` drains once per tick, after every system ran::

    bus.drain()          # calls all handlers for pending events

Design rules:
  - Events are plain dataclasses with no behaviour.
  - ``emit()`` is O(1) (just appends).
  - ``drain()`` processes all queued events in FIFO order.
  - Handlers may emit new events; those are processed in the same drain.
"""

from __future__ import annotations
import traceback
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable


# ═══════════════════════════════════════════════════════════════════
#  Event definitions
# ═══════════════════════════════════════════════════════════════════

@dataclass
class ActivityChanged:
    """A resident's scheduled activity (or its target lot) changed."""
    eid: int
    activity: str = ""
    previous: str = ""
    lot_id: int | None = None
    hour: float = 0.0
    travel: str = ""        # "drive", "walk", "home" or "" (stays put)


@dataclass
class PathAssigned:
    """The dispatcher gave an agent a fresh path."""
    eid: int
    length: int = 0
    source: str = "graph"   # "graph", "pre_path", "fallback", "direct"


@dataclass
class ParkingReserved:
    eid: int
    lot_id: int = 0
    x: float = 0.0
    y: float = 0.0


@dataclass
class ParkingReleased:
    eid: int
    lot_id: int = 0


@dataclass
class ResidentLeftTown:
    """Resident (and car) reached the highway exit and were hidden."""
    eid: int
    car_eid: int | None = None
    return_at: float = 0.0  # sim seconds


@dataclass
class ResidentReturned:
    eid: int
    car_eid: int | None = None
    x: float = 0.0
    y: float = 0.0


# ═══════════════════════════════════════════════════════════════════
#  Event Bus
# ═══════════════════════════════════════════════════════════════════

class EventBus:
    """Fire-and-forget event bus stored as an ECS resource."""

    def __init__(self):
        self._queue: list[Any] = []
        self._subs: dict[str, list[Callable]] = defaultdict(list)
        self._stats: dict[str, int] = defaultdict(int)

    # ── Public API ───────────────────────────────────────────────────

    def emit(self, event) -> None:
        """Queue an event for processing on next ``drain()``."""
        self._queue.append(event)

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """Register *handler* to receive events of *event_type*.

        *event_type* is the class name, e.g. ``"ParkingReserved"``.
        """
        self._subs[event_type].append(handler)

    def drain(self) -> int:
        """Process all queued events.  Returns number processed.

        A failing handler is reported and skipped so one broken
        subscriber cannot stall the tick for everyone else.
        """
        processed = 0
        safety = 1000  # prevent infinite loops
        while self._queue and safety > 0:
            batch = self._queue[:]
            self._queue.clear()
            for event in batch:
                name = type(event).__name__
                self._stats[name] += 1
                for handler in self._subs.get(name, []):
                    try:
                        handler(event)
                    except Exception as exc:
                        print(f"[EVENT] handler error for {name}: {exc}")
                        traceback.print_exc()
            processed += len(batch)
            safety -= 1
        return processed

    def clear(self) -> None:
        """Discard all pending events."""
        self._queue.clear()

    def stats(self) -> dict[str, int]:
        """Return cumulative event counts by type."""
        return dict(self._stats)

    def pending_count(self) -> int:
        """Number of events waiting to be drained."""
        return len(self._queue)

    def __repr__(self) -> str:
        return f"EventBus(pending={len(self._queue)}, subs={len(self._subs)})"
