"""core/constants.py — Shared constants used across the codebase.

Centralises magic numbers so there's exactly one place to change them.

Unit System
-----------
All positions live on the **map plane**, the coordinate space the town
map was authored in (x to the right, y downwards).  One plane unit is
roughly a foot; a street block is ~20 units wide.

    Distance / position     u       (plane units)
    Speed                   u/s     (plane units per simulated second)
    Time (sim)              s       (simulated seconds, see below)
    Time of day             h       (0–24 float, may run past 24 for
                                     activities that end after midnight)
    Angles                  rad     (radians, 0 = +x, counter-clockwise)

Game Time Scale
~~~~~~~~~~~~~~~
``SECONDS_PER_DAY`` simulated seconds = 1 in-game day.
``DEFAULT_TIME_SPEED`` simulated seconds advance per real second; at
60, one real second is one game minute.  Movement is integrated with
``real_dt * (time_speed / 60)`` so agents cover a believable distance
per game minute regardless of the clock speed.

Reference speeds:
    Walk        8–12 u/s    (Resident base speed)
    Car         2× base     (vehicle speed_mult)
    Bus         1.4× base   (bus speed_mult)
"""

# ── Game-time conversion ────────────────────────────────────────────
SECONDS_PER_HOUR: float = 3600.0
SECONDS_PER_DAY: float = 24.0 * SECONDS_PER_HOUR
DEFAULT_TIME_SPEED: float = 60.0        # sim seconds per real second
START_HOUR: float = 8.0                 # clock starts at 8 AM, day 1
DAYS_PER_WEEK = 7

# ── Terrain heights (implicit third coordinate of a Position) ───────
TERRAIN_ROAD = 1.0
TERRAIN_LOT = 2.0

# ── Mover kinds (index into [kinematics.<kind>] tuning tables) ──────
KIND_PEDESTRIAN = "pedestrian"
KIND_VEHICLE = "vehicle"
KIND_BUS = "bus"

# ── Navigator modes ─────────────────────────────────────────────────
NAV_ROAM = "roam"          # dispatcher picks random road destinations
NAV_DIRECTED = "directed"  # destination supplied by the scheduler
NAV_MANUAL = "manual"      # dispatcher only promotes path → target

# ── Viewer palette — index → color ──────────────────────────────────
COLOR_ROAD = (70, 70, 78)
COLOR_GATE = (240, 220, 90)
LOT_COLORS = {
    "vacant":      (60, 66, 52),
    "residential": (64, 110, 70),
    "commercial":  (110, 90, 60),
    "public":      (70, 100, 120),
    "bar":         (130, 60, 70),
    "church":      (120, 120, 140),
    "parking":     (90, 90, 90),
}
AGENT_COLORS = {
    "pedestrian": (34, 204, 102),
    "vehicle":    (204, 51, 51),
    "bus":        (240, 190, 40),
}
