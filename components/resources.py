"""components.resources — World-level singletons (not per-entity)."""

from __future__ import annotations
from dataclasses import dataclass

from core.constants import (
    SECONDS_PER_DAY, SECONDS_PER_HOUR, DEFAULT_TIME_SPEED, START_HOUR,
    DAYS_PER_WEEK,
)


@dataclass
class GameClock:
    """Simulated time; the only clock the behaviour systems read.

    ``elapsed`` is monotonic sim seconds since the session started (used
    for absolute deadlines such as an out-of-town return time).
    ``seconds_of_day`` wraps at midnight, bumping ``day``.

    ``day_of_week`` is set from outside (0 = Sunday); the default
    ``advance()`` derives it as ``day % 7`` each time the day rolls.
    """
    elapsed: float = 0.0
    seconds_of_day: float = START_HOUR * SECONDS_PER_HOUR
    day: int = 1
    day_of_week: int = 1
    speed: float = DEFAULT_TIME_SPEED

    @property
    def hour(self) -> float:
        return self.seconds_of_day / SECONDS_PER_HOUR

    @property
    def minute(self) -> int:
        return int((self.seconds_of_day % SECONDS_PER_HOUR) // 60)

    @property
    def time_scale(self) -> float:
        """Multiplier from real dt to movement dt (1.0 at one game-minute/s)."""
        return self.speed / 60.0

    def set_day_of_week(self, dow: int) -> None:
        self.day_of_week = dow % DAYS_PER_WEEK

    def advance(self, real_dt: float) -> float:
        """Advance by ``real_dt`` real seconds.  Returns sim seconds added."""
        sim_dt = real_dt * self.speed
        self.elapsed += sim_dt
        self.seconds_of_day += sim_dt
        while self.seconds_of_day >= SECONDS_PER_DAY:
            self.seconds_of_day -= SECONDS_PER_DAY
            self.day += 1
            self.day_of_week = self.day % DAYS_PER_WEEK
        return sim_dt

    def label(self) -> str:
        h = int(self.hour)
        return f"Day {self.day} - {h:02d}:{self.minute:02d}"
