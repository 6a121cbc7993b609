"""simulation/planner.py — Daily activity plans for residents.

A plan is built once per simulated day per resident, in this order:

    sleep (00:00 → wake)                                      priority 10
    morning at home (30–60 min)                                        5
    work at a fixed workplace, if employed                              8
    lifestyle extras (friends, wandering, shopping, overtime)        2–6
    church on the designated weekday, gated by religiosity              7
    lunch at the bar (sociability) / evening drinks (drinking habit)    4
    wind-down at home (the hour before bed)                             6
    sleep (bed → 24:00)                                                10

``resolve_conflicts`` then folds the list into non-overlapping,
start-ordered intervals: on overlap the higher priority keeps its slot
and the loser is trimmed (if it started earlier) or dropped.  Ties go
to the activity already accepted.

All randomness comes from the ``rng`` argument.
"""

from __future__ import annotations
import math
import random
from typing import Sequence

from core.tuning import get as _tun
from components import (
    Lot, LotUsage, ResidentTraits, Lifestyle, ResidentState,
    ScheduledActivity, DailyPlan,
)
from logic.geometry import centroid


# ── Lot pickers ──────────────────────────────────────────────────────

def workplace_for(resident_key: str, lots: Sequence[Lot]) -> Lot | None:
    """Same resident, same workplace: commercial/public lot by key hash."""
    candidates = [l for l in lots
                  if l.usage in (LotUsage.COMMERCIAL, LotUsage.PUBLIC)]
    if not candidates:
        return None
    h = sum(ord(c) for c in resident_key)
    return candidates[h % len(candidates)]


def first_lot(lots: Sequence[Lot], usage: LotUsage) -> Lot | None:
    for lot in lots:
        if lot.usage == usage:
            return lot
    return None


def _pick(lots: Sequence[Lot], rng: random.Random, usage: LotUsage,
          exclude: int | None = None) -> Lot | None:
    candidates = [l for l in lots if l.usage == usage and l.id != exclude]
    if not candidates:
        return None
    return candidates[rng.randrange(len(candidates))]


def _pick_nearby(home: Lot, lots: Sequence[Lot],
                 rng: random.Random) -> Lot | None:
    radius = _tun("schedule", "nearby_radius", 200.0)
    hx, hy = centroid(home.points)
    candidates = []
    for lot in lots:
        if lot.id == home.id or not lot.points:
            continue
        cx, cy = centroid(lot.points)
        if math.hypot(cx - hx, cy - hy) < radius:
            candidates.append(lot)
    if not candidates:
        return None
    return candidates[rng.randrange(len(candidates))]


# ── Plan construction ────────────────────────────────────────────────

def generate_day_plan(traits: ResidentTraits, resident_key: str, home: Lot,
                      lots: Sequence[Lot], day: int, day_of_week: int,
                      rng: random.Random) -> DailyPlan:
    acts: list[ScheduledActivity] = []
    offset = (rng.random() - 0.5) * traits.routine_variation * 2

    # Sleep → morning
    wake = max(0.0, traits.wake_time + offset)
    acts.append(ScheduledActivity(ResidentState.SLEEPING, 0.0, wake,
                                  home.id, 10))
    acts.append(ScheduledActivity(ResidentState.IDLE_HOME, wake,
                                  wake + 0.5 + rng.random() * 0.5,
                                  home.id, 5))

    # Work
    work = workplace_for(resident_key, lots) if traits.has_job else None
    if work is not None:
        acts.append(ScheduledActivity(ResidentState.WORKING,
                                      traits.work_start + offset * 0.5,
                                      traits.work_end + offset * 0.5,
                                      work.id, 8))

    _add_lifestyle(acts, traits, home, lots, work, rng)

    # Church
    church_day = _tun("schedule", "church_weekday", 0)
    if (day_of_week == church_day and traits.religiosity > 0.4
            and rng.random() < traits.religiosity):
        church = first_lot(lots, LotUsage.CHURCH)
        if church is not None:
            acts.append(ScheduledActivity(ResidentState.AT_CHURCH, 10.0, 11.5,
                                          church.id, 7))

    # Bar: lunch and evening drinks, open until 1 AM
    bar = first_lot(lots, LotUsage.BAR)
    if bar is not None:
        if traits.sociability > 0.4 and rng.random() < traits.sociability * 0.3:
            start = 11.5 + rng.random() * 1.5
            acts.append(ScheduledActivity(ResidentState.EATING, start,
                                          start + 0.5 + rng.random() * 0.5,
                                          bar.id, 4))
        chance = max(0.15, traits.drinking_habit
                     * (0.6 + traits.sociability * 0.4))
        if rng.random() < chance:
            start = 18 + rng.random() * 4
            length = 1 + rng.random() * 2 * traits.drinking_habit
            acts.append(ScheduledActivity(ResidentState.AT_BAR, start,
                                          min(start + length, 25.0),
                                          bar.id, 4))

    # Evening
    bed = min(24.0, traits.sleep_time + offset)
    acts.append(ScheduledActivity(ResidentState.IDLE_HOME, bed - 1, bed,
                                  home.id, 6))
    acts.append(ScheduledActivity(ResidentState.SLEEPING, bed, 24.0,
                                  home.id, 10))

    return DailyPlan(day=day, activities=resolve_conflicts(acts))


def _add_lifestyle(acts: list[ScheduledActivity], traits: ResidentTraits,
                   home: Lot, lots: Sequence[Lot], work: Lot | None,
                   rng: random.Random) -> None:
    style = traits.lifestyle

    if style == Lifestyle.SOCIAL_BUTTERFLY:
        if rng.random() < 0.6:
            friend = _pick(lots, rng, LotUsage.RESIDENTIAL, exclude=home.id)
            start = 14 + rng.random() * 4
            acts.append(ScheduledActivity(ResidentState.SOCIALIZING, start,
                                          start + 1 + rng.random() * 2,
                                          (friend or home).id, 5))
        if rng.random() < 0.5:
            park = _pick(lots, rng, LotUsage.PUBLIC)
            if park is not None:
                start = 10 + rng.random() * 6
                acts.append(ScheduledActivity(ResidentState.WALKING_AROUND,
                                              start, start + 0.5 + rng.random(),
                                              park.id, 3))

    elif style == Lifestyle.HOMEBODY:
        if rng.random() < 0.3:
            near = _pick_nearby(home, lots, rng)
            if near is not None:
                start = 11 + rng.random() * 4
                acts.append(ScheduledActivity(ResidentState.WALKING_AROUND,
                                              start, start + 0.5, near.id, 2))

    elif style == Lifestyle.BALANCED:
        if rng.random() < 0.4:
            shop = _pick(lots, rng, LotUsage.COMMERCIAL)
            if shop is not None:
                start = 10 + rng.random() * 6
                acts.append(ScheduledActivity(ResidentState.SHOPPING, start,
                                              start + 0.5 + rng.random(),
                                              shop.id, 4))
        if rng.random() < 0.3:
            park = _pick(lots, rng, LotUsage.PUBLIC)
            if park is not None:
                start = 16 + rng.random() * 3
                acts.append(ScheduledActivity(ResidentState.WALKING_AROUND,
                                              start,
                                              start + 0.5 + rng.random() * 0.5,
                                              park.id, 3))

    elif style == Lifestyle.WORKAHOLIC:
        if rng.random() < 0.5 and work is not None:
            acts.append(ScheduledActivity(ResidentState.WORKING, 19.0, 21.0,
                                          work.id, 6))


# ── Conflict resolution ──────────────────────────────────────────────

def resolve_conflicts(acts: list[ScheduledActivity]) -> list[ScheduledActivity]:
    """Fold *acts* into a sorted list with no overlapping intervals.

    Does not mutate the inputs; trimmed activities are copies.
    Zero-length entries (bedtime at exactly midnight) are dropped.
    """
    resolved: list[ScheduledActivity] = []
    for act in sorted(acts, key=lambda a: a.start_hour):
        if act.end_hour <= act.start_hour:
            continue
        rejected = False
        for existing in list(resolved):
            if not act.overlaps(existing):
                continue
            if act.priority > existing.priority:
                idx = resolved.index(existing)
                if existing.start_hour < act.start_hour:
                    resolved[idx] = ScheduledActivity(
                        existing.activity, existing.start_hour,
                        act.start_hour, existing.target_lot,
                        existing.priority)
                else:
                    del resolved[idx]
            else:
                rejected = True
        if not rejected:
            resolved.append(act)
    resolved.sort(key=lambda a: a.start_hour)
    return resolved


# ── Trait generation ─────────────────────────────────────────────────

_LIFESTYLE_WEIGHTS = (
    (Lifestyle.SOCIAL_BUTTERFLY, 0.25),
    (Lifestyle.HOMEBODY, 0.25),
    (Lifestyle.BALANCED, 0.35),
    (Lifestyle.WORKAHOLIC, 0.15),
)


def random_traits(rng: random.Random) -> ResidentTraits:
    """Draw a plausible personality for population seeding and tests."""
    styles = [s for s, _ in _LIFESTYLE_WEIGHTS]
    weights = [w for _, w in _LIFESTYLE_WEIGHTS]
    style = rng.choices(styles, weights)[0]
    employed = rng.random() < _tun("population", "employment_rate", 0.6)
    work_start = work_end = None
    if employed or style == Lifestyle.WORKAHOLIC:
        work_start = 7 + rng.random() * 3
        work_end = work_start + 6 + rng.random() * 3
    return ResidentTraits(
        sociability=rng.random(),
        adventurous=rng.random(),
        routine_variation=0.2 + rng.random() * 0.8,
        religiosity=rng.random(),
        drinking_habit=rng.random(),
        lifestyle=style,
        wake_time=5.5 + rng.random() * 3.5,
        sleep_time=21 + rng.random() * 3.5,
        work_start=work_start,
        work_end=work_end,
    )
