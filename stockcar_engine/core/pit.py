"""Pit-stop schedule generation for the stock car simulation engine.

Every car must make one mandatory tyre stop inside the pit window.  On
top of that a car may make a late strategic stop or an unplanned stop
for damage.  The whole schedule is drawn before the race starts and the
lap loop applies it lap by lap.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.roster import Roster
from stockcar_engine.core.team import Team

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MANDATORY: str = "mandatory"
STRATEGY: str = "strategy"
DAMAGE: str = "damage"
REASONS: tuple[str, ...] = (MANDATORY, STRATEGY, DAMAGE)

BASE_STOP_DURATION_S: float = 25.0
FACILITIES_SAVING_S: float = 5.0  # saved by a team with facilities = 100
STOP_JITTER_S: float = 2.0
MIN_STOP_DURATION_S: float = 20.0

STRATEGY_STOP_PROBABILITY: float = 0.15
DAMAGE_STOP_PROBABILITY: float = 0.05

MISSED_MANDATORY_PENALTY_S: float = 30.0


@dataclass(frozen=True)
class PitStop:
    """A scheduled stop.

    Attributes:
        lap: Lap (1-based) on which the car stops.
        driver_id: Driver making the stop.
        duration: Stationary plus pit-lane time in seconds.
        reason: ``mandatory``, ``strategy`` or ``damage``.
    """

    lap: int
    driver_id: str
    duration: float
    reason: str

    def __post_init__(self) -> None:
        if self.lap < 1:
            raise ValueError("lap must be >= 1.")
        if self.duration <= 0.0:
            raise ValueError("duration must be > 0.")
        if self.reason not in REASONS:
            raise ValueError(f"Unknown pit-stop reason '{self.reason}'.")


def pit_window(laps: int) -> tuple[int, int]:
    """Half-open mandatory stop window ``[0.3 * laps, 0.7 * laps)``.

    The window always holds at least one lap, so a one-lap race still has
    a legal stop on lap 1.
    """
    if laps < 1:
        raise ValueError("laps must be >= 1.")
    start = max(1, int(laps * 0.3))
    stop = max(start + 1, int(laps * 0.7))
    return start, stop


def late_window(laps: int) -> tuple[int, int]:
    """Half-open window covering the final quarter of the race."""
    start = max(1, int(laps * 0.75))
    stop = max(start + 1, laps)
    return start, stop


def pit_stop_duration(team: Team, rng: Generator, extra: float = 0.0) -> float:
    """Duration of one stop in seconds.

    ``25 - facilities / 100 * 5 + U(-2, 2) + extra``, floored at 20 s and
    rounded to a tenth.
    """
    duration = (
        BASE_STOP_DURATION_S
        - team.facilities / 100.0 * FACILITIES_SAVING_S
        + float(rng.uniform(-STOP_JITTER_S, STOP_JITTER_S))
        + extra
    )
    return round(max(MIN_STOP_DURATION_S, duration), 1)


def generate_pit_stops(
    driver_ids: list[str],
    roster: Roster,
    laps: int,
    seed: int | Generator | None = None,
) -> list[PitStop]:
    """Draw the pit-stop schedule for a race.

    Per driver, in grid order:
        1. One mandatory stop on a lap drawn from :func:`pit_window`.
        2. With probability ``STRATEGY_STOP_PROBABILITY``, a strategic stop
           in the final quarter, ``U(1, 3)`` s slower than a normal stop.
        3. With probability ``DAMAGE_STOP_PROBABILITY``, a damage stop on any
           lap, ``U(10, 25)`` s slower than a normal stop.

    Args:
        driver_ids: Drivers taking the start.
        roster: Roster used to look up each driver's team.
        laps: Race length in laps (>= 1).
        seed: Seed or generator for reproducibility.

    Returns:
        Every stop, sorted by lap.  Stops on the same lap keep grid order.

    Raises:
        ValueError: If laps < 1.
        NotFoundError: If a driver or team is unknown.
    """
    if laps < 1:
        raise ValueError("laps must be >= 1.")

    rng: Generator = np.random.default_rng(seed)
    start, stop = pit_window(laps)
    late_start, late_stop = late_window(laps)

    stops: list[PitStop] = []
    for driver_id in driver_ids:
        team = roster.team(roster.driver(driver_id).team_id)

        stops.append(
            PitStop(
                lap=int(rng.integers(start, stop)),
                driver_id=driver_id,
                duration=pit_stop_duration(team, rng),
                reason=MANDATORY,
            )
        )

        if float(rng.random()) < STRATEGY_STOP_PROBABILITY:
            stops.append(
                PitStop(
                    lap=int(rng.integers(late_start, late_stop)),
                    driver_id=driver_id,
                    duration=pit_stop_duration(
                        team, rng, extra=float(rng.uniform(1.0, 3.0))
                    ),
                    reason=STRATEGY,
                )
            )

        if float(rng.random()) < DAMAGE_STOP_PROBABILITY:
            stops.append(
                PitStop(
                    lap=int(rng.integers(1, laps + 1)),
                    driver_id=driver_id,
                    duration=pit_stop_duration(
                        team, rng, extra=float(rng.uniform(10.0, 25.0))
                    ),
                    reason=DAMAGE,
                )
            )

    stops.sort(key=lambda s: s.lap)
    return stops
