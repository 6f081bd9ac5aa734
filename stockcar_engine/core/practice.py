"""Free practice sessions for the stock car simulation engine.

A weekend opens with three practice sessions (FP1, FP2, FP3).  Each
active driver runs a stint of 15-24 laps at qualifying-style pace with
no session pressure; track rubber builds through the weekend, so FP1 is
the slowest and FP3 the quickest.  Laps lost to track limits do not
count towards the best or average lap.

Practice has no bearing on the grid; it produces a timing sheet only.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.physics import Q1, qualifying_lap_time
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.weather import check_condition

logger = logging.getLogger(__name__)

FP1: str = "FP1"
FP2: str = "FP2"
FP3: str = "FP3"
PRACTICE_SESSIONS: tuple[str, ...] = (FP1, FP2, FP3)

# Pace multiplier per session; the track is greenest in FP1.
SESSION_PACE: dict[str, float] = {FP1: 1.02, FP2: 1.01, FP3: 1.0}

MIN_LAPS: int = 15
MAX_LAPS: int = 24
INVALID_LAP_PROBABILITY: float = 0.05


@dataclass(frozen=True)
class PracticeResult:
    """One driver's line on a practice timing sheet.

    Attributes:
        position: 1-based rank by best lap.
        driver_id: Driver classified.
        best_lap: Best valid lap in milliseconds; ``inf`` with no valid lap.
        average_lap: Mean of the valid laps; ``inf`` with no valid lap.
        gap: Gap to the fastest driver in milliseconds.
        laps_completed: Laps run, valid or not.
        valid_laps: Laps that counted.
    """

    position: int
    driver_id: str
    best_lap: float
    average_lap: float
    gap: float
    laps_completed: int
    valid_laps: int


@dataclass
class PracticeSession:
    """A completed practice session."""

    type: str
    weather: str
    participants: list[str] = field(default_factory=list)
    results: list[PracticeResult] = field(default_factory=list)

    @property
    def fastest(self) -> PracticeResult | None:
        return self.results[0] if self.results else None

    @property
    def total_laps(self) -> int:
        return sum(r.laps_completed for r in self.results)


def _rank(results: list[PracticeResult]) -> list[PracticeResult]:
    ordered = sorted(results, key=lambda r: r.best_lap)
    if not ordered:
        return []
    leader = ordered[0].best_lap
    ranked: list[PracticeResult] = []
    for idx, result in enumerate(ordered):
        if idx == 0:
            gap = 0.0
        elif math.isinf(result.best_lap):
            gap = math.inf
        else:
            gap = result.best_lap - leader
        ranked.append(replace(result, position=idx + 1, gap=gap))
    return ranked


def run_practice_session(
    session_type: str,
    participants: list[str],
    weather: str,
    roster: Roster,
    seed: int | Generator | None = None,
) -> PracticeSession:
    """Run one practice session.

    ::

        lap = qualifying_lap(Q1 settings) * SESSION_PACE[session]

    Args:
        session_type: ``FP1``, ``FP2`` or ``FP3``.
        participants: Driver ids taking part.
        weather: Session condition.
        roster: Roster used to look up ratings.
        seed: Seed or generator for reproducibility.

    Returns:
        The :class:`PracticeSession` with results ranked by best lap.

    Raises:
        ValueError: If the session type or weather is unknown, or a
            driver appears twice.
    """
    if session_type not in SESSION_PACE:
        raise ValueError(f"Unknown practice session '{session_type}'.")
    check_condition(weather)
    if len(set(participants)) != len(participants):
        raise ValueError("participants must not contain duplicates.")

    rng: Generator = np.random.default_rng(seed)
    pace = SESSION_PACE[session_type]
    track_factor = float(rng.uniform(0.85, 1.15))

    raw: list[PracticeResult] = []
    for driver_id in participants:
        driver = roster.driver(driver_id)
        team = roster.team(driver.team_id)
        manufacturer = roster.manufacturer(driver.manufacturer_id)

        laps = int(rng.integers(MIN_LAPS, MAX_LAPS + 1))
        valid: list[float] = []
        for _ in range(laps):
            lap = qualifying_lap_time(
                driver, team, manufacturer, weather, Q1, rng, track_factor
            )
            if float(rng.random()) < INVALID_LAP_PROBABILITY:
                continue
            valid.append(float(round(lap * pace)))

        raw.append(
            PracticeResult(
                position=0,
                driver_id=driver_id,
                best_lap=min(valid) if valid else math.inf,
                average_lap=sum(valid) / len(valid) if valid else math.inf,
                gap=0.0,
                laps_completed=laps,
                valid_laps=len(valid),
            )
        )

    session = PracticeSession(
        type=session_type,
        weather=weather,
        participants=list(participants),
        results=_rank(raw),
    )
    logger.debug(
        "%s complete: %d drivers, %d laps", session_type, len(raw), session.total_laps
    )
    return session


def simulate_practice(
    participants: list[str],
    weather: str,
    roster: Roster,
    seed: int | Generator | None = None,
) -> list[PracticeSession]:
    """Run FP1, FP2 and FP3 in order on one generator."""
    rng: Generator = np.random.default_rng(seed)
    sessions = [
        run_practice_session(session_type, participants, weather, roster, rng)
        for session_type in PRACTICE_SESSIONS
    ]
    fastest = sessions[-1].fastest
    logger.info(
        "Practice complete: FP3 fastest %s", fastest.driver_id if fastest else "-"
    )
    return sessions
