"""Three-stage knockout qualifying for the stock car simulation engine.

Q1 runs the whole field and drops everyone outside the Q1 cutoff, Q2
narrows the survivors to the Q2 cutoff, and Q3 decides the top of the
grid with no further elimination.  The final grid stacks the Q3 order,
the Q2 casualties and the Q1 casualties and renumbers them 1..N.

Pools smaller than a cutoff simply advance every driver.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.physics import Q1, Q2, Q3, qualifying_lap_time
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.weather import check_condition

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

Q1_CUTOFF: int = 15  # drivers advancing from Q1
Q2_CUTOFF: int = 10  # drivers advancing from Q2 into the pole shoot-out

MIN_ATTEMPTS: int = 2
MAX_ATTEMPTS: int = 4
INVALID_LAP_PROBABILITY: float = 0.03  # lap deleted for track limits

# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QualifyingResult:
    """One driver's classification in a session or on the final grid.

    Attributes:
        position: Dense 1-based rank.
        driver_id: Driver classified.
        best_lap: Best valid lap in milliseconds; ``inf`` with no valid lap.
        gap: Gap to the session leader in milliseconds (leader = 0).
        eliminated: ``True`` if the driver was knocked out.
        eliminated_in: ``"Q1"`` or ``"Q2"`` for knocked-out drivers.
        attempts: Timed laps attempted in the session.
    """

    position: int
    driver_id: str
    best_lap: float
    gap: float
    eliminated: bool = False
    eliminated_in: str | None = None
    attempts: int = 0


@dataclass
class QualifyingSession:
    """Outcome of a single knockout session.

    Attributes:
        type: ``Q1``, ``Q2`` or ``Q3``.
        weather: Session condition.
        participants: Driver ids that took part, in entry order.
        results: Ranked results.
        qualified: Driver ids advancing to the next session.
        eliminated: Driver ids knocked out in this session.
    """

    type: str
    weather: str
    participants: list[str] = field(default_factory=list)
    results: list[QualifyingResult] = field(default_factory=list)
    qualified: list[str] = field(default_factory=list)
    eliminated: list[str] = field(default_factory=list)

    @property
    def pole_position(self) -> QualifyingResult | None:
        return self.results[0] if self.results else None


@dataclass
class QualifyingWeekend:
    """All three sessions plus the grid they produce."""

    weather: str
    sessions: list[QualifyingSession] = field(default_factory=list)
    final_grid: list[QualifyingResult] = field(default_factory=list)

    @property
    def pole_position(self) -> QualifyingResult | None:
        return self.final_grid[0] if self.final_grid else None

    def session(self, session_type: str) -> QualifyingSession:
        for sess in self.sessions:
            if sess.type == session_type:
                return sess
        raise KeyError(session_type)

    def eliminated_in(self, driver_id: str) -> str | None:
        for result in self.final_grid:
            if result.driver_id == driver_id:
                return result.eliminated_in
        return None


# ---------------------------------------------------------------------------
# Session mechanics
# ---------------------------------------------------------------------------


def rank_session(results: list[QualifyingResult]) -> list[QualifyingResult]:
    """Sort results by best lap and assign positions and gaps.

    Drivers without a valid lap (``inf``) sort last.  Ties keep their
    incoming order.  The leader's gap is always 0; drivers without a lap
    get an ``inf`` gap.
    """
    ordered = sorted(results, key=lambda r: r.best_lap)
    if not ordered:
        return []

    leader_lap = ordered[0].best_lap
    ranked: list[QualifyingResult] = []
    for idx, result in enumerate(ordered):
        if idx == 0:
            gap = 0.0
        elif math.isinf(result.best_lap):
            gap = math.inf
        else:
            gap = result.best_lap - leader_lap
        ranked.append(replace(result, position=idx + 1, gap=gap))
    return ranked


def _best_attempt(
    driver_id: str,
    roster: Roster,
    weather: str,
    session_type: str,
    track_factor: float,
    rng: Generator,
) -> tuple[float, int]:
    driver = roster.driver(driver_id)
    team = roster.team(driver.team_id)
    manufacturer = roster.manufacturer(driver.manufacturer_id)

    attempts = int(rng.integers(MIN_ATTEMPTS, MAX_ATTEMPTS + 1))
    best = math.inf
    for _ in range(attempts):
        lap = qualifying_lap_time(
            driver, team, manufacturer, weather, session_type, rng, track_factor
        )
        if float(rng.random()) < INVALID_LAP_PROBABILITY:
            continue
        best = min(best, float(round(lap)))
    return best, attempts


def run_session(
    session_type: str,
    participants: list[str],
    weather: str,
    roster: Roster,
    cutoff: int | None,
    seed: int | Generator | None = None,
) -> QualifyingSession:
    """Run one knockout session.

    Every participant makes 2-4 timed attempts.  Each attempt has an
    ``INVALID_LAP_PROBABILITY`` chance of being deleted; the best valid
    lap counts.  The top ``cutoff`` drivers advance and the rest are
    marked eliminated in this session.

    Args:
        session_type: ``Q1``, ``Q2`` or ``Q3``.
        participants: Driver ids taking part.
        weather: Session condition.
        roster: Roster used to look up ratings.
        cutoff: Number of drivers advancing, or ``None`` for no
            elimination (Q3).
        seed: Seed or generator for reproducibility.

    Returns:
        The ranked :class:`QualifyingSession`.

    Raises:
        ValueError: If the cutoff is negative or a driver appears twice.
    """
    if cutoff is not None and cutoff < 0:
        raise ValueError("cutoff must be >= 0.")
    if len(set(participants)) != len(participants):
        raise ValueError("participants must not contain duplicates.")

    rng: Generator = np.random.default_rng(seed)
    track_factor = float(rng.uniform(0.85, 1.15))

    raw: list[QualifyingResult] = []
    for driver_id in participants:
        best, attempts = _best_attempt(
            driver_id, roster, weather, session_type, track_factor, rng
        )
        raw.append(
            QualifyingResult(
                position=0,
                driver_id=driver_id,
                best_lap=best,
                gap=0.0,
                attempts=attempts,
            )
        )

    ranked = rank_session(raw)
    advancing = len(ranked) if cutoff is None else min(cutoff, len(ranked))

    results: list[QualifyingResult] = []
    for idx, result in enumerate(ranked):
        if idx < advancing:
            results.append(result)
        else:
            results.append(replace(result, eliminated=True, eliminated_in=session_type))

    session = QualifyingSession(
        type=session_type,
        weather=weather,
        participants=list(participants),
        results=results,
        qualified=[r.driver_id for r in results if not r.eliminated]
        if cutoff is not None
        else [],
        eliminated=[r.driver_id for r in results if r.eliminated],
    )
    logger.debug(
        "%s complete: %d ran, %d eliminated",
        session_type,
        len(results),
        len(session.eliminated),
    )
    return session


def build_final_grid(
    q1: QualifyingSession,
    q2: QualifyingSession,
    q3: QualifyingSession,
) -> list[QualifyingResult]:
    """Assemble the starting grid from the three sessions.

    Positions 1..len(Q3) follow the Q3 order, then the Q2 casualties in
    their Q2 order, then the Q1 casualties in their Q1 order.  Positions
    are renumbered contiguously across the concatenation.
    """
    grid: list[QualifyingResult] = []
    grid.extend(replace(r, eliminated=False, eliminated_in=None) for r in q3.results)
    grid.extend(
        replace(r, eliminated=True, eliminated_in=Q2)
        for r in q2.results
        if r.eliminated
    )
    grid.extend(
        replace(r, eliminated=True, eliminated_in=Q1)
        for r in q1.results
        if r.eliminated
    )
    return [replace(r, position=idx + 1) for idx, r in enumerate(grid)]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def simulate_qualifying(
    participants: list[str],
    weather: str,
    roster: Roster,
    seed: int | Generator | None = None,
    q1_cutoff: int = Q1_CUTOFF,
    q2_cutoff: int = Q2_CUTOFF,
) -> QualifyingWeekend:
    """Run Q1, Q2 and Q3 and build the starting grid.

    Args:
        participants: Driver ids entered, typically the active roster.
        weather: Condition for all three sessions.
        roster: Roster used to look up ratings.
        seed: Seed or generator for reproducibility.
        q1_cutoff: Drivers advancing from Q1.
        q2_cutoff: Drivers advancing from Q2.

    Returns:
        A :class:`QualifyingWeekend` whose ``final_grid`` covers every
        participant.

    Raises:
        ValueError: If a cutoff is negative, ``q2_cutoff > q1_cutoff``, the
            weather is unknown or a participant appears twice.
        NotFoundError: If a participant is not in the roster.
    """
    if q1_cutoff < 0 or q2_cutoff < 0:
        raise ValueError("cutoffs must be >= 0.")
    if q2_cutoff > q1_cutoff:
        raise ValueError("q2_cutoff must not exceed q1_cutoff.")
    check_condition(weather)

    rng: Generator = np.random.default_rng(seed)

    q1 = run_session(Q1, list(participants), weather, roster, q1_cutoff, rng)
    q2 = run_session(Q2, q1.qualified, weather, roster, q2_cutoff, rng)
    q3 = run_session(Q3, q2.qualified, weather, roster, None, rng)

    weekend = QualifyingWeekend(
        weather=weather,
        sessions=[q1, q2, q3],
        final_grid=build_final_grid(q1, q2, q3),
    )
    pole = weekend.pole_position
    logger.info(
        "Qualifying complete: %d drivers, pole %s",
        len(weekend.final_grid),
        pole.driver_id if pole else "-",
    )
    return weekend


def run_knockout(
    participants: list[str],
    weather: str,
    roster: Roster,
    seed: int | Generator | None = None,
    q1_cutoff: int = Q1_CUTOFF,
    q2_cutoff: int = Q2_CUTOFF,
) -> list[QualifyingResult]:
    """Run the knockout and return only the final starting grid."""
    return simulate_qualifying(
        participants, weather, roster, seed, q1_cutoff, q2_cutoff
    ).final_grid


def format_lap_time(milliseconds: float) -> str:
    """Render a lap as ``M:SS.mmm``; ``"-"`` for no time."""
    if math.isinf(milliseconds):
        return "-"
    total = int(round(milliseconds))
    minutes, rest = divmod(total, 60000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes}:{seconds:02d}.{millis:03d}"


def format_gap(gap: float) -> str:
    """Render a gap to the leader; ``"POLE"`` for the leader."""
    if gap == 0.0:
        return "POLE"
    if math.isinf(gap):
        return "-"
    return f"+{gap / 1000.0:.3f}s"
