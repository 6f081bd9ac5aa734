"""Lap-by-lap race simulator for the stock car simulation engine.

The weather schedule and pit-stop plan are drawn before the start.  Each
lap then:

1. resolves the weather in force,
2. applies the pit stops scheduled for the lap (time loss, fresh tyres
   matched to the conditions, fuel top-up),
3. computes a lap time for every car still running,
4. rolls an independent retirement check per car,
5. re-ranks running cars by cumulative time.

A race can be stepped one lap at a time through :func:`start_race` and
:func:`simulate_lap` (for live display) or run to the flag with
:func:`simulate_race`.  All randomness comes from one
``numpy.random.Generator`` per race, so a seed reproduces the race
exactly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.physics import race_lap_time
from stockcar_engine.core.pit import (
    MANDATORY,
    MISSED_MANDATORY_PENALTY_S,
    PitStop,
    generate_pit_stops,
)
from stockcar_engine.core.qualifying import QualifyingResult
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.team import Team
from stockcar_engine.core.tyre import TyreState, compound_for
from stockcar_engine.core.weather import (
    WeatherCondition,
    check_condition,
    generate_weather_changes,
    weather_at,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

POINTS_TABLE: tuple[int, ...] = (25, 18, 15, 12, 10, 8, 6, 4, 2, 1)
FASTEST_LAP_BONUS: int = 1
FASTEST_LAP_ELIGIBLE: int = 10  # finishers in contention for the bonus

GRID_INVERSION_COUNT: int = 10
GRID_SLOT_GAP_MS: float = 250.0  # deficit per starting slot behind pole

FUEL_START: float = 100.0
FUEL_REFILL: float = 80.0

DNF_BASE_HAZARD: float = 0.002  # per-lap retirement hazard at 0 ratings

MAIN: str = "main"
INVERTED: str = "inverted"
RACE_TYPES: tuple[str, ...] = (MAIN, INVERTED)

RACING: str = "racing"
PIT: str = "pit"
DNF: str = "dnf"

DNF_REASONS: tuple[str, ...] = (
    "Mechanical failure",
    "Accident",
    "Engine failure",
    "Gearbox failure",
    "Overheating",
    "Electrical problem",
    "Puncture",
    "Fuel system problem",
)

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RaceResult:
    """One driver's classification at the flag.

    Attributes:
        position: Final position.  Finishers first, then retirements.
        driver_id: Driver classified.
        team_id: The driver's team.
        manufacturer_id: The driver's manufacturer.
        points: Championship points, including any fastest-lap bonus.
        fastest_lap: ``True`` for the fastest-lap bonus recipient.
        dnf: ``True`` if the driver retired.
        dnf_reason: Human-readable retirement cause.
        lap_time: Best lap in milliseconds (finishers only).
        total_time: Race time in milliseconds (finishers only).
        laps_completed: Laps completed before the flag or retirement.
        pit_stops: Stops made.
        grid_position: Starting position.
    """

    position: int
    driver_id: str
    team_id: str
    manufacturer_id: str
    points: int
    fastest_lap: bool
    dnf: bool
    dnf_reason: str | None = None
    lap_time: float | None = None
    total_time: float | None = None
    laps_completed: int = 0
    pit_stops: int = 0
    grid_position: int = 0


@dataclass(frozen=True)
class Race:
    """A calendar race record.

    Attributes:
        id: Unique race id.
        name: Display name.
        track_id: Roster track id.
        location: City and state.
        round: Weekend number in the season (1-based).
        laps: Race length in laps.
        distance: Race distance in kilometres.
        weather: Base condition at the start.
        race_type: ``main`` (grid from qualifying) or ``inverted``
            (grid from the main race).
        completed: ``True`` once results are attached.
        results: Final classification.
        starting_grid: Grid the race started from.
    """

    id: str
    name: str
    track_id: str
    location: str
    round: int
    laps: int
    distance: float
    weather: str
    race_type: str = MAIN
    completed: bool = False
    results: tuple[RaceResult, ...] | None = None
    starting_grid: tuple[QualifyingResult, ...] | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Race id must not be empty.")
        if self.laps < 1:
            raise ValueError("laps must be >= 1.")
        check_condition(self.weather)
        if self.race_type not in RACE_TYPES:
            raise ValueError(f"Unknown race type '{self.race_type}'.")


# ---------------------------------------------------------------------------
# Live race state
# ---------------------------------------------------------------------------


class RacePosition:
    """Mutable per-driver bookkeeping during a race."""

    __slots__ = (
        "driver",
        "team",
        "manufacturer",
        "position",
        "grid_position",
        "total_time",
        "laps_completed",
        "last_lap_time",
        "best_lap",
        "status",
        "tyre",
        "fuel",
        "pit_stops_completed",
        "mandatory_pit_completed",
        "dnf_reason",
    )

    def __init__(
        self,
        driver: Driver,
        team: Team,
        manufacturer: Manufacturer,
        grid_position: int,
        tyre: TyreState,
    ) -> None:
        self.driver: Driver = driver
        self.team: Team = team
        self.manufacturer: Manufacturer = manufacturer
        self.position: int = grid_position
        self.grid_position: int = grid_position
        self.total_time: float = (grid_position - 1) * GRID_SLOT_GAP_MS
        self.laps_completed: int = 0
        self.last_lap_time: float = 0.0
        self.best_lap: float = math.inf
        self.status: str = RACING
        self.tyre: TyreState = tyre
        self.fuel: float = FUEL_START
        self.pit_stops_completed: int = 0
        self.mandatory_pit_completed: bool = False
        self.dnf_reason: str | None = None

    @property
    def driver_id(self) -> str:
        return self.driver.id


@dataclass
class RaceState:
    """Everything needed to advance a race by one lap."""

    race: Race
    rng: Generator
    starting_grid: list[QualifyingResult]
    positions: list[RacePosition]
    weather_changes: list[WeatherCondition]
    pit_schedule: list[PitStop]
    pit_stops: list[PitStop] = field(default_factory=list)
    retired: list[str] = field(default_factory=list)
    lap_chart: list[list[str]] = field(default_factory=list)
    current_lap: int = 0

    @property
    def total_laps(self) -> int:
        return self.race.laps

    @property
    def finished(self) -> bool:
        return self.current_lap >= self.race.laps

    @property
    def current_weather(self) -> WeatherCondition:
        return weather_at(self.weather_changes, max(1, self.current_lap))

    @property
    def progress(self) -> float:
        """Completed share of the race in ``[0, 1]``."""
        if self.race.laps <= 0:
            return 0.0
        return min(1.0, self.current_lap / self.race.laps)

    def position_of(self, driver_id: str) -> RacePosition:
        for pos in self.positions:
            if pos.driver_id == driver_id:
                return pos
        raise KeyError(driver_id)


@dataclass
class RaceSimulation:
    """Outcome of a full race simulation.

    Attributes:
        race_id: Race simulated.
        race_type: ``main`` or ``inverted``.
        results: Final classification.
        pit_stops: Stops actually made, in lap order.
        weather_changes: Weather schedule used.
        starting_grid: Grid the race started from.
        lap_chart: Running order (driver ids) after every lap.
    """

    race_id: str
    race_type: str
    results: list[RaceResult]
    pit_stops: list[PitStop]
    weather_changes: list[WeatherCondition]
    starting_grid: list[QualifyingResult]
    lap_chart: list[list[str]] = field(default_factory=list)

    @property
    def winner(self) -> RaceResult | None:
        for result in self.results:
            if not result.dnf:
                return result
        return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def race_points(position: int, dnf: bool) -> int:
    """Points for a finishing position; retirements score nothing."""
    if dnf or position < 1 or position > len(POINTS_TABLE):
        return 0
    return POINTS_TABLE[position - 1]


def invert_grid(
    grid: list[QualifyingResult], count: int = GRID_INVERSION_COUNT
) -> list[QualifyingResult]:
    """Reverse the first *count* grid slots and renumber 1..N.

    Raises:
        ValueError: If count < 0.
    """
    if count < 0:
        raise ValueError("count must be >= 0.")
    reordered = list(reversed(grid[:count])) + list(grid[count:])
    return [replace(slot, position=idx + 1) for idx, slot in enumerate(reordered)]


def dnf_hazard(driver: Driver, manufacturer: Manufacturer) -> float:
    """Per-lap retirement probability.

    ``0.002 * (2 - (consistency + reliability) / 100)``, raised by up to
    50% for drivers with aggression above 50.
    """
    exposure = max(0.0, 2.0 - (driver.consistency + manufacturer.reliability) / 100.0)
    aggression = 1.0 + max(0.0, driver.aggression - 50.0) / 100.0
    return DNF_BASE_HAZARD * exposure * aggression


def _check_grid(grid: list[QualifyingResult]) -> None:
    if not grid:
        raise ValueError("starting grid must not be empty.")
    ids = [slot.driver_id for slot in grid]
    if len(set(ids)) != len(ids):
        raise ValueError("starting grid must not list a driver twice.")


def _rank(state: RaceState) -> None:
    running = [p for p in state.positions if p.status != DNF]
    running.sort(key=lambda p: p.total_time)
    by_id = {p.driver_id: p for p in state.positions}
    retired = [by_id[driver_id] for driver_id in state.retired]
    state.positions = running + retired
    for idx, pos in enumerate(state.positions):
        pos.position = idx + 1


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def start_race(
    race: Race,
    starting_grid: list[QualifyingResult],
    roster: Roster,
    seed: int | Generator | None = None,
    invert_count: int = 0,
) -> RaceState:
    """Line the cars up and pre-generate weather and pit stops.

    Args:
        race: Race record to simulate.
        starting_grid: Grid in starting order.
        roster: Roster used to look up ratings.
        seed: Seed or generator for reproducibility.
        invert_count: If > 0, reverse this many slots at the front of the
            grid before the start.

    Returns:
        A :class:`RaceState` at lap 0.

    Raises:
        ValueError: If the grid is empty or lists a driver twice.
        NotFoundError: If a grid driver is not in the roster.
    """
    _check_grid(starting_grid)
    grid = invert_grid(starting_grid, invert_count) if invert_count else list(
        starting_grid
    )

    rng: Generator = np.random.default_rng(seed)
    positions: list[RacePosition] = []
    for idx, slot in enumerate(grid):
        driver = roster.driver(slot.driver_id)
        positions.append(
            RacePosition(
                driver=driver,
                team=roster.team(driver.team_id),
                manufacturer=roster.manufacturer(driver.manufacturer_id),
                grid_position=idx + 1,
                tyre=TyreState(compound_for(race.weather)),
            )
        )

    weather_changes = generate_weather_changes(race.weather, race.laps, rng)
    pit_schedule = generate_pit_stops(
        [slot.driver_id for slot in grid], roster, race.laps, rng
    )

    return RaceState(
        race=race,
        rng=rng,
        starting_grid=grid,
        positions=positions,
        weather_changes=weather_changes,
        pit_schedule=pit_schedule,
    )


def simulate_lap(state: RaceState) -> RaceState:
    """Advance the race by one lap in place and return the state.

    Raises:
        ValueError: If the race has already finished.
    """
    if state.finished:
        raise ValueError(f"Race '{state.race.id}' has already finished.")

    lap = state.current_lap + 1
    total_laps = state.total_laps
    rng = state.rng

    # 1. Weather
    weather = weather_at(state.weather_changes, lap)
    if lap > 1 and weather.lap == lap:
        logger.debug("Lap %d: weather now %s", lap, weather.condition)

    # 2. Pit stops; a car shows as in the pits for the lap of its stop
    for pos in state.positions:
        if pos.status == PIT:
            pos.status = RACING
    for stop in state.pit_schedule:
        if stop.lap != lap:
            continue
        pos = state.position_of(stop.driver_id)
        if pos.status == DNF:
            continue
        pos.status = PIT
        pos.total_time += stop.duration * 1000.0
        pos.tyre.reset(compound_for(weather.condition))
        pos.fuel = max(pos.fuel, FUEL_REFILL)
        pos.pit_stops_completed += 1
        if stop.reason == MANDATORY:
            pos.mandatory_pit_completed = True
        state.pit_stops.append(stop)
        logger.debug(
            "Lap %d: %s pits (%s, %.1fs)",
            lap,
            stop.driver_id,
            stop.reason,
            stop.duration,
        )

    # 3-4. Lap times and retirements
    fuel_per_lap = FUEL_START / total_laps
    for pos in state.positions:
        if pos.status == DNF:
            continue

        t = race_lap_time(
            pos.driver,
            pos.team,
            pos.manufacturer,
            weather,
            pos.tyre,
            lap,
            total_laps,
            rng,
        )
        pos.last_lap_time = t
        pos.total_time += t
        pos.laps_completed += 1
        pos.best_lap = min(pos.best_lap, t)
        pos.tyre.wear()
        pos.fuel = max(0.0, pos.fuel - fuel_per_lap)

        if float(rng.random()) < dnf_hazard(pos.driver, pos.manufacturer):
            pos.status = DNF
            pos.dnf_reason = DNF_REASONS[int(rng.integers(len(DNF_REASONS)))]
            state.retired.append(pos.driver_id)
            logger.debug("Lap %d: %s retires (%s)", lap, pos.driver_id, pos.dnf_reason)

    # 5. Re-rank
    _rank(state)
    state.current_lap = lap
    state.lap_chart.append([p.driver_id for p in state.positions])
    logger.debug(
        "Lap %d/%d (%.0f%%, %s): leader %s",
        lap,
        total_laps,
        state.progress * 100.0,
        state.current_weather.condition,
        state.positions[0].driver_id,
    )
    return state


def finalize_race(state: RaceState) -> list[RaceResult]:
    """Classify a finished race.

    Cars that never made their mandatory stop take a
    ``MISSED_MANDATORY_PENALTY_S`` penalty.  Finishers are ordered by
    penalised time, retirements follow in the order they stopped.  Points
    come from ``POINTS_TABLE``; the finisher with the quickest lap among
    the top ``FASTEST_LAP_ELIGIBLE`` gets ``FASTEST_LAP_BONUS``.

    The state is left untouched, so a race can be classified any number
    of times.

    Raises:
        ValueError: If the race is still running.
    """
    if not state.finished:
        raise ValueError(f"Race '{state.race.id}' is still running.")

    finishers = [p for p in state.positions if p.status != DNF]
    # Penalties are applied to a copy; the live state stays as raced.
    race_time: dict[str, float] = {}
    for pos in finishers:
        race_time[pos.driver_id] = pos.total_time
        if not pos.mandatory_pit_completed:
            race_time[pos.driver_id] += MISSED_MANDATORY_PENALTY_S * 1000.0
            logger.debug("%s penalised for missing the mandatory stop", pos.driver_id)
    finishers.sort(key=lambda p: race_time[p.driver_id])

    by_id = {p.driver_id: p for p in state.positions}
    retired = [by_id[driver_id] for driver_id in state.retired]

    fastest_id: str | None = None
    contenders = finishers[:FASTEST_LAP_ELIGIBLE]
    if contenders:
        fastest_id = min(contenders, key=lambda p: p.best_lap).driver_id

    results: list[RaceResult] = []
    for idx, pos in enumerate(finishers + retired):
        dnf = pos.status == DNF
        points = race_points(idx + 1, dnf)
        fastest = pos.driver_id == fastest_id
        if fastest:
            points += FASTEST_LAP_BONUS
        results.append(
            RaceResult(
                position=idx + 1,
                driver_id=pos.driver_id,
                team_id=pos.team.id,
                manufacturer_id=pos.manufacturer.id,
                points=points,
                fastest_lap=fastest,
                dnf=dnf,
                dnf_reason=pos.dnf_reason if dnf else None,
                lap_time=None if dnf else round(pos.best_lap),
                total_time=None if dnf else round(race_time[pos.driver_id]),
                laps_completed=pos.laps_completed,
                pit_stops=pos.pit_stops_completed,
                grid_position=pos.grid_position,
            )
        )
    return results


def simulate_race(
    race: Race,
    starting_grid: list[QualifyingResult],
    roster: Roster,
    seed: int | Generator | None = None,
    invert_count: int = 0,
) -> RaceSimulation:
    """Simulate a race from lights to flag.

    Args:
        race: Race record to simulate.
        starting_grid: Grid in starting order.
        roster: Roster used to look up ratings.
        seed: Seed or generator for reproducibility.
        invert_count: If > 0, reverse this many slots at the front of the
            grid before the start.

    Returns:
        A :class:`RaceSimulation` with results, pit stops, weather and
        the lap chart.

    Raises:
        ValueError: If the grid is empty or lists a driver twice.
        NotFoundError: If a grid driver is not in the roster.
    """
    state = start_race(race, starting_grid, roster, seed, invert_count)
    while not state.finished:
        simulate_lap(state)
    results = finalize_race(state)

    simulation = RaceSimulation(
        race_id=race.id,
        race_type=race.race_type,
        results=results,
        pit_stops=list(state.pit_stops),
        weather_changes=list(state.weather_changes),
        starting_grid=list(state.starting_grid),
        lap_chart=state.lap_chart,
    )
    winner = simulation.winner
    logger.info(
        "Race %s complete: winner %s, %d retirements",
        race.id,
        winner.driver_id if winner else "-",
        len(state.retired),
    )
    return simulation


def format_race_time(milliseconds: float | None) -> str:
    """Render a race time as ``H:MM:SS.mmm``; ``"DNF"`` for no time."""
    if milliseconds is None or math.isinf(milliseconds):
        return "DNF"
    total = int(round(milliseconds))
    hours, rest = divmod(total, 3_600_000)
    minutes, rest = divmod(rest, 60000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours}:{minutes:02d}:{seconds:02d}.{millis:03d}"
