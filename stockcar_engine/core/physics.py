"""Lap-time formulas for the stock car simulation engine.

Lap times are synthesised from weighted penalties on top of a base time,
not from a kinematic model.  All values are in milliseconds.  Each
formula draws its random components from the generator it is handed, so
a seeded generator reproduces the same lap.
"""

from __future__ import annotations

from numpy.random import Generator

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.team import Team
from stockcar_engine.core.tyre import TyreState
from stockcar_engine.core.weather import CLOUDY, RAINY, WeatherCondition

# ---------------------------------------------------------------------------
# Qualifying
# ---------------------------------------------------------------------------

QUALIFYING_BASE_MS: float = 70000.0
QUALIFYING_MIN_MS: float = 65000.0

Q1: str = "Q1"
Q2: str = "Q2"
Q3: str = "Q3"
SESSIONS: tuple[str, ...] = (Q1, Q2, Q3)

# (low, high) multiplier applied to (100 - consistency) per session.
_PRESSURE_RANGES: dict[str, tuple[float, float]] = {
    Q1: (0.0, 0.0),
    Q2: (8.0, 16.0),
    Q3: (15.0, 30.0),
}


def qualifying_weather_penalty(driver: Driver, weather: str, rng: Generator) -> float:
    """Time lost to the conditions on a qualifying lap.

    Rain costs 4-8 s, but skilled drivers claw back part of it.
    """
    if weather == RAINY:
        penalty = float(rng.uniform(4000.0, 8000.0))
        penalty -= (driver.skill - 50.0) * float(rng.uniform(25.0, 40.0))
        return penalty
    if weather == CLOUDY:
        return float(rng.uniform(300.0, 1500.0))
    return 0.0


def pressure_penalty(driver: Driver, session: str, rng: Generator) -> float:
    """Time lost to nerves; zero in Q1 and largest in Q3."""
    low, high = _PRESSURE_RANGES[session]
    if high == 0.0:
        return 0.0
    return (100.0 - driver.consistency) * float(rng.uniform(low, high))


def qualifying_lap_time(
    driver: Driver,
    team: Team,
    manufacturer: Manufacturer,
    weather: str,
    session: str,
    rng: Generator,
    track_factor: float = 1.0,
) -> float:
    """Calculate a single flying-lap time.

    The formula combines the driver, team and manufacturer ratings with
    the session conditions::

        lap = base + skill + team + manufacturer + weather + pressure
              + jitter + form + setup

    Where:
        base          = 70000 + U(0, 3000)
        skill         = (100 - skill) * U(80, 120)
        team          = (100 - reputation) * U(40, 70)
        manufacturer  = (100 - performance) * U(20, 45) * track_factor
        weather       = see :func:`qualifying_weather_penalty`
        pressure      = see :func:`pressure_penalty`
        jitter        = U(-900, 900)
        form          = U(-1000, 1000)
        setup         = U(-750, 750)

    The result is floored at ``QUALIFYING_MIN_MS``.

    Args:
        driver: Driver on the lap.
        team: The driver's team.
        manufacturer: The driver's manufacturer.
        weather: Session condition.
        session: ``Q1``, ``Q2`` or ``Q3``.
        rng: Random generator.
        track_factor: Per-session multiplier on the manufacturer gap.

    Returns:
        Lap time in milliseconds.

    Raises:
        ValueError: If the session name is unknown.
    """
    if session not in _PRESSURE_RANGES:
        raise ValueError(f"Unknown qualifying session '{session}'.")

    base = QUALIFYING_BASE_MS + float(rng.uniform(0.0, 3000.0))
    skill = (100.0 - driver.skill) * float(rng.uniform(80.0, 120.0))
    team_penalty = (100.0 - team.reputation) * float(rng.uniform(40.0, 70.0))
    manufacturer_penalty = (
        (100.0 - manufacturer.performance)
        * float(rng.uniform(20.0, 45.0))
        * track_factor
    )
    weather_penalty = qualifying_weather_penalty(driver, weather, rng)
    pressure = pressure_penalty(driver, session, rng)
    jitter = float(rng.uniform(-900.0, 900.0))
    form = float(rng.uniform(-1000.0, 1000.0))
    setup = float(rng.uniform(-750.0, 750.0))

    total = (
        base
        + skill
        + team_penalty
        + manufacturer_penalty
        + weather_penalty
        + pressure
        + jitter
        + form
        + setup
    )
    return max(QUALIFYING_MIN_MS, total)


# ---------------------------------------------------------------------------
# Race
# ---------------------------------------------------------------------------

RACE_BASE_MS: float = 70000.0
RACE_MIN_MS: float = 60000.0

SKILL_COST_MS: float = 40.0
CONSISTENCY_COST_MAX_MS: float = 15.0
REPUTATION_COST_MS: float = 20.0
FACILITIES_COST_MS: float = 10.0
PERFORMANCE_COST_MS: float = 15.0

CLOUDY_PENALTY_MS: float = 800.0
RAIN_PENALTY_MS: float = 4000.0
RAIN_SKILL_COST_MS: float = 30.0
DRY_TYRE_IN_RAIN_FACTOR: float = 2.5

TRACK_EVOLUTION_MS: float = 400.0
FUEL_EFFECT_MS: float = 1200.0
RACE_JITTER_MS: float = 500.0


def aggression_factor(driver: Driver) -> float:
    """Scale on lap-time variance; 1.0 for a driver rated 50."""
    return 1.0 + (driver.aggression - 50.0) / 200.0


def race_weather_penalty(
    driver: Driver, weather: WeatherCondition, tyre: TyreState
) -> float:
    """Time lost to the conditions on a race lap.

    Rain is scaled by its intensity and rewards skill.  Running dry tyres
    on a wet track multiplies the rain penalty.
    """
    if weather.condition == CLOUDY:
        return CLOUDY_PENALTY_MS
    if weather.condition != RAINY:
        return 0.0

    intensity = weather.intensity if weather.intensity is not None else 1.0
    penalty = (RAIN_PENALTY_MS - (driver.skill - 50.0) * RAIN_SKILL_COST_MS) * (
        0.5 + intensity / 2.0
    )
    if not tyre.compound.wet:
        penalty *= DRY_TYRE_IN_RAIN_FACTOR
    return max(0.0, penalty)


def tyre_degradation(
    tyre: TyreState, progress: float, manufacturer: Manufacturer
) -> float:
    """Time lost to worn tyres and a rubbered, hotter track.

    Worn condition costs ``wear_cost`` per point, amplified for less
    reliable cars; race progress adds a further linear term.
    """
    reliability_scale = 1.5 - manufacturer.reliability / 100.0
    wear = (100.0 - tyre.condition) * tyre.compound.wear_cost * reliability_scale
    return wear + progress * TRACK_EVOLUTION_MS


def fuel_bonus(laps_remaining: int, total_laps: int) -> float:
    """Time gained as the fuel load burns off."""
    if total_laps <= 0:
        return 0.0
    burned = 1.0 - max(0, laps_remaining) / total_laps
    return FUEL_EFFECT_MS * min(1.0, max(0.0, burned))


def race_lap_time(
    driver: Driver,
    team: Team,
    manufacturer: Manufacturer,
    weather: WeatherCondition,
    tyre: TyreState,
    lap: int,
    total_laps: int,
    rng: Generator,
) -> float:
    """Calculate one race lap for a driver.

    ::

        lap = base + skill + consistency + team + manufacturer + weather
              + tyre_degradation - fuel_bonus + jitter

    Where:
        skill         = (100 - skill) * 40
        consistency   = (100 - consistency) * U(0, 15)
        team          = (100 - reputation) * 20 + (100 - facilities) * 10
        manufacturer  = (100 - performance) * 15
        weather       = see :func:`race_weather_penalty`
        tyre          = see :func:`tyre_degradation`
        fuel_bonus    = 1200 * (1 - laps_remaining / total_laps)
        jitter        = U(-500, 500) * aggression_factor

    The result is floored at ``RACE_MIN_MS``.

    Args:
        driver: Driver on the lap.
        team: The driver's team.
        manufacturer: The driver's manufacturer.
        weather: Condition in force on this lap.
        tyre: Current tyre state (before this lap's wear).
        lap: Lap number (1-based).
        total_laps: Race length in laps.
        rng: Random generator.

    Returns:
        Lap time in milliseconds.
    """
    progress = lap / total_laps if total_laps > 0 else 0.0

    skill = (100.0 - driver.skill) * SKILL_COST_MS
    consistency = (100.0 - driver.consistency) * float(
        rng.uniform(0.0, CONSISTENCY_COST_MAX_MS)
    )
    team_penalty = (100.0 - team.reputation) * REPUTATION_COST_MS + (
        100.0 - team.facilities
    ) * FACILITIES_COST_MS
    manufacturer_penalty = (100.0 - manufacturer.performance) * PERFORMANCE_COST_MS
    weather_penalty = race_weather_penalty(driver, weather, tyre)
    degradation = tyre_degradation(tyre, progress, manufacturer)
    fuel = fuel_bonus(total_laps - lap, total_laps)
    jitter = float(rng.uniform(-RACE_JITTER_MS, RACE_JITTER_MS)) * aggression_factor(
        driver
    )

    total = (
        RACE_BASE_MS
        + skill
        + consistency
        + team_penalty
        + manufacturer_penalty
        + weather_penalty
        + degradation
        - fuel
        + jitter
    )
    return max(RACE_MIN_MS, total)
