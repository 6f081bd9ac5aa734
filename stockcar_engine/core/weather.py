"""Race weather model for the stock car simulation engine.

Weather for a race is decided before the first lap.  A schedule of
timestamped conditions is generated once and the lap loop only reads
it, so every random draw for weather happens up front.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.random import Generator

SUNNY: str = "sunny"
CLOUDY: str = "cloudy"
RAINY: str = "rainy"
CONDITIONS: tuple[str, ...] = (SUNNY, CLOUDY, RAINY)

# Probability that a race sees a change of conditions.
WEATHER_CHANGE_PROBABILITY: float = 0.3
# Probability that rain easing to cloud clears all the way to sun later.
CLEARING_PROBABILITY: float = 0.5

# Base weather distribution for a race day.
_BASE_WEATHER_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.7, SUNNY),
    (0.9, CLOUDY),
    (1.0, RAINY),
)

# (next condition, cumulative probability) per current condition.
_TRANSITIONS: dict[str, tuple[tuple[str, float], ...]] = {
    SUNNY: ((CLOUDY, 0.7), (RAINY, 1.0)),
    CLOUDY: ((SUNNY, 0.5), (RAINY, 1.0)),
    RAINY: ((CLOUDY, 1.0),),
}


@dataclass(frozen=True)
class WeatherCondition:
    """Weather from a given lap onwards.

    Attributes:
        lap: First lap (1-based) on which the condition applies.
        condition: One of ``sunny``, ``cloudy`` or ``rainy``.
        intensity: Rain strength in ``[0.3, 1.0]``; ``None`` when dry.
    """

    lap: int
    condition: str
    intensity: float | None = None

    def __post_init__(self) -> None:
        if self.lap < 1:
            raise ValueError("lap must be >= 1.")
        if self.condition not in CONDITIONS:
            raise ValueError(f"Unknown weather condition '{self.condition}'.")


def check_condition(condition: str) -> None:
    if condition not in CONDITIONS:
        raise ValueError(f"Unknown weather condition '{condition}'.")


def random_weather(rng: Generator) -> str:
    """Draw a race-day base condition: 70% sunny, 20% cloudy, 10% rainy."""
    draw = float(rng.random())
    for threshold, condition in _BASE_WEATHER_THRESHOLDS:
        if draw < threshold:
            return condition
    return RAINY


def _condition(lap: int, condition: str, rng: Generator) -> WeatherCondition:
    intensity = None
    if condition == RAINY:
        intensity = round(float(rng.uniform(0.3, 1.0)), 2)
    return WeatherCondition(lap=lap, condition=condition, intensity=intensity)


def _next_condition(current: str, rng: Generator) -> str:
    draw = float(rng.random())
    for condition, threshold in _TRANSITIONS[current]:
        if draw < threshold:
            return condition
    return _TRANSITIONS[current][-1][0]


def change_window(laps: int) -> tuple[int, int]:
    """Half-open lap window ``[0.3 * laps, 0.7 * laps)`` clamped to lap 1+."""
    start = max(1, int(laps * 0.3))
    stop = max(start + 1, int(laps * 0.7))
    return start, stop


def generate_weather_changes(
    base_weather: str,
    laps: int,
    seed: int | Generator | None = None,
) -> list[WeatherCondition]:
    """Pre-generate the weather schedule for a race.

    The schedule always opens with the base condition on lap 1.  With
    probability ``WEATHER_CHANGE_PROBABILITY`` a single transition is
    scheduled inside :func:`change_window`, following::

        sunny  -> cloudy (70%) | rainy (30%)
        cloudy -> sunny  (50%) | rainy (50%)
        rainy  -> cloudy, then possibly sunny on a later lap

    Args:
        base_weather: Condition at the start of the race.
        laps: Race length in laps (>= 1).
        seed: Seed or generator for reproducibility.

    Returns:
        Conditions sorted by lap.

    Raises:
        ValueError: If laps < 1 or the base condition is unknown.
    """
    if laps < 1:
        raise ValueError("laps must be >= 1.")
    check_condition(base_weather)

    rng: Generator = np.random.default_rng(seed)
    changes: list[WeatherCondition] = [_condition(1, base_weather, rng)]

    if float(rng.random()) >= WEATHER_CHANGE_PROBABILITY:
        return changes

    start, stop = change_window(laps)
    change_lap = int(rng.integers(start, stop))
    if change_lap <= 1:
        # Too short for a change after the start.
        return changes

    new_condition = _next_condition(base_weather, rng)
    changes.append(_condition(change_lap, new_condition, rng))

    if (
        base_weather == RAINY
        and change_lap < laps
        and float(rng.random()) < CLEARING_PROBABILITY
    ):
        clear_lap = int(rng.integers(change_lap + 1, laps + 1))
        changes.append(_condition(clear_lap, SUNNY, rng))

    return changes


def weather_at(changes: list[WeatherCondition], lap: int) -> WeatherCondition:
    """Return the condition in force on *lap*.

    This is the latest entry whose ``lap`` is ``<=`` the requested lap.

    Raises:
        ValueError: If the schedule is empty.
    """
    if not changes:
        raise ValueError("weather schedule must not be empty.")
    current = changes[0]
    for change in changes:
        if change.lap <= lap:
            current = change
        else:
            break
    return current
