"""Tests for the qualifying and race lap-time formulas and tyre wear."""

import numpy as np
import pytest

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.physics import (
    DRY_TYRE_IN_RAIN_FACTOR,
    Q1,
    Q2,
    Q3,
    QUALIFYING_MIN_MS,
    RACE_MIN_MS,
    aggression_factor,
    fuel_bonus,
    pressure_penalty,
    qualifying_lap_time,
    race_lap_time,
    race_weather_penalty,
    tyre_degradation,
)
from stockcar_engine.core.team import Team
from stockcar_engine.core.tyre import MEDIUM, WET, TyreState, compound_for
from stockcar_engine.core.weather import CLOUDY, RAINY, SUNNY, WeatherCondition

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _driver(
    skill: float = 70.0, consistency: float = 70.0, aggression: float = 50.0
) -> Driver:
    return Driver(
        id="d1",
        name="Driver",
        skill=skill,
        consistency=consistency,
        aggression=aggression,
        team_id="t1",
        manufacturer_id="m1",
    )


def _team(reputation: float = 80.0, facilities: float = 80.0) -> Team:
    return Team(
        id="t1",
        name="Team",
        manufacturer_id="m1",
        reputation=reputation,
        facilities=facilities,
    )


def _manufacturer(performance: float = 85.0, reliability: float = 90.0) -> Manufacturer:
    return Manufacturer(
        id="m1", name="Maker", performance=performance, reliability=reliability
    )


_SUN = WeatherCondition(lap=1, condition=SUNNY)
_RAIN = WeatherCondition(lap=1, condition=RAINY, intensity=1.0)


def _sunny_lap(
    driver: Driver,
    rng: np.random.Generator,
    lap: int = 10,
    total_laps: int = 50,
    team: Team | None = None,
    manufacturer: Manufacturer | None = None,
) -> float:
    return race_lap_time(
        driver,
        team or _team(),
        manufacturer or _manufacturer(),
        _SUN,
        TyreState(),
        lap,
        total_laps,
        rng,
    )


# ---------------------------------------------------------------------------
# Qualifying laps
# ---------------------------------------------------------------------------


def test_qualifying_lap_floor() -> None:
    """Even a perfect driver in a perfect car cannot beat the floor."""
    rng = np.random.default_rng(0)
    ace = _driver(100.0, 100.0)
    for _ in range(500):
        t = qualifying_lap_time(
            ace, _team(100.0, 100.0), _manufacturer(100.0), SUNNY, Q1, rng
        )
        assert t >= QUALIFYING_MIN_MS


def test_qualifying_skill_is_faster() -> None:
    rng = np.random.default_rng(1)
    fast = [
        qualifying_lap_time(_driver(95.0), _team(), _manufacturer(), SUNNY, Q1, rng)
        for _ in range(300)
    ]
    slow = [
        qualifying_lap_time(_driver(55.0), _team(), _manufacturer(), SUNNY, Q1, rng)
        for _ in range(300)
    ]
    assert np.mean(fast) < np.mean(slow) - 3000.0


def test_qualifying_rain_is_slower() -> None:
    rng = np.random.default_rng(2)
    dry = [
        qualifying_lap_time(_driver(), _team(), _manufacturer(), SUNNY, Q1, rng)
        for _ in range(300)
    ]
    wet = [
        qualifying_lap_time(_driver(), _team(), _manufacturer(), RAINY, Q1, rng)
        for _ in range(300)
    ]
    assert np.mean(wet) > np.mean(dry) + 3000.0


def test_pressure_grows_through_sessions() -> None:
    rng = np.random.default_rng(3)
    nervy = _driver(consistency=40.0)
    assert pressure_penalty(nervy, Q1, rng) == 0.0
    q2 = np.mean([pressure_penalty(nervy, Q2, rng) for _ in range(200)])
    q3 = np.mean([pressure_penalty(nervy, Q3, rng) for _ in range(200)])
    assert 0.0 < q2 < q3


def test_unknown_session_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown qualifying session"):
        qualifying_lap_time(
            _driver(), _team(), _manufacturer(), SUNNY, "Q4", np.random.default_rng()
        )


# ---------------------------------------------------------------------------
# Race laps
# ---------------------------------------------------------------------------


def test_race_lap_floor() -> None:
    rng = np.random.default_rng(4)
    ace = _driver(100.0, 100.0)
    for lap in range(1, 51):
        t = _sunny_lap(
            ace,
            rng,
            lap=lap,
            team=_team(100.0, 100.0),
            manufacturer=_manufacturer(100.0, 100.0),
        )
        assert t >= RACE_MIN_MS


def test_race_lap_zero_total_laps_is_safe() -> None:
    """A zero-length race must not divide by zero."""
    t = _sunny_lap(_driver(), np.random.default_rng(5), lap=1, total_laps=0)
    assert np.isfinite(t)
    assert fuel_bonus(0, 0) == 0.0


def test_fuel_bonus_grows_as_fuel_burns() -> None:
    assert fuel_bonus(50, 50) == 0.0
    assert fuel_bonus(25, 50) == pytest.approx(600.0)
    assert fuel_bonus(0, 50) == pytest.approx(1200.0)


def test_dry_tyres_in_rain_penalised() -> None:
    driver = _driver()
    dry = race_weather_penalty(driver, _RAIN, TyreState(MEDIUM))
    wet = race_weather_penalty(driver, _RAIN, TyreState(WET))
    assert dry == pytest.approx(wet * DRY_TYRE_IN_RAIN_FACTOR)


def test_weather_penalty_values() -> None:
    driver = _driver(skill=50.0)
    assert race_weather_penalty(driver, _SUN, TyreState()) == 0.0
    cloud = WeatherCondition(lap=1, condition=CLOUDY)
    assert race_weather_penalty(driver, cloud, TyreState()) == 800.0
    assert race_weather_penalty(driver, _RAIN, TyreState(WET)) == pytest.approx(4000.0)


def test_tyre_degradation_increases_with_wear() -> None:
    fresh = TyreState()
    worn = TyreState()
    for _ in range(20):
        worn.wear()
    manufacturer = _manufacturer()
    assert tyre_degradation(worn, 0.5, manufacturer) > tyre_degradation(
        fresh, 0.5, manufacturer
    )


def test_aggression_widens_variance() -> None:
    assert aggression_factor(_driver(aggression=50.0)) == 1.0
    assert aggression_factor(_driver(aggression=90.0)) > 1.0
    rng = np.random.default_rng(6)
    calm_driver = _driver(consistency=100.0, aggression=0.0)
    wild_driver = _driver(consistency=100.0, aggression=100.0)
    calm = [_sunny_lap(calm_driver, rng) for _ in range(400)]
    wild = [_sunny_lap(wild_driver, rng) for _ in range(400)]
    assert np.std(wild) > np.std(calm)


# ---------------------------------------------------------------------------
# Tyres
# ---------------------------------------------------------------------------


def test_tyre_wear_and_reset() -> None:
    tyre = TyreState()
    for _ in range(60):
        tyre.wear()
    assert tyre.condition == 0.0
    assert tyre.laps == 60
    tyre.reset(WET)
    assert tyre.condition == 100.0
    assert tyre.laps == 0
    assert tyre.compound is WET


def test_compound_follows_weather() -> None:
    assert compound_for(RAINY) is WET
    assert compound_for(SUNNY) is MEDIUM
    assert compound_for(CLOUDY) is MEDIUM
