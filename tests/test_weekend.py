"""Tests for the qualifying -> race 1 -> race 2 weekend orchestrator."""

import math

import pytest

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.errors import WeekendStateError
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.race import INVERTED, MAIN, Race, RaceResult
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.team import Team
from stockcar_engine.core.weather import SUNNY
from stockcar_engine.core.weekend import (
    COMPLETE,
    PRACTICE,
    QUALIFYING,
    RACE1,
    RACE2,
    RaceWeekend,
    build_inverted_grid,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_roster(n_drivers: int = 20) -> Roster:
    n_teams = math.ceil(n_drivers / 2)
    teams = [
        Team(
            id=f"t{i}",
            name=f"Team {i}",
            manufacturer_id="m1",
            reputation=80.0,
            facilities=75.0,
            driver_ids=tuple(
                f"d{j}" for j in range(2 * i, min(2 * i + 2, n_drivers))
            ),
        )
        for i in range(n_teams)
    ]
    drivers = [
        Driver(
            id=f"d{j}",
            name=f"Driver {j}",
            skill=90.0 - j,
            consistency=80.0,
            aggression=50.0,
            team_id=f"t{j // 2}",
            manufacturer_id="m1",
        )
        for j in range(n_drivers)
    ]
    return Roster(
        manufacturers=[
            Manufacturer(id="m1", name="Maker", performance=85.0, reliability=90.0)
        ],
        teams=teams,
        drivers=drivers,
    )


def _races(laps: int = 8) -> tuple[Race, Race]:
    main = Race(
        id="2025-k1-main",
        name="GP Test - Main Race",
        track_id="k1",
        location="Test City",
        round=1,
        laps=laps,
        distance=laps * 4.0,
        weather=SUNNY,
        race_type=MAIN,
    )
    inverted = Race(
        id="2025-k1-inverted",
        name="GP Test - Inverted Grid Race",
        track_id="k1",
        location="Test City",
        round=1,
        laps=max(1, int(laps * 0.8)),
        distance=laps * 3.2,
        weather=SUNNY,
        race_type=INVERTED,
    )
    return main, inverted


def _result(position: int, driver_id: str, dnf: bool = False) -> RaceResult:
    return RaceResult(
        position=position,
        driver_id=driver_id,
        team_id="t0",
        manufacturer_id="m1",
        points=0,
        fastest_lap=False,
        dnf=dnf,
        dnf_reason="Accident" if dnf else None,
        lap_time=None if dnf else 70000 + position,
    )


# ---------------------------------------------------------------------------
# Inverted grid
# ---------------------------------------------------------------------------


def test_inverted_grid_reverses_top_ten() -> None:
    """Race 2 starts with Race 1's top ten reversed and the rest in order."""
    results = [_result(p, f"d{p}") for p in range(1, 21)]
    grid = build_inverted_grid(results)
    assert [g.driver_id for g in grid[:10]] == [f"d{p}" for p in range(10, 0, -1)]
    assert [g.driver_id for g in grid[10:]] == [f"d{p}" for p in range(11, 21)]
    assert [g.position for g in grid] == list(range(1, 21))


def test_inverted_grid_puts_retirements_last() -> None:
    results = [_result(p, f"d{p}") for p in range(1, 6)] + [
        _result(6, "x1", dnf=True),
        _result(7, "x2", dnf=True),
    ]
    grid = build_inverted_grid(results, count=3)
    assert [g.driver_id for g in grid] == ["d3", "d2", "d1", "d4", "d5", "x1", "x2"]
    assert math.isinf(grid[-1].best_lap)


def test_inverted_grid_ignores_input_order() -> None:
    results = [_result(p, f"d{p}") for p in (3, 1, 2)]
    assert [g.driver_id for g in build_inverted_grid(results)] == ["d3", "d2", "d1"]


def test_inverted_grid_negative_count() -> None:
    with pytest.raises(ValueError):
        build_inverted_grid([], count=-1)


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def test_full_weekend_completes_both_races() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    completed = []
    weekend = RaceWeekend(
        race1, race2, roster, seed=1, on_complete=lambda a, b: completed.append((a, b))
    )
    assert weekend.phase == PRACTICE

    done1, done2 = weekend.run()
    assert [s.type for s in weekend.practice] == ["FP1", "FP2", "FP3"]
    assert weekend.phase == COMPLETE
    assert done1.completed and done2.completed
    assert len(done1.results) == 20
    assert len(done2.results) == 20
    assert completed == [(done1, done2)]
    # Input records are untouched.
    assert not race1.completed
    assert race1.results is None


def test_race2_grid_comes_from_race1() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=2)
    weekend.run_practice()
    weekend.run_qualifying()
    sim1 = weekend.run_race1()
    sim2 = weekend.run_race2()
    expected = build_inverted_grid(sim1.results)
    assert sim2.starting_grid == expected
    assert list(weekend.race2.starting_grid) == expected


def test_race1_grid_is_qualifying_order() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=3)
    weekend.run_practice()
    qualifying = weekend.run_qualifying()
    sim1 = weekend.run_race1()
    assert [g.driver_id for g in sim1.starting_grid] == [
        g.driver_id for g in qualifying.final_grid
    ]


def test_race1_inversion_option() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=4, invert_race1=True)
    weekend.run_practice()
    qualifying = weekend.run_qualifying()
    sim1 = weekend.run_race1()
    quali_ids = [g.driver_id for g in qualifying.final_grid]
    assert [g.driver_id for g in sim1.starting_grid[:10]] == quali_ids[9::-1]


def test_out_of_order_calls_rejected() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=5)
    with pytest.raises(WeekendStateError):
        weekend.run_qualifying()
    with pytest.raises(WeekendStateError):
        weekend.run_race1()
    with pytest.raises(WeekendStateError):
        weekend.run_race2()
    weekend.run_practice()
    assert weekend.phase == QUALIFYING
    with pytest.raises(WeekendStateError):
        weekend.run_practice()
    weekend.run_qualifying()
    assert weekend.phase == RACE1
    with pytest.raises(WeekendStateError):
        weekend.run_qualifying()
    weekend.run_race1()
    assert weekend.phase == RACE2
    weekend.run_race2()
    with pytest.raises(WeekendStateError):
        weekend.run_race2()


def test_no_active_drivers_rejected() -> None:
    roster = _sample_roster(2).deactivate_team("t0")
    race1, race2 = _races()
    with pytest.raises(ValueError, match="No active drivers"):
        RaceWeekend(race1, race2, roster, seed=6).run_practice()


def test_inactive_drivers_sit_out() -> None:
    roster = _sample_roster().deactivate_driver("d0")
    race1, race2 = _races()
    done1, done2 = RaceWeekend(race1, race2, roster, seed=7).run()
    assert "d0" not in {r.driver_id for r in done1.results}
    assert len(done2.results) == 19


def test_resume_from_completed_race1() -> None:
    """A weekend whose main race already ran goes straight to Race 2."""
    roster = _sample_roster()
    race1, race2 = _races()
    done1, _ = RaceWeekend(race1, race2, roster, seed=8).run()

    resumed = RaceWeekend(done1, race2, roster, seed=9)
    assert resumed.phase == RACE2
    with pytest.raises(WeekendStateError):
        resumed.run_practice()
    again1, again2 = resumed.run()
    assert again1 == done1
    assert again2.completed
    assert list(again2.starting_grid) == build_inverted_grid(list(done1.results))


def test_same_seed_same_weekend() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    a = RaceWeekend(race1, race2, roster, seed=10).run()
    b = RaceWeekend(race1, race2, roster, seed=10).run()
    assert a == b


def test_summary_headlines() -> None:
    roster = _sample_roster()
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=11)
    assert weekend.summary().pole is None
    assert weekend.summary().practice_fastest is None

    weekend.run()
    summary = weekend.summary()
    assert summary.practice_fastest == weekend.practice[-1].results[0]
    assert summary.pole == weekend.qualifying.final_grid[0]
    assert summary.race1_winner == weekend.race1_simulation.winner
    assert summary.race2_winner == weekend.race2_simulation.winner
    all_stops = weekend.race1_simulation.pit_stops + weekend.race2_simulation.pit_stops
    assert summary.fastest_pit_stop.duration == min(s.duration for s in all_stops)
    _, gained = summary.most_positions_gained
    best = max(
        r.grid_position - r.position
        for r in weekend.race1_simulation.results
        if not r.dnf
    )
    assert gained == best


def test_practice_runs_every_active_driver() -> None:
    roster = _sample_roster().deactivate_driver("d3")
    race1, race2 = _races()
    weekend = RaceWeekend(race1, race2, roster, seed=12)
    sessions = weekend.run_practice()
    assert len(sessions) == 3
    for session in sessions:
        assert session.weather == race1.weather
        assert len(session.results) == 19
        assert "d3" not in {r.driver_id for r in session.results}
    assert weekend.qualifying is None
