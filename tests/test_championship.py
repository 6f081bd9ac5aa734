"""Tests for championship standings and derived helpers."""

import pytest

from stockcar_engine.core.championship import (
    DRIVER,
    MANUFACTURER,
    TEAM,
    apply_career_totals,
    driver_form,
    driver_standings,
    manufacturer_standings,
    points_gap,
    position_change,
    standings,
    team_standings,
)
from stockcar_engine.core.driver import Driver
from stockcar_engine.core.errors import NotFoundError
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.race import MAIN, Race, RaceResult, race_points
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.season import Season
from stockcar_engine.core.team import Team
from stockcar_engine.core.weather import SUNNY

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

# driver -> (team, manufacturer)
_ENTRIES: dict[str, tuple[str, str]] = {
    "ana": ("t1", "m1"),
    "bia": ("t1", "m1"),
    "caio": ("t2", "m2"),
    "duda": ("t2", "m2"),
}


def _sample_roster() -> Roster:
    return Roster(
        manufacturers=[
            Manufacturer(id="m1", name="Maker One", performance=85.0, reliability=90.0),
            Manufacturer(id="m2", name="Maker Two", performance=84.0, reliability=88.0),
        ],
        teams=[
            Team(
                id="t1",
                name="Team One",
                manufacturer_id="m1",
                reputation=80.0,
                facilities=80.0,
                driver_ids=("ana", "bia"),
            ),
            Team(
                id="t2",
                name="Team Two",
                manufacturer_id="m2",
                reputation=78.0,
                facilities=75.0,
                driver_ids=("caio", "duda"),
            ),
        ],
        drivers=[
            Driver(
                id=driver_id,
                name=driver_id.title(),
                skill=80.0,
                consistency=80.0,
                aggression=50.0,
                team_id=team_id,
                manufacturer_id=manufacturer_id,
            )
            for driver_id, (team_id, manufacturer_id) in _ENTRIES.items()
        ],
    )


def _results(order: list[str], dnf: tuple[str, ...] = (), fastest: str = "") -> tuple:
    results = []
    for idx, driver_id in enumerate(order):
        team_id, manufacturer_id = _ENTRIES.get(driver_id, ("t1", "m1"))
        is_dnf = driver_id in dnf
        points = race_points(idx + 1, is_dnf) + (1 if driver_id == fastest else 0)
        results.append(
            RaceResult(
                position=idx + 1,
                driver_id=driver_id,
                team_id=team_id,
                manufacturer_id=manufacturer_id,
                points=points,
                fastest_lap=driver_id == fastest,
                dnf=is_dnf,
                dnf_reason="Engine failure" if is_dnf else None,
            )
        )
    return tuple(results)


def _race(n: int, results: tuple | None = None) -> Race:
    return Race(
        id=f"2025-r{n}",
        name=f"Race {n}",
        track_id="k1",
        location="Test City",
        round=(n + 1) // 2,
        laps=10,
        distance=40.0,
        weather=SUNNY,
        race_type=MAIN,
        completed=results is not None,
        results=results,
    )


def _sample_season() -> Season:
    return Season(
        year=2025,
        races=(
            _race(1, _results(["ana", "caio", "bia", "duda"], fastest="ana")),
            _race(2, _results(["caio", "ana", "duda", "bia"], dnf=("bia",))),
            _race(3, _results(["bia", "ana", "caio", "duda"], fastest="caio")),
            _race(4),
        ),
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def test_driver_standings_totals() -> None:
    table = driver_standings(_sample_season(), _sample_roster())
    rows = {row.id: row for row in table}
    assert rows["ana"].points == 26 + 18 + 18
    assert rows["ana"].wins == 1
    assert rows["ana"].podiums == 3
    assert rows["ana"].fastest_laps == 1
    assert rows["caio"].points == 18 + 25 + 15 + 1
    assert rows["bia"].podiums == 2
    assert rows["bia"].points == 15 + 0 + 25


def test_driver_standings_order() -> None:
    table = driver_standings(_sample_season(), _sample_roster())
    assert [row.id for row in table] == ["ana", "caio", "bia", "duda"]
    assert [row.position for row in table] == [1, 2, 3, 4]


def test_team_and_manufacturer_standings() -> None:
    season, roster = _sample_season(), _sample_roster()
    teams = team_standings(season, roster)
    makers = manufacturer_standings(season, roster)
    assert [row.id for row in teams] == ["t1", "t2"]
    assert teams[0].points == 62 + 40
    assert makers[0].points == teams[0].points
    assert all(row.fastest_laps == 0 for row in teams)


def test_standings_dispatch() -> None:
    season, roster = _sample_season(), _sample_roster()
    assert standings(season, roster, DRIVER) == driver_standings(season, roster)
    assert standings(season, roster, TEAM) == team_standings(season, roster)
    assert standings(season, roster, MANUFACTURER) == manufacturer_standings(
        season, roster
    )
    with pytest.raises(ValueError, match="Unknown standings kind"):
        standings(season, roster, "fans")


def test_standings_are_idempotent() -> None:
    season, roster = _sample_season(), _sample_roster()
    assert driver_standings(season, roster) == driver_standings(season, roster)


def test_empty_season_has_zero_rows_in_roster_order() -> None:
    roster = _sample_roster()
    table = driver_standings(Season(year=2025, races=(_race(1), _race(2))), roster)
    assert [row.id for row in table] == ["ana", "bia", "caio", "duda"]
    assert [row.position for row in table] == [1, 2, 3, 4]
    for row in table:
        assert (row.points, row.wins, row.podiums) == (0, 0, 0)


def test_tiebreak_on_wins() -> None:
    roster = _sample_roster()
    # ana and caio both score 49: ana wins once, caio never wins.
    season = Season(
        year=2025,
        races=(
            _race(1, _results(["ana", "caio", "bia", "duda"])),
            _race(2, _results(["bia", "duda", "caio", "ana"])),
            _race(3, _results(["bia", "duda", "caio", "ana"], fastest="caio")),
        ),
    )
    rows = {row.id: row for row in driver_standings(season, roster)}
    assert rows["ana"].points == rows["caio"].points == 49
    assert rows["ana"].position < rows["caio"].position


def test_inactive_driver_drops_out_of_table() -> None:
    roster = _sample_roster().deactivate_driver("duda")
    table = driver_standings(_sample_season(), roster)
    assert "duda" not in [row.id for row in table]


def test_unknown_driver_in_results_raises() -> None:
    season = Season(year=2025, races=(_race(1, _results(["ana", "ghost"])),))
    with pytest.raises(NotFoundError, match="ghost"):
        driver_standings(season, _sample_roster())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_driver_form_last_races() -> None:
    season = _sample_season()
    assert driver_form("ana", season) == [1, 2, 2]
    assert driver_form("ana", season, last=2) == [2, 2]
    assert driver_form("nobody", season) == [0, 0, 0]
    assert driver_form("ana", season, last=0) == []


def test_points_gap() -> None:
    table = driver_standings(_sample_season(), _sample_roster())
    assert points_gap(table, 1) == 0
    assert points_gap(table, 2) == table[0].points - table[1].points
    with pytest.raises(ValueError):
        points_gap(table, 9)


def test_position_change() -> None:
    roster = _sample_roster()
    current = _sample_season()
    previous = Season(
        year=2024,
        races=(_race(1, _results(["duda", "caio", "bia", "ana"])),),
    )
    # ana: 4th last year, 1st now.
    assert position_change("ana", current, previous, roster) == 3
    assert position_change("duda", current, previous, roster) == -3
    assert position_change("ana", current, None, roster) == 0
    assert position_change("ghost", current, previous, roster) == 0
    assert position_change("ana", current, previous, roster) == position_change(
        "ana", current, previous, roster
    )


# ---------------------------------------------------------------------------
# Career totals
# ---------------------------------------------------------------------------


def test_career_totals_without_titles_mid_season() -> None:
    roster = apply_career_totals(_sample_roster(), _sample_season())
    assert roster.driver("ana").wins == 1
    assert roster.driver("ana").podiums == 3
    assert roster.driver("bia").podiums == 2
    assert roster.driver("duda").podiums == 1
    assert roster.driver("ana").championships == 0


def test_career_totals_award_titles_when_complete() -> None:
    season = _sample_season()
    complete = Season(year=season.year, races=season.races[:3])
    roster = apply_career_totals(_sample_roster(), complete)
    assert roster.driver("ana").championships == 1
    assert roster.team("t1").championships == 1
    assert roster.manufacturer("m1").championships == 1
    assert roster.driver("caio").championships == 0
