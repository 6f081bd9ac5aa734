"""Tests for the YAML roster loader."""

from pathlib import Path

import pytest

from stockcar_engine.config import load_roster
from stockcar_engine.core.errors import NotFoundError
from stockcar_engine.core.roster import Roster

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_MINIMAL = """
manufacturers:
  - {id: m1, name: Maker, performance: 80, reliability: 90}
teams:
  - {id: t1, name: Team One, manufacturer_id: m1, reputation: 70, facilities: 60,
     driver_ids: [d1]}
drivers:
  - {id: d1, name: Driver One, skill: 75, consistency: 70, aggression: 50,
     team_id: t1, manufacturer_id: m1}
tracks:
  - {id: k1, name: Kart Park, location: Somewhere, laps: 30, distance: 60.5}
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "roster.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_bundled_roster_loads() -> None:
    """The shipped roster must load with a full grid and a 12-track calendar."""
    roster = load_roster()
    assert isinstance(roster, Roster)
    assert len(roster.active_drivers()) == 20
    assert len(roster.active_teams()) == 10
    assert len(roster.tracks) >= 12


def test_bundled_roster_teams_hold_two_drivers() -> None:
    """Every shipped team must list exactly the drivers racing for it."""
    roster = load_roster()
    for team in roster.teams:
        listed = set(team.driver_ids)
        racing = {d.id for d in roster.drivers if d.team_id == team.id}
        assert listed == racing, f"{team.id} driver list is out of sync"
        assert len(listed) == 2


def test_bundled_roster_manufacturers_match_teams() -> None:
    """A driver's manufacturer must be the one supplying their team."""
    roster = load_roster()
    for driver in roster.drivers:
        assert driver.manufacturer_id == roster.team(driver.team_id).manufacturer_id


def test_minimal_file_loads(tmp_path: Path) -> None:
    roster = load_roster(_write(tmp_path, _MINIMAL))
    assert roster.driver("d1").name == "Driver One"
    assert roster.track("k1").laps == 30
    assert roster.manufacturer("m1").development == 50.0


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_roster(tmp_path / "nope.yaml")


def test_missing_field_names_entry(tmp_path: Path) -> None:
    """A missing field must be reported with the section, index and id."""
    text = _MINIMAL.replace("skill: 75, ", "")
    with pytest.raises(ValueError, match=r"drivers entry 0 \(d1\).*'skill'"):
        load_roster(_write(tmp_path, text))


def test_out_of_range_rating_rejected(tmp_path: Path) -> None:
    text = _MINIMAL.replace("reputation: 70", "reputation: 140")
    with pytest.raises(ValueError, match=r"'reputation' must be in \[0, 100\]"):
        load_roster(_write(tmp_path, text))


def test_non_numeric_rating_rejected(tmp_path: Path) -> None:
    text = _MINIMAL.replace("performance: 80", "performance: fast")
    with pytest.raises(ValueError, match="must be numeric"):
        load_roster(_write(tmp_path, text))


def test_zero_lap_track_rejected(tmp_path: Path) -> None:
    text = _MINIMAL.replace("laps: 30", "laps: 0")
    with pytest.raises(ValueError, match="'laps' must be an integer >= 1"):
        load_roster(_write(tmp_path, text))


def test_dangling_team_reference_rejected(tmp_path: Path) -> None:
    text = _MINIMAL.replace("team_id: t1", "team_id: t9")
    with pytest.raises(NotFoundError, match="t9"):
        load_roster(_write(tmp_path, text))
