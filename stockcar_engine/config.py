"""Configuration loader for the stock car simulation engine."""

from pathlib import Path
from typing import Any

import yaml

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.team import Team
from stockcar_engine.core.track import Track

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
ROSTER_PATH: Path = DATA_DIR / "roster.yaml"

_SECTIONS: tuple[str, ...] = ("manufacturers", "teams", "drivers", "tracks")

_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "manufacturers": ("id", "name", "performance", "reliability"),
    "teams": ("id", "name", "manufacturer_id", "reputation", "facilities"),
    "drivers": (
        "id",
        "name",
        "skill",
        "consistency",
        "aggression",
        "team_id",
        "manufacturer_id",
    ),
    "tracks": ("id", "name", "location", "laps", "distance"),
}

# Fields rated on the 0-100 scale.
_RATING_FIELDS: dict[str, tuple[str, ...]] = {
    "manufacturers": ("performance", "reliability", "development"),
    "teams": ("reputation", "facilities"),
    "drivers": ("skill", "consistency", "aggression"),
    "tracks": (),
}


def _validate_entry(section: str, idx: int, entry: Any) -> None:
    if not isinstance(entry, dict):
        raise ValueError(f"{section} entry {idx} must be a mapping.")
    label = entry.get("id", "<unknown>")

    for field in _REQUIRED_FIELDS[section]:
        if field not in entry:
            raise ValueError(
                f"{section} entry {idx} ({label}) "
                f"is missing required field '{field}'"
            )

    for field in _RATING_FIELDS[section]:
        if field not in entry:
            continue
        val = entry[field]
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ValueError(
                f"{section} entry {idx} ({label}): "
                f"'{field}' must be numeric, got {type(val).__name__}"
            )
        if not 0.0 <= float(val) <= 100.0:
            raise ValueError(
                f"{section} entry {idx} ({label}): "
                f"'{field}' must be in [0, 100], got {val}"
            )

    if section == "tracks":
        if not isinstance(entry["laps"], int) or entry["laps"] < 1:
            raise ValueError(
                f"tracks entry {idx} ({label}): 'laps' must be an integer >= 1"
            )
        if float(entry["distance"]) <= 0.0:
            raise ValueError(f"tracks entry {idx} ({label}): 'distance' must be > 0")


def _build_manufacturer(entry: dict) -> Manufacturer:
    return Manufacturer(
        id=str(entry["id"]),
        name=str(entry["name"]),
        performance=float(entry["performance"]),
        reliability=float(entry["reliability"]),
        development=float(entry.get("development", 50.0)),
        budget=float(entry.get("budget", 0.0)),
        active=bool(entry.get("active", True)),
        championships=int(entry.get("championships", 0)),
    )


def _build_team(entry: dict) -> Team:
    return Team(
        id=str(entry["id"]),
        name=str(entry["name"]),
        manufacturer_id=str(entry["manufacturer_id"]),
        reputation=float(entry["reputation"]),
        facilities=float(entry["facilities"]),
        budget=float(entry.get("budget", 0.0)),
        active=bool(entry.get("active", True)),
        championships=int(entry.get("championships", 0)),
        driver_ids=tuple(str(d) for d in entry.get("driver_ids", ())),
    )


def _build_driver(entry: dict) -> Driver:
    return Driver(
        id=str(entry["id"]),
        name=str(entry["name"]),
        skill=float(entry["skill"]),
        consistency=float(entry["consistency"]),
        aggression=float(entry["aggression"]),
        team_id=str(entry["team_id"]),
        manufacturer_id=str(entry["manufacturer_id"]),
        wins=int(entry.get("wins", 0)),
        podiums=int(entry.get("podiums", 0)),
        championships=int(entry.get("championships", 0)),
        active=bool(entry.get("active", True)),
        joined_year=int(entry.get("joined_year", 0)),
        nationality=str(entry.get("nationality", "")),
    )


def _build_track(entry: dict) -> Track:
    return Track(
        id=str(entry["id"]),
        name=str(entry["name"]),
        location=str(entry["location"]),
        laps=int(entry["laps"]),
        distance=float(entry["distance"]),
        state=str(entry.get("state", "")),
    )


_BUILDERS = {
    "manufacturers": _build_manufacturer,
    "teams": _build_team,
    "drivers": _build_driver,
    "tracks": _build_track,
}


def load_roster(path: Path | None = None) -> Roster:
    """Load the series roster from a YAML file.

    The file holds four top-level lists (``manufacturers``, ``teams``,
    ``drivers`` and ``tracks``).  Each entry is validated and converted
    into its model class, and the result is wrapped in a :class:`Roster`
    which checks cross references between entities.

    Args:
        path: Optional override for the roster file path.

    Returns:
        A :class:`Roster` snapshot.

    Raises:
        FileNotFoundError: If the roster file does not exist.
        ValueError: If any entry is missing fields or has out-of-range
            values.
        NotFoundError: If a driver or team references an unknown
            team or manufacturer.
    """
    roster_path = path or ROSTER_PATH
    if not roster_path.exists():
        raise FileNotFoundError(f"Roster file not found: {roster_path}")

    with open(roster_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    built: dict[str, list] = {}
    for section in _SECTIONS:
        entries = data.get(section) or []
        if not isinstance(entries, list):
            raise ValueError(f"'{section}' must be a list.")
        items = []
        for idx, entry in enumerate(entries):
            _validate_entry(section, idx, entry)
            items.append(_BUILDERS[section](entry))
        built[section] = items

    return Roster(
        manufacturers=tuple(built["manufacturers"]),
        teams=tuple(built["teams"]),
        drivers=tuple(built["drivers"]),
        tracks=tuple(built["tracks"]),
    )
