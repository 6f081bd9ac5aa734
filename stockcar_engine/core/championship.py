"""Championship standings for the stock car simulation engine.

Standings are recomputed from the completed races of a season every
time they are asked for; nothing is accumulated between calls.  Points
use the series table ``[25, 18, 15, 12, 10, 8, 6, 4, 2, 1]`` already
stored on each :class:`RaceResult`, plus the fastest-lap bonus.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from stockcar_engine.core.errors import NotFoundError
from stockcar_engine.core.race import RaceResult
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.season import Season

logger = logging.getLogger(__name__)

DRIVER: str = "driver"
TEAM: str = "team"
MANUFACTURER: str = "manufacturer"
KINDS: tuple[str, ...] = (DRIVER, TEAM, MANUFACTURER)

FORM_RACES: int = 5


@dataclass(frozen=True)
class Standing:
    """One row of a championship table.

    Attributes:
        id: Driver, team or manufacturer id.
        position: Dense 1-based rank.
        points: Points scored.
        wins: Race wins.
        podiums: Top-three finishes (retirements excluded).
        fastest_laps: Fastest-lap bonuses (driver tables only).
    """

    id: str
    position: int
    points: int
    wins: int
    podiums: int
    fastest_laps: int = 0


def _completed_results(season: Season):
    for race in season.races:
        if race.completed and race.results:
            yield from race.results


def _tally(
    season: Season,
    active_ids: list[str],
    is_known: Callable[[str], bool],
    kind: str,
    key: Callable[[RaceResult], str],
    count_fastest: bool,
) -> list[Standing]:
    totals: dict[str, dict[str, int]] = {
        entity_id: {"points": 0, "wins": 0, "podiums": 0, "fastest_laps": 0}
        for entity_id in active_ids
    }

    for result in _completed_results(season):
        entity_id = key(result)
        row = totals.get(entity_id)
        if row is None:
            if not is_known(entity_id):
                raise NotFoundError(kind, entity_id)
            # Inactive entity: results no longer count towards the table.
            continue
        row["points"] += result.points
        if result.position == 1:
            row["wins"] += 1
        if result.position <= 3 and not result.dnf:
            row["podiums"] += 1
        if count_fastest and result.fastest_lap:
            row["fastest_laps"] += 1

    ordered = sorted(
        totals.items(),
        key=lambda item: (-item[1]["points"], -item[1]["wins"], -item[1]["podiums"]),
    )
    return [
        Standing(
            id=entity_id,
            position=idx + 1,
            points=row["points"],
            wins=row["wins"],
            podiums=row["podiums"],
            fastest_laps=row["fastest_laps"],
        )
        for idx, (entity_id, row) in enumerate(ordered)
    ]


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def driver_standings(season: Season, roster: Roster) -> list[Standing]:
    """Drivers' championship over the completed races of *season*.

    Every active driver gets a row, even with no results.  Rows are
    sorted by points, then wins, then podiums; full ties keep roster
    order.

    Raises:
        NotFoundError: If a result names a driver unknown to the roster.
    """
    return _tally(
        season,
        [d.id for d in roster.active_drivers()],
        roster.has_driver,
        DRIVER,
        lambda r: r.driver_id,
        count_fastest=True,
    )


def team_standings(season: Season, roster: Roster) -> list[Standing]:
    """Teams' championship; see :func:`driver_standings`."""
    return _tally(
        season,
        [t.id for t in roster.active_teams()],
        roster.has_team,
        TEAM,
        lambda r: r.team_id,
        count_fastest=False,
    )


def manufacturer_standings(season: Season, roster: Roster) -> list[Standing]:
    """Manufacturers' championship; see :func:`driver_standings`."""
    return _tally(
        season,
        [m.id for m in roster.active_manufacturers()],
        roster.has_manufacturer,
        MANUFACTURER,
        lambda r: r.manufacturer_id,
        count_fastest=False,
    )


_TABLES: dict[str, Callable[[Season, Roster], list[Standing]]] = {
    DRIVER: driver_standings,
    TEAM: team_standings,
    MANUFACTURER: manufacturer_standings,
}


def standings(season: Season, roster: Roster, kind: str = DRIVER) -> list[Standing]:
    """Championship table of the given *kind*.

    Raises:
        ValueError: If *kind* is not ``driver``, ``team`` or
            ``manufacturer``.
    """
    if kind not in _TABLES:
        raise ValueError(f"Unknown standings kind '{kind}'.")
    return _TABLES[kind](season, roster)


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def driver_form(driver_id: str, season: Season, last: int = FORM_RACES) -> list[int]:
    """Finishing positions in the last *last* completed races.

    Races are in calendar order.  A race the driver did not take part in
    is reported as 0.
    """
    if last <= 0:
        return []
    recent = [race for race in season.races if race.completed and race.results]
    form: list[int] = []
    for race in recent[-last:]:
        position = 0
        for result in race.results:
            if result.driver_id == driver_id:
                position = result.position
                break
        form.append(position)
    return form


def points_gap(table: list[Standing], position: int) -> int:
    """Points between the leader and the row at *position*.

    Raises:
        ValueError: If *position* is outside the table.
    """
    if not 1 <= position <= len(table):
        raise ValueError(f"position must be between 1 and {len(table)}.")
    return table[0].points - table[position - 1].points


def _position_of(table: list[Standing], entity_id: str) -> int | None:
    for row in table:
        if row.id == entity_id:
            return row.position
    return None


def position_change(
    driver_id: str,
    current: Season,
    previous: Season | None,
    roster: Roster,
    previous_roster: Roster | None = None,
) -> int:
    """Championship places gained since the previous season.

    ``previous rank - current rank``, so a positive value means the driver
    moved up.  Returns 0 with no previous season or when the driver is
    missing from either table.

    Args:
        driver_id: Driver to compare.
        current: This season.
        previous: Last season, if any.
        roster: Roster for this season's table.
        previous_roster: Roster for last season's table; defaults to
            *roster*.
    """
    if previous is None:
        return 0
    current_pos = _position_of(driver_standings(current, roster), driver_id)
    previous_pos = _position_of(
        driver_standings(previous, previous_roster or roster), driver_id
    )
    if current_pos is None or previous_pos is None:
        return 0
    return previous_pos - current_pos


# ---------------------------------------------------------------------------
# Career totals
# ---------------------------------------------------------------------------


def apply_career_totals(roster: Roster, season: Season) -> Roster:
    """Fold a season's results into career statistics.

    Adds each driver's wins and podiums from the completed races.  If the
    season is complete, the driver, team and manufacturer champions each
    gain a championship.  Call once per season.

    Returns:
        A new :class:`Roster`.
    """
    wins: dict[str, int] = {}
    podiums: dict[str, int] = {}
    for result in _completed_results(season):
        if result.dnf:
            continue
        if result.position == 1:
            wins[result.driver_id] = wins.get(result.driver_id, 0) + 1
        if result.position <= 3:
            podiums[result.driver_id] = podiums.get(result.driver_id, 0) + 1

    updated = roster
    for driver_id in sorted(set(wins) | set(podiums)):
        driver = updated.driver(driver_id)
        updated = updated.replace_driver(
            replace(
                driver,
                wins=driver.wins + wins.get(driver_id, 0),
                podiums=driver.podiums + podiums.get(driver_id, 0),
            )
        )

    if season.completed:
        champions = {
            kind: table[0].id
            for kind, table in (
                (DRIVER, driver_standings(season, roster)),
                (TEAM, team_standings(season, roster)),
                (MANUFACTURER, manufacturer_standings(season, roster)),
            )
            if table
        }
        if DRIVER in champions:
            driver = updated.driver(champions[DRIVER])
            updated = updated.replace_driver(
                replace(driver, championships=driver.championships + 1)
            )
        if TEAM in champions:
            team = updated.team(champions[TEAM])
            updated = updated.replace_team(
                replace(team, championships=team.championships + 1)
            )
        if MANUFACTURER in champions:
            manufacturer = updated.manufacturer(champions[MANUFACTURER])
            updated = updated.replace_manufacturer(
                replace(manufacturer, championships=manufacturer.championships + 1)
            )
        logger.info("Season %d champions: %s", season.year, champions)

    return updated
