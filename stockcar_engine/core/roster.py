"""Immutable roster snapshot for the stock car simulation engine.

The roster bundles every manufacturer, team, driver and track known to a
session.  Simulators only read from it.  Lifecycle changes (entries,
exits, career totals) are expressed as commands that return a fresh
snapshot, so a simulation always sees the roster it was handed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from stockcar_engine.core.driver import Driver
from stockcar_engine.core.errors import NotFoundError
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.team import Team
from stockcar_engine.core.track import Track

logger = logging.getLogger(__name__)


def _find(items: tuple, kind: str, entity_id: str):
    for item in items:
        if item.id == entity_id:
            return item
    raise NotFoundError(kind, entity_id)


def _check_unique(items: tuple, kind: str) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate {kind} id '{item.id}'.")
        seen.add(item.id)


@dataclass(frozen=True)
class Roster:
    """Read-only view of the series entities.

    Attributes:
        manufacturers: Every manufacturer, active or not.
        teams: Every team, active or not.
        drivers: Every driver, active or not.
        tracks: Calendar tracks in season order.
    """

    manufacturers: tuple[Manufacturer, ...] = ()
    teams: tuple[Team, ...] = ()
    drivers: tuple[Driver, ...] = ()
    tracks: tuple[Track, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples.
        object.__setattr__(self, "manufacturers", tuple(self.manufacturers))
        object.__setattr__(self, "teams", tuple(self.teams))
        object.__setattr__(self, "drivers", tuple(self.drivers))
        object.__setattr__(self, "tracks", tuple(self.tracks))

        _check_unique(self.manufacturers, "manufacturer")
        _check_unique(self.teams, "team")
        _check_unique(self.drivers, "driver")
        _check_unique(self.tracks, "track")

        for team in self.teams:
            self.manufacturer(team.manufacturer_id)
        for drv in self.drivers:
            self.team(drv.team_id)
            self.manufacturer(drv.manufacturer_id)

    # -- Lookups --------------------------------------------------------------

    def driver(self, driver_id: str) -> Driver:
        return _find(self.drivers, "driver", driver_id)

    def team(self, team_id: str) -> Team:
        return _find(self.teams, "team", team_id)

    def manufacturer(self, manufacturer_id: str) -> Manufacturer:
        return _find(self.manufacturers, "manufacturer", manufacturer_id)

    def track(self, track_id: str) -> Track:
        return _find(self.tracks, "track", track_id)

    def has_driver(self, driver_id: str) -> bool:
        return any(d.id == driver_id for d in self.drivers)

    def has_team(self, team_id: str) -> bool:
        return any(t.id == team_id for t in self.teams)

    def has_manufacturer(self, manufacturer_id: str) -> bool:
        return any(m.id == manufacturer_id for m in self.manufacturers)

    def active_drivers(self) -> list[Driver]:
        return [d for d in self.drivers if d.active]

    def active_teams(self) -> list[Team]:
        return [t for t in self.teams if t.active]

    def active_manufacturers(self) -> list[Manufacturer]:
        return [m for m in self.manufacturers if m.active]

    # -- Commands -------------------------------------------------------------

    def replace_driver(self, driver: Driver) -> Roster:
        """Return a roster with the driver sharing *driver.id* swapped out."""
        self.driver(driver.id)
        drivers = tuple(driver if d.id == driver.id else d for d in self.drivers)
        return replace(self, drivers=drivers)

    def replace_team(self, team: Team) -> Roster:
        self.team(team.id)
        teams = tuple(team if t.id == team.id else t for t in self.teams)
        return replace(self, teams=teams)

    def replace_manufacturer(self, manufacturer: Manufacturer) -> Roster:
        self.manufacturer(manufacturer.id)
        manufacturers = tuple(
            manufacturer if m.id == manufacturer.id else m
            for m in self.manufacturers
        )
        return replace(self, manufacturers=manufacturers)

    def deactivate_driver(self, driver_id: str) -> Roster:
        """Retire a driver from future simulations."""
        drv = self.driver(driver_id)
        logger.debug("Deactivating driver %s", driver_id)
        return self.replace_driver(replace(drv, active=False))

    def deactivate_team(self, team_id: str) -> Roster:
        """Withdraw a team together with every driver racing for it."""
        team = self.team(team_id)
        logger.debug("Deactivating team %s", team_id)
        drivers = tuple(
            replace(d, active=False) if d.team_id == team_id else d
            for d in self.drivers
        )
        teams = tuple(
            replace(team, active=False) if t.id == team_id else t for t in self.teams
        )
        return replace(self, teams=teams, drivers=drivers)

    def deactivate_manufacturer(self, manufacturer_id: str) -> Roster:
        manufacturer = self.manufacturer(manufacturer_id)
        logger.debug("Deactivating manufacturer %s", manufacturer_id)
        return self.replace_manufacturer(replace(manufacturer, active=False))

    def add_manufacturer(self, manufacturer: Manufacturer) -> Roster:
        logger.debug("Adding manufacturer %s", manufacturer.id)
        return replace(self, manufacturers=self.manufacturers + (manufacturer,))

    def add_team(self, team: Team) -> Roster:
        logger.debug("Adding team %s", team.id)
        return replace(self, teams=self.teams + (team,))

    def add_driver(self, driver: Driver) -> Roster:
        """Sign a new driver to an active team with an open seat.

        The driver inherits the team's manufacturer and is appended to the
        team's ``driver_ids``.

        Raises:
            NotFoundError: If the driver's team is unknown.
            ValueError: If the team is inactive or already full, or the
                driver id is taken.
        """
        team = self.team(driver.team_id)
        if not team.active:
            raise ValueError(f"Team '{team.id}' is not active.")
        if not team.has_open_seat:
            raise ValueError(f"Team '{team.id}' has no open seat.")
        signed = replace(driver, manufacturer_id=team.manufacturer_id, active=True)
        teams = tuple(
            replace(t, driver_ids=t.driver_ids + (signed.id,)) if t.id == team.id else t
            for t in self.teams
        )
        logger.debug("Adding driver %s to team %s", signed.id, team.id)
        return replace(self, teams=teams, drivers=self.drivers + (signed,))

    def team_with_open_seat(self) -> Team | None:
        """Return the first active team that can sign another driver."""
        for team in self.teams:
            if team.active and team.has_open_seat:
                return team
        return None
