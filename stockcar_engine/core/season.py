"""Season calendar and progression for the stock car simulation engine.

A season visits the first tracks of the roster in order and holds two
races per visit: the main race and a shorter inverted-grid race.  Races
are simulated a weekend at a time through :class:`RaceWeekend`; every
step returns a new :class:`Season` and leaves the input untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.errors import NotFoundError
from stockcar_engine.core.race import INVERTED, MAIN, Race
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.weather import random_weather
from stockcar_engine.core.weekend import RaceWeekend

logger = logging.getLogger(__name__)

DEFAULT_TRACK_COUNT: int = 12
INVERTED_RACE_SCALE: float = 0.8  # race 2 length relative to the main race


@dataclass(frozen=True)
class Season:
    """A championship year.

    Attributes:
        year: Season year.
        races: Calendar in running order, main race before inverted race
            for each round.
    """

    year: int
    races: tuple[Race, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "races", tuple(self.races))

    @property
    def completed(self) -> bool:
        return bool(self.races) and all(race.completed for race in self.races)

    def race(self, race_id: str) -> Race:
        for race in self.races:
            if race.id == race_id:
                return race
        raise NotFoundError("race", race_id)

    def with_races(self, *updated: Race) -> Season:
        """Return a copy with the given race records swapped in by id."""
        by_id = {race.id: race for race in updated}
        for race_id in by_id:
            self.race(race_id)
        return replace(
            self, races=tuple(by_id.get(race.id, race) for race in self.races)
        )


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


def create_season(
    year: int,
    roster: Roster,
    seed: int | Generator | None = None,
    track_count: int = DEFAULT_TRACK_COUNT,
) -> Season:
    """Build the calendar for a season.

    Each of the first *track_count* roster tracks hosts a main race over
    the full track length and an inverted-grid race over 80% of it.
    Every race draws its own base weather.

    Args:
        year: Season year, used in the race ids.
        roster: Roster providing the tracks.
        seed: Seed or generator for the weather draws.
        track_count: Number of rounds.

    Returns:
        A :class:`Season` with no completed races.

    Raises:
        ValueError: If track_count < 1 or the roster has no tracks.
    """
    if track_count < 1:
        raise ValueError("track_count must be >= 1.")
    if not roster.tracks:
        raise ValueError("Roster has no tracks.")

    rng: Generator = np.random.default_rng(seed)
    races: list[Race] = []
    for round_no, track in enumerate(roster.tracks[:track_count], start=1):
        races.append(
            Race(
                id=f"{year}-{track.id}-main",
                name=f"GP {track.location} - Main Race",
                track_id=track.id,
                location=track.location,
                round=round_no,
                laps=track.laps,
                distance=track.distance,
                weather=random_weather(rng),
                race_type=MAIN,
            )
        )
        races.append(
            Race(
                id=f"{year}-{track.id}-inverted",
                name=f"GP {track.location} - Inverted Grid Race",
                track_id=track.id,
                location=track.location,
                round=round_no,
                laps=max(1, int(track.laps * INVERTED_RACE_SCALE)),
                distance=round(track.distance * INVERTED_RACE_SCALE, 3),
                weather=random_weather(rng),
                race_type=INVERTED,
            )
        )

    logger.info("Season %d created with %d races", year, len(races))
    return Season(year=year, races=tuple(races))


def weekends(season: Season) -> list[tuple[Race, Race]]:
    """Pair each round's main race with its inverted race."""
    rounds: dict[int, dict[str, Race]] = {}
    for race in season.races:
        rounds.setdefault(race.round, {})[race.race_type] = race
    return [
        (pair[MAIN], pair[INVERTED])
        for _, pair in sorted(rounds.items())
        if MAIN in pair and INVERTED in pair
    ]


def current_race(season: Season) -> Race | None:
    """The next race still to run, or ``None`` when the season is over."""
    for race in season.races:
        if not race.completed:
            return race
    return None


def last_race(season: Season) -> Race | None:
    """The most recent completed race, or ``None`` before the opener."""
    completed = [race for race in season.races if race.completed]
    return completed[-1] if completed else None


def season_progress(season: Season) -> float:
    """Share of races completed, in ``[0, 1]``."""
    if not season.races:
        return 0.0
    done = sum(1 for race in season.races if race.completed)
    return done / len(season.races)


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


def simulate_next_race(
    season: Season,
    roster: Roster,
    seed: int | Generator | None = None,
) -> Season:
    """Run the weekend holding the next pending race.

    Both races of the weekend are completed together and handed back
    through the weekend's completion callback.  If the main race already
    has results, only the inverted race runs.

    Returns:
        A new :class:`Season`; the input is returned unchanged when every
        race is already complete.
    """
    pending = current_race(season)
    if pending is None:
        return season

    for race1, race2 in weekends(season):
        if pending.id in (race1.id, race2.id):
            break
    else:
        raise ValueError(f"Race '{pending.id}' has no partner race in its round.")

    completed: list[Race] = []
    weekend = RaceWeekend(
        race1,
        race2,
        roster,
        seed,
        on_complete=lambda done1, done2: completed.extend((done1, done2)),
    )
    weekend.run()
    updated = season.with_races(*completed)

    if updated.completed:
        logger.info("Season %d complete", season.year)
    return updated


def simulate_full_season(
    season: Season,
    roster: Roster,
    seed: int | Generator | None = None,
) -> Season:
    """Run every remaining weekend of *season* in calendar order."""
    rng: Generator = np.random.default_rng(seed)
    while current_race(season) is not None:
        season = simulate_next_race(season, roster, rng)
    return season
