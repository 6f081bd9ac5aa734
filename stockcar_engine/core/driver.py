"""Driver model for the stock car simulation engine.

Each driver races for one team and one manufacturer.  Skill and
consistency feed the lap-time formulas; aggression widens lap-to-lap
variance and raises the retirement hazard.
"""

from dataclasses import dataclass


def _check_rating(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be between 0 and 100.")


@dataclass(frozen=True)
class Driver:
    """Immutable representation of a stock car driver.

    Attributes:
        id: Unique roster id (e.g. ``"daniel-serra"``).
        name: Display name.
        skill: Raw pace rating (0-100).
        consistency: Lap-to-lap repeatability rating (0-100).  Lower
            values add variance in races and pressure in qualifying.
        aggression: Attack rating (0-100).
        team_id: Team the driver races for.
        manufacturer_id: Manufacturer supplying the driver's car.
        wins: Career wins.
        podiums: Career podiums.
        championships: Career titles.
        active: ``False`` once the driver has left the series.
        joined_year: Season the driver joined the series.
        nationality: Free-text nationality.
    """

    id: str
    name: str
    skill: float
    consistency: float
    aggression: float
    team_id: str
    manufacturer_id: str
    wins: int = 0
    podiums: int = 0
    championships: int = 0
    active: bool = True
    joined_year: int = 0
    nationality: str = ""

    def __post_init__(self) -> None:
        """Validate driver parameters."""
        if not self.id:
            raise ValueError("id must not be empty.")
        if not self.name:
            raise ValueError("name must not be empty.")
        if not self.team_id:
            raise ValueError("team_id must not be empty.")
        if not self.manufacturer_id:
            raise ValueError("manufacturer_id must not be empty.")
        _check_rating("skill", self.skill)
        _check_rating("consistency", self.consistency)
        _check_rating("aggression", self.aggression)
        if min(self.wins, self.podiums, self.championships) < 0:
            raise ValueError("career totals must be >= 0.")
