"""Team model for the stock car simulation engine.

A team runs cars from a single manufacturer and fields at most two
drivers.  Reputation and facilities scale lap time and pit-stop duration.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_DRIVERS_PER_TEAM: int = 2


@dataclass(frozen=True)
class Team:
    """A racing team.

    Attributes:
        id: Unique roster id.
        name: Display name.
        manufacturer_id: Manufacturer supplying the team's cars.
        reputation: Overall team strength (0-100).
        facilities: Workshop and pit-crew quality (0-100).
        budget: Season budget in millions.
        active: ``False`` once the team has left the series.
        championships: Career titles.
        driver_ids: Ids of the drivers racing for the team.
    """

    id: str
    name: str
    manufacturer_id: str
    reputation: float
    facilities: float
    budget: float = 0.0
    active: bool = True
    championships: int = 0
    driver_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Team id must not be empty.")
        if not self.name:
            raise ValueError("Team name must not be empty.")
        if not 0.0 <= self.reputation <= 100.0:
            raise ValueError("reputation must be between 0 and 100.")
        if not 0.0 <= self.facilities <= 100.0:
            raise ValueError("facilities must be between 0 and 100.")
        if len(self.driver_ids) > MAX_DRIVERS_PER_TEAM:
            raise ValueError(
                f"Team '{self.id}' must have at most {MAX_DRIVERS_PER_TEAM} "
                f"drivers, got {len(self.driver_ids)}."
            )
        if len(set(self.driver_ids)) != len(self.driver_ids):
            raise ValueError(f"Team '{self.id}' lists a driver twice.")

    @property
    def has_open_seat(self) -> bool:
        return len(self.driver_ids) < MAX_DRIVERS_PER_TEAM
