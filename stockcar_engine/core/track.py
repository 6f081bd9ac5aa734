"""Track model for the stock car simulation engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Track:
    """A circuit on the calendar.

    Attributes:
        id: Unique roster id, also used in race ids.
        name: Official circuit name.
        location: City and state.
        laps: Race distance in laps for the main race (>= 1).
        distance: Race distance in kilometres (> 0).
        state: Two-letter state code.
    """

    id: str
    name: str
    location: str
    laps: int
    distance: float
    state: str = ""

    def __post_init__(self) -> None:
        """Validate track parameters."""
        if not self.id:
            raise ValueError("Track id must not be empty.")
        if not self.name:
            raise ValueError("Track name must not be empty.")
        if self.laps < 1:
            raise ValueError("laps must be >= 1.")
        if self.distance <= 0.0:
            raise ValueError("distance must be > 0.0.")
