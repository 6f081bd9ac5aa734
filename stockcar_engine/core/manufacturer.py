"""Manufacturer model for the stock car simulation engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Manufacturer:
    """Car manufacturer supplying one or more teams.

    Attributes:
        id: Unique roster id.
        name: Brand name.
        performance: Car pace rating (0-100).  Feeds the lap-time penalty.
        reliability: Mechanical reliability rating (0-100).  Lowers tyre
            degradation and retirement hazard.
        development: Upgrade programme rating (0-100).
        budget: Season budget in millions.
        active: ``False`` once the manufacturer has left the series.
        championships: Career titles.
    """

    id: str
    name: str
    performance: float
    reliability: float
    development: float = 50.0
    budget: float = 0.0
    active: bool = True
    championships: int = 0

    def __post_init__(self) -> None:
        """Validate manufacturer parameters."""
        if not self.id:
            raise ValueError("id must not be empty.")
        if not self.name:
            raise ValueError("name must not be empty.")
        if not 0.0 <= self.performance <= 100.0:
            raise ValueError("performance must be between 0 and 100.")
        if not 0.0 <= self.reliability <= 100.0:
            raise ValueError("reliability must be between 0 and 100.")
        if not 0.0 <= self.development <= 100.0:
            raise ValueError("development must be between 0 and 100.")
