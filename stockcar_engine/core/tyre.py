"""Tyre state model for the stock car simulation engine.

Cars run a single dry compound; wet tyres are fitted at a stop when the
track is rainy.  Condition starts at 100 on a fresh set and falls every
lap.  Running dry tyres in the rain is penalised by the lap-time model.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockcar_engine.core.weather import RAINY

# ---------------------------------------------------------------------------
# Tyre compound model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TyreCompound:
    """Immutable description of a tyre compound.

    Attributes:
        name: Compound label (e.g. ``"MEDIUM"``).
        wet: ``True`` for rain tyres.
        wear_per_lap: Condition points lost per lap.
        wear_cost: Milliseconds lost per point of lost condition.
    """

    name: str
    wet: bool
    wear_per_lap: float
    wear_cost: float

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Compound name must be non-empty.")
        if self.wear_per_lap < 0.0:
            raise ValueError("wear_per_lap must be >= 0.")
        if self.wear_cost < 0.0:
            raise ValueError("wear_cost must be >= 0.")


MEDIUM = TyreCompound(name="MEDIUM", wet=False, wear_per_lap=2.0, wear_cost=12.0)
WET = TyreCompound(name="WET", wet=True, wear_per_lap=1.5, wear_cost=10.0)


def compound_for(weather: str) -> TyreCompound:
    """Compound a crew fits for the given track condition."""
    return WET if weather == RAINY else MEDIUM


# ---------------------------------------------------------------------------
# Tyre state tracker
# ---------------------------------------------------------------------------


class TyreState:
    """Tracks wear on the current set of tyres.

    Attributes:
        compound: The compound currently fitted.
        condition: Remaining condition, 100 (new) down to 0.
        laps: Laps completed on this set.
    """

    __slots__ = ("compound", "condition", "laps")

    def __init__(self, compound: TyreCompound | None = None, condition: float = 100.0):
        if not 0.0 <= condition <= 100.0:
            raise ValueError("condition must be between 0 and 100.")
        self.compound: TyreCompound = compound if compound is not None else MEDIUM
        self.condition: float = condition
        self.laps: int = 0

    def wear(self) -> None:
        """Advance the set by one lap."""
        self.laps += 1
        self.condition = max(0.0, self.condition - self.compound.wear_per_lap)

    def reset(self, compound: TyreCompound | None = None) -> None:
        """Fit a fresh set after a pit stop.

        Args:
            compound: New compound to fit.  If ``None``, the current compound
                is retained.
        """
        self.condition = 100.0
        self.laps = 0
        if compound is not None:
            self.compound = compound
