"""Race weekend orchestrator for the stock car simulation engine.

A weekend moves through five phases::

    practice -> qualifying -> race1 -> race2 -> complete

Practice produces timing sheets only.  Qualifying sets the Race 1 grid.
Race 2 starts from Race 1's finishing order with the top block reversed.
On completion both race records are returned as new, completed copies
and handed to an optional callback so the season can store them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable

import numpy as np
from numpy.random import Generator

from stockcar_engine.core.errors import WeekendStateError
from stockcar_engine.core.pit import PitStop
from stockcar_engine.core.practice import (
    PracticeResult,
    PracticeSession,
    simulate_practice,
)
from stockcar_engine.core.qualifying import (
    Q1_CUTOFF,
    Q2_CUTOFF,
    QualifyingResult,
    QualifyingWeekend,
    simulate_qualifying,
)
from stockcar_engine.core.race import (
    GRID_INVERSION_COUNT,
    Race,
    RaceResult,
    RaceSimulation,
    simulate_race,
)
from stockcar_engine.core.roster import Roster

logger = logging.getLogger(__name__)

PRACTICE: str = "practice"
QUALIFYING: str = "qualifying"
RACE1: str = "race1"
RACE2: str = "race2"
COMPLETE: str = "complete"
PHASES: tuple[str, ...] = (PRACTICE, QUALIFYING, RACE1, RACE2, COMPLETE)


@dataclass(frozen=True)
class WeekendSummary:
    """Headline numbers for a weekend.

    Attributes:
        practice_fastest: Fastest driver in the last practice session.
        pole: Pole sitter's grid slot, if qualifying ran.
        race1_winner: Race 1 winner, if Race 1 ran.
        race2_winner: Race 2 winner, if Race 2 ran.
        fastest_pit_stop: Quickest stop across both races.
        most_positions_gained: ``(driver_id, places)`` for the biggest
            climber among Race 1 finishers.
    """

    practice_fastest: PracticeResult | None = None
    pole: QualifyingResult | None = None
    race1_winner: RaceResult | None = None
    race2_winner: RaceResult | None = None
    fastest_pit_stop: PitStop | None = None
    most_positions_gained: tuple[str, int] | None = None


def build_inverted_grid(
    race1_results: list[RaceResult], count: int = GRID_INVERSION_COUNT
) -> list[QualifyingResult]:
    """Build the Race 2 grid from the Race 1 classification.

    Race 1 finishers line up in finishing order with the first *count*
    reversed.  Race 1 retirements are repaired overnight and start from
    the back in their Race 1 order.  Positions are renumbered 1..N.

    Raises:
        ValueError: If count < 0.
    """
    if count < 0:
        raise ValueError("count must be >= 0.")

    ordered = sorted(race1_results, key=lambda r: r.position)
    finishers = [r for r in ordered if not r.dnf]
    retired = [r for r in ordered if r.dnf]
    lineup = list(reversed(finishers[:count])) + finishers[count:] + retired

    grid: list[QualifyingResult] = []
    for idx, result in enumerate(lineup):
        best_lap = math.inf if result.lap_time is None else float(result.lap_time)
        grid.append(
            QualifyingResult(
                position=idx + 1,
                driver_id=result.driver_id,
                best_lap=best_lap,
                gap=0.0,
            )
        )
    return grid


class RaceWeekend:
    """Drives one weekend through practice, qualifying and both races.

    Args:
        race1: Main race record.
        race2: Inverted-grid race record.
        roster: Roster snapshot for the weekend.
        seed: Seed or generator shared by every session of the weekend.
        on_complete: Called with the completed ``(race1, race2)`` records.
        invert_race1: Reverse the top of the qualifying grid for Race 1.
        q1_cutoff: Drivers advancing from Q1.
        q2_cutoff: Drivers advancing from Q2.

    If *race1* is already completed with results, the weekend opens in
    the ``race2`` phase and Race 2 is built from the stored results.
    """

    def __init__(
        self,
        race1: Race,
        race2: Race,
        roster: Roster,
        seed: int | Generator | None = None,
        on_complete: Callable[[Race, Race], None] | None = None,
        invert_race1: bool = False,
        q1_cutoff: int = Q1_CUTOFF,
        q2_cutoff: int = Q2_CUTOFF,
    ) -> None:
        self.race1: Race = race1
        self.race2: Race = race2
        self.roster: Roster = roster
        self.rng: Generator = np.random.default_rng(seed)
        self.on_complete = on_complete
        self.invert_race1 = invert_race1
        self.q1_cutoff = q1_cutoff
        self.q2_cutoff = q2_cutoff

        self.practice: list[PracticeSession] = []
        self.qualifying: QualifyingWeekend | None = None
        self.race1_simulation: RaceSimulation | None = None
        self.race2_simulation: RaceSimulation | None = None

        if race1.completed and race1.results is not None:
            self.phase = RACE2
        else:
            self.phase = PRACTICE

    def _require(self, phase: str) -> None:
        if self.phase != phase:
            raise WeekendStateError(
                f"Cannot run {phase} while the weekend is in the {self.phase} phase."
            )

    # -- Phases ---------------------------------------------------------------

    def _participants(self) -> list[str]:
        participants = [d.id for d in self.roster.active_drivers()]
        if not participants:
            raise ValueError("No active drivers for the weekend.")
        return participants

    def run_practice(self) -> list[PracticeSession]:
        """Run FP1-FP3 for every active driver.

        Raises:
            WeekendStateError: If practice has already run.
            ValueError: If the roster has no active drivers.
        """
        self._require(PRACTICE)
        self.practice = simulate_practice(
            self._participants(), self.race1.weather, self.roster, self.rng
        )
        self.phase = QUALIFYING
        return self.practice

    def run_qualifying(self) -> QualifyingWeekend:
        """Run Q1-Q3 for every active driver.

        Raises:
            WeekendStateError: If practice has not run or qualifying has
                already run.
            ValueError: If the roster has no active drivers.
        """
        self._require(QUALIFYING)
        participants = self._participants()

        self.qualifying = simulate_qualifying(
            participants,
            self.race1.weather,
            self.roster,
            self.rng,
            self.q1_cutoff,
            self.q2_cutoff,
        )
        self.phase = RACE1
        return self.qualifying

    def run_race1(self) -> RaceSimulation:
        """Run the main race from the qualifying grid.

        Raises:
            WeekendStateError: If qualifying has not run or Race 1 is done.
        """
        self._require(RACE1)
        assert self.qualifying is not None
        invert_count = GRID_INVERSION_COUNT if self.invert_race1 else 0
        self.race1_simulation = simulate_race(
            self.race1,
            self.qualifying.final_grid,
            self.roster,
            self.rng,
            invert_count,
        )
        self.phase = RACE2
        return self.race1_simulation

    def run_race2(self) -> RaceSimulation:
        """Run the inverted-grid race and complete the weekend.

        Raises:
            WeekendStateError: If Race 1 has not run or Race 2 is done.
        """
        self._require(RACE2)
        grid = build_inverted_grid(self._race1_results())
        self.race2_simulation = simulate_race(self.race2, grid, self.roster, self.rng)
        self._complete()
        return self.race2_simulation

    def run(self) -> tuple[Race, Race]:
        """Run every remaining phase and return the completed records."""
        if self.phase == PRACTICE:
            self.run_practice()
        if self.phase == QUALIFYING:
            self.run_qualifying()
        if self.phase == RACE1:
            self.run_race1()
        if self.phase == RACE2:
            self.run_race2()
        return self.race1, self.race2

    # -- Completion -----------------------------------------------------------

    def _race1_results(self) -> list[RaceResult]:
        if self.race1_simulation is not None:
            return self.race1_simulation.results
        return list(self.race1.results or ())

    def _complete(self) -> None:
        if self.race1_simulation is not None:
            self.race1 = replace(
                self.race1,
                completed=True,
                results=tuple(self.race1_simulation.results),
                starting_grid=tuple(self.race1_simulation.starting_grid),
            )
        assert self.race2_simulation is not None
        self.race2 = replace(
            self.race2,
            completed=True,
            results=tuple(self.race2_simulation.results),
            starting_grid=tuple(self.race2_simulation.starting_grid),
        )
        self.phase = COMPLETE
        logger.info("Weekend complete: %s / %s", self.race1.id, self.race2.id)

        if self.on_complete is not None:
            self.on_complete(self.race1, self.race2)

    def summary(self) -> WeekendSummary:
        """Summarise whatever has run so far."""
        practice_fastest = self.practice[-1].fastest if self.practice else None
        pole = self.qualifying.pole_position if self.qualifying else None
        race1_winner = self.race1_simulation.winner if self.race1_simulation else None
        race2_winner = self.race2_simulation.winner if self.race2_simulation else None

        stops: list[PitStop] = []
        for sim in (self.race1_simulation, self.race2_simulation):
            if sim is not None:
                stops.extend(sim.pit_stops)
        fastest_stop = min(stops, key=lambda s: s.duration) if stops else None

        most_gained: tuple[str, int] | None = None
        if self.race1_simulation is not None:
            for result in self.race1_simulation.results:
                if result.dnf:
                    continue
                gained = result.grid_position - result.position
                if most_gained is None or gained > most_gained[1]:
                    most_gained = (result.driver_id, gained)

        return WeekendSummary(
            practice_fastest=practice_fastest,
            pole=pole,
            race1_winner=race1_winner,
            race2_winner=race2_winner,
            fastest_pit_stop=fastest_stop,
            most_positions_gained=most_gained,
        )
