"""Monte Carlo race analytics for the stock car simulation engine.

Replays one race under many seeds and reduces the classifications to
per-driver odds: wins, podiums, retirements, average finishing place
and average points.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from stockcar_engine.core.qualifying import QualifyingResult
from stockcar_engine.core.race import Race, simulate_race
from stockcar_engine.core.roster import Roster


def simulate_race_monte_carlo(
    race: Race,
    starting_grid: list[QualifyingResult],
    roster: Roster,
    simulations: int,
    base_seed: int = 42,
    invert_count: int = 0,
) -> dict[str, Any]:
    """Estimate finishing odds by replaying *race* many times.

    Each replication uses ``seed = base_seed + i`` so that results are
    reproducible given the same ``base_seed`` and no global random state
    is touched.

    Per driver, the ensemble reports:
      - **Winner probability** -- share of replications won.
      - **Podium probability** -- share of replications classified in the
        top 3 without retiring.
      - **DNF probability** -- fraction of simulations ending in a
        retirement.
      - **Expected finishing position** -- mean classified position.
      - **Expected points** -- mean points, fastest-lap bonus included.
      - **Finish distribution** -- ``{position: share}`` over every place
        the driver was classified in.

    Args:
        race: Race record to replicate.
        starting_grid: Grid used by every replication.
        roster: Roster used to look up ratings.
        simulations: Number of replications (>= 1).
        base_seed: Starting seed value.  Replication *i* uses
            ``base_seed + i``.
        invert_count: Passed through to :func:`simulate_race`.

    Returns:
        Dictionary with keys:
            winner_probabilities  -- ``{driver_id: float}``
            podium_probabilities  -- ``{driver_id: float}``
            dnf_probabilities     -- ``{driver_id: float}``
            expected_position     -- ``{driver_id: float}``
            expected_points       -- ``{driver_id: float}``
            finish_distribution   -- ``{driver_id: {position: float}}``

    Raises:
        ValueError: If simulations < 1.
    """
    if simulations < 1:
        raise ValueError("simulations must be >= 1.")

    driver_ids: list[str] = [slot.driver_id for slot in starting_grid]

    # Tallies per driver
    win_counts: dict[str, int] = defaultdict(int)
    podium_counts: dict[str, int] = defaultdict(int)
    dnf_counts: dict[str, int] = defaultdict(int)
    position_sums: dict[str, int] = defaultdict(int)
    points_sums: dict[str, float] = defaultdict(float)
    position_counts: dict[str, dict[int, int]] = {
        driver_id: defaultdict(int) for driver_id in driver_ids
    }

    for i in range(simulations):
        simulation = simulate_race(
            race, starting_grid, roster, seed=base_seed + i, invert_count=invert_count
        )
        for result in simulation.results:
            driver_id = result.driver_id
            if result.dnf:
                dnf_counts[driver_id] += 1
            else:
                if result.position == 1:
                    win_counts[driver_id] += 1
                if result.position <= 3:
                    podium_counts[driver_id] += 1
            position_sums[driver_id] += result.position
            points_sums[driver_id] += result.points
            position_counts[driver_id][result.position] += 1

    # -- Counts to shares ----------------------------------------------------
    share: float = 1.0 / simulations

    finish_distribution: dict[str, dict[int, float]] = {}
    for driver_id in driver_ids:
        finish_distribution[driver_id] = {
            pos: count * share
            for pos, count in sorted(position_counts[driver_id].items())
        }

    return {
        "winner_probabilities": {d: win_counts[d] * share for d in driver_ids},
        "podium_probabilities": {d: podium_counts[d] * share for d in driver_ids},
        "dnf_probabilities": {d: dnf_counts[d] * share for d in driver_ids},
        "expected_position": {d: position_sums[d] * share for d in driver_ids},
        "expected_points": {d: points_sums[d] * share for d in driver_ids},
        "finish_distribution": finish_distribution,
    }
