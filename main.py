"""CLI entrypoint for the Stock Car Simulation Engine."""

from __future__ import annotations

import argparse
import logging
import sys

from stockcar_engine import __version__
from stockcar_engine.config import load_roster
from stockcar_engine.core.championship import (
    DRIVER,
    MANUFACTURER,
    TEAM,
    driver_form,
    standings,
)
from stockcar_engine.core.qualifying import format_lap_time
from stockcar_engine.core.race import format_race_time
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.season import Season, create_season, simulate_full_season


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a stock car season.")
    parser.add_argument("--year", type=int, default=2025, help="season year")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--verbose", action="store_true", help="log per-race detail"
    )
    return parser.parse_args(argv)


def _print_table(title: str, season: Season, roster: Roster, kind: str) -> None:
    names = {
        DRIVER: {d.id: d.name for d in roster.drivers},
        TEAM: {t.id: t.name for t in roster.teams},
        MANUFACTURER: {m.id: m.name for m in roster.manufacturers},
    }[kind]

    print(f"\n{title}")
    print(f"  {'Pos':>3}  {'Name':<28}  {'Pts':>4}  {'W':>2}  {'Pod':>3}")
    print(f"  {'---':>3}  {'-' * 28:<28}  {'----':>4}  {'--':>2}  {'---':>3}")
    for row in standings(season, roster, kind):
        print(
            f"  {row.position:3d}  {names[row.id]:<28}  {row.points:4d}"
            f"  {row.wins:2d}  {row.podiums:3d}"
        )


def main(argv: list[str] | None = None) -> None:
    """Simulate a full season and print the championship tables."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"Stock Car Simulation Engine v{__version__}")
    print("=" * 56)

    roster = load_roster()
    season = create_season(args.year, roster, seed=args.seed)
    print(f"\n{args.year} Calendar: {len(season.races)} races")

    season = simulate_full_season(season, roster, seed=args.seed)

    # -- Race winners ---------------------------------------------------------
    driver_names = {d.id: d.name for d in roster.drivers}
    print(f"\n  {'Race':<44}  {'Winner':<24}  {'Time':>12}  {'Best lap':>9}")
    for race in season.races:
        winner = next((r for r in race.results or () if not r.dnf), None)
        if winner is None:
            print(f"  {race.name:<44}  {'-':<24}")
            continue
        print(
            f"  {race.name:<44}  {driver_names[winner.driver_id]:<24}"
            f"  {format_race_time(winner.total_time):>12}"
            f"  {format_lap_time(winner.lap_time):>9}"
        )

    # -- Standings ------------------------------------------------------------
    _print_table("Drivers' Championship", season, roster, DRIVER)
    _print_table("Teams' Championship", season, roster, TEAM)
    _print_table("Manufacturers' Championship", season, roster, MANUFACTURER)

    champion = standings(season, roster, DRIVER)[0]
    form = " ".join(str(p) for p in driver_form(champion.id, season))
    print(f"\nChampion {driver_names[champion.id]} - last five: {form}")


if __name__ == "__main__":
    sys.exit(main() or 0)
