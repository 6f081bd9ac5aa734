"""Core simulation modules for the stock car engine."""

from stockcar_engine.core.championship import (
    Standing,
    apply_career_totals,
    driver_form,
    driver_standings,
    manufacturer_standings,
    points_gap,
    position_change,
    standings,
    team_standings,
)
from stockcar_engine.core.driver import Driver
from stockcar_engine.core.errors import NotFoundError, WeekendStateError
from stockcar_engine.core.manufacturer import Manufacturer
from stockcar_engine.core.monte_carlo import simulate_race_monte_carlo
from stockcar_engine.core.pit import PitStop, generate_pit_stops
from stockcar_engine.core.practice import (
    PracticeResult,
    PracticeSession,
    run_practice_session,
    simulate_practice,
)
from stockcar_engine.core.qualifying import (
    Q1_CUTOFF,
    Q2_CUTOFF,
    QualifyingResult,
    QualifyingSession,
    QualifyingWeekend,
    run_knockout,
    simulate_qualifying,
)
from stockcar_engine.core.race import (
    GRID_INVERSION_COUNT,
    POINTS_TABLE,
    Race,
    RaceResult,
    RaceSimulation,
    RaceState,
    finalize_race,
    invert_grid,
    simulate_lap,
    simulate_race,
    start_race,
)
from stockcar_engine.core.roster import Roster
from stockcar_engine.core.season import (
    Season,
    create_season,
    simulate_full_season,
    simulate_next_race,
)
from stockcar_engine.core.team import Team
from stockcar_engine.core.track import Track
from stockcar_engine.core.tyre import MEDIUM, WET, TyreCompound, TyreState
from stockcar_engine.core.weather import WeatherCondition, generate_weather_changes
from stockcar_engine.core.weekend import (
    RaceWeekend,
    WeekendSummary,
    build_inverted_grid,
)

__all__ = [
    "Driver",
    "GRID_INVERSION_COUNT",
    "MEDIUM",
    "Manufacturer",
    "NotFoundError",
    "POINTS_TABLE",
    "PitStop",
    "PracticeResult",
    "PracticeSession",
    "Q1_CUTOFF",
    "Q2_CUTOFF",
    "QualifyingResult",
    "QualifyingSession",
    "QualifyingWeekend",
    "Race",
    "RaceResult",
    "RaceSimulation",
    "RaceState",
    "RaceWeekend",
    "Roster",
    "Season",
    "Standing",
    "Team",
    "Track",
    "TyreCompound",
    "TyreState",
    "WET",
    "WeatherCondition",
    "WeekendStateError",
    "WeekendSummary",
    "apply_career_totals",
    "build_inverted_grid",
    "create_season",
    "driver_form",
    "driver_standings",
    "finalize_race",
    "generate_pit_stops",
    "generate_weather_changes",
    "invert_grid",
    "manufacturer_standings",
    "points_gap",
    "position_change",
    "run_knockout",
    "run_practice_session",
    "simulate_full_season",
    "simulate_lap",
    "simulate_next_race",
    "simulate_practice",
    "simulate_qualifying",
    "simulate_race",
    "simulate_race_monte_carlo",
    "standings",
    "start_race",
    "team_standings",
]
