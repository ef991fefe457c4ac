"""Shared numeric constants for ratings, lifecycle and parlays."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

K_FACTOR = 32
ELO_SCALE = 400
RATING_FLOOR = 100
DEFAULT_RATING = 1500

# points = base + round(spread * p), clamped to bounds
POINTS_SPREAD = 50
POINTS_FAVORITE_BASE = 10
POINTS_UNDERDOG_BASE = 40
POINTS_FAVORITE_BOUNDS = (10, 60)
POINTS_UNDERDOG_BOUNDS = (40, 90)

MIN_PARLAY_LEGS = 2
# (minimum legs, bonus) sorted by threshold, inclusive
PARLAY_BONUS_TIERS: tuple[tuple[int, float], ...] = (
    (2, 0.0),
    (4, 0.10),
    (6, 0.20),
    (8, 0.30),
)
SAFE_BET_UNIT_COST = 5

STREAK_BOOSTER_THRESHOLD = 3
STREAK_BOOSTER_STEP = 0.02
STREAK_BOOSTER_MAX = 0.20

BOOKMAKER_MARGIN = 0.05
SCHEDULE_TIMEZONE = "Europe/Athens"


@dataclass(frozen=True)
class EngineConstants:
    """Bundle of the constants above, overridable per deployment."""

    k_factor: float = K_FACTOR
    elo_scale: float = ELO_SCALE
    rating_floor: float = RATING_FLOOR
    points_spread: int = POINTS_SPREAD
    points_favorite_base: int = POINTS_FAVORITE_BASE
    points_underdog_base: int = POINTS_UNDERDOG_BASE
    points_favorite_bounds: tuple[int, int] = POINTS_FAVORITE_BOUNDS
    points_underdog_bounds: tuple[int, int] = POINTS_UNDERDOG_BOUNDS
    min_parlay_legs: int = MIN_PARLAY_LEGS
    parlay_bonus_tiers: tuple[tuple[int, float], ...] = field(default=PARLAY_BONUS_TIERS)
    safe_bet_unit_cost: int = SAFE_BET_UNIT_COST
    streak_booster_threshold: int = STREAK_BOOSTER_THRESHOLD
    streak_booster_step: float = STREAK_BOOSTER_STEP
    streak_booster_max: float = STREAK_BOOSTER_MAX
    bookmaker_margin: float = BOOKMAKER_MARGIN
    schedule_timezone: str = SCHEDULE_TIMEZONE

    def replace(self, **changes) -> EngineConstants:
        return replace(self, **changes)


DEFAULT_CONSTANTS = EngineConstants()
