"""Dataclasses for prediction legs and computed parlays."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class PredictionLeg:
    match_id: str
    outcome: str
    odds: float
    match_locked: bool = False


@dataclass
class ParlayResult:
    legs: List[PredictionLeg]
    stake: float
    base_odds: float
    bonus_multiplier: float
    bonus_percentage: float
    streak_booster: float
    final_odds: float
    potential_winnings: float
    implied_probability: float = 0.0
    is_safe_bet: bool = False
    safe_bet_token_cost: int = 0
    applied_bonuses: list[str] = field(default_factory=list)

    @property
    def leg_count(self) -> int:
        return len(self.legs)
