"""Pydantic schemas for the TennisLab API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PredictionLegIn(BaseModel):
    match_id: str
    outcome: str
    odds: float
    match_locked: bool = False


class ParlayQuoteRequest(BaseModel):
    legs: list[PredictionLegIn]
    stake: float
    safe_bet_requested: bool = False
    available_tokens: int = Field(default=0, ge=0)
    user_streak: int = Field(default=0, ge=0)


class ParlayQuoteResponse(BaseModel):
    leg_count: int
    stake: float
    base_odds: float
    bonus_multiplier: float
    bonus_percentage: float
    streak_booster: float
    final_odds: float
    potential_winnings: float
    implied_probability: float
    is_safe_bet: bool
    safe_bet_token_cost: int
    applied_bonuses: list[str]
    display_odds: str
    display_winnings: str
    display_american: str


class ErrorResponse(BaseModel):
    code: str
    detail: str


class JobResponse(BaseModel):
    status: str
    details: dict[str, Any]
