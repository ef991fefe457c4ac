"""Parlay pricing: combined odds, bonuses and safe-bet eligibility."""

from __future__ import annotations

import math
from collections.abc import Sequence

from tennislab.constants import DEFAULT_CONSTANTS, EngineConstants
from tennislab.errors import InsufficientBalance, InvalidOdds, InvalidStake, MatchLocked, NotAParlay
from tennislab.parlays.types import ParlayResult, PredictionLeg


def decimal_to_american(odds: float) -> str:
    if odds >= 2.0:
        return f"+{round((odds - 1) * 100)}"
    return f"-{round(100 / (odds - 1))}"


def implied_probability(decimal_odds: float) -> float:
    """Break-even win probability of a slip priced at ``decimal_odds``."""

    return 1 / decimal_odds


def combine_odds(legs: Sequence[PredictionLeg]) -> float:
    decimal = 1.0
    for leg in legs:
        decimal *= leg.odds
    return decimal


def bonus_tier(leg_count: int, constants: EngineConstants = DEFAULT_CONSTANTS) -> float:
    """Bonus fraction for ``leg_count`` legs (0.10 means +10%)."""

    bonus = 0.0
    for threshold, tier_bonus in sorted(constants.parlay_bonus_tiers):
        if leg_count >= threshold:
            bonus = tier_bonus
    return bonus


def streak_booster(user_streak: int, constants: EngineConstants = DEFAULT_CONSTANTS) -> float:
    if user_streak < constants.streak_booster_threshold:
        return 1.0
    levels = user_streak - constants.streak_booster_threshold + 1
    return 1 + min(levels * constants.streak_booster_step, constants.streak_booster_max)


def safe_bet_cost(leg_count: int, constants: EngineConstants = DEFAULT_CONSTANTS) -> int:
    return leg_count * constants.safe_bet_unit_cost


def bonus_descriptions(
    leg_count: int,
    user_streak: int = 0,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> list[str]:
    descriptions: list[str] = []
    bonus = bonus_tier(leg_count, constants)
    if bonus > 0:
        descriptions.append(f"+{bonus * 100:.0f}% bonus for {leg_count} legs")
    booster = streak_booster(user_streak, constants) - 1
    if booster > 0:
        descriptions.append(f"+{booster * 100:.1f}% streak booster ({user_streak} wins)")
    return descriptions


def format_odds(odds: float) -> str:
    return f"{odds:.2f}"


def format_winnings(winnings: float) -> str:
    return f"{winnings:.0f}"


def validate_legs(
    legs: Sequence[PredictionLeg],
    stake: float,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> None:
    if len(legs) < constants.min_parlay_legs:
        raise NotAParlay(
            f"A parlay needs at least {constants.min_parlay_legs} legs, got {len(legs)}; "
            "place it as a straight bet instead"
        )
    for leg in legs:
        if not math.isfinite(leg.odds) or leg.odds <= 1.0:
            raise InvalidOdds(f"Leg on match {leg.match_id} has invalid decimal odds {leg.odds}")
    if not math.isfinite(stake) or stake <= 0:
        raise InvalidStake(f"Stake must be greater than 0, got {stake}")


def compute(
    legs: Sequence[PredictionLeg],
    stake: float,
    safe_bet_requested: bool = False,
    available_tokens: int = 0,
    *,
    user_streak: int = 0,
    constants: EngineConstants | None = None,
) -> ParlayResult:
    """Price a parlay slip.

    Safe-bet insurance is best effort: when the user cannot afford it the
    slip is priced without it rather than rejected. A granted safe bet only
    sets ``is_safe_bet``; grading a slip with one losing leg is left to the
    bet grader, which must honor the flag.
    """

    constants = constants or DEFAULT_CONSTANTS
    validate_legs(legs, stake, constants)

    leg_count = len(legs)
    base_odds = combine_odds(legs)
    bonus = bonus_tier(leg_count, constants)
    bonus_multiplier = 1 + bonus
    booster = streak_booster(user_streak, constants)
    final_odds = base_odds * bonus_multiplier * booster

    cost = safe_bet_cost(leg_count, constants)
    is_safe_bet = safe_bet_requested and available_tokens >= cost

    return ParlayResult(
        legs=list(legs),
        stake=stake,
        base_odds=base_odds,
        bonus_multiplier=bonus_multiplier,
        bonus_percentage=bonus * 100,
        streak_booster=booster,
        final_odds=final_odds,
        potential_winnings=stake * final_odds,
        implied_probability=implied_probability(final_odds),
        is_safe_bet=is_safe_bet,
        safe_bet_token_cost=cost if is_safe_bet else 0,
        applied_bonuses=bonus_descriptions(leg_count, user_streak, constants),
    )


def validate_submission(
    legs: Sequence[PredictionLeg],
    stake: float,
    balance: float,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> None:
    """Checks run when a slip is submitted, on top of the pricing checks."""

    validate_legs(legs, stake, constants)
    if stake > balance:
        raise InsufficientBalance(f"Stake {stake} exceeds balance {balance}")
    locked = [leg.match_id for leg in legs if leg.match_locked]
    if locked:
        raise MatchLocked(f"Matches already locked: {', '.join(locked)}")
