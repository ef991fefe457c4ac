"""Elo settlement for finished matches."""

from __future__ import annotations

import logging
import math

from tennislab.constants import DEFAULT_CONSTANTS, EngineConstants
from tennislab.domain import Match, Player, SettlementResult
from tennislab.errors import AlreadySettled, IncompleteMatch, InvalidResult

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching the scoring tables."""

    return math.floor(value + 0.5)


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def expected_score(rating: float, opponent_rating: float, scale: float = DEFAULT_CONSTANTS.elo_scale) -> float:
    """Logistic probability that ``rating`` beats ``opponent_rating``."""

    return 1 / (1 + 10 ** ((opponent_rating - rating) / scale))


def rating_delta(
    winner_rating: float,
    loser_rating: float,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> int:
    expected = expected_score(winner_rating, loser_rating, constants.elo_scale)
    return round_half_up(constants.k_factor * (1 - expected))


def win_probabilities(
    rating_a: float,
    rating_b: float,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> tuple[float, float]:
    """Return ``(prob_a, prob_b)`` rounded to cents and summing to exactly 1.

    Both sides are rounded independently; when that leaves a residual the
    favorite's share is recomputed from the underdog's.
    """

    expected_a = expected_score(rating_a, rating_b, constants.elo_scale)
    cents_a = round_half_up(expected_a * 100)
    cents_b = round_half_up((1 - expected_a) * 100)
    if cents_a + cents_b != 100:
        if cents_a >= cents_b:
            cents_a = 100 - cents_b
        else:
            cents_b = 100 - cents_a
    return cents_a / 100, cents_b / 100


def points_split(
    prob_a: float,
    prob_b: float,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> tuple[int, int]:
    """Return ``(points_favorite, points_underdog)`` for a probability pair."""

    # plain float arithmetic: (1 - 0.55) * 50 is 22.4999..., so 0.55 pays 32/68
    fav = max(prob_a, prob_b)
    spread = constants.points_spread
    points_favorite = round_half_up((1 - fav) * spread) + constants.points_favorite_base
    points_underdog = round_half_up(fav * spread) + constants.points_underdog_base
    return (
        _clamp(points_favorite, constants.points_favorite_bounds),
        _clamp(points_underdog, constants.points_underdog_bounds),
    )


def fair_odds(probability: float, margin: float = DEFAULT_CONSTANTS.bookmaker_margin) -> float:
    """Decimal odds for ``probability`` with the house margin applied."""

    if not 0 < probability <= 1:
        raise ValueError(f"probability must be in (0, 1], got {probability}")
    return round((1 / probability) * (1 + margin), 2)


def match_odds(match: Match, constants: EngineConstants = DEFAULT_CONSTANTS) -> tuple[float, float]:
    """Decimal odds for both players of a settled match."""

    if match.prob_a is None or match.prob_b is None:
        raise IncompleteMatch(f"Match {match.id} has no probabilities yet")
    return (
        fair_odds(match.prob_a, constants.bookmaker_margin),
        fair_odds(match.prob_b, constants.bookmaker_margin),
    )


def _validate(match: Match, player_a: Player, player_b: Player) -> None:
    if match.processed:
        raise AlreadySettled(f"Match {match.id} was already settled")
    if match.score_a is None or match.score_b is None:
        raise IncompleteMatch(f"Match {match.id} is missing a final score")
    if match.score_a == match.score_b:
        raise InvalidResult(f"Match {match.id} has tied scores {match.score_a}-{match.score_b}")
    if player_a.id != match.player_a_id or player_b.id != match.player_b_id:
        raise InvalidResult(f"Players {player_a.id}/{player_b.id} do not belong to match {match.id}")


def compute_settlement(
    match: Match,
    player_a: Player,
    player_b: Player,
    constants: EngineConstants = DEFAULT_CONSTANTS,
) -> SettlementResult:
    """Compute the settlement without touching the inputs."""

    _validate(match, player_a, player_b)

    a_won = match.score_a > match.score_b
    winner, loser = (player_a, player_b) if a_won else (player_b, player_a)

    delta = rating_delta(winner.rating, loser.rating, constants)
    new_winner = winner.rating + delta
    new_loser = max(loser.rating - delta, constants.rating_floor)
    loser_clamped = new_loser != loser.rating - delta

    new_a, new_b = (new_winner, new_loser) if a_won else (new_loser, new_winner)
    prob_a, prob_b = win_probabilities(new_a, new_b, constants)
    points_favorite, points_underdog = points_split(prob_a, prob_b, constants)

    return SettlementResult(
        match_id=match.id,
        winner_id=winner.id,
        loser_id=loser.id,
        delta=delta,
        old_rating_a=player_a.rating,
        old_rating_b=player_b.rating,
        new_rating_a=new_a,
        new_rating_b=new_b,
        prob_a=prob_a,
        prob_b=prob_b,
        points_favorite=points_favorite,
        points_underdog=points_underdog,
        loser_clamped=loser_clamped,
    )


def apply_settlement(match: Match, player_a: Player, player_b: Player, result: SettlementResult) -> None:
    player_a.rating = result.new_rating_a
    player_b.rating = result.new_rating_b
    match.prob_a = result.prob_a
    match.prob_b = result.prob_b
    match.points_favorite = result.points_favorite
    match.points_underdog = result.points_underdog
    match.processed = True


def settle(
    match: Match,
    player_a: Player,
    player_b: Player,
    constants: EngineConstants | None = None,
) -> SettlementResult:
    """Settle a finished match and write the outcome onto the inputs.

    Everything is computed before anything is assigned, so a validation
    failure leaves ``match`` and both players untouched. Settling a match
    twice raises :class:`AlreadySettled` and changes nothing.
    """

    result = compute_settlement(match, player_a, player_b, constants or DEFAULT_CONSTANTS)
    apply_settlement(match, player_a, player_b, result)
    logger.debug(
        "Settled match %s: %s beat %s, delta %s",
        match.id,
        result.winner_id,
        result.loser_id,
        result.delta,
    )
    return result
