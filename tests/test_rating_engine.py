"""Rating engine tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from tennislab.domain import Match, MatchStatus, Player
from tennislab.errors import AlreadySettled, IncompleteMatch, InvalidResult
from tennislab.ratings import engine


def _match(score_a: int | None = 2, score_b: int | None = 0, **kwargs) -> Match:
    return Match(
        id="m1",
        player_a_id="a",
        player_b_id="b",
        start_time=datetime(2025, 6, 1, 18, 0),
        status=MatchStatus.FINISHED,
        score_a=score_a,
        score_b=score_b,
        **kwargs,
    )


def _players(rating_a: float = 1500, rating_b: float = 1500) -> tuple[Player, Player]:
    return Player(id="a", rating=rating_a), Player(id="b", rating=rating_b)


def test_even_match_scenario() -> None:
    match = _match()
    player_a, player_b = _players()
    result = engine.settle(match, player_a, player_b)

    assert result.winner_id == "a"
    assert result.delta == 16
    assert player_a.rating == 1516
    assert player_b.rating == 1484
    assert match.processed is True
    assert (match.prob_a, match.prob_b) == (0.55, 0.45)
    assert (match.points_favorite, match.points_underdog) == (32, 68)


def test_underdog_side_wins_orientation() -> None:
    match = _match(score_a=0, score_b=2)
    player_a, player_b = _players()
    result = engine.settle(match, player_a, player_b)

    assert result.winner_id == "b"
    assert player_b.rating == 1516
    assert player_a.rating == 1484
    assert (result.prob_a, result.prob_b) == (0.45, 0.55)


def test_rating_conservation_without_clamp() -> None:
    player_a, player_b = _players(1620, 1410)
    result = engine.settle(_match(score_a=1, score_b=2), player_a, player_b)
    assert not result.loser_clamped
    gained = result.new_rating_b - result.old_rating_b
    lost = result.old_rating_a - result.new_rating_a
    assert gained == lost == result.delta


def test_loser_clamped_at_floor() -> None:
    player_a, player_b = _players(105, 110)
    result = engine.settle(_match(), player_a, player_b)
    assert result.delta == 16
    assert player_a.rating == 121
    assert player_b.rating == 100
    assert result.loser_clamped


def test_settle_twice_is_noop() -> None:
    match = _match()
    player_a, player_b = _players()
    engine.settle(match, player_a, player_b)
    snapshot = (player_a.rating, player_b.rating, match.prob_a, match.points_favorite)

    with pytest.raises(AlreadySettled):
        engine.settle(match, player_a, player_b)
    assert (player_a.rating, player_b.rating, match.prob_a, match.points_favorite) == snapshot


@pytest.mark.parametrize("scores", [(None, 1), (2, None), (None, None)])
def test_missing_scores(scores) -> None:
    match = _match(*scores)
    player_a, player_b = _players()
    with pytest.raises(IncompleteMatch):
        engine.settle(match, player_a, player_b)
    assert match.processed is False
    assert player_a.rating == 1500


def test_tied_scores_rejected() -> None:
    with pytest.raises(InvalidResult):
        engine.settle(_match(1, 1), *_players())


def test_players_must_belong_to_match() -> None:
    with pytest.raises(InvalidResult):
        engine.settle(_match(), Player(id="x", rating=1500), Player(id="b", rating=1500))


def test_probabilities_sum_to_one_and_points_in_bounds() -> None:
    for rating_a in range(100, 3100, 150):
        for rating_b in range(100, 3100, 175):
            prob_a, prob_b = engine.win_probabilities(rating_a, rating_b)
            assert round(prob_a + prob_b, 2) == 1.0
            fav, dog = engine.points_split(prob_a, prob_b)
            assert 10 <= fav <= 60
            assert 40 <= dog <= 90


def test_favorite_absorbs_rounding_residual(monkeypatch) -> None:
    # 12.5 / 87.5 cents both round up, summing to 101
    monkeypatch.setattr(engine, "expected_score", lambda *args: 0.125)
    prob_a, prob_b = engine.win_probabilities(1500, 1838)
    assert prob_a == 0.13
    assert prob_b == 0.87


def test_points_split_even_match() -> None:
    assert engine.points_split(0.5, 0.5) == (35, 65)
    assert engine.points_split(1.0, 0.0) == (10, 90)


def test_points_split_clamps_custom_constants() -> None:
    wide = engine.DEFAULT_CONSTANTS.replace(points_spread=200)
    fav, dog = engine.points_split(0.5, 0.5, wide)
    assert fav == 60
    assert dog == 90


def test_custom_k_factor() -> None:
    constants = engine.DEFAULT_CONSTANTS.replace(k_factor=16)
    player_a, player_b = _players()
    result = engine.settle(_match(), player_a, player_b, constants)
    assert result.delta == 8


def test_fair_odds_and_match_odds() -> None:
    assert engine.fair_odds(0.5) == pytest.approx(2.1)
    match = _match()
    engine.settle(match, *_players())
    odds_a, odds_b = engine.match_odds(match)
    assert odds_a < odds_b
    with pytest.raises(ValueError):
        engine.fair_odds(0.0)


def test_match_odds_requires_probabilities() -> None:
    with pytest.raises(IncompleteMatch):
        engine.match_odds(_match())
