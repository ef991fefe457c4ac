"""Dataclasses for players, matches and their engine outputs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MatchStatus(str, Enum):
    UPCOMING = "upcoming"
    LOCKED = "locked"
    LIVE = "live"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


# forward order; cancelled/postponed sit outside the timeline
STATUS_ORDER = {
    MatchStatus.UPCOMING: 0,
    MatchStatus.LOCKED: 1,
    MatchStatus.LIVE: 2,
    MatchStatus.FINISHED: 3,
}


@dataclass
class Player:
    id: str
    rating: float
    name: str | None = None


@dataclass
class Match:
    id: str
    player_a_id: str
    player_b_id: str
    start_time: datetime | str | None
    status: MatchStatus = MatchStatus.UPCOMING
    lock_time: datetime | str | None = None
    locked: bool = False
    score_a: int | None = None
    score_b: int | None = None
    processed: bool = False
    prob_a: float | None = None
    prob_b: float | None = None
    points_favorite: int | None = None
    points_underdog: int | None = None


@dataclass(frozen=True)
class SettlementResult:
    match_id: str
    winner_id: str
    loser_id: str
    delta: int
    old_rating_a: float
    old_rating_b: float
    new_rating_a: float
    new_rating_b: float
    prob_a: float
    prob_b: float
    points_favorite: int
    points_underdog: int
    loser_clamped: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "match_id": self.match_id,
            "winner_id": self.winner_id,
            "loser_id": self.loser_id,
            "delta": self.delta,
            "new_rating_a": self.new_rating_a,
            "new_rating_b": self.new_rating_b,
            "prob_a": self.prob_a,
            "prob_b": self.prob_b,
            "points_favorite": self.points_favorite,
            "points_underdog": self.points_underdog,
        }
