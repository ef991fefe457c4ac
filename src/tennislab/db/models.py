"""ORM models for TennisLab."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tennislab.constants import DEFAULT_RATING
from tennislab.domain import Match, MatchStatus, Player
from tennislab.errors import InvalidRecord


class UTCDateTime(TypeDecorator):
    """Instants stored as UTC; values read back are always aware UTC.

    SQLite drops the offset of ``DateTime(timezone=True)``, so aware values are
    converted to UTC before writing and naive values from storage are UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Base declarative class."""


class PlayerRecord(Base):
    """Player with the rating owned by the settlement engine."""

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    elo: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_RATING)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def to_domain(self) -> Player:
        return Player(id=self.id, rating=self.elo, name=self.name)


class MatchRecord(Base):
    """Match row; scores come from result entry, derived fields from settlement."""

    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    player_a: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    player_b: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=MatchStatus.UPCOMING.value, nullable=False)
    start_time: Mapped[datetime | None] = mapped_column(UTCDateTime)
    lock_time: Mapped[datetime | None] = mapped_column(UTCDateTime)
    locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    a_score: Mapped[int | None] = mapped_column(Integer)
    b_score: Mapped[int | None] = mapped_column(Integer)
    processed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    prob_a: Mapped[float | None] = mapped_column(Float)
    prob_b: Mapped[float | None] = mapped_column(Float)
    points_fav: Mapped[int | None] = mapped_column(Integer)
    points_dog: Mapped[int | None] = mapped_column(Integer)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def to_domain(self) -> Match:
        try:
            status = MatchStatus(self.status)
        except ValueError as exc:
            raise InvalidRecord(f"Match {self.id} has unknown status {self.status!r}") from exc
        return Match(
            id=self.id,
            player_a_id=self.player_a,
            player_b_id=self.player_b,
            start_time=self.start_time,
            status=status,
            lock_time=self.lock_time,
            locked=self.locked,
            score_a=self.a_score,
            score_b=self.b_score,
            processed=self.processed,
            prob_a=self.prob_a,
            prob_b=self.prob_b,
            points_favorite=self.points_fav,
            points_underdog=self.points_dog,
        )
