"""Time-driven match lifecycle transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

from tennislab.domain import STATUS_ORDER, Match, MatchStatus
from tennislab.errors import AlreadySettled, InvalidResult, InvalidSchedule


class TransitionKind(str, Enum):
    LOCK = "lock"
    GO_LIVE = "go_live"


@dataclass(frozen=True)
class Transition:
    kind: TransitionKind
    match_id: str
    at: datetime


def schedule_now(tz_name: str) -> datetime:
    """Current instant expressed in the scheduling timezone."""

    return datetime.now(ZoneInfo(tz_name))


def coerce_instant(value: datetime | str | None, field: str, tz: tzinfo = timezone.utc) -> datetime:
    """Parse ``value`` into an aware datetime; naive values are read in ``tz``."""

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidSchedule(f"{field} is not an ISO-8601 timestamp: {value!r}") from exc
    if not isinstance(value, datetime):
        raise InvalidSchedule(f"{field} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=tz)
    return value


def tick(now: datetime | str, match: Match, *, tz: tzinfo = timezone.utc) -> list[Transition]:
    """Return the transitions ``match`` is due for at ``now``.

    Pure: nothing on ``match`` changes. Whether a transition is due is decided
    from ``status`` and ``locked`` alone, so repeated ticks after the caller
    applied the result are no-ops. Locking and going live are independent;
    both can come out of a single tick.
    """

    current = coerce_instant(now, "now", tz)
    start_time = coerce_instant(match.start_time, "start_time", tz)
    lock_time = coerce_instant(match.lock_time, "lock_time", tz) if match.lock_time is not None else None

    transitions: list[Transition] = []
    if match.status != MatchStatus.UPCOMING:
        return transitions

    if lock_time is not None and current >= lock_time and not match.locked:
        transitions.append(Transition(TransitionKind.LOCK, match.id, current))
    if current >= start_time:
        transitions.append(Transition(TransitionKind.GO_LIVE, match.id, current))
    return transitions


def apply_transitions(match: Match, transitions: list[Transition]) -> Match:
    """Apply ``transitions`` in place, skipping any that no longer hold."""

    for transition in transitions:
        if transition.match_id != match.id:
            raise ValueError(f"Transition for {transition.match_id} applied to match {match.id}")
        if match.status != MatchStatus.UPCOMING:
            continue
        if transition.kind is TransitionKind.LOCK and not match.locked:
            match.locked = True
        elif transition.kind is TransitionKind.GO_LIVE:
            match.status = MatchStatus.LIVE
    return match


def record_result(match: Match, score_a: int, score_b: int) -> Match:
    """Enter a final score and move the match to ``FINISHED``."""

    if match.processed:
        raise AlreadySettled(f"Match {match.id} was already settled")
    if match.status not in STATUS_ORDER:
        raise InvalidResult(f"Match {match.id} is {match.status.value}; no result can be entered")
    if score_a < 0 or score_b < 0:
        raise InvalidResult(f"Scores must be non-negative, got {score_a}-{score_b}")
    if score_a == score_b:
        raise InvalidResult(f"Tennis matches cannot be drawn ({score_a}-{score_b})")
    match.score_a = score_a
    match.score_b = score_b
    match.status = MatchStatus.FINISHED
    return match
