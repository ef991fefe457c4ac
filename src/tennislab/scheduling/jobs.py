"""Scheduling entry points: Elo settlement and match automation runs."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Dict
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from tennislab.config import configure_logging, engine_constants, get_settings
from tennislab.db.database import get_session, init_db
from tennislab.db.models import MatchRecord, PlayerRecord
from tennislab.domain import MatchStatus, SettlementResult
from tennislab.errors import AlreadySettled, ConcurrentUpdate, EngineError
from tennislab.lifecycle.scheduler import Transition, TransitionKind, schedule_now, tick
from tennislab.ratings.engine import compute_settlement

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


def _pending_match_ids(session_factory: SessionFactory) -> list[str]:
    with session_factory() as session:
        stmt = (
            select(MatchRecord.id)
            .where(MatchRecord.processed.is_(False))
            .where(MatchRecord.a_score.is_not(None))
            .where(MatchRecord.b_score.is_not(None))
            .order_by(MatchRecord.start_time)
        )
        return list(session.scalars(stmt))


def _settle_one(session: Session, match_id: str) -> SettlementResult:
    row = session.get(MatchRecord, match_id)
    if row is None:
        raise EngineError(f"Match {match_id} disappeared")
    player_a = session.get(PlayerRecord, row.player_a)
    player_b = session.get(PlayerRecord, row.player_b)
    if player_a is None or player_b is None:
        raise EngineError(f"Invalid players data for match {match_id}")

    result = compute_settlement(row.to_domain(), player_a.to_domain(), player_b.to_domain(), engine_constants())
    now = datetime.utcnow()

    # Claim the match first; a concurrent run that got there earlier leaves rowcount 0.
    claimed = session.execute(
        update(MatchRecord)
        .where(MatchRecord.id == match_id)
        .where(MatchRecord.processed.is_(False))
        .values(
            prob_a=result.prob_a,
            prob_b=result.prob_b,
            points_fav=result.points_favorite,
            points_dog=result.points_underdog,
            processed=True,
            updated_at=now,
        )
    )
    if claimed.rowcount != 1:
        raise AlreadySettled(f"Match {match_id} was settled by another run")

    _write_rating(session, player_a.id, player_a.elo, result.new_rating_a, now)
    _write_rating(session, player_b.id, player_b.elo, result.new_rating_b, now)
    return result


def _write_rating(session: Session, player_id: str, old: float, new: float, now: datetime) -> None:
    """Write ``new`` only if the rating is still the ``old`` value settlement read."""

    written = session.execute(
        update(PlayerRecord)
        .where(PlayerRecord.id == player_id)
        .where(PlayerRecord.elo == old)
        .values(elo=new, updated_at=now)
    )
    if written.rowcount != 1:
        raise ConcurrentUpdate(f"Rating of player {player_id} changed during settlement")


def settle_pending_matches(session_factory: SessionFactory = get_session) -> Dict[str, Any]:
    """Settle every finished, unprocessed match, one transaction per match."""

    summary: Dict[str, Any] = {"processed": [], "skipped": [], "errors": []}
    for match_id in _pending_match_ids(session_factory):
        try:
            with session_factory() as session:
                result = _settle_one(session, match_id)
        except AlreadySettled as exc:
            logger.info("Skipping match %s: %s", match_id, exc)
            summary["skipped"].append(match_id)
            continue
        except EngineError as exc:
            logger.error("Failed to settle match %s: %s", match_id, exc)
            summary["errors"].append(f"{match_id}: {exc}")
            continue
        logger.info(
            "Settled match %s: winner %s, delta %s, probs %.2f/%.2f",
            match_id,
            result.winner_id,
            result.delta,
            result.prob_a,
            result.prob_b,
        )
        summary["processed"].append(result.as_dict())

    summary["ok"] = not summary["errors"]
    return summary


def _apply_transition(session: Session, transition: Transition) -> bool:
    now = datetime.utcnow()
    stmt = (
        update(MatchRecord)
        .where(MatchRecord.id == transition.match_id)
        .where(MatchRecord.status == MatchStatus.UPCOMING.value)
    )
    if transition.kind is TransitionKind.LOCK:
        stmt = stmt.where(MatchRecord.locked.is_(False)).values(locked=True, updated_at=now)
    else:
        stmt = stmt.values(status=MatchStatus.LIVE.value, updated_at=now)
    return session.execute(stmt).rowcount == 1


def run_match_automation(
    now: datetime | None = None,
    session_factory: SessionFactory = get_session,
) -> Dict[str, Any]:
    """Lock and start matches whose lock/start time has passed."""

    settings = get_settings()
    tz = ZoneInfo(settings.schedule_timezone)
    now = now or schedule_now(settings.schedule_timezone)
    logger.info("Running match automation at %s", now.isoformat())

    updates: Dict[str, list[str]] = {"locked": [], "live": [], "errors": []}
    with session_factory() as session:
        stmt = (
            select(MatchRecord)
            .where(MatchRecord.status == MatchStatus.UPCOMING.value)
            .where(MatchRecord.start_time.is_not(None))
            .order_by(MatchRecord.start_time)
        )
        rows = list(session.scalars(stmt))

    for row in rows:
        try:
            match = row.to_domain()
            transitions = tick(now, match, tz=tz)
        except EngineError as exc:
            logger.error("Error processing match %s: %s", row.id, exc)
            updates["errors"].append(f"{row.id}: {exc}")
            continue
        if not transitions:
            continue
        with session_factory() as session:
            for transition in transitions:
                applied = _apply_transition(session, transition)
                if not applied:
                    logger.info("Match %s already moved past %s", match.id, transition.kind.value)
                    continue
                if transition.kind is TransitionKind.LOCK:
                    logger.info("Locked match %s (lock time %s)", match.id, match.lock_time)
                    updates["locked"].append(match.id)
                else:
                    logger.info("Match %s is live (start time %s)", match.id, match.start_time)
                    updates["live"].append(match.id)

    summary = {
        "timestamp": now.isoformat(),
        "summary": {
            "total_matches": len(rows),
            "locked": len(updates["locked"]),
            "live": len(updates["live"]),
            "errors": len(updates["errors"]),
        },
        "updates": updates,
        "ok": not updates["errors"],
    }
    logger.info("Match automation summary: %s", summary["summary"])
    return summary


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run TennisLab batch jobs.")
    parser.add_argument("job", choices=["init-db", "settle", "automation"])
    args = parser.parse_args(argv)
    configure_logging()
    if args.job == "init-db":
        init_db()
        logger.info("Database tables ready")
        return 0
    result = settle_pending_matches() if args.job == "settle" else run_match_automation()
    return 0 if result["ok"] else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
