"""Batch job tests against an in-memory database."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import partial
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.orm import Session, sessionmaker

from tennislab.db.database import build_engine, init_db, session_scope
from tennislab.db.models import MatchRecord, PlayerRecord
from tennislab.errors import ConcurrentUpdate
from tennislab.scheduling import jobs

ATHENS = ZoneInfo("Europe/Athens")


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    maker = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)
    return partial(session_scope, maker)


def _seed(factory, *rows) -> None:
    with factory() as session:
        session.add_all(rows)


def _players() -> list[PlayerRecord]:
    return [PlayerRecord(id="a", name="Alex", elo=1500), PlayerRecord(id="b", name="Bo", elo=1500)]


def test_settle_pending_matches_updates_ratings(session_factory) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(id="m1", player_a="a", player_b="b", status="finished", a_score=2, b_score=0),
        MatchRecord(id="m2", player_a="a", player_b="b", status="live"),
    )

    summary = jobs.settle_pending_matches(session_factory)

    assert summary["ok"] is True
    assert [row["match_id"] for row in summary["processed"]] == ["m1"]
    with session_factory() as session:
        assert session.get(PlayerRecord, "a").elo == 1516
        assert session.get(PlayerRecord, "b").elo == 1484
        match = session.get(MatchRecord, "m1")
        assert match.processed is True
        assert (match.prob_a, match.prob_b) == (0.55, 0.45)
        assert (match.points_fav, match.points_dog) == (32, 68)
        assert session.get(MatchRecord, "m2").processed is False


def test_second_settle_run_changes_nothing(session_factory) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(id="m1", player_a="a", player_b="b", status="finished", a_score=2, b_score=1),
    )
    jobs.settle_pending_matches(session_factory)
    summary = jobs.settle_pending_matches(session_factory)
    assert summary["processed"] == []
    with session_factory() as session:
        assert session.get(PlayerRecord, "a").elo == 1516


def test_stale_pending_list_is_skipped(session_factory, monkeypatch) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(
            id="m1",
            player_a="a",
            player_b="b",
            status="finished",
            a_score=2,
            b_score=0,
            processed=True,
            prob_a=0.55,
            prob_b=0.45,
            points_fav=32,
            points_dog=68,
        ),
    )
    monkeypatch.setattr(jobs, "_pending_match_ids", lambda factory: ["m1"])
    summary = jobs.settle_pending_matches(session_factory)
    assert summary["skipped"] == ["m1"]
    assert summary["ok"] is True
    with session_factory() as session:
        assert session.get(PlayerRecord, "a").elo == 1500


def test_bad_matches_fail_the_run(session_factory) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(id="tie", player_a="a", player_b="b", status="finished", a_score=1, b_score=1),
        MatchRecord(id="ghost", player_a="a", player_b="nobody", status="finished", a_score=2, b_score=0),
    )
    summary = jobs.settle_pending_matches(session_factory)
    assert summary["ok"] is False
    assert len(summary["errors"]) == 2
    with session_factory() as session:
        assert session.get(MatchRecord, "tie").processed is False
        assert session.get(PlayerRecord, "a").elo == 1500


def test_match_automation_locks_then_goes_live(session_factory) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(
            id="m1",
            player_a="a",
            player_b="b",
            start_time=datetime(2025, 6, 1, 18, 0, tzinfo=ATHENS),
            lock_time=datetime(2025, 6, 1, 17, 0, tzinfo=ATHENS),
        ),
        MatchRecord(
            id="m2",
            player_a="b",
            player_b="a",
            start_time=datetime(2025, 6, 1, 20, 0, tzinfo=ATHENS),
            lock_time=datetime(2025, 6, 1, 19, 0, tzinfo=ATHENS),
        ),
    )

    first = jobs.run_match_automation(datetime(2025, 6, 1, 17, 30, tzinfo=ATHENS), session_factory)
    assert first["updates"]["locked"] == ["m1"]
    assert first["updates"]["live"] == []
    assert first["summary"]["total_matches"] == 2

    second = jobs.run_match_automation(datetime(2025, 6, 1, 18, 5, tzinfo=ATHENS), session_factory)
    assert second["updates"]["locked"] == []
    assert second["updates"]["live"] == ["m1"]

    again = jobs.run_match_automation(datetime(2025, 6, 1, 18, 5, tzinfo=ATHENS), session_factory)
    assert again["updates"] == {"locked": [], "live": [], "errors": []}
    assert again["summary"]["total_matches"] == 1

    with session_factory() as session:
        match = session.get(MatchRecord, "m1")
        assert match.status == "live"
        assert match.locked is True
        assert session.get(MatchRecord, "m2").locked is False


def test_instants_read_back_as_utc(session_factory) -> None:
    start = datetime(2025, 6, 1, 18, 0, tzinfo=ATHENS)
    _seed(session_factory, *_players(), MatchRecord(id="m1", player_a="a", player_b="b", start_time=start))
    with session_factory() as session:
        stored = session.get(MatchRecord, "m1").start_time
    assert stored.utcoffset() == timedelta(0)
    assert stored == datetime(2025, 6, 1, 15, 0, tzinfo=timezone.utc)


def test_utc_start_time_does_not_go_live_early(session_factory) -> None:
    start = datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc)
    _seed(session_factory, *_players(), MatchRecord(id="m1", player_a="a", player_b="b", start_time=start))

    early = jobs.run_match_automation(start - timedelta(hours=2), session_factory)
    assert early["updates"]["live"] == []
    assert early["updates"]["locked"] == []

    on_time = jobs.run_match_automation(start, session_factory)
    assert on_time["updates"]["live"] == ["m1"]


def test_unknown_status_is_reported_per_match(session_factory) -> None:
    _seed(
        session_factory,
        *_players(),
        MatchRecord(id="odd", player_a="a", player_b="b", status="suspended", a_score=2, b_score=0),
        MatchRecord(id="m1", player_a="a", player_b="b", status="finished", a_score=2, b_score=0),
    )
    summary = jobs.settle_pending_matches(session_factory)
    assert summary["ok"] is False
    assert len(summary["errors"]) == 1
    assert summary["errors"][0].startswith("odd:")
    assert [row["match_id"] for row in summary["processed"]] == ["m1"]
    with session_factory() as session:
        assert session.get(MatchRecord, "odd").processed is False


def test_rating_write_refuses_stale_value(session_factory) -> None:
    _seed(session_factory, *_players())
    with pytest.raises(ConcurrentUpdate):
        with session_factory() as session:
            jobs._write_rating(session, "a", 1400, 1416, datetime.utcnow())
    with session_factory() as session:
        assert session.get(PlayerRecord, "a").elo == 1500


def test_init_db_command_creates_tables(monkeypatch) -> None:
    created = []
    monkeypatch.setattr(jobs, "init_db", lambda: created.append(True))
    assert jobs.main(["init-db"]) == 0
    assert created == [True]
