"""Validation errors raised by the settlement and wagering engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class; ``code`` is a stable identifier clients can switch on."""

    code = "engine_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class AlreadySettled(EngineError):
    """The match was already processed. Benign; do not retry."""

    code = "already_settled"


class IncompleteMatch(EngineError):
    code = "incomplete_match"


class InvalidResult(EngineError):
    code = "invalid_result"


class InvalidSchedule(EngineError):
    code = "invalid_schedule"


class NotAParlay(EngineError):
    code = "not_a_parlay"


class InvalidOdds(EngineError):
    code = "invalid_odds"


class InvalidStake(EngineError):
    code = "invalid_stake"


class InsufficientBalance(EngineError):
    code = "insufficient_balance"


class MatchLocked(EngineError):
    code = "match_locked"


class InvalidRecord(EngineError):
    """A stored row cannot be mapped onto the domain model."""

    code = "invalid_record"


class ConcurrentUpdate(EngineError):
    """A rating changed under a settlement; the transaction is rolled back."""

    code = "concurrent_update"


__all__ = [
    "EngineError",
    "AlreadySettled",
    "IncompleteMatch",
    "InvalidResult",
    "InvalidSchedule",
    "NotAParlay",
    "InvalidOdds",
    "InvalidStake",
    "InsufficientBalance",
    "MatchLocked",
    "InvalidRecord",
    "ConcurrentUpdate",
]
