"""FastAPI backend for the TennisLab settlement and wagering engine."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from tennislab import __version__
from tennislab.api.schemas import (
    ErrorResponse,
    JobResponse,
    ParlayQuoteRequest,
    ParlayQuoteResponse,
)
from tennislab.config import engine_constants, get_api_access_key
from tennislab.errors import EngineError
from tennislab.parlays.engine import compute, decimal_to_american, format_odds, format_winnings
from tennislab.parlays.types import PredictionLeg
from tennislab.scheduling import jobs

logger = logging.getLogger(__name__)

app = FastAPI(
    title="TennisLab Engine API",
    version=__version__,
    description="Match settlement, lifecycle automation and parlay pricing.",
)


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    expected = get_api_access_key()
    if not x_api_key or x_api_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


APIKeyDep = Annotated[None, Depends(require_api_key)]


@app.exception_handler(EngineError)
def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(code=exc.code, detail=exc.message).model_dump(),
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, Any]:
    return {"name": "tennislab-core", "version": __version__}


@app.post(
    "/parlays/quote",
    response_model=ParlayQuoteResponse,
    responses={422: {"model": ErrorResponse}},
)
def quote_parlay(payload: ParlayQuoteRequest, _: APIKeyDep) -> ParlayQuoteResponse:
    legs = [PredictionLeg(**leg.model_dump()) for leg in payload.legs]
    result = compute(
        legs,
        payload.stake,
        payload.safe_bet_requested,
        payload.available_tokens,
        user_streak=payload.user_streak,
        constants=engine_constants(),
    )
    return ParlayQuoteResponse(
        leg_count=result.leg_count,
        stake=result.stake,
        base_odds=result.base_odds,
        bonus_multiplier=result.bonus_multiplier,
        bonus_percentage=result.bonus_percentage,
        streak_booster=result.streak_booster,
        final_odds=result.final_odds,
        potential_winnings=result.potential_winnings,
        implied_probability=result.implied_probability,
        is_safe_bet=result.is_safe_bet,
        safe_bet_token_cost=result.safe_bet_token_cost,
        applied_bonuses=result.applied_bonuses,
        display_odds=format_odds(result.final_odds),
        display_winnings=format_winnings(result.potential_winnings),
        display_american=decimal_to_american(result.final_odds),
    )


def _job_response(summary: dict[str, Any]) -> JobResponse:
    if not summary["ok"]:
        logger.error("Job finished with errors: %s", summary)
        raise HTTPException(status_code=500, detail=summary)
    return JobResponse(status="ok", details=summary)


@app.post("/jobs/settle", response_model=JobResponse)
def api_settle(_: APIKeyDep) -> JobResponse:
    return _job_response(jobs.settle_pending_matches())


@app.post("/jobs/match-automation", response_model=JobResponse)
def api_match_automation(_: APIKeyDep) -> JobResponse:
    return _job_response(jobs.run_match_automation())
