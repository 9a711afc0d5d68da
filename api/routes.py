"""
Executor API routes.
"""

import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from engine import FlashArbitrageEngine
from errors import ArbitrageError, Unauthorized

from .dependencies import get_authenticated_caller, get_engine
from .models import EstimateResponse, ExecutionResponse, InitiateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Arbitrage"])


def _failure(error: ArbitrageError) -> HTTPException:
    code = status.HTTP_403_FORBIDDEN if isinstance(error, Unauthorized) else status.HTTP_409_CONFLICT
    return HTTPException(status_code=code, detail=error.to_dict())


@router.get("/estimate", response_model=EstimateResponse)
async def estimate(
    engine: FlashArbitrageEngine = Depends(get_engine),
):
    """
    Quote the route on both venues without moving funds.
    """
    try:
        result = engine.estimate()
    except ArbitrageError as e:
        raise _failure(e)

    return EstimateResponse(
        borrow_amount=result.borrow_amount,
        quote1=result.quote1,
        quote2=result.quote2,
        fee=result.fee,
        expected_profit=result.expected_profit,
        profitable=result.profitable,
        timestamp=datetime.fromtimestamp(result.timestamp),
    )


@router.post("/initiate", response_model=ExecutionResponse)
async def initiate(
    request: Optional[InitiateRequest] = None,
    caller: str = Depends(get_authenticated_caller),
    engine: FlashArbitrageEngine = Depends(get_engine),
):
    """
    Borrow, swap through both venues and repay (owner only).

    Any failure aborts the whole route: 403 for a non-owner caller,
    409 with the failure reason otherwise.
    """
    amount = request.amount if request else None
    try:
        execution = engine.initiate(caller, amount=amount)
    except ArbitrageError as e:
        raise _failure(e)

    data = execution.to_dict()
    return ExecutionResponse(
        success=True,
        message=f"Arbitrage executed. Retained: {execution.retained}",
        **data,
    )


@router.get("/state")
async def get_state(
    engine: FlashArbitrageEngine = Depends(get_engine),
):
    """
    Route configuration, balances, last estimate and recent executions.
    """
    state = engine.get_state()
    state["ledger"] = engine.ledger.get_state()
    return state


@router.get("/events", response_model=List[dict])
async def list_events(
    limit: int = 50,
    engine: FlashArbitrageEngine = Depends(get_engine),
):
    """
    Committed events, newest last.
    """
    events = engine.ledger.events[-limit:] if limit > 0 else []
    return [event.to_dict() for event in events]
