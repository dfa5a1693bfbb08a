"""REST API routes."""

import logging
from datetime import datetime
from typing import Any, Optional

import orjson
from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from app.services import DecisionService, RelayService
from core.strategy import list_strategies

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "0.1.0"


class KillSwitchState(BaseModel):
    tripped: bool
    reason: Optional[str] = None
    tripped_at: Optional[datetime] = None


class SystemStatus(BaseModel):
    """System status response."""

    status: str
    version: str
    strategies: list[str]
    configured_strategies: int
    kill_switch: KillSwitchState
    relay_clients: int
    relay_authenticated: int
    pip_table: str
    broker: str


class KillSwitchRequest(BaseModel):
    reason: Optional[str] = None


def get_decision_service(request: Request) -> DecisionService:
    return request.app.state.decision_service


def get_relay(request: Request) -> RelayService:
    return request.app.state.relay


async def _json_body(request: Request) -> Any:
    """Decode the request body; invalid JSON decodes to None and fails validation."""
    raw = await request.body()
    try:
        return orjson.loads(raw) if raw else None
    except orjson.JSONDecodeError:
        return None


def _kill_switch_state(service: DecisionService) -> KillSwitchState:
    ks = service.kill_switch
    return KillSwitchState(tripped=ks.is_tripped, reason=ks.reason, tripped_at=ks.tripped_at)


@router.post("/strategies/evaluate")
async def evaluate_strategies(request: Request):
    """Evaluate configured (or supplied) strategies over a candle stream."""
    status, body = get_decision_service(request).evaluate_strategies(await _json_body(request))
    return ORJSONResponse(body, status_code=status)


@router.post("/risk/evaluate")
async def evaluate_risk(request: Request):
    """Gate and size one signal."""
    status, body = get_decision_service(request).evaluate_risk(await _json_body(request))
    return ORJSONResponse(body, status_code=status)


@router.post("/backtest")
async def backtest(request: Request):
    """Run a backtest in a worker thread."""
    service = get_decision_service(request)
    payload = await _json_body(request)
    status, body = await run_in_threadpool(service.run_backtest, payload)
    return ORJSONResponse(body, status_code=status)


@router.get("/status", response_model=SystemStatus)
async def get_status(request: Request):
    """Get system status."""
    service = get_decision_service(request)
    relay = get_relay(request)
    return SystemStatus(
        status="halted" if service.kill_switch.is_tripped else "running",
        version=VERSION,
        strategies=list_strategies(),
        configured_strategies=len(service.trading_config.strategies),
        kill_switch=_kill_switch_state(service),
        relay_clients=len(relay.registry),
        relay_authenticated=relay.registry.authenticated_count,
        pip_table=service.pip_table.value,
        broker=request.app.state.broker_type.value,
    )


@router.post("/kill-switch", response_model=KillSwitchState)
async def trip_kill_switch(request: Request, body: Optional[KillSwitchRequest] = None):
    """Halt trading and broadcast the kill switch to relay clients."""
    reason = (body.reason if body else None) or "manual kill switch"
    await get_relay(request).trip_kill_switch(reason)
    return _kill_switch_state(get_decision_service(request))


@router.delete("/kill-switch", response_model=KillSwitchState)
async def reset_kill_switch(request: Request):
    """Resume trading."""
    service = get_decision_service(request)
    service.kill_switch.reset()
    return _kill_switch_state(service)
