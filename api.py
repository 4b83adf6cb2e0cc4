"""HTTP surface for the simulation engine.

Every route works on the single ``Simulation`` stored in ``app.state``. Ticks
are driven by one background task on the same event loop as the handlers, so
state is never mutated concurrently.
"""
import asyncio
import contextlib
import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import config
from models import SimulationError
from scenarios import demo_scenario, scenario_from_dict
from schemas import ScenarioModel
from simulation import Simulation, initialize

logger = logging.getLogger(__name__)

router = APIRouter(prefix=config.API_PREFIX, tags=["simulation"])


class RunningRequest(BaseModel):
    running: bool


class SpeedRequest(BaseModel):
    multiplier: float = Field(..., ge=config.SPEED_MULTIPLIER_MIN, le=config.SPEED_MULTIPLIER_MAX)


def _simulation(request: Request) -> Simulation:
    return request.app.state.simulation


@router.get("/snapshot")
async def get_snapshot(request: Request) -> Dict[str, Any]:
    """Return trains, occupancy, alerts, routes and stats."""
    return _simulation(request).snapshot().to_dict()


@router.post("/tick")
async def post_tick(request: Request) -> Dict[str, Any]:
    """Advance one tick regardless of the running flag."""
    sim = _simulation(request)
    sim.tick()
    return sim.snapshot().to_dict()


@router.post("/running")
async def post_running(payload: RunningRequest, request: Request) -> Dict[str, Any]:
    sim = _simulation(request)
    sim.set_running(payload.running)
    return {"running": sim.running}


@router.post("/running/toggle")
async def post_toggle(request: Request) -> Dict[str, Any]:
    return {"running": _simulation(request).toggle_running()}


@router.post("/speed")
async def post_speed(payload: SpeedRequest, request: Request) -> Dict[str, Any]:
    sim = _simulation(request)
    sim.set_speed_multiplier(payload.multiplier)
    return {"speed_multiplier": sim.speed_multiplier, "tick_interval_ms": sim.tick_interval_ms}


@router.post("/reschedule")
async def post_reschedule(request: Request) -> Dict[str, Any]:
    sim = _simulation(request)
    sim.trigger_reschedule()
    return sim.snapshot().to_dict()


@router.post("/scenario")
async def post_scenario(payload: ScenarioModel, request: Request) -> Dict[str, Any]:
    """Replace the running simulation with a new network and fleet."""
    graph_spec, train_specs = scenario_from_dict(payload.model_dump())
    old = _simulation(request)
    sim = initialize(graph_spec, train_specs)
    # Operator settings survive a scenario swap.
    sim.set_speed_multiplier(old.speed_multiplier)
    sim.set_running(old.running)
    request.app.state.simulation = sim
    return sim.snapshot().to_dict()


def _advance_safely(sim: Simulation, elapsed_ms: float) -> int:
    """Advance the clock, logging instead of raising so the driver keeps running."""
    try:
        return sim.advance(elapsed_ms)
    except Exception:
        logger.exception("Tick driver failed to advance the simulation")
        return 0


async def _drive(app: FastAPI) -> None:
    last = time.monotonic()
    while True:
        await asyncio.sleep(config.FRAME_INTERVAL_MS / 1000.0)
        now = time.monotonic()
        _advance_safely(app.state.simulation, (now - last) * 1000.0)
        last = now


def create_app(simulation: Optional[Simulation] = None, drive: bool = True) -> FastAPI:

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(_drive(app)) if drive else None
        if task:
            logger.info("Tick driver started (%.0f ms frames)", config.FRAME_INTERVAL_MS)
        yield
        if task:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    app = FastAPI(
        title="Rail Network Simulator",
        description="Discrete-time rail network simulation engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    if simulation is None:
        simulation = initialize(*demo_scenario())
    app.state.simulation = simulation

    @app.exception_handler(SimulationError)
    async def simulation_error_handler(request: Request, exc: SimulationError):
        logger.warning("Rejected scenario: %s", exc)
        return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "tick": app.state.simulation.tick_count}

    app.include_router(router)
    return app
