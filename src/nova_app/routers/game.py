"""Game control API — state snapshot, commands, and firing."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from nova_engine.simulation.input import to_logical

router = APIRouter(prefix="/api/game", tags=["game"])


class FireCommand(BaseModel):
    """Aim point.  Logical coordinates unless a display size is given,
    in which case (x, y) are canvas pixels and get scaled."""

    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)
    display_width: Optional[float] = Field(None, allow_inf_nan=False)
    display_height: Optional[float] = Field(None, allow_inf_nan=False)


def _parse_fire(body: dict) -> FireCommand:
    # The default 422 handler echoes the rejected input, and Infinity/NaN
    # cannot be rendered back as JSON.
    try:
        return FireCommand.model_validate(body)
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False, include_input=False, include_context=False))


def _get_engine(request: Request):
    """Retrieve the SimulationEngine from app state."""
    sim = getattr(request.app.state, "simulation_engine", None)
    if sim is not None:
        return sim
    raise HTTPException(503, "Simulation engine not available")


def _run_command(request: Request, name: str, method: str) -> dict:
    engine = _get_engine(request)
    if not getattr(engine, method)():
        raise HTTPException(409, f"Cannot {name} in state: {engine.status.value}")
    return {"status": engine.status.value}


@router.get("/state")
async def get_game_state(request: Request):
    """Current snapshot for the renderer."""
    engine = _get_engine(request)
    return engine.get_game_state()


@router.post("/start")
async def start_game(request: Request):
    """START (or a finished game) -> PLAYING with a fresh board."""
    return _run_command(request, "start", "start_game")


@router.post("/pause")
async def pause_game(request: Request):
    return _run_command(request, "pause", "pause_game")


@router.post("/resume")
async def resume_game(request: Request):
    return _run_command(request, "resume", "resume_game")


@router.post("/return-to-start")
async def return_to_start(request: Request):
    return _run_command(request, "return to start", "return_to_start")


@router.post("/replay")
async def replay(request: Request):
    """WON/LOST -> PLAYING with a fresh board."""
    return _run_command(request, "replay", "replay")


@router.post("/fire")
async def fire(request: Request, body: dict = Body(...)):
    """Launch an interceptor.  A no-op (fired=false) unless PLAYING."""
    engine = _get_engine(request)
    command = _parse_fire(body)
    x, y = command.x, command.y
    if command.display_width is not None or command.display_height is not None:
        if command.display_width is None or command.display_height is None:
            raise HTTPException(422, "display_width and display_height go together")
        try:
            x, y = to_logical(x, y, command.display_width, command.display_height)
        except ValueError as e:
            raise HTTPException(422, str(e))
    missile = engine.fire(x, y)
    return {
        "fired": missile is not None,
        "missile": missile.to_dict() if missile is not None else None,
    }
