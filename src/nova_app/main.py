"""NOVA DEFENSE - arcade missile defense.

Main FastAPI application.  Hosts one SimulationEngine, drives it from a
background tick thread, and exposes the command surface under /api/game.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from nova_app.config import settings
from nova_app.routers.game import router as game_router


# ---------------------------------------------------------------------------
# Subsystem startup helpers
# ---------------------------------------------------------------------------

def _create_simulation_engine():
    """Create a SimulationEngine wired to a fresh EventBus. Returns engine or None."""
    if not settings.simulation_enabled:
        return None

    from nova_engine.comms.event_bus import EventBus
    from nova_engine.simulation import SeededRandom, SimulationEngine

    engine = SimulationEngine(EventBus(), rng=SeededRandom(settings.random_seed))
    if settings.random_seed is not None:
        logger.info(f"Simulation: random seed {settings.random_seed}")
    logger.info("Simulation engine created")
    return engine


def _shutdown_subsystems(sim_engine) -> None:
    if sim_engine is not None:
        logger.info("Stopping simulation engine...")
        sim_engine.stop()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info("  NOVA DEFENSE v0.1.0 - INITIALIZING")
    logger.info("=" * 60)

    sim_engine = None
    try:
        sim_engine = _create_simulation_engine()
        if sim_engine is not None:
            sim_engine.start(tick_rate=settings.tick_rate)
    except Exception as e:
        logger.warning(f"Simulation engine failed to start: {e}")
        sim_engine = None
    app.state.simulation_engine = sim_engine

    logger.info("=" * 60)
    logger.info("  NOVA DEFENSE ONLINE")
    logger.info("=" * 60)

    yield

    _shutdown_subsystems(sim_engine)
    logger.info("NOVA DEFENSE shutting down...")


# Create FastAPI app
app = FastAPI(
    title="NOVA-DEFENSE",
    description="Arcade missile defense simulation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    engine = getattr(app.state, "simulation_engine", None)
    return {
        "status": "operational",
        "version": "0.1.0",
        "system": "NOVA-DEFENSE",
        "simulation": engine is not None and engine.running,
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "nova_app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
