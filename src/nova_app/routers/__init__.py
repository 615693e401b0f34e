"""API routers."""
from .game import router as game_router

__all__ = ["game_router"]
