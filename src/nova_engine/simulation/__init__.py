"""Defense simulation — entities, phases, game mode, and the step engine.

Package layout:
  entities.py    — Rocket, Missile, Explosion, City, Turret, GameSnapshot
  spawner.py     — rocket spawn timing and placement
  targeting.py   — turret selection and missile launch
  physics.py     — per-step motion
  collision.py   — rocket impacts and missile detonations
  explosions.py  — blast radius envelope and rocket destruction
  game_mode.py   — status state machine and scoring
  engine.py      — SimulationEngine (owns the run, one step per frame)
"""

from .collision import Impact, ImpactReport, resolve_detonations, resolve_rocket_impacts
from .engine import SimulationEngine
from .entities import (
    City,
    Explosion,
    GameSnapshot,
    GameStatus,
    IdGenerator,
    Missile,
    Rocket,
    SimulationContext,
    Turret,
)
from .explosions import explosion_radius, tick_explosions
from .game_mode import GameMode
from .input import to_logical
from .layout import create_cities, create_turrets
from .physics import advance_missile, advance_rocket
from .rng import RandomSource, SeededRandom
from .spawner import maybe_spawn_rocket, spawn_interval
from .targeting import fire_missile, select_turret

__all__ = [
    "City",
    "Explosion",
    "GameMode",
    "GameSnapshot",
    "GameStatus",
    "IdGenerator",
    "Impact",
    "ImpactReport",
    "Missile",
    "RandomSource",
    "Rocket",
    "SeededRandom",
    "SimulationContext",
    "SimulationEngine",
    "Turret",
    "advance_missile",
    "advance_rocket",
    "create_cities",
    "create_turrets",
    "explosion_radius",
    "fire_missile",
    "maybe_spawn_rocket",
    "resolve_detonations",
    "resolve_rocket_impacts",
    "select_turret",
    "spawn_interval",
    "tick_explosions",
    "to_logical",
]
