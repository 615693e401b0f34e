"""Entity model — rockets, missiles, explosions, and the defended assets.

Entities are plain mutable dataclasses owned by the SimulationEngine.
Phase functions (spawner, physics, collision, explosions) mutate them in
place during a step; nothing outside the engine holds a reference across
steps.  The renderer receives copies through GameSnapshot.
"""

from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass, field
from enum import Enum


class GameStatus(str, Enum):
    START = "START"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    WON = "WON"
    LOST = "LOST"


@dataclass
class Rocket:
    """Enemy projectile falling toward a fixed target at constant heading."""

    id: str
    x: float
    y: float
    target_x: float
    target_y: float
    speed: float
    angle: float  # radians, bearing from spawn point to target

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "target_x": self.target_x,
            "target_y": self.target_y,
            "speed": self.speed,
            "angle": self.angle,
        }


@dataclass
class Missile:
    """Player interceptor flying in a straight line to a chosen point.

    Position is always ``start + (target - start) * progress``.
    """

    id: str
    x: float
    y: float
    start_x: float
    start_y: float
    target_x: float
    target_y: float
    distance: float
    progress: float = 0.0
    flown: float = 0.0  # path length covered so far

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "start_x": self.start_x,
            "start_y": self.start_y,
            "target_x": self.target_x,
            "target_y": self.target_y,
            "distance": self.distance,
            "progress": self.progress,
            "flown": self.flown,
        }


@dataclass
class Explosion:
    """Area effect whose radius rises then falls over ``max_life`` steps."""

    id: str
    x: float
    y: float
    max_radius: float
    max_life: int
    radius: float = 0.0
    life: int = 0

    @property
    def expired(self) -> bool:
        return self.life >= self.max_life

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "radius": self.radius,
            "max_radius": self.max_radius,
            "life": self.life,
            "max_life": self.max_life,
        }


@dataclass
class City:
    id: str
    x: float
    y: float
    active: bool = True

    def to_dict(self) -> dict:
        return {"id": self.id, "x": self.x, "y": self.y, "active": self.active}


@dataclass
class Turret:
    """Ground launcher.  Ammo only ever goes down during a run."""

    id: str
    x: float
    y: float
    ammo: int
    max_ammo: int
    active: bool = True

    @property
    def can_fire(self) -> bool:
        return self.active and self.ammo > 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "active": self.active,
            "ammo": self.ammo,
            "max_ammo": self.max_ammo,
        }


class IdGenerator:
    """Per-run monotonic id source: ``rocket-1``, ``missile-2``, ...

    A single counter is shared by all prefixes, so ids are unique across
    every collection, not just within one.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def next(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of one completed step, handed to the renderer."""

    score: int
    status: GameStatus
    rockets: tuple[Rocket, ...] = ()
    missiles: tuple[Missile, ...] = ()
    explosions: tuple[Explosion, ...] = ()
    cities: tuple[City, ...] = ()
    turrets: tuple[Turret, ...] = ()

    @classmethod
    def capture(
        cls,
        score: int,
        status: GameStatus,
        rockets: list[Rocket],
        missiles: list[Missile],
        explosions: list[Explosion],
        cities: list[City],
        turrets: list[Turret],
    ) -> GameSnapshot:
        """Copy the live collections so later steps cannot leak in."""
        return cls(
            score=score,
            status=status,
            rockets=tuple(copy.copy(r) for r in rockets),
            missiles=tuple(copy.copy(m) for m in missiles),
            explosions=tuple(copy.copy(e) for e in explosions),
            cities=tuple(copy.copy(c) for c in cities),
            turrets=tuple(copy.copy(t) for t in turrets),
        )

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "status": self.status.value,
            "rockets": [r.to_dict() for r in self.rockets],
            "missiles": [m.to_dict() for m in self.missiles],
            "explosions": [e.to_dict() for e in self.explosions],
            "cities": [c.to_dict() for c in self.cities],
            "turrets": [t.to_dict() for t in self.turrets],
        }


@dataclass
class SimulationContext:
    """Run-scoped mutable state threaded through every phase of a step."""

    rockets: list[Rocket] = field(default_factory=list)
    missiles: list[Missile] = field(default_factory=list)
    explosions: list[Explosion] = field(default_factory=list)
    cities: list[City] = field(default_factory=list)
    turrets: list[Turret] = field(default_factory=list)
    ids: IdGenerator = field(default_factory=IdGenerator)
    last_spawn_time: float | None = None  # ms, host clock
    step_count: int = 0

    def active_cities(self) -> list[City]:
        return [c for c in self.cities if c.active]

    def active_turrets(self) -> list[Turret]:
        return [t for t in self.turrets if t.active]
