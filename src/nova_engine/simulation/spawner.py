"""Rocket spawner — when and where new rockets enter the play area.

Difficulty scales with score: the spawn interval starts at 2000 ms and
shrinks by 100 ms per 100 points, floored at 500 ms.  Rockets appear just
above the top edge at a random x and head in a straight line for a
randomly chosen live city or turret.  They do not home: if the target is
destroyed before arrival the rocket keeps its heading.
"""

from __future__ import annotations

import math
from typing import Sequence

from .constants import (
    GAME_WIDTH,
    ROCKET_SPAWN_Y,
    ROCKET_SPEED_MAX,
    ROCKET_SPEED_MIN,
    SPAWN_INTERVAL_BASE,
    SPAWN_INTERVAL_MIN,
    SPAWN_INTERVAL_STEP,
)
from .entities import City, IdGenerator, Rocket, Turret
from .rng import RandomSource


def spawn_interval(score: int) -> float:
    """Milliseconds between spawns at the given score."""
    return max(
        SPAWN_INTERVAL_MIN,
        SPAWN_INTERVAL_BASE - (score / 100) * SPAWN_INTERVAL_STEP,
    )


def spawn_due(elapsed_since_last_spawn: float, score: int) -> bool:
    return elapsed_since_last_spawn > spawn_interval(score)


def create_rocket(
    targets: Sequence[City | Turret],
    rng: RandomSource,
    ids: IdGenerator,
) -> Rocket | None:
    """Build a rocket aimed at one of *targets*, or None if there are none."""
    if not targets:
        return None

    start_x = rng.uniform(0.0, GAME_WIDTH)
    start_y = ROCKET_SPAWN_Y
    target = rng.choice(targets)
    speed = rng.uniform(ROCKET_SPEED_MIN, ROCKET_SPEED_MAX)
    angle = math.atan2(target.y - start_y, target.x - start_x)

    return Rocket(
        id=ids.next("rocket"),
        x=start_x,
        y=start_y,
        target_x=target.x,
        target_y=target.y,
        speed=speed,
        angle=angle,
    )


def maybe_spawn_rocket(
    elapsed_since_last_spawn: float,
    current_score: int,
    active_cities: Sequence[City],
    active_turrets: Sequence[Turret],
    rng: RandomSource,
    ids: IdGenerator,
) -> Rocket | None:
    """Return a new rocket if the spawn interval has elapsed.

    With nothing left to target this is a silent no-op.
    """
    if not spawn_due(elapsed_since_last_spawn, current_score):
        return None
    return create_rocket([*active_cities, *active_turrets], rng, ids)
