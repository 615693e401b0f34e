"""Physics integrator — one fixed step of motion for rockets and missiles.

Rockets translate at constant heading and speed.  Missiles advance their
flight fraction by ``MISSILE_SPEED / distance`` per step so every shot
covers the same ground per step regardless of range, then recompute
position by interpolating start -> target.

Missile progress is derived from the accumulated path length rather than
by summing per-step fractions, so a shot of exactly ``n * MISSILE_SPEED``
arrives on step ``n`` and not one step late to rounding.
"""

from __future__ import annotations

import math
from typing import Iterable

from .constants import MISSILE_SPEED
from .entities import Missile, Rocket


def advance_rocket(rocket: Rocket) -> None:
    rocket.x += math.cos(rocket.angle) * rocket.speed
    rocket.y += math.sin(rocket.angle) * rocket.speed


def advance_missile(missile: Missile) -> None:
    # A zero-length shot has nowhere to fly; it arrives on its first step.
    if missile.distance <= 0:
        missile.progress = 1.0
    else:
        missile.flown += MISSILE_SPEED
        missile.progress = min(1.0, missile.flown / missile.distance)

    missile.x = missile.start_x + (missile.target_x - missile.start_x) * missile.progress
    missile.y = missile.start_y + (missile.target_y - missile.start_y) * missile.progress


def advance_rockets(rockets: Iterable[Rocket]) -> None:
    for rocket in rockets:
        advance_rocket(rocket)


def advance_missiles(missiles: Iterable[Missile]) -> None:
    for missile in missiles:
        advance_missile(missile)


def steps_to_arrival(distance: float) -> int:
    """Number of steps a missile needs to cover *distance*."""
    if distance <= 0:
        return 1
    return math.ceil(distance / MISSILE_SPEED)
