"""Explosion lifecycle — blast radius envelope and rocket destruction."""

from __future__ import annotations

import math

from .entities import Explosion, Rocket


def explosion_radius(life: float, max_life: float, max_radius: float) -> float:
    """Triangular envelope: 0 at birth, max at ``max_life / 2``, 0 at death."""
    half_life = max_life / 2
    if half_life <= 0:
        return 0.0
    if life <= half_life:
        radius = (life / half_life) * max_radius
    else:
        radius = (1 - (life - half_life) / half_life) * max_radius
    return min(max_radius, max(0.0, radius))


def tick_explosion(explosion: Explosion, rockets: list[Rocket]) -> list[Rocket]:
    """Age one explosion and remove the rockets inside its current radius.

    *rockets* is filtered in place so a rocket caught here is invisible to
    explosions processed later in the same pass.
    """
    explosion.life += 1
    explosion.radius = explosion_radius(explosion.life, explosion.max_life, explosion.max_radius)

    caught: list[Rocket] = []
    remaining: list[Rocket] = []
    for rocket in rockets:
        if math.hypot(rocket.x - explosion.x, rocket.y - explosion.y) < explosion.radius:
            caught.append(rocket)
        else:
            remaining.append(rocket)
    if caught:
        rockets[:] = remaining
    return caught


def tick_explosions(explosions: list[Explosion], rockets: list[Rocket]) -> list[Rocket]:
    """Advance every explosion one step, dropping the expired ones.

    Returns all rockets destroyed this step, in destruction order.
    """
    destroyed: list[Rocket] = []
    live: list[Explosion] = []
    for explosion in explosions:
        destroyed.extend(tick_explosion(explosion, rockets))
        if not explosion.expired:
            live.append(explosion)
    explosions[:] = live
    return destroyed
