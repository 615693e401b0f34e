"""Targeting and firing — which turret answers a fire command.

The turret horizontally closest to the aim point launches, provided it is
still standing and has ammo.  Vertical distance is ignored: all turrets
sit on the same ground line.
"""

from __future__ import annotations

import math
from typing import Iterable

from .entities import IdGenerator, Missile, Turret


def select_turret(target_x: float, turrets: Iterable[Turret]) -> Turret | None:
    """Nearest eligible turret by ``|turret.x - target_x|``.

    Ties go to the first turret in iteration order.
    """
    best: Turret | None = None
    best_dist = math.inf
    for turret in turrets:
        if not turret.can_fire:
            continue
        dist = abs(turret.x - target_x)
        if dist < best_dist:
            best_dist = dist
            best = turret
    return best


def fire_missile(
    target_x: float,
    target_y: float,
    turrets: Iterable[Turret],
    ids: IdGenerator,
) -> Missile | None:
    """Launch from the selected turret, spending one round.

    Returns None (and touches nothing) when no turret can fire.
    """
    turret = select_turret(target_x, turrets)
    if turret is None:
        return None

    turret.ammo -= 1
    distance = math.hypot(target_x - turret.x, target_y - turret.y)
    return Missile(
        id=ids.next("missile"),
        x=turret.x,
        y=turret.y,
        start_x=turret.x,
        start_y=turret.y,
        target_x=target_x,
        target_y=target_y,
        distance=distance,
    )
