"""Collision detector — rocket impacts and missile detonations.

Rocket impact
  A rocket within IMPACT_DISTANCE of its fixed target is removed and
  leaves a small impact explosion where it is.  Cities and turrets caught
  in an axis-aligned box around the rocket (half-widths CITY_HIT_RADIUS /
  TURRET_HIT_RADIUS) are deactivated for the rest of the run.  The box is
  centred on the rocket, not the target, so a rocket can flatten a
  neighbour it was never aimed at.

  A rocket that reaches the bottom edge without impacting (its heading
  drifted, or its target fell to another rocket and it overshot) is
  dropped silently: no explosion, no score.

Missile detonation
  A missile whose progress reached 1 is removed and replaced by a full
  size blast at its aim point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .constants import (
    CITY_HIT_RADIUS,
    EXPLOSION_DURATION,
    EXPLOSION_RADIUS_MAX,
    GAME_HEIGHT,
    IMPACT_DISTANCE,
    IMPACT_DURATION,
    IMPACT_RADIUS_MAX,
    TURRET_HIT_RADIUS,
)
from .entities import City, Explosion, IdGenerator, Missile, Rocket, Turret


@dataclass
class Impact:
    """One rocket hitting the ground and what it took with it."""

    rocket: Rocket
    explosion: Explosion
    cities: list[City] = field(default_factory=list)
    turrets: list[Turret] = field(default_factory=list)


@dataclass
class ImpactReport:
    """What the impact pass removed, for event publication."""

    impacts: list[Impact] = field(default_factory=list)
    escaped: list[Rocket] = field(default_factory=list)

    @property
    def cities_destroyed(self) -> list[City]:
        return [c for impact in self.impacts for c in impact.cities]

    @property
    def turrets_destroyed(self) -> list[Turret]:
        return [t for impact in self.impacts for t in impact.turrets]


def _in_box(ax: float, ay: float, bx: float, by: float, half: float) -> bool:
    return abs(ax - bx) < half and abs(ay - by) < half


def has_reached_target(rocket: Rocket) -> bool:
    return math.hypot(rocket.x - rocket.target_x, rocket.y - rocket.target_y) < IMPACT_DISTANCE


def resolve_rocket_impacts(
    rockets: list[Rocket],
    cities: list[City],
    turrets: list[Turret],
    explosions: list[Explosion],
    ids: IdGenerator,
) -> ImpactReport:
    """Remove impacting and out-of-bounds rockets in place."""
    report = ImpactReport()
    survivors: list[Rocket] = []

    for rocket in rockets:
        if has_reached_target(rocket):
            explosion = Explosion(
                id=ids.next("explosion"),
                x=rocket.x,
                y=rocket.y,
                max_radius=IMPACT_RADIUS_MAX,
                max_life=IMPACT_DURATION,
            )
            impact = Impact(rocket=rocket, explosion=explosion)
            for city in cities:
                if city.active and _in_box(city.x, city.y, rocket.x, rocket.y, CITY_HIT_RADIUS):
                    city.active = False
                    impact.cities.append(city)
            for turret in turrets:
                if turret.active and _in_box(turret.x, turret.y, rocket.x, rocket.y, TURRET_HIT_RADIUS):
                    turret.active = False
                    impact.turrets.append(turret)
            explosions.append(explosion)
            report.impacts.append(impact)
        elif rocket.y >= GAME_HEIGHT:
            report.escaped.append(rocket)
        else:
            survivors.append(rocket)

    rockets[:] = survivors
    return report


def resolve_detonations(
    missiles: list[Missile],
    explosions: list[Explosion],
    ids: IdGenerator,
) -> list[Missile]:
    """Replace arrived missiles with detonation blasts.  Returns the arrivals."""
    detonated: list[Missile] = []
    in_flight: list[Missile] = []

    for missile in missiles:
        if missile.progress >= 1.0:
            explosions.append(Explosion(
                id=ids.next("explosion"),
                x=missile.target_x,
                y=missile.target_y,
                max_radius=EXPLOSION_RADIUS_MAX,
                max_life=EXPLOSION_DURATION,
            ))
            detonated.append(missile)
        else:
            in_flight.append(missile)

    missiles[:] = in_flight
    return detonated
