"""Initial placement of cities and turrets for a fresh run."""

from __future__ import annotations

from .constants import CITY_COUNT, GAME_HEIGHT, GAME_WIDTH, TURRET_AMMO
from .entities import City, Turret

CITY_Y = GAME_HEIGHT - 20
TURRET_Y = GAME_HEIGHT - 30
TURRET_EDGE_MARGIN = 40


def create_cities() -> list[City]:
    """Six cities on an eighth-width grid, skipping the middle and right
    turret slots.

    Resulting x positions: 100, 200, 400, 500, 700, 800.
    """
    spacing = GAME_WIDTH / 8
    cities: list[City] = []
    for i in range(CITY_COUNT):
        x = (i + 1) * spacing
        if i >= 2:
            x += spacing
        if i >= 4:
            x += spacing
        cities.append(City(id=f"city-{i}", x=x, y=float(CITY_Y)))
    return cities


def create_turrets() -> list[Turret]:
    """Left, middle and right turrets, each at full ammo."""
    slots = [
        ("left", TURRET_EDGE_MARGIN),
        ("middle", GAME_WIDTH / 2),
        ("right", GAME_WIDTH - TURRET_EDGE_MARGIN),
    ]
    return [
        Turret(
            id=f"turret-{slot}",
            x=float(x),
            y=float(TURRET_Y),
            ammo=TURRET_AMMO[slot],
            max_ammo=TURRET_AMMO[slot],
        )
        for slot, x in slots
    ]
