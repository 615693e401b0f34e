"""Fixed gameplay constants.

All distances are logical units in the 800x600 play area; all speeds are
units per step.  These are not runtime-configurable.
"""

from __future__ import annotations

GAME_WIDTH = 800
GAME_HEIGHT = 600

# Turret slot -> ammo capacity
TURRET_AMMO: dict[str, int] = {
    "left": 20,
    "middle": 40,
    "right": 20,
}

CITY_COUNT = 6

ROCKET_SPEED_MIN = 0.5
ROCKET_SPEED_MAX = 1.5
ROCKET_SPAWN_Y = -20.0

MISSILE_SPEED = 5.5

# Player detonation blast
EXPLOSION_RADIUS_MAX = 46.0
EXPLOSION_DURATION = 60  # steps

# Rocket ground-impact blast
IMPACT_RADIUS_MAX = 20.0
IMPACT_DURATION = 30  # steps

# Rocket is "on target" below this Euclidean distance
IMPACT_DISTANCE = 5.0

# Half-widths of the axis-aligned damage boxes around an impact
CITY_HIT_RADIUS = 10.0
TURRET_HIT_RADIUS = 15.0

POINTS_PER_ROCKET = 20
WIN_SCORE = 1000

# Spawn interval curve (milliseconds)
SPAWN_INTERVAL_BASE = 2000.0
SPAWN_INTERVAL_MIN = 500.0
SPAWN_INTERVAL_STEP = 100.0  # ms shaved per 100 points
