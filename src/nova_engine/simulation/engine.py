"""SimulationEngine — frame-driven step loop for the defense game.

Architecture
------------
The engine is the single owner of the run's SimulationContext (rockets,
missiles, explosions, cities, turrets, last spawn time, id counter) and
of the GameMode.  Phase functions borrow the context's collections for
the duration of one call and keep nothing afterwards.

One call to ``step(timestamp_ms)`` is one atomic pass, in fixed order:

  1. spawner     — maybe add a rocket (interval shrinks with score)
  2. physics     — move rockets, then advance missiles
  3. collision   — rocket impacts / out-of-bounds, missile detonations
  4. explosions  — grow/shrink blasts, destroy rockets inside, score them
  5. game mode   — loss check, then win check

``step`` does nothing unless the status is PLAYING; that is the only
cancellation mechanism.  No step is ever interrupted half-way.

Host integration:
  ``fire(x, y)`` is applied immediately, between frames, with no queuing:
  two calls in one frame launch two missiles, the second choosing its
  turret against the already-decremented ammo.  All public methods hold
  one lock, so an HTTP thread firing while the tick thread steps never
  sees a half-applied step, and ``snapshot()`` always reflects a completed
  one.

  ``start()`` runs an optional daemon thread that calls
  ``step(clock())`` at ``tick_rate`` Hz, standing in for a display
  refresh callback.  Tests call ``step`` directly with synthetic
  timestamps instead.
"""

from __future__ import annotations

import math
import threading
import time
from typing import TYPE_CHECKING, Callable

from loguru import logger

from .collision import resolve_detonations, resolve_rocket_impacts
from .entities import GameSnapshot, GameStatus, Missile, SimulationContext
from .explosions import tick_explosions
from .game_mode import GameMode
from .layout import create_cities, create_turrets
from .physics import advance_missiles, advance_rockets, steps_to_arrival
from .rng import RandomSource, SeededRandom
from .spawner import maybe_spawn_rocket, spawn_due, spawn_interval
from .targeting import fire_missile

if TYPE_CHECKING:
    from nova_engine.comms.event_bus import EventBus


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SimulationEngine:
    """Owns the run state and advances it one frame per ``step``."""

    DEFAULT_TICK_RATE = 60.0

    def __init__(
        self,
        event_bus: EventBus | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._event_bus = event_bus
        self._rng: RandomSource = rng if rng is not None else SeededRandom()
        self._clock = clock if clock is not None else monotonic_ms
        self._lock = threading.RLock()
        self._context = SimulationContext()
        self.game_mode = GameMode(event_bus)

        self._running = False
        self._thread: threading.Thread | None = None
        self._tick_rate = self.DEFAULT_TICK_RATE

    @property
    def event_bus(self) -> EventBus | None:
        return self._event_bus

    def set_event_bus(self, event_bus: EventBus | None) -> None:
        """Swap the event bus (e.g. once the host's bus exists)."""
        self._event_bus = event_bus
        self.game_mode.set_event_bus(event_bus)

    @property
    def context(self) -> SimulationContext:
        """Live run state.  For tests and tooling; the renderer uses snapshot()."""
        return self._context

    @property
    def status(self) -> GameStatus:
        return self.game_mode.status

    @property
    def score(self) -> int:
        return self.game_mode.score

    # -- Command surface ----------------------------------------------------

    def start_game(self) -> bool:
        """START (or a finished game) -> fresh PLAYING run."""
        with self._lock:
            if not self.game_mode.can("start"):
                return False
            self._reset_context()
            self.game_mode.start()
        logger.info("Game started")
        return True

    def replay(self) -> bool:
        """WON/LOST -> fresh PLAYING run."""
        with self._lock:
            if not self.game_mode.can("replay"):
                return False
            self._reset_context()
            self.game_mode.replay()
        logger.info("Game restarted")
        return True

    def pause_game(self) -> bool:
        with self._lock:
            return self.game_mode.pause()

    def resume_game(self) -> bool:
        with self._lock:
            return self.game_mode.resume()

    def return_to_start(self) -> bool:
        """Back to the title state.  Entities stay for the renderer's backdrop."""
        with self._lock:
            return self.game_mode.return_to_start()

    # -- Input --------------------------------------------------------------

    def fire(self, target_x: float, target_y: float) -> Missile | None:
        """Launch an interceptor at the logical point (target_x, target_y).

        Returns the missile, or None when not PLAYING, when the aim point
        is not finite, or when no turret can fire.
        """
        if not (math.isfinite(target_x) and math.isfinite(target_y)):
            logger.debug(f"Fire at ({target_x}, {target_y}) ignored: non-finite aim point")
            return None
        with self._lock:
            if not self.game_mode.is_playing:
                return None
            missile = fire_missile(
                target_x, target_y, self._context.turrets, self._context.ids,
            )
            if missile is None:
                logger.debug(f"Fire at ({target_x:.0f}, {target_y:.0f}) ignored: no turret can fire")
                return None
            self._context.missiles.append(missile)
            eta = steps_to_arrival(missile.distance)
            logger.debug(f"Missile {missile.id} launched from x={missile.start_x:.0f}, {eta} steps out")
            self._publish("missile_launched", {**missile.to_dict(), "eta_steps": eta})
            return missile

    # -- Step ---------------------------------------------------------------

    def step(self, timestamp: float | None = None) -> bool:
        """Advance one frame.  *timestamp* is host time in milliseconds.

        Returns False (and does nothing) unless the game is PLAYING.
        """
        with self._lock:
            if not self.game_mode.is_playing:
                return False
            if timestamp is None:
                timestamp = self._clock()
            ctx = self._context
            ctx.step_count += 1

            self._spawn_phase(timestamp)

            advance_rockets(ctx.rockets)
            advance_missiles(ctx.missiles)

            report = resolve_rocket_impacts(
                ctx.rockets, ctx.cities, ctx.turrets, ctx.explosions, ctx.ids,
            )
            for impact in report.impacts:
                self._publish("rocket_impact", {
                    "rocket_id": impact.rocket.id,
                    "position": {"x": impact.rocket.x, "y": impact.rocket.y},
                    "cities_destroyed": [c.id for c in impact.cities],
                    "turrets_destroyed": [t.id for t in impact.turrets],
                })
            lost = [c.id for c in report.cities_destroyed] + [t.id for t in report.turrets_destroyed]
            if lost:
                logger.debug(f"Step {ctx.step_count}: impacts destroyed {lost}")
            for rocket in report.escaped:
                logger.debug(f"Rocket {rocket.id} left the play area at x={rocket.x:.0f}")
                self._publish("rocket_escaped", {
                    "rocket_id": rocket.id,
                    "position": {"x": rocket.x, "y": rocket.y},
                })

            for missile in resolve_detonations(ctx.missiles, ctx.explosions, ctx.ids):
                self._publish("missile_detonated", {
                    "missile_id": missile.id,
                    "position": {"x": missile.target_x, "y": missile.target_y},
                })

            destroyed = tick_explosions(ctx.explosions, ctx.rockets)
            if destroyed:
                self.game_mode.award_kills(len(destroyed))
                for rocket in destroyed:
                    self._publish("rocket_destroyed", {
                        "rocket_id": rocket.id,
                        "position": {"x": rocket.x, "y": rocket.y},
                        "score": self.game_mode.score,
                    })

            self.game_mode.check_outcome(len(ctx.active_turrets()))
            return True

    def _spawn_phase(self, timestamp: float) -> None:
        ctx = self._context
        if ctx.last_spawn_time is None:
            # First frame of a run seeds the spawn clock.
            ctx.last_spawn_time = timestamp
            return

        elapsed = timestamp - ctx.last_spawn_time
        score = self.game_mode.score
        if not spawn_due(elapsed, score):
            return

        rocket = maybe_spawn_rocket(
            elapsed, score, ctx.active_cities(), ctx.active_turrets(),
            self._rng, ctx.ids,
        )
        ctx.last_spawn_time = timestamp
        if rocket is not None:
            ctx.rockets.append(rocket)
            self._publish("rocket_spawned", rocket.to_dict())

    # -- Renderer -----------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Copy of the last completed step for the renderer."""
        with self._lock:
            ctx = self._context
            return GameSnapshot.capture(
                score=self.game_mode.score,
                status=self.game_mode.status,
                rockets=ctx.rockets,
                missiles=ctx.missiles,
                explosions=ctx.explosions,
                cities=ctx.cities,
                turrets=ctx.turrets,
            )

    def get_game_state(self) -> dict:
        """Snapshot dict plus the current spawn interval."""
        state = self.snapshot().to_dict()
        state["spawn_interval"] = spawn_interval(state["score"])
        return state

    # -- Lifecycle ----------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def start(self, tick_rate: float | None = None) -> None:
        """Start the background tick thread."""
        if self._running:
            return
        if tick_rate is not None:
            if tick_rate <= 0:
                raise ValueError(f"tick_rate must be positive, got {tick_rate}")
            self._tick_rate = tick_rate
        self._running = True
        self._thread = threading.Thread(
            target=self._tick_loop, name="sim-tick", daemon=True
        )
        self._thread.start()
        logger.info(f"Simulation tick loop started ({self._tick_rate:g} Hz)")

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
            logger.info("Simulation tick loop stopped")

    def _tick_loop(self) -> None:
        interval = 1.0 / self._tick_rate
        while self._running:
            time.sleep(interval)
            self.step(self._clock())

    # -- Internals ----------------------------------------------------------

    def _reset_context(self) -> None:
        self._context = SimulationContext(
            cities=create_cities(),
            turrets=create_turrets(),
        )

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)
