"""GameMode — status state machine and scoring.

Architecture
------------
GameMode owns the run's ``status`` and ``score`` and decides which
commands are legal:

  START --start--> PLAYING <--pause/resume--> PAUSED
  PLAYING --(no active turrets)--> LOST
  PLAYING --(score >= WIN_SCORE)--> WON
  WON | LOST --replay/start--> PLAYING
  WON | LOST | PAUSED --return_to_start--> START

Commands issued from any other state are rejected: the method returns
False and nothing changes.  Only PLAYING is live; the engine refuses to
step in every other state.

The end-of-step outcome check evaluates loss before win, so a step that
both crosses WIN_SCORE and loses the last turret ends in LOST.  This is
long-standing arcade behaviour and is kept for compatibility, although
it may not have been deliberate.

Scoring:
  - POINTS_PER_ROCKET for every rocket destroyed by an explosion
  - score never decreases within a run; start/replay reset it to 0

Events published on EventBus:
  - ``game_state_change``: any status transition
  - ``game_over``: automatic transition to WON or LOST
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .constants import POINTS_PER_ROCKET, WIN_SCORE
from .entities import GameStatus

if TYPE_CHECKING:
    from nova_engine.comms.event_bus import EventBus


# command -> (states it may be issued from, state it leads to)
_COMMANDS: dict[str, tuple[tuple[GameStatus, ...], GameStatus]] = {
    "start": ((GameStatus.START, GameStatus.WON, GameStatus.LOST), GameStatus.PLAYING),
    "replay": ((GameStatus.WON, GameStatus.LOST), GameStatus.PLAYING),
    "pause": ((GameStatus.PLAYING,), GameStatus.PAUSED),
    "resume": ((GameStatus.PAUSED,), GameStatus.PLAYING),
    "return_to_start": (
        (GameStatus.WON, GameStatus.LOST, GameStatus.PAUSED),
        GameStatus.START,
    ),
}

# Edges taken by the end-of-step outcome check
_OUTCOMES: tuple[GameStatus, ...] = (GameStatus.LOST, GameStatus.WON)

# Every edge the machine can take, commands and automatic checks alike
TRANSITIONS: frozenset[tuple[GameStatus, GameStatus]] = frozenset(
    {(src, dst) for sources, dst in _COMMANDS.values() for src in sources}
    | {(GameStatus.PLAYING, result) for result in _OUTCOMES}
)


class GameMode:
    """Status state machine + scoring."""

    STATES = tuple(GameStatus)

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus
        self.status: GameStatus = GameStatus.START
        self.score: int = 0
        self.rockets_destroyed: int = 0

    def set_event_bus(self, event_bus: EventBus | None) -> None:
        self._event_bus = event_bus

    @property
    def is_playing(self) -> bool:
        return self.status == GameStatus.PLAYING

    # -- Commands ---------------------------------------------------------------

    def can(self, command: str) -> bool:
        """True when *command* is legal from the current status."""
        sources, _ = _COMMANDS.get(command, ((), None))
        return self.status in sources

    def start(self) -> bool:
        """Begin a fresh run.  Score resets; entity reset is the engine's job."""
        return self._begin("start")

    def replay(self) -> bool:
        """Start over straight from a finished game."""
        return self._begin("replay")

    def pause(self) -> bool:
        return self._command("pause")

    def resume(self) -> bool:
        return self._command("resume")

    def return_to_start(self) -> bool:
        return self._command("return_to_start")

    # -- Scoring and outcome ----------------------------------------------------

    def award_kills(self, count: int) -> int:
        """Credit *count* destroyed rockets.  Returns points added."""
        if count <= 0:
            return 0
        points = count * POINTS_PER_ROCKET
        self.score += points
        self.rockets_destroyed += count
        return points

    def check_outcome(self, active_turrets: int) -> GameStatus:
        """End-of-step win/loss evaluation.  Loss is checked first."""
        if self.status != GameStatus.PLAYING:
            return self.status
        if active_turrets == 0:
            self._finish(GameStatus.LOST)
        elif self.score >= WIN_SCORE:
            self._finish(GameStatus.WON)
        return self.status

    def get_state(self) -> dict:
        """Return serializable status for API/frontend."""
        return {
            "status": self.status.value,
            "score": self.score,
            "win_score": WIN_SCORE,
            "rockets_destroyed": self.rockets_destroyed,
        }

    # -- Internals --------------------------------------------------------------

    def _begin(self, command: str) -> bool:
        if not self.can(command):
            logger.debug(f"GameMode: {command} rejected in {self.status.value}")
            return False
        self.score = 0
        self.rockets_destroyed = 0
        return self._command(command)

    def _command(self, command: str) -> bool:
        if not self.can(command):
            logger.debug(f"GameMode: {command} rejected in {self.status.value}")
            return False
        _, target = _COMMANDS[command]
        self._set_status(target)
        return True

    def _finish(self, result: GameStatus) -> None:
        self._set_status(result)
        logger.info(f"Game over: {result.value} with score {self.score}")
        self._publish("game_over", {
            "result": result.value,
            "final_score": self.score,
            "rockets_destroyed": self.rockets_destroyed,
        })

    def _set_status(self, status: GameStatus) -> None:
        if (self.status, status) not in TRANSITIONS:
            raise RuntimeError(f"Illegal transition {self.status.value} -> {status.value}")
        self.status = status
        self._publish("game_state_change", self.get_state())

    def _publish(self, event_type: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event_type, data)
