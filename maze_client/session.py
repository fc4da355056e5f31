"""
Client-side session state for Diamond Maze.
Applies parsed server messages to the local model (identity, maze,
diamonds, scores, snapshots) and turns them into events for the
presentation side.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from maze_shared.constants import PLAYER_NAMES
from maze_shared.protocol import (
    MessageType, ParsedMessage, ProtocolError, Vector2,
    SetupMessage, StateMessage, GameOverMessage
)

from maze_client.interpolation import Snapshot, SnapshotBuffer

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNIDENTIFIED = "unidentified"
    CONFIGURED = "configured"
    ACTIVE = "active"
    FINISHED = "finished"
    TERMINATED = "terminated"


TERMINAL_STATES = (SessionState.FINISHED, SessionState.TERMINATED)


class EventType(str, Enum):
    """Things the presentation layer may want to react to."""
    IDENTITY_ASSIGNED = "identity_assigned"
    MAZE_BUILT = "maze_built"
    DIAMONDS_UPDATED = "diamonds_updated"
    SCORES_UPDATED = "scores_updated"
    PICKUP = "pickup"
    GAME_OVER = "game_over"
    SHUTDOWN = "shutdown"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class GameEvent:
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MazeModel:
    """Wall grid plus the diamonds placed in it.
    The diamond list is fixed; only the active flags change."""
    width: int
    height: int
    walls: str
    diamonds: Tuple[Vector2, ...]
    diamonds_active: List[bool] = field(default_factory=list)

    def __post_init__(self):
        if not self.diamonds_active:
            self.diamonds_active = [True] * len(self.diamonds)

    def is_wall(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return self.walls[y * self.width + x] == "1"

    def wall_cells(self) -> List[Tuple[int, int]]:
        return [
            (index % self.width, index // self.width)
            for index, cell in enumerate(self.walls)
            if cell == "1"
        ]

    def apply_diamond_bits(self, bits: str) -> int:
        """Update active flags from a '1'/'0' string, overlapping prefix only.
        Returns how many diamonds were updated."""
        count = min(len(bits), len(self.diamonds_active))
        for i in range(count):
            self.diamonds_active[i] = bits[i] == "1"
        return count


@dataclass(frozen=True)
class GameOutcome:
    winner_id: int
    score0: int
    score1: int

    @property
    def is_draw(self) -> bool:
        return self.winner_id == -1

    @property
    def winner_label(self) -> str:
        if self.is_draw:
            return "IT'S A DRAW!"
        return f"{PLAYER_NAMES[self.winner_id]} WINS!"


class GameSession:
    """
    One game session, from the first SETUP to GAMEOVER/SHUTDOWN.

    UNIDENTIFIED -> CONFIGURED (first SETUP) -> ACTIVE (STATE ...)
    and from any live state -> FINISHED (GAMEOVER) or TERMINATED
    (SHUTDOWN / lost connection).
    """

    def __init__(self, snapshots: Optional[SnapshotBuffer] = None):
        self.state = SessionState.UNIDENTIFIED
        self.player_id: Optional[int] = None
        self.maze: Optional[MazeModel] = None
        self.snapshots = snapshots if snapshots is not None else SnapshotBuffer()

        self.scores = [0, 0]
        self.sim_time = 0.0
        self.last_score_sum = 0
        self.outcome: Optional[GameOutcome] = None
        self.anomalies = 0

    @property
    def is_over(self) -> bool:
        return self.state in TERMINAL_STATES

    def apply(self, message: ParsedMessage, now: float) -> List[GameEvent]:
        """Apply one parsed message. `now` stamps any snapshot it produces."""
        if self.is_over:
            logger.debug("Ignoring %s, session already %s", message.type.value, self.state.value)
            return []

        if message.type == MessageType.SETUP:
            return self._handle_setup(message)
        elif message.type == MessageType.STATE:
            return self._handle_state(message, now)
        elif message.type == MessageType.GAMEOVER:
            return self._handle_game_over(message)
        elif message.type == MessageType.SHUTDOWN:
            logger.info("Server commanded shutdown.")
            self.state = SessionState.TERMINATED
            return [GameEvent(EventType.SHUTDOWN)]

        raise ProtocolError(f"unexpected message {message!r}")

    def mark_disconnected(self) -> List[GameEvent]:
        if self.is_over:
            return []
        logger.info("Session terminated: connection lost")
        self.state = SessionState.TERMINATED
        return [GameEvent(EventType.DISCONNECTED)]

    def _handle_setup(self, message: SetupMessage) -> List[GameEvent]:
        # The maze is built at most once per session
        if self.maze is not None:
            logger.debug("Ignoring repeated SETUP")
            return []

        self.player_id = message.player_id
        self.maze = MazeModel(message.width, message.height, message.walls, message.diamonds)
        self.state = SessionState.CONFIGURED
        logger.info(
            "Assigned player %d, maze %dx%d with %d diamonds",
            message.player_id, message.width, message.height, len(message.diamonds)
        )
        return [
            GameEvent(EventType.IDENTITY_ASSIGNED, {"player_id": self.player_id}),
            GameEvent(EventType.MAZE_BUILT, {"maze": self.maze}),
        ]

    def _handle_state(self, message: StateMessage, now: float) -> List[GameEvent]:
        if self.maze is None:
            raise ProtocolError("STATE received before SETUP")

        events = []

        updated = self.maze.apply_diamond_bits(message.diamond_bits)
        if len(message.diamond_bits) != len(self.maze.diamonds):
            self.anomalies += 1
            logger.warning(
                "Diamond flags cover %d of %d diamonds, applied %d",
                len(message.diamond_bits), len(self.maze.diamonds), updated
            )
        events.append(GameEvent(
            EventType.DIAMONDS_UPDATED,
            {"active": list(self.maze.diamonds_active)}
        ))

        self.sim_time = message.sim_time
        self.scores = [message.p0_score, message.p1_score]
        events.append(GameEvent(EventType.SCORES_UPDATED, {"scores": list(self.scores)}))

        self.snapshots.append(Snapshot(now, message.p0_position, message.p1_position))

        score_sum = message.score_sum
        if score_sum > self.last_score_sum:
            self.last_score_sum = score_sum
            events.append(GameEvent(EventType.PICKUP, {"score_sum": score_sum}))
        elif score_sum < self.last_score_sum:
            self.anomalies += 1
            logger.warning("Score sum went down from %d to %d", self.last_score_sum, score_sum)

        self.state = SessionState.ACTIVE
        return events

    def _handle_game_over(self, message: GameOverMessage) -> List[GameEvent]:
        self.outcome = GameOutcome(message.winner_id, message.score0, message.score1)
        self.scores = [message.score0, message.score1]
        self.state = SessionState.FINISHED
        logger.info(
            "Game Over! %s (%d - %d)",
            self.outcome.winner_label, message.score0, message.score1
        )
        return [GameEvent(EventType.GAME_OVER, {"outcome": self.outcome})]
