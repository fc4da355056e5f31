"""
Line protocol spoken between the maze server and its clients.
One record per line, fields separated by single spaces, first field is
the command tag. Message types, dataclasses and factory helpers.
"""

import math
from enum import Enum
from dataclasses import dataclass
from typing import Callable, List, Tuple, Union

from maze_shared.constants import FIELD_SEPARATOR, RECORD_SEPARATOR


class MessageType(str, Enum):
    """All possible message types in the protocol."""

    # Client -> Server messages
    INPUT = "INPUT"          # Movement intent, one axis value per direction
    EXIT = "EXIT"            # Voluntary disconnect notice

    # Server -> Client messages
    SETUP = "SETUP"          # Player slot, maze walls and diamond positions
    STATE = "STATE"          # Positions, scores and diamond flags
    GAMEOVER = "GAMEOVER"    # Winner and final scores
    SHUTDOWN = "SHUTDOWN"    # Server wants the client gone


class ProtocolError(ValueError):
    """Raised when a record can't be parsed."""


@dataclass(frozen=True)
class Vector2:
    """2D position in maze units."""
    x: float
    y: float

    def lerp(self, other: "Vector2", t: float) -> "Vector2":
        # Endpoints come back untouched so sample times map to exact positions
        if t <= 0:
            return self
        if t >= 1:
            return other
        return Vector2(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t
        )

    def distance_to(self, other: "Vector2") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class SetupMessage:
    """Maze layout and this client's player slot."""
    player_id: int
    width: int
    height: int
    walls: str
    diamonds: Tuple[Vector2, ...]

    type = MessageType.SETUP


@dataclass(frozen=True)
class StateMessage:
    """One authoritative world sample."""
    sim_time: float
    p0_position: Vector2
    p0_score: int
    p1_position: Vector2
    p1_score: int
    diamond_bits: str

    type = MessageType.STATE

    @property
    def score_sum(self) -> int:
        return self.p0_score + self.p1_score


@dataclass(frozen=True)
class GameOverMessage:
    """Terminal result. winner_id is -1 for a draw."""
    winner_id: int
    score0: int
    score1: int

    type = MessageType.GAMEOVER


@dataclass(frozen=True)
class ShutdownMessage:
    type = MessageType.SHUTDOWN


ParsedMessage = Union[SetupMessage, StateMessage, GameOverMessage, ShutdownMessage]


# =============================================================================
# PARSING
# =============================================================================

def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"{text!r} is not a finite number")
    return value


def _field(parts: List[str], index: int, convert: Callable, name: str):
    try:
        return convert(parts[index])
    except (IndexError, ValueError) as e:
        raise ProtocolError(f"bad {name} field in {parts[0]}: {e}") from e


def _expect_arity(parts: List[str], expected: int):
    if len(parts) != expected:
        raise ProtocolError(
            f"{parts[0]} expects {expected - 1} fields, got {len(parts) - 1}"
        )


def _parse_setup(parts: List[str]) -> SetupMessage:
    if len(parts) < 6:
        raise ProtocolError(f"SETUP too short ({len(parts) - 1} fields)")

    player_id = _field(parts, 1, int, "player id")
    if player_id not in (0, 1):
        raise ProtocolError(f"player id must be 0 or 1, got {player_id}")
    width = _field(parts, 2, int, "width")
    height = _field(parts, 3, int, "height")
    walls = parts[4]
    diamond_count = _field(parts, 5, int, "diamond count")

    if width < 0 or height < 0 or diamond_count < 0:
        raise ProtocolError("SETUP sizes must not be negative")
    if len(walls) != width * height or set(walls) - {"0", "1"}:
        raise ProtocolError(
            f"wall grid must be {width}x{height} of '0'/'1', got {len(walls)} chars"
        )
    _expect_arity(parts, 6 + diamond_count * 2)

    diamonds = []
    index = 6
    for _ in range(diamond_count):
        dx = _field(parts, index, _finite_float, "diamond x")
        dy = _field(parts, index + 1, _finite_float, "diamond y")
        diamonds.append(Vector2(dx, dy))
        index += 2

    return SetupMessage(player_id, width, height, walls, tuple(diamonds))


def _parse_state(parts: List[str]) -> StateMessage:
    # The server writes nothing at all for the bits when there are no diamonds
    if len(parts) == 8:
        parts = parts + [""]
    _expect_arity(parts, 9)

    diamond_bits = parts[8]
    if set(diamond_bits) - {"0", "1"}:
        raise ProtocolError(f"diamond flags must be '0'/'1', got {diamond_bits!r}")

    return StateMessage(
        sim_time=_field(parts, 1, _finite_float, "time"),
        p0_position=Vector2(_field(parts, 2, _finite_float, "p0 x"), _field(parts, 3, _finite_float, "p0 y")),
        p0_score=_field(parts, 4, int, "p0 score"),
        p1_position=Vector2(_field(parts, 5, _finite_float, "p1 x"), _field(parts, 6, _finite_float, "p1 y")),
        p1_score=_field(parts, 7, int, "p1 score"),
        diamond_bits=diamond_bits
    )


def _parse_game_over(parts: List[str]) -> GameOverMessage:
    _expect_arity(parts, 4)
    winner_id = _field(parts, 1, int, "winner")
    if winner_id not in (-1, 0, 1):
        raise ProtocolError(f"winner must be -1, 0 or 1, got {winner_id}")
    return GameOverMessage(
        winner_id=winner_id,
        score0=_field(parts, 2, int, "score0"),
        score1=_field(parts, 3, int, "score1")
    )


def _parse_shutdown(parts: List[str]) -> ShutdownMessage:
    _expect_arity(parts, 1)
    return ShutdownMessage()


_PARSERS = {
    MessageType.SETUP: _parse_setup,
    MessageType.STATE: _parse_state,
    MessageType.GAMEOVER: _parse_game_over,
    MessageType.SHUTDOWN: _parse_shutdown,
}


def parse_message(record: str) -> ParsedMessage:
    """
    Parse one newline-free record into a message dataclass.
    Raises ProtocolError for unknown tags, wrong field counts or
    non-numeric values. Nothing is returned half-built.
    """
    # Server puts a space after every field, so trailing blanks are normal
    parts = record.rstrip().split(FIELD_SEPARATOR)
    tag = parts[0]

    try:
        msg_type = MessageType(tag)
    except ValueError:
        raise ProtocolError(f"unknown command {tag!r}") from None

    parser = _PARSERS.get(msg_type)
    if parser is None:
        raise ProtocolError(f"{tag} is not a server message")
    return parser(parts)


# =============================================================================
# MESSAGE FACTORIES - outbound records
# =============================================================================

def create_input_message(x: int, y: int) -> str:
    """Create an INPUT record. Axes are clamped to -1/0/1."""
    x = max(-1, min(1, int(x)))
    y = max(-1, min(1, int(y)))
    return f"{MessageType.INPUT.value} {x} {y}{RECORD_SEPARATOR}"


def create_exit_message() -> str:
    """Create the voluntary disconnect record."""
    return f"{MessageType.EXIT.value}{RECORD_SEPARATOR}"
