"""
Pydantic schemas for the RoboLogic puzzle game.

All data structures shared between the grid, the execution engine, the level
session and the external level/hint services are defined here.

Design Philosophy:
- Engine state is immutable: every tick produces a fresh ``ExecutionState``
- The level layout text format (``S``, ``G``, ``X``, ``C``, ``.``) is the single
  serialization for both the wire and the in-memory grid
- LLM response models validate structure so bad generations are rejected early
"""

from enum import Enum
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Grid vocabulary
# ============================================================================


class CellType(str, Enum):
    """One square of the grid, keyed by its layout character."""

    EMPTY = "."
    OBSTACLE = "X"
    START = "S"
    GOAL = "G"
    COIN = "C"

    @classmethod
    def from_char(cls, char: str) -> "CellType":
        return cls(char)


LAYOUT_CHARS = frozenset(cell.value for cell in CellType)


class Command(str, Enum):
    """A queued movement instruction. Doubles as the robot's facing direction."""

    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def delta(self) -> Tuple[int, int]:
        """(dx, dy) for one step; y grows downward (row index)."""
        return _DELTAS[self]


_DELTAS = {
    Command.UP: (0, -1),
    Command.DOWN: (0, 1),
    Command.LEFT: (-1, 0),
    Command.RIGHT: (1, 0),
}

# Direction is state, Command is instruction; the vocabulary is identical.
Direction = Command


class Position(BaseModel):
    """Zero-indexed grid coordinate (x = column, y = row)."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int

    def shifted(self, command: Command) -> "Position":
        dx, dy = command.delta
        return Position(x=self.x + dx, y=self.y + dy)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


# ============================================================================
# Execution state
# ============================================================================


class GameStatus(str, Enum):
    """Engine state machine: IDLE -> RUNNING -> {WON, LOST}, RUNNING -> IDLE."""

    IDLE = "idle"
    RUNNING = "running"
    WON = "won"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST)


FailureReason = Literal["out_of_bounds", "obstacle"]


class ExecutionState(BaseModel):
    """Snapshot of the robot and scoring after a tick.

    Frozen on purpose: the engine derives each new state with ``model_copy`` so a
    tick is a pure function of (previous state, command at cursor, grid).
    """

    model_config = ConfigDict(frozen=True)

    # None means "not executing".
    cursor: Optional[int] = Field(None, description="Index of the next command to read")
    executing_index: Optional[int] = Field(
        None, description="Index of the command just carried out (UI highlight)"
    )
    position: Position
    direction: Direction = Command.RIGHT
    score: int = 0
    coins_collected: int = 0
    total_coins: int = Field(0, description="Coins present when the level was loaded")
    status: GameStatus = GameStatus.IDLE
    failure_reason: Optional[FailureReason] = Field(
        None, description="Why the run was lost (only set when status is LOST)"
    )

    @property
    def is_running(self) -> bool:
        return self.status is GameStatus.RUNNING


class CoinCollected(BaseModel):
    """Emitted by a tick when the robot picks up a coin."""

    model_config = ConfigDict(frozen=True)

    position: Position
    reward: int


# ============================================================================
# Level data
# ============================================================================


class LevelData(BaseModel):
    """A playable level: layout plus narrative and scoring target."""

    id: int = Field(..., ge=1)
    grid_size: int = 5
    layout: List[str] = Field(..., description="Rows of layout characters, top row first")
    story: str = ""
    difficulty: str = "Easy"
    # Target number of moves; programs no longer than this earn a bigger bonus.
    par: int = Field(..., ge=0)


class GeneratedLevel(BaseModel):
    """Structured response requested from the level generator."""

    layout: List[str] = Field(
        ...,
        description="Array of 5 strings, each 5 characters long representing the row.",
    )
    story: str = Field(..., description="The mission briefing.")
    par: int = Field(..., ge=1, description="The estimated optimal number of moves.")

    @field_validator("layout")
    @classmethod
    def _check_characters(cls, rows: List[str]) -> List[str]:
        rows = [row.strip() for row in rows]
        for index, row in enumerate(rows):
            unknown = set(row) - LAYOUT_CHARS
            if unknown:
                raise ValueError(
                    f"row {index} contains unknown characters {sorted(unknown)}; "
                    "use only S, G, X, C and ."
                )
        return rows

    @model_validator(mode="after")
    def _check_markers(self) -> "GeneratedLevel":
        joined = "".join(self.layout)
        if joined.count("S") != 1 or joined.count("G") != 1:
            raise ValueError("layout must contain exactly one 'S' and exactly one 'G'")
        if len({len(row) for row in self.layout}) > 1:
            raise ValueError("all layout rows must have the same length")
        return self


class HintResponse(BaseModel):
    """Free-text hint from the generative service."""

    hint: str = Field(..., min_length=1, description="Short encouraging nudge for the player")
