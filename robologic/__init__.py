"""
RoboLogic - grid programming puzzle with a paced execution engine.

Queue directional commands, run them one tick at a time, and guide the robot
past obstacles to the goal while collecting coins.

No global config inside the library. Level/hint sources and settings are
injected into ``LevelSession`` by the caller.
"""

__version__ = "0.1.0"

# Core schemas (imported first: the environment package depends on them)
from .schemas import (
    CellType,
    Command,
    Direction,
    Position,
    GameStatus,
    ExecutionState,
    CoinCollected,
    LevelData,
    GeneratedLevel,
    HintResponse,
)

# Grid model
from .environment import (
    Grid,
    MalformedLevelError,
    OutOfBoundsError,
    grid_shortest_path,
    render_ascii_grid,
    solve,
)

# Program buffer and engine
from .program import ProgramBuffer, IndexOutOfRangeError, parse_command
from .engine import (
    TickResult,
    initial_state,
    start_run,
    tick,
    win_bonus,
    COIN_REWARD,
    GOAL_REWARD,
)
from .scheduler import ExecutionScheduler, TickCadence

# Session and collaborators
from .config import GameSettings, LLMSettings
from .levels import FALLBACK_LEVELS, fallback_level
from .sources import (
    LevelSource,
    HintSource,
    FallbackLevelSource,
    StaticHintSource,
    LLMLevelSource,
    LLMHintSource,
    build_sources,
)
from .session import LevelSession, ProgramLockedError, SessionBusyError

__all__ = [
    # Schemas
    "CellType",
    "Command",
    "Direction",
    "Position",
    "GameStatus",
    "ExecutionState",
    "CoinCollected",
    "LevelData",
    "GeneratedLevel",
    "HintResponse",
    # Grid
    "Grid",
    "MalformedLevelError",
    "OutOfBoundsError",
    "grid_shortest_path",
    "render_ascii_grid",
    "solve",
    # Program and engine
    "ProgramBuffer",
    "IndexOutOfRangeError",
    "parse_command",
    "TickResult",
    "initial_state",
    "start_run",
    "tick",
    "win_bonus",
    "COIN_REWARD",
    "GOAL_REWARD",
    "ExecutionScheduler",
    "TickCadence",
    # Session
    "GameSettings",
    "LLMSettings",
    "FALLBACK_LEVELS",
    "fallback_level",
    "LevelSource",
    "HintSource",
    "FallbackLevelSource",
    "StaticHintSource",
    "LLMLevelSource",
    "LLMHintSource",
    "build_sources",
    "LevelSession",
    "ProgramLockedError",
    "SessionBusyError",
]
