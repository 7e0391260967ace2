"""
Program execution engine.

The engine is a pure state machine::

    IDLE -> RUNNING -> WON | LOST
    RUNNING -> IDLE          (commands exhausted without reaching the goal)

``tick`` consumes exactly one command. It never sleeps, never schedules
anything, and never mutates its inputs: it returns the next ``ExecutionState``,
the (possibly coin-cleared) ``Grid`` and the events the move produced. Pacing and
cancellation live in ``robologic.scheduler``.

Cursor semantics:
- ``cursor`` is the index of the next command to read. After the final command
  it equals ``len(program)``, and the following tick moves the state to IDLE
  with the cursor cleared.
- ``executing_index`` is the index of the command the robot just carried out
  (for highlighting). On a loss both equal the failing step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from robologic.environment import Grid
from robologic.schemas import CellType, Command, CoinCollected, ExecutionState, GameStatus, Position

COIN_REWARD = 50
GOAL_REWARD = 100
PAR_BONUS_PER_MOVE = 10


@dataclass(frozen=True)
class TickResult:
    """Outcome of one tick."""

    state: ExecutionState
    grid: Grid
    events: List[CoinCollected] = field(default_factory=list)
    executed_index: Optional[int] = None
    command: Optional[Command] = None

    @property
    def collected_coin(self) -> bool:
        return bool(self.events)


def initial_state(grid: Grid) -> ExecutionState:
    """Fresh IDLE state at the grid's start cell, facing right."""
    return ExecutionState(
        cursor=None,
        position=grid.start_position,
        direction=Command.RIGHT,
        score=0,
        coins_collected=0,
        total_coins=grid.coin_count,
        status=GameStatus.IDLE,
    )


def win_bonus(par: int, program_length: int) -> int:
    """Goal reward plus 10 points per move under par; never below the base reward.

    ``program_length`` is the full queued program, including commands after the
    goal-reaching step that never executed.
    """
    return GOAL_REWARD + max(0, par - program_length) * PAR_BONUS_PER_MOVE


def start_run(state: ExecutionState) -> ExecutionState:
    """Move an IDLE state into RUNNING with the cursor on the first command.

    Any other status is returned unchanged; WON and LOST only leave through a
    session reset.
    """
    if state.status is not GameStatus.IDLE:
        return state
    return state.model_copy(
        update={
            "status": GameStatus.RUNNING,
            "cursor": 0,
            "executing_index": None,
            "failure_reason": None,
        }
    )


def tick(
    state: ExecutionState,
    program: Sequence[Command],
    grid: Grid,
    par: int,
) -> TickResult:
    """Apply the command at ``state.cursor`` and return the next state.

    Args:
        state: Current execution state (must be RUNNING to have any effect)
        program: Queued commands; read-only
        grid: Current grid; read-only, a new grid is returned on coin pickup
        par: Level's target move count, used for the win bonus

    Returns:
        TickResult with the next state, the grid to use from now on, and any
        coin events
    """
    # Stale or extra ticks are harmless no-ops.
    if state.status is not GameStatus.RUNNING:
        return TickResult(state=state, grid=grid)

    cursor = state.cursor or 0

    # Commands exhausted without reaching the goal: back to IDLE, not a loss.
    if cursor >= len(program):
        idle = state.model_copy(
            update={"status": GameStatus.IDLE, "cursor": None, "executing_index": None}
        )
        return TickResult(state=idle, grid=grid)

    # The robot turns toward the command even if the move fails.
    command = program[cursor]
    candidate = state.position.shifted(command)
    turned = {"direction": command, "executing_index": cursor}

    # Leaving the grid or hitting an obstacle ends the run where it stood.
    failure = _blocked_reason(grid, candidate)
    if failure is not None:
        lost = state.model_copy(
            update={
                **turned,
                "status": GameStatus.LOST,
                "cursor": cursor,
                "failure_reason": failure,
            }
        )
        return TickResult(state=lost, grid=grid, executed_index=cursor, command=command)

    # Valid move.
    update = {**turned, "position": candidate}
    events: List[CoinCollected] = []
    next_grid = grid
    cell = grid.cell_at(candidate)

    if cell is CellType.COIN:
        next_grid = grid.collect_coin_at(candidate)
        events.append(CoinCollected(position=candidate, reward=COIN_REWARD))
        update["coins_collected"] = state.coins_collected + 1
        update["score"] = state.score + COIN_REWARD

    if cell is CellType.GOAL:
        # Terminal immediately, even with commands still queued.
        update["status"] = GameStatus.WON
        update["cursor"] = cursor
        update["score"] = update.get("score", state.score) + win_bonus(par, len(program))
    else:
        # Advance; exhaustion is reported by the next tick.
        update["cursor"] = cursor + 1

    return TickResult(
        state=state.model_copy(update=update),
        grid=next_grid,
        events=events,
        executed_index=cursor,
        command=command,
    )


def _blocked_reason(grid: Grid, candidate: Position) -> Optional[str]:
    if not grid.in_bounds(candidate):
        return "out_of_bounds"
    if grid.cell_at(candidate) is CellType.OBSTACLE:
        return "obstacle"
    return None
