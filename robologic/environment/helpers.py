"""Utilities for RoboLogic grids: pathfinding and text rendering."""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Tuple

from robologic.schemas import CellType, Command, Direction, Position

from .grid import Grid


def grid_shortest_path(grid: Grid, start: Position, goal: Position) -> Optional[List[Position]]:
    """Return the shortest path of positions from start to goal avoiding obstacles.

    Uses BFS over the four command directions. Returns None if goal is
    unreachable. The path includes both start and goal.
    """

    if start == goal:
        return [start]

    visited = {start}
    queue: deque[Tuple[Position, List[Position]]] = deque([(start, [start])])

    def neighbors(pos: Position) -> Iterable[Position]:
        # Command order fixes tie-breaking between equal-length paths
        for command in Command:
            nb = pos.shifted(command)
            if grid.is_walkable(nb):
                yield nb

    while queue:
        pos, path = queue.popleft()
        for nb in neighbors(pos):
            if nb in visited:
                continue
            visited.add(nb)
            new_path = path + [nb]
            if nb == goal:
                return new_path
            queue.append((nb, new_path))
    return None


def path_to_commands(path: List[Position]) -> List[Command]:
    """Convert consecutive positions into the commands that walk them."""

    by_delta = {command.delta: command for command in Command}
    commands: List[Command] = []
    for here, there in zip(path, path[1:]):
        commands.append(by_delta[(there.x - here.x, there.y - here.y)])
    return commands


def solve(grid: Grid) -> Optional[List[Command]]:
    """Shortest command sequence from start to goal, or None when unsolvable."""

    path = grid_shortest_path(grid, grid.start_position, grid.goal_position)
    if path is None:
        return None
    return path_to_commands(path)


def is_solvable(grid: Grid) -> bool:
    return solve(grid) is not None


def estimate_par(grid: Grid) -> Optional[int]:
    """Minimum number of moves from start to goal (ignoring coins)."""

    commands = solve(grid)
    return None if commands is None else len(commands)


_DEFAULT_CELL_SYMBOLS: Dict[CellType, str] = {
    CellType.EMPTY: "· ",
    CellType.OBSTACLE: "██",
    CellType.START: "S ",
    CellType.GOAL: "G ",
    CellType.COIN: "★ ",
}

_ROBOT_SYMBOLS: Dict[Direction, str] = {
    Command.UP: "^ ",
    Command.DOWN: "v ",
    Command.LEFT: "< ",
    Command.RIGHT: "> ",
}


def render_ascii_grid(
    grid: Grid,
    *,
    robot: Optional[Position] = None,
    facing: Direction = Command.RIGHT,
    symbols: Optional[Dict[CellType, str]] = None,
) -> str:
    """Render the grid as text, top row first, with the robot drawn on top.

    Used by the terminal front end. Unknown symbols fall back to the defaults.
    """

    mapping = {**_DEFAULT_CELL_SYMBOLS}
    if symbols:
        mapping.update(symbols)

    lines: List[str] = []
    for y in range(grid.height):
        row_chars: List[str] = []
        for x in range(grid.width):
            pos = Position(x=x, y=y)
            if robot is not None and pos == robot:
                row_chars.append(_ROBOT_SYMBOLS[facing])
            else:
                row_chars.append(mapping[grid.cell_at(pos)])
        lines.append("".join(row_chars).rstrip())

    return "\n".join(lines)
