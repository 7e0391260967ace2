"""Grid environment for RoboLogic levels."""

from .grid import Grid, MalformedLevelError, OutOfBoundsError
from .helpers import (
    estimate_par,
    grid_shortest_path,
    is_solvable,
    path_to_commands,
    render_ascii_grid,
    solve,
)

__all__ = [
    "Grid",
    "MalformedLevelError",
    "OutOfBoundsError",
    "grid_shortest_path",
    "path_to_commands",
    "solve",
    "is_solvable",
    "estimate_par",
    "render_ascii_grid",
]
