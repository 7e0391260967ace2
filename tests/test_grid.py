"""Tests for the grid model and its helpers."""

import pytest

from robologic.environment import (
    Grid,
    MalformedLevelError,
    OutOfBoundsError,
    estimate_par,
    grid_shortest_path,
    is_solvable,
    render_ascii_grid,
    solve,
)
from robologic.schemas import CellType, Command, Position

LEVEL_ONE = ["S....", ".XXX.", "....C", ".XXX.", "....G"]


def test_load_locates_start_goal_and_coins():
    grid = Grid.load(LEVEL_ONE)

    assert grid.width == 5 and grid.height == 5
    assert grid.start_position == Position(x=0, y=0)
    assert grid.goal_position == Position(x=4, y=4)
    assert grid.coin_count == 1
    assert grid.cell_at(Position(x=1, y=1)) is CellType.OBSTACLE
    assert grid.cell_at(Position(x=4, y=2)) is CellType.COIN


@pytest.mark.parametrize(
    "layout, fragment",
    [
        (["S...", ".....", "....G"], "row lengths differ"),
        ([".....", "....G"], "start marker"),
        (["S....", "....."], "goal marker"),
        (["S...G", "S...."], "found 2"),
        (["S..GG"], "found 2"),
        (["S..?G"], "unrecognized characters"),
        ([], "no rows"),
    ],
)
def test_load_rejects_malformed_layouts(layout, fragment):
    with pytest.raises(MalformedLevelError) as excinfo:
        Grid.load(layout)
    assert fragment in str(excinfo.value)


def test_load_reports_every_issue():
    with pytest.raises(MalformedLevelError) as excinfo:
        Grid.load(["....", "..?"])
    issues = excinfo.value.issues
    assert len(issues) == 4  # widths, unknown char, no start, no goal


def test_load_with_size_requires_square_layout():
    with pytest.raises(MalformedLevelError, match="expected 5 rows"):
        Grid.load(["S..G", "....", "....", "...."], size=5)
    assert Grid.load(LEVEL_ONE, size=5).height == 5


def test_cell_at_outside_grid_raises():
    grid = Grid.load(LEVEL_ONE)
    with pytest.raises(OutOfBoundsError):
        grid.cell_at(Position(x=-1, y=0))
    with pytest.raises(OutOfBoundsError):
        grid.cell_at(Position(x=0, y=5))


def test_collect_coin_returns_new_grid_and_is_total():
    grid = Grid.load(LEVEL_ONE)
    coin = Position(x=4, y=2)

    collected = grid.collect_coin_at(coin)

    assert collected.cell_at(coin) is CellType.EMPTY
    assert collected.coin_count == 0
    # Original value untouched
    assert grid.cell_at(coin) is CellType.COIN
    # Not a coin / off the grid: unchanged, no error
    assert collected.collect_coin_at(coin) is collected
    assert grid.collect_coin_at(Position(x=0, y=0)) is grid
    assert grid.collect_coin_at(Position(x=9, y=9)) is grid


def test_layout_round_trip():
    grid = Grid.load(LEVEL_ONE)
    assert grid.to_layout() == LEVEL_ONE
    assert grid.collect_coin_at(Position(x=4, y=2)).to_layout()[2] == "....."


def test_shortest_path_and_par():
    grid = Grid.load(LEVEL_ONE)

    path = grid_shortest_path(grid, grid.start_position, grid.goal_position)
    assert path is not None
    assert path[0] == grid.start_position and path[-1] == grid.goal_position
    assert all(grid.cell_at(p) is not CellType.OBSTACLE for p in path)
    assert estimate_par(grid) == 8
    assert len(solve(grid)) == 8


def test_unsolvable_grid():
    grid = Grid.load(["SX...", "X....", ".....", ".....", "....G"])
    assert is_solvable(grid) is False
    assert estimate_par(grid) is None


def test_render_ascii_grid_draws_robot_over_cells():
    grid = Grid.load(LEVEL_ONE)
    text = render_ascii_grid(grid, robot=Position(x=0, y=0), facing=Command.DOWN)

    lines = text.splitlines()
    assert len(lines) == 5
    assert lines[0].startswith("v")
    assert "★" in lines[2]
    assert "██" in lines[1]
