"""Grid model for RoboLogic levels.

A ``Grid`` is an immutable value built from layout rows such as ``"S..XG"``.
Collecting a coin never edits a grid in place; ``collect_coin_at`` returns a new
one. A reset therefore only needs the pristine layout to make coins reappear.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from robologic.schemas import LAYOUT_CHARS, CellType, Position


class MalformedLevelError(ValueError):
    """Raised when a layout cannot be turned into a playable grid.

    Collects every problem found so a bad generated level can be reported in one
    message rather than one issue at a time.
    """

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = list(issues)
        message_lines = ["Malformed level layout:"]
        message_lines.extend(f"  - {issue}" for issue in self.issues)
        super().__init__("\n".join(message_lines))


class OutOfBoundsError(IndexError):
    """Raised when a cell lookup falls outside the grid extent."""

    def __init__(self, position: Position, width: int, height: int) -> None:
        self.position = position
        super().__init__(
            f"Position {position} is outside the {width}x{height} grid"
        )


@dataclass(frozen=True)
class Grid:
    """Rows of typed cells, stored in their layout-string form."""

    rows: Tuple[str, ...]

    @classmethod
    def load(cls, raw_rows: Iterable[str], *, size: Optional[int] = None) -> "Grid":
        """Parse layout rows into a grid.

        Args:
            raw_rows: Layout rows, top row first
            size: When given, the layout must be exactly ``size`` x ``size``

        Raises:
            MalformedLevelError: Unequal rows, unknown characters, or a missing
                or duplicated start/goal marker
        """
        rows = tuple(raw_rows)
        issues: List[str] = []

        if not rows:
            raise MalformedLevelError(["layout has no rows"])

        widths = {len(row) for row in rows}
        if len(widths) > 1:
            issues.append(f"row lengths differ: {sorted(widths)}")
        if 0 in widths:
            issues.append("layout contains an empty row")

        if size is not None:
            if len(rows) != size:
                issues.append(f"expected {size} rows, got {len(rows)}")
            if widths != {size}:
                issues.append(f"expected every row to be {size} characters wide")

        for y, row in enumerate(rows):
            unknown = sorted(set(row) - LAYOUT_CHARS)
            if unknown:
                issues.append(f"row {y} has unrecognized characters {unknown}")

        joined = "".join(rows)
        for marker, label in ((CellType.START, "start"), (CellType.GOAL, "goal")):
            count = joined.count(marker.value)
            if count != 1:
                issues.append(
                    f"expected exactly one {label} marker '{marker.value}', found {count}"
                )

        if issues:
            raise MalformedLevelError(issues)

        return cls(rows=rows)

    @property
    def width(self) -> int:
        return len(self.rows[0])

    @property
    def height(self) -> int:
        return len(self.rows)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def cell_at(self, pos: Position) -> CellType:
        """Return the cell kind at ``pos``.

        Raises:
            OutOfBoundsError: If ``pos`` lies outside the grid
        """
        if not self.in_bounds(pos):
            raise OutOfBoundsError(pos, self.width, self.height)
        return CellType.from_char(self.rows[pos.y][pos.x])

    def collect_coin_at(self, pos: Position) -> "Grid":
        """Return a grid with the coin at ``pos`` cleared.

        Total: a cell that is not a coin (or a position off the grid) yields the
        same grid unchanged, so a late or repeated collection is harmless.
        """
        if not self.in_bounds(pos) or self.rows[pos.y][pos.x] != CellType.COIN.value:
            return self
        row = self.rows[pos.y]
        cleared = row[: pos.x] + CellType.EMPTY.value + row[pos.x + 1 :]
        return Grid(rows=self.rows[: pos.y] + (cleared,) + self.rows[pos.y + 1 :])

    def positions_of(self, cell: CellType) -> Iterator[Position]:
        for y, row in enumerate(self.rows):
            for x, char in enumerate(row):
                if char == cell.value:
                    yield Position(x=x, y=y)

    @property
    def start_position(self) -> Position:
        return next(self.positions_of(CellType.START))

    @property
    def goal_position(self) -> Position:
        return next(self.positions_of(CellType.GOAL))

    @property
    def coin_count(self) -> int:
        return sum(row.count(CellType.COIN.value) for row in self.rows)

    def is_walkable(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.cell_at(pos) is not CellType.OBSTACLE

    def to_layout(self) -> List[str]:
        """Serialize back to layout rows (the wire format)."""
        return list(self.rows)
