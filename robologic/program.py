"""Program buffer: the ordered list of commands a player queues before running.

The buffer itself does not know about engine status. Whether edits are allowed
right now is decided by the level session.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from robologic.schemas import Command


class IndexOutOfRangeError(IndexError):
    """Raised when removing a program step that does not exist."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(
            f"Cannot remove step {index}: program has {length} command(s)"
        )


# Palette tokens accepted from text front ends, in addition to the enum names.
_TOKEN_ALIASES = {
    "u": Command.UP,
    "d": Command.DOWN,
    "l": Command.LEFT,
    "r": Command.RIGHT,
    "↑": Command.UP,
    "↓": Command.DOWN,
    "←": Command.LEFT,
    "→": Command.RIGHT,
}


def parse_command(token: str) -> Command:
    """Turn ``"UP"``, ``"up"``, ``"u"`` or an arrow into a ``Command``.

    Raises:
        ValueError: If the token is not part of the command vocabulary
    """
    cleaned = token.strip()
    alias = _TOKEN_ALIASES.get(cleaned.lower())
    if alias is not None:
        return alias
    try:
        return Command(cleaned.upper())
    except ValueError:
        raise ValueError(
            f"Unknown command '{token}'. Use UP, DOWN, LEFT or RIGHT."
        ) from None


class ProgramBuffer:
    """Append/remove-at-index sequence of commands."""

    def __init__(self, commands: Iterable[Command] = ()) -> None:
        self._commands: List[Command] = list(commands)

    def append(self, command: Command) -> None:
        # No length limit; throttling belongs to the UI
        self._commands.append(command)

    def remove_at(self, index: int) -> Command:
        """Remove and return the command at ``index``.

        Raises:
            IndexOutOfRangeError: If ``index`` is negative or >= len(buffer)
        """
        if index < 0 or index >= len(self._commands):
            raise IndexOutOfRangeError(index, len(self._commands))
        return self._commands.pop(index)

    def clear(self) -> None:
        self._commands.clear()

    @property
    def commands(self) -> Tuple[Command, ...]:
        """Immutable snapshot handed to the engine for a tick."""
        return tuple(self._commands)

    def tokens(self) -> List[str]:
        return [command.value for command in self._commands]

    def __len__(self) -> int:
        return len(self._commands)

    def __getitem__(self, index: int) -> Command:
        return self._commands[index]

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __repr__(self) -> str:
        return f"ProgramBuffer({self.tokens()!r})"
