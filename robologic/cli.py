"""
RoboLogic in the terminal.

Queue commands, run the program and watch the robot move across the grid.

Run: robologic            (or: python -m robologic)
     robologic --offline  (built-in levels, no LLM calls)
"""

from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional, Sequence

from .config import Config, GameSettings
from .engine import TickResult
from .environment import render_ascii_grid
from .levels import fallback_level
from .logging_utils import Color, colored, log_error
from .program import IndexOutOfRangeError
from .schemas import ExecutionState, GameStatus
from .session import LevelSession, SessionBusyError

HELP_TEXT = """Commands:
  u / d / l / r (or up, down, left, right)  queue moves; several per line are fine
  run                                       execute the program
  undo                                      remove the last queued move
  del N                                     remove move number N (1-based)
  reset                                     restart the level (coins come back)
  hint                                      ask Robo for a hint
  next                                      go to the next level (after winning)
  help                                      show this text
  quit                                      leave the game"""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the terminal game."""
    parser = argparse.ArgumentParser(description="RoboLogic: a grid programming puzzle")
    parser.add_argument(
        "--level",
        type=int,
        default=1,
        help="Built-in level number to start from (default: 1)",
    )
    parser.add_argument(
        "--difficulty",
        default=None,
        help="Difficulty requested from the level generator (default: ROBOLOGIC_DIFFICULTY)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never call the generative service; use built-in levels and hints",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Run programs without pauses between ticks",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every engine tick",
    )
    args = parser.parse_args(argv)
    if args.level < 1:
        parser.error("--level must be >= 1")
    return args


def build_settings(args: argparse.Namespace) -> GameSettings:
    """Merge ambient configuration with command-line overrides."""
    base = Config.game_settings()
    update: dict = {}
    if args.difficulty:
        update["difficulty"] = args.difficulty
    if args.fast:
        update["initial_delay_seconds"] = 0.0
        update["tick_interval_seconds"] = 0.0
    if args.verbose:
        update["verbose"] = True
    return base.model_copy(update=update)


def render_session(session: LevelSession) -> str:
    """Grid, program and status line as one printable block."""
    state = session.state
    board = render_ascii_grid(session.grid, robot=state.position, facing=state.direction)

    steps: List[str] = []
    for index, command in enumerate(session.program):
        token = f"{index + 1}:{command.value}"
        if index == state.executing_index:
            token = colored(f"[{token}]", Color.YELLOW, bold=True)
        steps.append(token)
    program_line = " ".join(steps) if steps else "(empty)"

    status = (
        f"Level {session.level_number} | {state.status.value.upper()} | "
        f"score {state.score} (banked {session.total_score}) | "
        f"coins {state.coins_collected}/{state.total_coins} | par {session.level.par}"
    )
    return "\n".join([board, f"Program: {program_line}", status])


def _tick_printer(session: LevelSession):
    def _listener(
        previous: ExecutionState,
        current: ExecutionState,
        result: Optional[TickResult],
    ) -> None:
        if result is not None:
            print(render_session(session))
            print()

    return _listener


async def _handle_line(session: LevelSession, line: str) -> bool:
    """Apply one line of player input. Returns False when the player quits."""
    words = line.strip().split()
    if not words:
        return True
    verb = words[0].lower()

    if verb in ("quit", "exit", "q"):
        return False
    if verb == "help":
        print(HELP_TEXT)
    elif verb == "run":
        if not session.run():
            print("Nothing to run (queue some moves, or reset after a win/loss).")
        else:
            await session.wait()
            _print_outcome(session)
    elif verb == "undo":
        if len(session.program):
            session.remove_command(len(session.program) - 1)
    elif verb == "del" and len(words) == 2 and words[1].isdigit():
        session.remove_command(int(words[1]) - 1)
    elif verb == "reset":
        session.reset()
    elif verb == "hint":
        print(colored(f"Robo: {await session.request_hint()}", Color.CYAN))
    elif verb == "next":
        if session.status is not GameStatus.WON:
            print("Reach the goal first!")
        else:
            level = await session.advance_level()
            print(colored(level.story, Color.CYAN))
    else:
        for word in words:
            session.add_command(word)

    print(render_session(session))
    return True


def _print_outcome(session: LevelSession) -> None:
    state = session.state
    if state.status is GameStatus.WON:
        print(colored(
            f"Mission complete! {state.coins_collected} coin(s) collected. Type 'next' or 'reset'.",
            Color.GREEN,
            bold=True,
        ))
    elif state.status is GameStatus.LOST:
        print(colored(
            "The robot crashed into a rock or left the path. Type 'reset' to try again.",
            Color.RED,
            bold=True,
        ))


async def main(args: argparse.Namespace) -> None:
    Config.validate()
    llm_settings = None if args.offline else Config.llm_settings()
    session = LevelSession(
        settings=build_settings(args),
        llm_settings=llm_settings,
        level=fallback_level(args.level),
    )
    session.listeners.append(_tick_printer(session))

    print(colored("RoboLogic Explorer", Color.CYAN, bold=True))
    print(colored(session.level.story, Color.CYAN))
    print(HELP_TEXT)
    print(render_session(session))

    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        try:
            if not await _handle_line(session, line):
                break
        except (SessionBusyError, IndexOutOfRangeError, ValueError) as exc:
            log_error(str(exc))


def run() -> None:
    """Console-script entry point."""
    try:
        asyncio.run(main(parse_args()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
