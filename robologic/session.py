"""
Level session: owner of the active level, its grid, program and execution state.

Fully decoupled from configuration files and environment variables.
All collaborators are injected by the caller.

Coordinates a level's lifecycle:
1. Load a level (parse grid, locate start, count coins)
2. Let the player edit the program while the engine is idle
3. Run the program: the scheduler paces ticks, ``step`` applies each one
4. Reset (fresh grid, coins restored) or advance to the next level
"""

from __future__ import annotations

from functools import partial
from typing import Callable, List, Optional, Union

from .config import GameSettings, LLMSettings
from .engine import TickResult, initial_state, start_run, tick
from .environment import Grid, MalformedLevelError, estimate_par
from .levels import fallback_level
from .logging_utils import log_deterministic, log_error, log_info, log_success
from .program import ProgramBuffer, parse_command
from .scheduler import ExecutionScheduler, TickCadence
from .schemas import Command, ExecutionState, GameStatus, LevelData
from .sources import DEFAULT_HINT, HintSource, LevelSource, build_sources


# Listeners receive (previous_state, new_state, tick_result). tick_result is None
# for transitions that are not ticks (level load, reset, run start).
TransitionListener = Callable[[ExecutionState, ExecutionState, Optional[TickResult]], None]


class SessionBusyError(RuntimeError):
    """Raised when an operation is attempted while a program is running."""


class ProgramLockedError(SessionBusyError):
    """Raised when the program is edited while it cannot be changed."""

    def __init__(self, status: GameStatus) -> None:
        self.status = status
        hint = (
            "wait for the run to finish"
            if status is GameStatus.RUNNING
            else "reset the level first"
        )
        super().__init__(f"Program cannot be edited while the session is {status.value}; {hint}.")


class LevelSession:
    """
    Owns exactly one live (Grid, ExecutionState) pair.

    Only ``initialize``/``reset`` and ``step`` replace that pair; everything else
    (renderers, palettes, listeners) reads it.
    """

    def __init__(
        self,
        level_source: Optional[LevelSource] = None,
        hint_source: Optional[HintSource] = None,
        settings: Optional[GameSettings] = None,
        *,
        llm_settings: Optional[LLMSettings] = None,
        level: Optional[LevelData] = None,
        listeners: Optional[List[TransitionListener]] = None,
    ):
        """Create a session and load its first level.

        Args:
            level_source: Where new levels come from; defaults depend on llm_settings
            hint_source: Where hints come from; defaults depend on llm_settings
            settings: Gameplay settings (grid size, difficulty, pacing)
            llm_settings: Explicit generative-service configuration. Used to build
                the default sources when none are passed; when it is missing or
                has no credentials, the offline sources are used.
            level: First level to load; defaults to built-in level 1
            listeners: Callables notified after every state transition
        """
        self.settings = settings or GameSettings()
        default_levels, default_hints = build_sources(
            llm_settings, grid_size=self.settings.grid_size
        )
        self.level_source = level_source or default_levels
        self.hint_source = hint_source or default_hints
        self.listeners: List[TransitionListener] = list(listeners or [])

        self.program = ProgramBuffer()
        self.hint: str = ""
        # Score banked from levels already won; the live state holds the current level's.
        self.total_score = 0

        self._cadence = TickCadence(
            initial_delay=self.settings.initial_delay_seconds,
            interval=self.settings.tick_interval_seconds,
        )
        self._scheduler: Optional[ExecutionScheduler] = None
        # Bumped on every load/reset so callbacks from an older run are ignored.
        self._generation = 0

        first = level or fallback_level(1)
        self.level: LevelData = first
        self.grid: Grid = Grid.load(first.layout)
        self.state: ExecutionState = initial_state(self.grid)
        self.initialize(first)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def level_number(self) -> int:
        return self.level.id

    @property
    def status(self) -> GameStatus:
        return self.state.status

    @property
    def layout(self) -> List[str]:
        return self.grid.to_layout()

    @property
    def tick_pending(self) -> bool:
        return self._scheduler is not None and self._scheduler.pending

    # ------------------------------------------------------------------
    # Level lifecycle
    # ------------------------------------------------------------------

    def initialize(self, level_data: LevelData) -> ExecutionState:
        """Load ``level_data`` and return the fresh IDLE state.

        Raises:
            MalformedLevelError: If the layout is not a valid grid
        """
        grid = Grid.load(level_data.layout)
        self._cancel_pending()

        previous = self.state
        self.level = level_data
        self.grid = grid
        self.state = initial_state(grid)
        self.program.clear()
        self.hint = ""

        log_info(
            f"[Session] Level {level_data.id} loaded: start {self.state.position}, "
            f"{self.state.total_coins} coin(s), par {level_data.par}"
        )
        self._notify(previous, None)
        return self.state

    def reset(self, *, keep_program: bool = False) -> ExecutionState:
        """Return to IDLE on a fresh copy of the current level.

        Any pending tick is cancelled first. The grid is rebuilt from the level's
        original layout, so collected coins reappear. The program is cleared
        unless ``keep_program`` is set.
        """
        kept = self.program.commands if keep_program else ()
        self.initialize(self.level)
        for command in kept:
            self.program.append(command)
        return self.state

    async def advance_level(self) -> LevelData:
        """Bank the current score and load the next level.

        The level source is asked first. Anything unusable (None, an exception,
        a malformed or wrongly sized layout, no path from start to goal) falls
        back to the built-in table, so the game never stalls on the external
        service.
        """
        self._ensure_not_running("advance to the next level")
        if self.state.status is GameStatus.WON:
            self.total_score += self.state.score

        next_id = self.level_number + 1
        level_data: Optional[LevelData] = None
        try:
            level_data = await self.level_source.generate_level(
                self.settings.difficulty, next_id
            )
        except Exception as exc:
            log_error(f"[Session] Level source failed: {exc}")
            level_data = None

        if level_data is not None:
            level_data = level_data.model_copy(update={"id": next_id})
            try:
                grid = Grid.load(level_data.layout, size=self.settings.grid_size)
            except MalformedLevelError as exc:
                log_error(f"[Session] Discarding generated level: {exc}")
                level_data = None
            else:
                if estimate_par(grid) is None:
                    log_error("[Session] Discarding generated level: no path from S to G")
                    level_data = None

        if level_data is None:
            log_info(f"[Session] Using built-in level for level {next_id}")
            level_data = fallback_level(next_id)

        self.initialize(level_data)
        return level_data

    # ------------------------------------------------------------------
    # Program editing
    # ------------------------------------------------------------------

    def add_command(self, command: Union[Command, str]) -> None:
        """Queue a command (enum or token such as ``"up"``).

        Raises:
            ProgramLockedError: While running, or after the level was won or lost
            ValueError: If a token is not a known command
        """
        if self.state.status is not GameStatus.IDLE:
            raise ProgramLockedError(self.state.status)
        if not isinstance(command, Command):
            command = parse_command(command)
        self.program.append(command)

    def remove_command(self, index: int) -> Command:
        """Remove the command at ``index``.

        Raises:
            ProgramLockedError: While the program is running
            IndexOutOfRangeError: If ``index`` is not a valid step
        """
        if self.state.status is GameStatus.RUNNING:
            raise ProgramLockedError(self.state.status)
        return self.program.remove_at(index)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self) -> bool:
        """Start executing the program with paced ticks.

        Must be called from inside a running event loop. Returns False (and does
        nothing) when the session is not IDLE or the program is empty.
        """
        if self.state.status is not GameStatus.IDLE or len(self.program) == 0:
            return False

        self._cancel_pending()
        previous = self.state
        self.state = start_run(self.state)
        log_deterministic(f"[Engine] Running {len(self.program)} command(s)")
        self._notify(previous, None)

        self._scheduler = ExecutionScheduler(
            partial(self._scheduled_step, self._generation), self._cadence
        )
        self._scheduler.start()
        return True

    def step(self) -> bool:
        """Apply one tick synchronously. Returns True while the run continues."""
        if not self.state.is_running:
            return False

        previous = self.state
        try:
            result = tick(previous, self.program.commands, self.grid, self.level.par)
        except Exception as exc:
            # Leave RUNNING so the program can be edited again; the scheduler
            # hands the error to whoever awaits the run.
            log_error(f"[Engine] Tick failed, run stopped: {exc}")
            self.state = previous.model_copy(
                update={"status": GameStatus.IDLE, "cursor": None, "executing_index": None}
            )
            self._notify(previous, None)
            raise
        self.grid = result.grid
        self.state = result.state

        if self.settings.verbose and result.command is not None:
            log_deterministic(
                f"[Engine] Step {result.executed_index}: {result.command.value} -> "
                f"{self.state.position} (score {self.state.score})"
            )
        for event in result.events:
            log_success(f"[Engine] Coin collected at {event.position} (+{event.reward})")
        self._report_outcome(previous)

        self._notify(previous, result)
        return self.state.is_running

    async def wait(self) -> bool:
        """Wait until the current run ends. False if it was cancelled."""
        if self._scheduler is None:
            return False
        return await self._scheduler.wait()

    async def play(self) -> ExecutionState:
        """Run the program and wait for it to finish; convenience for scripts."""
        if self.run():
            await self.wait()
        return self.state

    async def request_hint(self) -> str:
        """Ask the hint source about the current layout and program."""
        self._ensure_not_running("ask for a hint")
        try:
            hint = await self.hint_source.get_hint(self.layout, self.program.tokens())
        except Exception as exc:
            log_error(f"[Session] Hint source failed: {exc}")
            hint = DEFAULT_HINT
        self.hint = hint or DEFAULT_HINT
        return self.hint

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scheduled_step(self, generation: int) -> bool:
        if generation != self._generation:
            return False
        return self.step()

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._scheduler is not None:
            if self._scheduler.cancel():
                log_deterministic("[Engine] Pending tick cancelled")
            self._scheduler = None

    def _ensure_not_running(self, action: str) -> None:
        if self.state.is_running:
            raise SessionBusyError(f"Cannot {action} while the program is running.")

    def _report_outcome(self, previous: ExecutionState) -> None:
        state = self.state
        if state.status is previous.status:
            return
        if state.status is GameStatus.WON:
            log_success(
                f"[Engine] Goal reached! Score {state.score}, "
                f"coins {state.coins_collected}/{state.total_coins}"
            )
        elif state.status is GameStatus.LOST:
            reason = "left the grid" if state.failure_reason == "out_of_bounds" else "hit an obstacle"
            log_error(f"[Engine] Robot {reason} at step {state.cursor}")
        elif state.status is GameStatus.IDLE:
            log_info("[Engine] Program finished without reaching the goal")

    def _notify(self, previous: ExecutionState, result: Optional[TickResult]) -> None:
        for listener in self.listeners:
            try:
                listener(previous, self.state, result)
            except Exception as exc:  # pragma: no cover - diagnostic hook
                log_error(f"[Session] Listener failed: {exc}")
