"""
Level and hint sources: the session's external collaborators.

A level session depends on the ``LevelSource`` and ``HintSource`` interfaces,
not on any concrete service. This enables swapping the generative backend, or
running completely offline, without touching game code.

Concrete implementations:
- LLMLevelSource / LLMHintSource: call the configured model via mirascope (or Ollama)
- FallbackLevelSource / StaticHintSource: deterministic, no network

Contract: sources never raise. A level source returns None when it has nothing
usable, and a hint source always returns displayable text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from robologic.config import LLMSettings
from robologic.environment import Grid, MalformedLevelError, estimate_par
from robologic.llm_calls import generate_level, get_hint
from robologic.logging_utils import log_error, log_llm, log_success
from robologic.schemas import LevelData

DEFAULT_HINT = "Tetap semangat! Coba telusuri jalan robotnya lagi."
OFFLINE_HINT = "Coba periksa langkahmu satu per satu. Kamu pasti bisa!"


class LevelSource(ABC):
    """Produces new levels on request."""

    @abstractmethod
    async def generate_level(self, difficulty: str, level_number: int) -> Optional[LevelData]:
        """
        Return a level for ``level_number`` or None when unavailable.

        Implementations must not raise; the session falls back to the built-in
        table whenever this returns None.
        """
        pass


class HintSource(ABC):
    """Produces a short hint for the current puzzle."""

    @abstractmethod
    async def get_hint(self, layout: Sequence[str], commands: Sequence[str]) -> str:
        """Return user-displayable hint text. Must not raise."""
        pass


class FallbackLevelSource(LevelSource):
    """Never generates anything, so the session always uses the built-in table."""

    async def generate_level(self, difficulty: str, level_number: int) -> Optional[LevelData]:
        return None


class StaticHintSource(HintSource):
    """Returns the same friendly nudge every time."""

    def __init__(self, text: str = OFFLINE_HINT):
        self.text = text

    async def get_hint(self, layout: Sequence[str], commands: Sequence[str]) -> str:
        return self.text


class LLMLevelSource(LevelSource):
    """Level generator backed by the configured LLM.

    Generated layouts are parsed with ``Grid.load`` at the configured size and
    must have a path from start to goal. Par is raised to the shortest-path
    length if the model under-estimated it.
    """

    def __init__(self, settings: LLMSettings, *, grid_size: int = 5):
        self.settings = settings
        self.grid_size = grid_size

    async def generate_level(self, difficulty: str, level_number: int) -> Optional[LevelData]:
        log_llm(
            f"[Level] Generating level {level_number} ({difficulty}) "
            f"with {self.settings.provider}/{self.settings.model}..."
        )
        try:
            generated = await generate_level(
                difficulty,
                level_number,
                self.settings,
                grid_size=self.grid_size,
            )
            grid = Grid.load(generated.layout, size=self.grid_size)
        except MalformedLevelError as exc:
            log_error(f"[Level] Generated layout rejected: {exc}")
            return None
        except Exception as exc:
            log_error(f"[Level] Generation failed, using fallback level: {exc}")
            return None

        minimum = estimate_par(grid)
        if minimum is None:
            log_error("[Level] Generated layout has no path from S to G; using fallback level.")
            return None

        log_success(f"[Level] Level {level_number} generated")
        return LevelData(
            id=level_number,
            grid_size=self.grid_size,
            layout=grid.to_layout(),
            story=generated.story,
            difficulty=difficulty,
            par=max(generated.par, minimum),
        )


class LLMHintSource(HintSource):
    """Hint generator backed by the configured LLM."""

    def __init__(self, settings: LLMSettings, *, fallback: str = DEFAULT_HINT):
        self.settings = settings
        self.fallback = fallback

    async def get_hint(self, layout: Sequence[str], commands: Sequence[str]) -> str:
        log_llm(f"[Hint] Asking {self.settings.provider}/{self.settings.model} for a hint...")
        try:
            text = await get_hint(layout, commands, self.settings)
        except Exception as exc:
            log_error(f"[Hint] Hint request failed: {exc}")
            return self.fallback
        return text or self.fallback


def build_sources(
    settings: Optional[LLMSettings],
    *,
    grid_size: int = 5,
) -> Tuple[LevelSource, HintSource]:
    """Pick LLM-backed sources when the service is usable, offline ones otherwise."""

    if settings is None or not settings.enabled:
        return FallbackLevelSource(), StaticHintSource()
    return LLMLevelSource(settings, grid_size=grid_size), LLMHintSource(settings)
