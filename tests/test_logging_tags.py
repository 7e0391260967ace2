"""Tests for truthful logging tags ([AI] vs [•]) in session output.

These tests assert that:
- Engine ticks and level loads print deterministic/info tags only
- Level generation prints [AI] only when an LLM-backed source is used
"""

from __future__ import annotations

import contextlib
import io

import pytest

from robologic.config import GameSettings, LLMSettings
from robologic.logging_utils import LOG_TAG_DETERMINISTIC, LOG_TAG_LLM, colored, Color
from robologic.schemas import GeneratedLevel
from robologic.session import LevelSession
from robologic.sources import FallbackLevelSource, LLMLevelSource, StaticHintSource

FAST = GameSettings(initial_delay_seconds=0, tick_interval_seconds=0, verbose=True)


@pytest.fixture(autouse=True)
def _no_color(monkeypatch):
    monkeypatch.setenv("ROBOLOGIC_NO_COLOR", "1")


def test_colored_respects_no_color_switch(monkeypatch):
    assert colored("plain", Color.RED) == "plain"
    monkeypatch.delenv("ROBOLOGIC_NO_COLOR")
    assert colored("bold", Color.RED, bold=True) == "\033[1m\033[91mbold\033[0m"


@pytest.mark.asyncio
async def test_engine_ticks_use_deterministic_tag():
    session = LevelSession(FallbackLevelSource(), StaticHintSource(), FAST)
    session.add_command("DOWN")

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await session.play()
    out = buf.getvalue()

    assert f"{LOG_TAG_DETERMINISTIC} [Engine] Step 0: DOWN" in out
    assert LOG_TAG_LLM not in out


@pytest.mark.asyncio
async def test_level_generation_tag_depends_on_source(monkeypatch):
    async def fake_generate_level(difficulty, level_number, settings, *, grid_size=5):
        return GeneratedLevel(
            layout=["S....", ".....", ".....", ".....", "....G"], story="Go!", par=8
        )

    monkeypatch.setattr("robologic.sources.generate_level", fake_generate_level)

    offline = LevelSession(FallbackLevelSource(), StaticHintSource(), FAST)
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await offline.advance_level()
    assert LOG_TAG_LLM not in buf.getvalue()
    assert "Using built-in level for level 2" in buf.getvalue()

    settings = LLMSettings(provider="openai", model="gpt-5-nano", api_key="k")
    online = LevelSession(LLMLevelSource(settings), StaticHintSource(), FAST)
    buf2 = io.StringIO()
    with contextlib.redirect_stdout(buf2):
        await online.advance_level()
    assert f"{LOG_TAG_LLM} [Level] Generating level 2" in buf2.getvalue()
