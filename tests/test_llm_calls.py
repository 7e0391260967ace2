"""Tests for the level/hint prompt helpers."""

import pytest

from robologic.config import LLMSettings
from robologic.llm_calls import generate_level, get_hint
from robologic.schemas import GeneratedLevel, HintResponse

SETTINGS = LLMSettings(provider="google", model="gemini-2.5-flash", api_key="k", language="English")


@pytest.mark.asyncio
async def test_generate_level_delegates_to_retry_helper(monkeypatch):
    captured = {}

    async def fake_call_llm_with_retries(**kwargs):
        captured.update(kwargs)
        return GeneratedLevel(
            layout=["S....", ".....", "..X..", ".....", "....G"],
            story="Off we go!",
            par=8,
        )

    monkeypatch.setattr("robologic.llm_calls.call_llm_with_retries", fake_call_llm_with_retries)

    result = await generate_level("Hard", 4, SETTINGS)

    assert result.par == 8
    assert captured["response_model"] is GeneratedLevel
    assert captured["settings"] is SETTINGS
    assert "Grid Size: 5x5" in captured["user_prompt"]
    assert "Difficulty: Hard." in captured["user_prompt"]
    assert "in English" in captured["user_prompt"]


@pytest.mark.asyncio
async def test_get_hint_formats_layout_and_commands(monkeypatch):
    captured = {}

    async def fake_call_llm_with_retries(**kwargs):
        captured.update(kwargs)
        return HintResponse(hint="  Look before you turn right!  ")

    monkeypatch.setattr("robologic.llm_calls.call_llm_with_retries", fake_call_llm_with_retries)

    hint = await get_hint(["S...G"], ["RIGHT", "DOWN"], SETTINGS)

    assert hint == "Look before you turn right!"
    assert captured["response_model"] is HintResponse
    assert '["S...G"]' in captured["user_prompt"]
    assert '["RIGHT", "DOWN"]' in captured["user_prompt"]
