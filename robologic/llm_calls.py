"""
Prompts for the generative service.

This module provides:
- Level generation (generate_level)
- Hint generation (get_hint)

Both functions raise on failure. Turning failures into fallback levels or a
default hint is the job of ``robologic.sources``.
"""

import json
from typing import Sequence

from robologic.config import LLMSettings
from robologic.schemas import GeneratedLevel, HintResponse
from .llm_utils import call_llm_with_retries


LEVEL_SYSTEM_PROMPT = """
You design grid-based puzzle levels for a coding game for elementary school children.
Theme: Space Mars Rover. Always answer with JSON only.
"""

HINT_SYSTEM_PROMPT = """
You are Robo, a friendly robot helping a child who is learning to program.
Always answer with JSON only.
"""


async def generate_level(
    difficulty: str,
    level_number: int,
    settings: LLMSettings,
    *,
    grid_size: int = 5,
) -> GeneratedLevel:
    """
    Ask the model for a new level layout.

    Args:
        difficulty: Difficulty label (e.g., "Easy", "Medium", "Hard")
        level_number: Level being generated; only used to vary the request
        settings: Explicit LLM configuration
        grid_size: Rows and columns of the requested layout

    Returns:
        GeneratedLevel with layout, story and par

    Raises:
        Exception: If the call fails or the response never validates
    """
    user_prompt = f"""
Create level {level_number} for the game.
Grid Size: {grid_size}x{grid_size}.

Symbols to use in layout:
'S' = Start Position (There must be exactly one 'S')
'G' = Goal/End Position (There must be exactly one 'G')
'X' = Obstacle/Rock
'.' = Empty Space
'C' = Coin (Optional bonus, put 1 or 2)

Difficulty: {difficulty}.
The path from S to G must be solvable using UP, DOWN, LEFT and RIGHT moves.

Output JSON with:
- "layout": array of {grid_size} strings, each {grid_size} characters long, top row first
- "story": a short, fun, encouraging sentence in {settings.language} introducing the mission
- "par": the estimated optimal number of moves
"""

    return await call_llm_with_retries(
        system_prompt=LEVEL_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        settings=settings,
        response_model=GeneratedLevel,
    )


async def get_hint(
    layout: Sequence[str],
    commands: Sequence[str],
    settings: LLMSettings,
) -> str:
    """
    Ask the model for a nudge based on the current layout and program.

    Args:
        layout: Current layout rows (collected coins already cleared)
        commands: Queued command tokens, e.g. ["RIGHT", "DOWN"]
        settings: Explicit LLM configuration

    Returns:
        Hint text

    Raises:
        Exception: If the call fails
    """
    user_prompt = f"""
The user is playing a coding game.
Grid Layout (S=Start, G=Goal, X=Obstacle, C=Coin, .=Empty), top row first:
{json.dumps(list(layout))}

Current User Command Sequence:
{json.dumps(list(commands))}

Provide a helpful, encouraging hint in {settings.language} for a child.
Do not give the exact answer, just a nudge in the right direction.
Keep it under 20 words.
Output JSON with a single "hint" field.
"""

    response = await call_llm_with_retries(
        system_prompt=HINT_SYSTEM_PROMPT,
        user_prompt=user_prompt,
        settings=settings,
        response_model=HintResponse,
    )
    return response.hint.strip()
