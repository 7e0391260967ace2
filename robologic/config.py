"""
RoboLogic Configuration

Loads configuration from environment variables with sensible defaults.

Only the command-line front end reads this module. Library code (the level
session and the LLM-backed sources) receives ``LLMSettings`` / ``GameSettings``
instances explicitly, so tests can build them by hand.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists
load_dotenv()


class LLMSettings(BaseModel):
    """Explicit configuration for the external generative service."""

    provider: str = Field("google", description="Mirascope provider name, or 'ollama'")
    model: str = Field("gemini-2.5-flash", description="Model identifier for the provider")
    api_key: str | None = Field(None, description="Credential for remote providers")
    base_url: str | None = Field(None, description="Base URL for a local Ollama server")
    timeout_seconds: float = Field(120.0, gt=0)
    max_attempts: int = Field(3, ge=1)
    language: str = Field("Indonesian", description="Language for stories and hints")

    @property
    def is_local(self) -> bool:
        return self.provider.lower() == "ollama"

    @property
    def enabled(self) -> bool:
        """True when the service can be called at all.

        Remote providers need a key. Without one the session silently uses the
        fallback level table and the default hint.
        """
        return self.is_local or bool(self.api_key)


class GameSettings(BaseModel):
    """Gameplay knobs for a level session."""

    grid_size: int = Field(5, ge=2)
    difficulty: str = "Medium"
    initial_delay_seconds: float = Field(0.1, ge=0)
    tick_interval_seconds: float = Field(0.6, ge=0)
    verbose: bool = False


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "google")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash")

    # API Keys
    GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")

    # Local LLM Configuration (Ollama)
    OLLAMA_BASE_URL: str | None = os.getenv("OLLAMA_BASE_URL")

    # Gameplay
    DIFFICULTY: str = os.getenv("ROBOLOGIC_DIFFICULTY", "Medium")
    LANGUAGE: str = os.getenv("ROBOLOGIC_LANGUAGE", "Indonesian")
    INITIAL_DELAY_SECONDS: float = float(os.getenv("ROBOLOGIC_INITIAL_DELAY", "0.1"))
    TICK_INTERVAL_SECONDS: float = float(os.getenv("ROBOLOGIC_TICK_INTERVAL", "0.6"))
    VERBOSE: bool = os.getenv("ROBOLOGIC_VERBOSE", "").lower() in ("1", "true", "yes")

    _PROVIDER_KEYS = {
        "google": "GOOGLE_API_KEY",
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
    }

    @classmethod
    def api_key_for(cls, provider: str) -> str | None:
        """Return the configured key for ``provider`` (None when unknown or unset)."""
        attr = cls._PROVIDER_KEYS.get(provider.lower())
        return getattr(cls, attr) if attr else None

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors for impossible combinations.

        A missing API key is not an error: the game falls back to its built-in
        levels. An unknown remote provider, or a non-positive interval, is.
        """
        provider = cls.LLM_PROVIDER.lower()
        if provider != "ollama" and provider not in cls._PROVIDER_KEYS:
            raise ValueError(
                f"Unsupported LLM_PROVIDER '{cls.LLM_PROVIDER}'. "
                f"Use one of: {', '.join(sorted(cls._PROVIDER_KEYS))}, ollama"
            )

        if cls.TICK_INTERVAL_SECONDS < 0 or cls.INITIAL_DELAY_SECONDS < 0:
            raise ValueError(
                "ROBOLOGIC_INITIAL_DELAY and ROBOLOGIC_TICK_INTERVAL must be >= 0"
            )

    @classmethod
    def llm_settings(cls) -> LLMSettings:
        """Snapshot the ambient LLM configuration as an explicit settings object."""
        return LLMSettings(
            provider=cls.LLM_PROVIDER,
            model=cls.LLM_MODEL,
            api_key=cls.api_key_for(cls.LLM_PROVIDER),
            base_url=cls.OLLAMA_BASE_URL,
            language=cls.LANGUAGE,
        )

    @classmethod
    def game_settings(cls) -> GameSettings:
        """Snapshot the ambient gameplay configuration."""
        return GameSettings(
            difficulty=cls.DIFFICULTY,
            initial_delay_seconds=cls.INITIAL_DELAY_SECONDS,
            tick_interval_seconds=cls.TICK_INTERVAL_SECONDS,
            verbose=cls.VERBOSE,
        )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        key_state = "set" if cls.api_key_for(cls.LLM_PROVIDER) else "missing"
        lines = [
            "RoboLogic Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  API Key: {key_state}",
            f"  Difficulty: {cls.DIFFICULTY}",
            f"  Tick Interval: {cls.TICK_INTERVAL_SECONDS}s",
        ]
        return "\n".join(lines)
