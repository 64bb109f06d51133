from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core.types import DEFAULT_PLAYER_NAME

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    return float(raw)


def _optional_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    return int(raw)


@dataclass(frozen=True)
class EngineConfig:
    database_url: str = "sqlite+pysqlite:///fiction_engine.db"
    gemini_api_key: Optional[str] = None
    story_model: str = "gemini-2.5-flash"
    turn_model: str = "gemini-2.5-flash"
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    default_player_name: str = DEFAULT_PLAYER_NAME
    optimistic_concurrency: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a config from ``FICTION_ENGINE_*`` variables.

        The Gemini key is read from ``GEMINI_KEY`` first, then
        ``GEMINI_API_KEY``. Unset variables keep the dataclass defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        concurrency = env.get("FICTION_ENGINE_OPTIMISTIC_CONCURRENCY")
        return cls(
            database_url=env.get("FICTION_ENGINE_DATABASE_URL", defaults.database_url),
            gemini_api_key=env.get("GEMINI_KEY") or env.get("GEMINI_API_KEY") or None,
            story_model=env.get("FICTION_ENGINE_STORY_MODEL", defaults.story_model),
            turn_model=env.get("FICTION_ENGINE_TURN_MODEL", defaults.turn_model),
            temperature=_optional_float(env.get("FICTION_ENGINE_TEMPERATURE")),
            max_output_tokens=_optional_int(env.get("FICTION_ENGINE_MAX_OUTPUT_TOKENS")),
            default_player_name=env.get("FICTION_ENGINE_DEFAULT_PLAYER_NAME", defaults.default_player_name),
            optimistic_concurrency=(
                concurrency.strip().lower() in _TRUE_VALUES
                if concurrency is not None
                else defaults.optimistic_concurrency
            ),
        )
