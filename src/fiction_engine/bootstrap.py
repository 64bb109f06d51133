from __future__ import annotations

from .config import EngineConfig
from .core.engine import GameEngine
from .oracle.gemini import GeminiOracle
from .persistence.sqlalchemy import SQLAlchemyUnitOfWork, build_engine, build_session_factory, create_schema


def build_game_engine(config: EngineConfig, *, create_tables: bool = True) -> GameEngine:
    """Build the process-wide engine: one DB engine, one session factory, one client per model."""
    db_engine = build_engine(config.database_url)
    if create_tables:
        create_schema(db_engine)
    session_factory = build_session_factory(db_engine)

    def _uow_factory():
        return SQLAlchemyUnitOfWork(session_factory)

    turn_oracle = GeminiOracle(
        config.turn_model,
        api_key=config.gemini_api_key,
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
    )
    story_oracle = turn_oracle
    if config.story_model != config.turn_model:
        story_oracle = GeminiOracle(
            config.story_model,
            api_key=config.gemini_api_key,
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
        )

    return GameEngine(
        uow_factory=_uow_factory,
        oracle=turn_oracle,
        story_oracle=story_oracle,
        default_player_name=config.default_player_name,
        optimistic_concurrency=config.optimistic_concurrency,
    )
