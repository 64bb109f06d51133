from __future__ import annotations

from typing import Protocol

from ..core.types import GameSession


class GameSessionRepo(Protocol):
    def allocate_id(self) -> str: ...
    def create(self, game_session: GameSession) -> GameSession: ...
    def get(self, session_id: str) -> GameSession | None: ...
    def update_partial(
        self,
        session_id: str,
        values: dict[str, object],
        expected_row_version: int | None = None,
    ) -> bool: ...
    def list_for_user(self, user_id: str, limit: int = 20) -> list[GameSession]: ...


class UnitOfWork(Protocol):
    sessions: GameSessionRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
