from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...core.codec import dump_json, parse_json_dict
from ...core.types import GameKnowledge, GameSession
from .models import GameSessionRow


def _to_session(row: GameSessionRow) -> GameSession:
    return GameSession(
        session_id=row.id,
        user_id=row.user_id,
        initial_hook=row.initial_hook,
        last_modified=row.last_modified,
        game_knowledge=GameKnowledge.from_dict(parse_json_dict(row.game_knowledge_json)),
        row_version=row.row_version,
    )


class GameSessionRepo:
    def __init__(self, session: Session):
        self.session = session

    def allocate_id(self) -> str:
        return str(uuid.uuid4())

    def create(self, game_session: GameSession) -> GameSession:
        gkn = game_session.game_knowledge
        row = GameSessionRow(
            id=game_session.session_id,
            user_id=game_session.user_id,
            initial_hook=game_session.initial_hook,
            game_knowledge_json=dump_json(gkn.to_dict()),
            turn_count=gkn.turn_count,
            last_modified=game_session.last_modified,
            row_version=game_session.row_version,
        )
        self.session.add(row)
        self.session.flush()
        return _to_session(row)

    def get(self, session_id: str) -> GameSession | None:
        row = self.session.get(GameSessionRow, session_id)
        return _to_session(row) if row is not None else None

    def update_partial(
        self,
        session_id: str,
        values: dict[str, object],
        expected_row_version: int | None = None,
    ) -> bool:
        update_values = dict(values)
        update_values["row_version"] = GameSessionRow.row_version + 1
        update_values["updated_at"] = datetime.utcnow()
        stmt = update(GameSessionRow).where(GameSessionRow.id == session_id)
        if expected_row_version is not None:
            stmt = stmt.where(GameSessionRow.row_version == expected_row_version)
        result = self.session.execute(stmt.values(**update_values))
        return result.rowcount == 1

    def list_for_user(self, user_id: str, limit: int = 20) -> list[GameSession]:
        stmt = (
            select(GameSessionRow)
            .where(GameSessionRow.user_id == user_id)
            .order_by(GameSessionRow.last_modified.desc())
            .limit(limit)
        )
        return [_to_session(row) for row in self.session.execute(stmt).scalars().all()]
