from __future__ import annotations

import copy
from datetime import datetime

import pytest

from fiction_engine.core.engine import GameEngine
from fiction_engine.core.types import GameKnowledge, GameSession
from fiction_engine.persistence.sqlalchemy.db import build_engine, build_session_factory, create_schema
from fiction_engine.persistence.sqlalchemy.uow import SQLAlchemyUnitOfWork

LIBRARY_GKN = {
    "player": {"name": "Alex", "locationId": "reading_room", "inventory": []},
    "world": {
        "genre": "Adventure",
        "coreConflict": "The head librarian hides a ledger that proves the library was stolen.",
        "locations": {
            "reading_room": {
                "id": "reading_room",
                "name": "Reading Room",
                "description": "Dust hangs over long oak tables and green lamps.",
                "exits": {
                    "north": {"toLocationId": "archive", "description": "A narrow iron door.", "isLocked": True, "keyId": "brass_key"},
                    "east": {"toLocationId": "stacks", "description": "An arch into the stacks."},
                },
                "items": ["brass_key"],
            },
            "stacks": {
                "id": "stacks",
                "name": "The Stacks",
                "description": "Shelves lean together like gossiping neighbours.",
                "exits": {"west": {"toLocationId": "reading_room", "description": "Back to the tables."}},
                "items": [],
            },
            "archive": {
                "id": "archive",
                "name": "Sealed Archive",
                "description": "Cold air and the smell of vinegar.",
                "exits": {"south": {"toLocationId": "reading_room", "description": "The iron door."}},
                "items": ["ledger"],
            },
        },
        "items": {
            "brass_key": {"id": "brass_key", "name": "Brass Key", "description": "Warm to the touch."},
            "ledger": {"id": "ledger", "name": "Ledger", "description": "Columns of names and sums."},
        },
        "npcs": {
            "librarian": {
                "id": "librarian",
                "name": "Mrs. Odile Brann",
                "isKeyNpc": True,
                "locationId": "reading_room",
                "motivations": ["keep the ledger hidden"],
                "personalityTags": ["pedantic", "hums when nervous"],
                "speechStyleCues": "Clipped, overly formal.",
                "agenda": "Steer visitors away from the archive.",
                "disposition": "wary",
                "knowledge": {"archiveCode": 4471, "suspects": ["the mayor"], "nested": {"ok": True}},
                "currentPlan": {"description": "Move the ledger tonight.", "status": "active"},
            }
        },
        "fluidCountdown": {
            "description": "The ledger is moved out of the library.",
            "stages": ["Librarian grows uneasy", "Ledger packed", "Ledger gone"],
            "currentStage": 0,
        },
        "discoverableInfo": {
            "ledger_truth": {"description": "The library deed was forged.", "isDiscovered": False}
        },
        "storyFlags": {"metLibrarian": False, "visits": 1},
    },
    "turnCount": 0,
}


@pytest.fixture()
def library_gkn():
    return copy.deepcopy(LIBRARY_GKN)


@pytest.fixture()
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    return build_session_factory(engine)


@pytest.fixture()
def uow_factory(session_factory):
    def _factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return _factory


@pytest.fixture()
def seed_session(uow_factory, library_gkn):
    def _seed(session_id: str = "session-1", user_id: str = "user-1", turn_count: int = 0) -> str:
        gkn = GameKnowledge.from_dict(library_gkn)
        gkn.turn_count = turn_count
        with uow_factory() as uow:
            uow.sessions.create(
                GameSession(
                    session_id=session_id,
                    user_id=user_id,
                    initial_hook="The library doors close behind you.",
                    last_modified=datetime(2024, 1, 1, 12, 0, 0),
                    game_knowledge=gkn,
                )
            )
            uow.commit()
        return session_id

    return _seed


@pytest.fixture()
def make_engine(uow_factory):
    def _make(oracle, **kwargs) -> GameEngine:
        return GameEngine(uow_factory=uow_factory, oracle=oracle, **kwargs)

    return _make
