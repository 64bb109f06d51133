from __future__ import annotations

import asyncio
import json
import logging

from fiction_engine.core.engine import GameEngine
from fiction_engine.persistence.sqlalchemy import (
    GameSessionRow,
    SQLAlchemyUnitOfWork,
    build_engine,
    build_session_factory,
    create_schema,
)

WORLD = {
    "player": {"name": "Alex", "locationId": "hall", "inventory": []},
    "world": {
        "genre": "Adventure",
        "coreConflict": "Someone is burning the library's oldest books.",
        "locations": {
            "hall": {
                "id": "hall",
                "name": "Entrance Hall",
                "description": "Marble floor, a cold hearth, a ledger on the desk.",
                "exits": {"up": {"toLocationId": "gallery", "description": "A spiral stair."}},
                "items": [],
            },
            "gallery": {
                "id": "gallery",
                "name": "Gallery",
                "description": "Portraits with their eyes scratched out.",
                "exits": {"down": {"toLocationId": "hall", "description": "The spiral stair."}},
                "items": [],
            },
        },
        "items": {},
        "npcs": {},
        "fluidCountdown": {"description": "The archive burns.", "stages": ["Smoke", "Fire"], "currentStage": 0},
        "discoverableInfo": {},
        "storyFlags": {},
    },
    "turnCount": 0,
}


class DemoOracle:
    async def generate(self, prompt: str) -> str:
        if "### PLAYER INPUT ###" not in prompt:
            return json.dumps({"gkn": WORLD, "initialHook": "The doors boom shut behind you."})
        state = json.loads(prompt.split("### CURRENT GAME STATE ###\n", 1)[1].split("\n\n### PLAYER INPUT ###", 1)[0])
        state["player"]["locationId"] = "gallery"
        state["world"]["fluidCountdown"]["currentStage"] += 1
        return "```json\n" + json.dumps({"narrative": "You climb the stair. Smoke curls from below.", "updatedGkn": state}) + "\n```"


async def main() -> None:
    db_engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(db_engine)
    session_factory = build_session_factory(db_engine)

    engine = GameEngine(uow_factory=lambda: SQLAlchemyUnitOfWork(session_factory), oracle=DemoOracle())

    created = await engine.create_story("A library that is slowly burning.", "Adventure", "Alex")
    print("session:", created.session_id)
    print("hook:", created.initial_hook)

    turn = await engine.process_turn(created.session_id, "go up")
    print("narrative:", turn.narrative)

    inspected = await engine.process_turn(created.session_id, "[inspect]")
    print(inspected.narrative.splitlines()[0])

    with session_factory() as session:
        row = session.get(GameSessionRow, created.session_id)
        print("persisted turn count:", row.turn_count)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
