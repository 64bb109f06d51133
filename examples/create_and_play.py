from __future__ import annotations

import asyncio
import logging

from fiction_engine.bootstrap import build_game_engine
from fiction_engine.config import EngineConfig
from fiction_engine.core.errors import FictionEngineError
from fiction_engine.core.types import CallerIdentity


async def main() -> None:
    engine = build_game_engine(EngineConfig.from_env())
    caller = CallerIdentity(uid="turn-test-user")

    try:
        created = await engine.create_story(
            "A dusty old library with a secret to hide.",
            "Adventure",
            "Alex",
            caller,
        )
    except FictionEngineError as exc:
        print(f"Story creation failed [{exc.code}]: {exc.message}")
        return
    print("Session ID:", created.session_id)
    print("Initial hook:", created.initial_hook)

    try:
        turn = await engine.process_turn(
            created.session_id,
            "I look around the room, taking note of any interesting books or furniture.",
            caller,
        )
    except FictionEngineError as exc:
        print(f"Turn failed [{exc.code}]: {exc.message}")
        return
    print("\nNARRATIVE RESPONSE:")
    print(turn.narrative)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
