from __future__ import annotations

import asyncio
import copy
import json
from datetime import datetime

import pytest
from sqlalchemy import select

from fiction_engine.core.engine import FALLBACK_NARRATIVE, OOC_BANNER, GameEngine
from fiction_engine.core.errors import (
    ConcurrentTurnError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from fiction_engine.core.types import CallerIdentity, GameKnowledge
from fiction_engine.persistence.sqlalchemy.models import GameSessionRow

from stubs import StubOracle, story_reply, turn_reply


def _row(session_factory, session_id: str) -> GameSessionRow:
    with session_factory() as session:
        return session.get(GameSessionRow, session_id)


def test_applied_turns_advance_turn_count(session_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session()
    moved = copy.deepcopy(library_gkn)
    moved["player"]["locationId"] = "stacks"
    moved["turnCount"] = 99
    oracle = StubOracle(
        turn_reply("You wander into the stacks.", moved),
        turn_reply("You walk back.", library_gkn, fenced=True),
        turn_reply("Still here.", library_gkn),
    )
    engine = make_engine(oracle, clock=lambda: datetime(2024, 5, 1, 9, 30))

    async def run_test():
        for action in ("go east", "go west", "wait"):
            result = await engine.process_turn(session_id, action, CallerIdentity(uid="user-1"))
            assert result.outcome == "applied"
            assert result.narrative

    asyncio.run(run_test())

    row = _row(session_factory, session_id)
    stored = json.loads(row.game_knowledge_json)
    assert stored["turnCount"] == 3
    assert row.turn_count == 3
    assert row.last_modified == datetime(2024, 5, 1, 9, 30)
    assert row.user_id == "user-1"
    assert row.initial_hook == "The library doors close behind you."
    assert len(oracle.prompts) == 3


def test_turn_prompt_embeds_state_and_raw_input(seed_session, make_engine, library_gkn):
    session_id = seed_session()
    oracle = StubOracle(turn_reply("You look around.", library_gkn))
    engine = make_engine(oracle)

    asyncio.run(engine.process_turn(session_id, "I look around the room.", {"uid": "user-1"}))

    prompt = oracle.prompts[0]
    assert "Game Master" in prompt
    assert '"I look around the room."' in prompt
    assert '"locationId": "reading_room"' in prompt
    assert "updatedGkn" in prompt


def test_echoed_state_round_trips_except_turn_count(uow_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session(turn_count=4)
    with uow_factory() as uow:
        before = uow.sessions.get(session_id).game_knowledge

    def echo(prompt: str) -> str:
        encoded = prompt.split("### CURRENT GAME STATE ###\n", 1)[1].split("\n\n### PLAYER INPUT ###", 1)[0]
        return turn_reply("Nothing changes.", json.loads(encoded))

    engine = make_engine(StubOracle(echo))
    asyncio.run(engine.process_turn(session_id, "wait", CallerIdentity(uid="user-1")))

    with uow_factory() as uow:
        after = uow.sessions.get(session_id).game_knowledge
    assert after.turn_count == before.turn_count + 1
    after.turn_count = before.turn_count
    assert after == before


def test_ooc_input_inspects_without_oracle_or_write(session_factory, seed_session, make_engine):
    session_id = seed_session(turn_count=2)
    before = _row(session_factory, session_id)
    oracle = StubOracle()
    engine = make_engine(oracle)

    result = asyncio.run(engine.process_turn(session_id, "  [inspect]  ", CallerIdentity(uid="user-1")))

    assert result.outcome == "inspected"
    assert result.narrative.startswith(OOC_BANNER)
    state = json.loads(result.narrative[len(OOC_BANNER):])
    assert state["turnCount"] == 2
    assert state["player"]["locationId"] == "reading_room"
    assert oracle.prompts == []
    after = _row(session_factory, session_id)
    assert after.game_knowledge_json == before.game_knowledge_json
    assert after.last_modified == before.last_modified
    assert after.row_version == before.row_version


@pytest.mark.parametrize(
    "reply",
    [
        "The door creaks open.",
        '{"narrative": "no state"}',
        '{"updatedGkn": {"player": {}, "world": {}}}',
        '{"narrative": "patch only", "updatedGkn": {"player": {"name": "Alex", "locationId": "stacks"}}}',
        '["narrative", "updatedGkn"]',
        "",
        RuntimeError("transport down"),
    ],
)
def test_unusable_reply_falls_back_and_leaves_state(session_factory, seed_session, make_engine, reply):
    session_id = seed_session(turn_count=5)
    before = _row(session_factory, session_id)
    engine = make_engine(StubOracle(reply))

    result = asyncio.run(engine.process_turn(session_id, "open the door", CallerIdentity(uid="user-1")))

    assert result.narrative == FALLBACK_NARRATIVE
    assert result.outcome == "fallback"
    after = _row(session_factory, session_id)
    assert after.game_knowledge_json == before.game_knowledge_json
    assert after.turn_count == 5
    assert after.last_modified == before.last_modified


def test_reply_with_dangling_player_location_falls_back(session_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session()
    broken = copy.deepcopy(library_gkn)
    broken["player"]["locationId"] = "nowhere"
    engine = make_engine(StubOracle(turn_reply("You vanish.", broken)))

    result = asyncio.run(engine.process_turn(session_id, "vanish", CallerIdentity(uid="user-1")))

    assert result.narrative == FALLBACK_NARRATIVE
    assert _row(session_factory, session_id).turn_count == 0


@pytest.mark.parametrize(
    "session_id,player_input",
    [("", "look"), ("session-1", ""), (None, "look"), ("session-1", "   "), ("session-1", None)],
)
def test_missing_arguments_rejected_before_oracle(seed_session, make_engine, session_id, player_input):
    seed_session()
    oracle = StubOracle()
    engine = make_engine(oracle)

    with pytest.raises(InvalidArgumentError) as excinfo:
        asyncio.run(engine.process_turn(session_id, player_input))
    assert excinfo.value.code == "invalid-argument"
    assert oracle.prompts == []


def test_unknown_session_is_not_found(make_engine):
    oracle = StubOracle()
    engine = make_engine(oracle)

    with pytest.raises(NotFoundError):
        asyncio.run(engine.process_turn("missing", "look"))
    assert oracle.prompts == []


def test_foreign_caller_is_denied(seed_session, make_engine):
    session_id = seed_session(user_id="owner")
    oracle = StubOracle()
    engine = make_engine(oracle)

    with pytest.raises(PermissionDeniedError):
        asyncio.run(engine.process_turn(session_id, "look", CallerIdentity(uid="intruder")))
    with pytest.raises(PermissionDeniedError):
        asyncio.run(engine.process_turn(session_id, "[inspect]"))
    assert oracle.prompts == []


def test_anonymous_session_open_to_any_caller(session_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session(user_id="anonymous")
    engine = make_engine(StubOracle(turn_reply("Hello.", library_gkn), turn_reply("Hi.", library_gkn)))

    asyncio.run(engine.process_turn(session_id, "wave", None))
    asyncio.run(engine.process_turn(session_id, "wave", CallerIdentity(uid="someone")))

    assert _row(session_factory, session_id).turn_count == 2


def test_concurrent_write_is_rejected(session_factory, uow_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session()

    def racing_reply(prompt: str) -> str:
        with uow_factory() as uow:
            uow.sessions.update_partial(session_id, {"turn_count": 1})
            uow.commit()
        return turn_reply("Too late.", library_gkn)

    engine = make_engine(StubOracle(racing_reply))

    with pytest.raises(ConcurrentTurnError) as excinfo:
        asyncio.run(engine.process_turn(session_id, "hurry", CallerIdentity(uid="user-1")))
    assert isinstance(excinfo.value, InternalError)
    assert excinfo.value.code == "internal"
    assert json.loads(_row(session_factory, session_id).game_knowledge_json)["turnCount"] == 0


def test_last_writer_wins_without_optimistic_concurrency(session_factory, uow_factory, seed_session, make_engine, library_gkn):
    session_id = seed_session()

    def racing_reply(prompt: str) -> str:
        with uow_factory() as uow:
            uow.sessions.update_partial(session_id, {"turn_count": 7})
            uow.commit()
        return turn_reply("Mine now.", library_gkn)

    engine = make_engine(StubOracle(racing_reply), optimistic_concurrency=False)
    result = asyncio.run(engine.process_turn(session_id, "hurry", CallerIdentity(uid="user-1")))

    assert result.narrative == "Mine now."
    assert _row(session_factory, session_id).turn_count == 1


def test_persistence_failure_surfaces_internal(seed_session, uow_factory, library_gkn):
    session_id = seed_session()
    calls = {"n": 0}

    class FailingWriteUoW:
        def __init__(self):
            self._inner = uow_factory()

        def __enter__(self):
            calls["n"] += 1
            inner = self._inner.__enter__()
            if calls["n"] > 1:
                def boom(*args, **kwargs):
                    raise RuntimeError("disk full")

                inner.sessions.update_partial = boom
            return inner

        def __exit__(self, exc_type, exc, tb):
            return self._inner.__exit__(exc_type, exc, tb)

    engine = GameEngine(uow_factory=FailingWriteUoW, oracle=StubOracle(turn_reply("Saved?", library_gkn)))

    with pytest.raises(InternalError) as excinfo:
        asyncio.run(engine.process_turn(session_id, "save", CallerIdentity(uid="user-1")))
    assert excinfo.value.code == "internal"

    with uow_factory() as uow:
        assert uow.sessions.get(session_id).game_knowledge.turn_count == 0


def test_library_scenario_end_to_end(session_factory, make_engine, library_gkn):
    oracle = StubOracle(story_reply(library_gkn), turn_reply("Tall shelves surround you.", library_gkn))
    engine = make_engine(oracle)

    async def run_test():
        created = await engine.create_story("A dusty old library with a secret to hide.", "Adventure")
        assert created.session_id
        assert created.initial_hook
        turn = await engine.process_turn(created.session_id, "I look around the room.")
        assert turn.narrative
        return created.session_id

    session_id = asyncio.run(run_test())
    row = _row(session_factory, session_id)
    assert row.user_id == "anonymous"
    assert GameKnowledge.from_dict(json.loads(row.game_knowledge_json)).turn_count == 1

    with session_factory() as session:
        assert len(session.execute(select(GameSessionRow)).scalars().all()) == 1


def test_corrupt_stored_state_is_internal_not_empty_world(session_factory, seed_session, make_engine):
    session_id = seed_session()
    with session_factory() as session:
        session.get(GameSessionRow, session_id).game_knowledge_json = '{"player": {'
        session.commit()
    oracle = StubOracle()
    engine = make_engine(oracle)

    with pytest.raises(InternalError) as excinfo:
        asyncio.run(engine.process_turn(session_id, "look", CallerIdentity(uid="user-1")))
    assert "load" in excinfo.value.message
    assert oracle.prompts == []
