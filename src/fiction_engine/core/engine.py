from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from .codec import check_player_location, decode_story_reply, decode_turn_reply, dump_json, encode_game_knowledge
from .errors import (
    ConcurrentTurnError,
    FictionEngineError,
    InternalError,
    NotFoundError,
    OracleResponseError,
)
from .normalize import (
    check_session_access,
    coerce_caller,
    is_out_of_character,
    normalize_genre,
    normalize_player_name,
    owner_for,
    require_text,
)
from ..persistence.interfaces import UnitOfWork
from .ports import NarrativeOraclePort
from .prompts import build_story_prompt, build_turn_prompt
from .types import DEFAULT_PLAYER_NAME, GameKnowledge, GameSession, StoryCreated, TurnResult

logger = logging.getLogger(__name__)

FALLBACK_NARRATIVE = (
    "A strange energy flickers in the air, and your action seems to have no effect. "
    "The world remains as it was. (The game's AI encountered an error.)"
)
OOC_BANNER = "--- OOC State Inspector ---"


class GameEngine:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        oracle: NarrativeOraclePort,
        story_oracle: NarrativeOraclePort | None = None,
        clock: Callable[[], datetime] | None = None,
        default_player_name: str = DEFAULT_PLAYER_NAME,
        optimistic_concurrency: bool = True,
    ):
        self._uow_factory = uow_factory
        self._oracle = oracle
        self._story_oracle = story_oracle or oracle
        self._clock = clock or datetime.utcnow
        self._default_player_name = default_player_name
        self._optimistic_concurrency = optimistic_concurrency

    async def create_story(
        self,
        seed: str,
        genre: str,
        player_name: str | None = None,
        caller: Any = None,
    ) -> StoryCreated:
        seed = require_text(seed, "seed").strip()
        genre = normalize_genre(genre)
        player_name = normalize_player_name(player_name, self._default_player_name)
        caller = coerce_caller(caller)
        logger.info("Creating story genre=%s owner=%s", genre, owner_for(caller))

        prompt = build_story_prompt(seed, genre, player_name)
        logger.debug("Story prompt is %d chars", len(prompt))
        try:
            raw_text = await self._story_oracle.generate(prompt)
        except Exception as exc:
            logger.exception("Story generation request failed")
            raise InternalError("Failed to generate story world.") from exc

        try:
            gkn, initial_hook = decode_story_reply(raw_text)
            gkn.turn_count = 0
            gkn.player.inventory = []
            check_player_location(gkn, raw_text)
        except OracleResponseError as exc:
            logger.error("Unusable story reply: %s | raw_head=%.500s", exc, raw_text or "")
            raise InternalError("Failed to generate story world.") from exc

        if not gkn.world.genre:
            gkn.world.genre = genre
        if not gkn.player.name:
            gkn.player.name = player_name

        now = self._clock()
        try:
            with self._uow_factory() as uow:
                session_id = uow.sessions.allocate_id()
                uow.sessions.create(
                    GameSession(
                        session_id=session_id,
                        user_id=owner_for(caller),
                        initial_hook=initial_hook.strip(),
                        last_modified=now,
                        game_knowledge=gkn,
                    )
                )
                uow.commit()
        except Exception as exc:
            logger.exception("Saving new game session failed")
            raise InternalError("Failed to save new game session.") from exc

        logger.info("New game session created with ID: %s", session_id)
        return StoryCreated(session_id=session_id, initial_hook=initial_hook.strip())

    async def process_turn(
        self,
        session_id: str,
        player_input: str,
        caller: Any = None,
    ) -> TurnResult:
        session_id = require_text(session_id, "sessionId").strip()
        player_input = require_text(player_input, "playerInput")
        caller = coerce_caller(caller)

        current = self._load_session(session_id)
        check_session_access(current.user_id, caller)

        if is_out_of_character(player_input):
            logger.info("OOC inspection for session %s", session_id)
            return TurnResult(narrative=self.inspect_state(current.game_knowledge), outcome="inspected")

        prompt = build_turn_prompt(encode_game_knowledge(current.game_knowledge), player_input)
        logger.debug("Turn prompt for session %s is %d chars", session_id, len(prompt))
        raw_text: str | None = None
        try:
            raw_text = await self._oracle.generate(prompt)
            narrative, updated = decode_turn_reply(raw_text)
        except OracleResponseError as exc:
            logger.warning(
                "Unusable turn reply for session %s, state left unchanged: %s | raw_head=%.500s",
                session_id,
                exc,
                raw_text or "",
            )
            return TurnResult(narrative=FALLBACK_NARRATIVE, outcome="fallback")
        except Exception:
            logger.warning("Turn request failed for session %s, state left unchanged", session_id, exc_info=True)
            return TurnResult(narrative=FALLBACK_NARRATIVE, outcome="fallback")

        updated.turn_count = current.game_knowledge.turn_count + 1
        self._commit_turn(current, updated, self._clock())
        logger.info("Updated game session %s to turn %d", session_id, updated.turn_count)
        return TurnResult(narrative=narrative.strip(), outcome="applied")

    def inspect_state(self, gkn: GameKnowledge) -> str:
        return f"{OOC_BANNER}\n{encode_game_knowledge(gkn)}"

    def _load_session(self, session_id: str) -> GameSession:
        try:
            with self._uow_factory() as uow:
                current = uow.sessions.get(session_id)
        except Exception as exc:
            logger.exception("Loading game session %s failed", session_id)
            raise InternalError("Failed to load the game session.") from exc
        if current is None:
            raise NotFoundError(f"Game session with ID {session_id} not found.")
        return current

    def _commit_turn(self, current: GameSession, updated: GameKnowledge, now: datetime) -> None:
        expected = current.row_version if self._optimistic_concurrency else None
        try:
            with self._uow_factory() as uow:
                ok = uow.sessions.update_partial(
                    current.session_id,
                    {
                        "game_knowledge_json": dump_json(updated.to_dict()),
                        "turn_count": updated.turn_count,
                        "last_modified": now,
                    },
                    expected_row_version=expected,
                )
                if not ok:
                    uow.rollback()
                    if expected is not None:
                        raise ConcurrentTurnError(
                            f"Game session {current.session_id} changed while the turn was processed."
                        )
                    raise InternalError(f"Game session {current.session_id} disappeared before saving.")
                uow.commit()
        except FictionEngineError:
            logger.error("Saving turn for session %s was rejected", current.session_id)
            raise
        except Exception as exc:
            logger.exception("Saving turn for session %s failed", current.session_id)
            raise InternalError("Failed to save the updated game state.") from exc
