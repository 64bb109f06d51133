"""Callable endpoints taking and returning plain dicts.

These mirror the request/response payloads a web or RPC layer would carry:
camelCase keys in, camelCase keys out, :class:`FictionEngineError` subclasses
(with a ``code``) for failures.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from .core.engine import GameEngine
from .core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


def _payload(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise InvalidArgumentError("Request data must be an object.")
    return data


async def create_new_story(engine: GameEngine, data: Any, auth: Any = None) -> dict[str, str]:
    payload = _payload(data)
    logger.info("Received request to create new story")
    created = await engine.create_story(
        payload.get("seed"),
        payload.get("genre"),
        player_name=payload.get("playerName"),
        caller=auth,
    )
    return {"sessionId": created.session_id, "initialHook": created.initial_hook}


async def process_player_turn(engine: GameEngine, data: Any, auth: Any = None) -> dict[str, str]:
    payload = _payload(data)
    logger.info("Received request to process player turn for session %s", payload.get("sessionId"))
    result = await engine.process_turn(
        payload.get("sessionId"),
        payload.get("playerInput"),
        caller=auth,
    )
    return {"narrative": result.narrative}
