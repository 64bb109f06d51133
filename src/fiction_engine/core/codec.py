from __future__ import annotations

import json
import logging
import re
from typing import Any, Sequence

from .errors import IncompleteOracleResponse, InvalidWorldState, MalformedOracleResponse
from .types import GameKnowledge

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?")
_TRAILING_FENCE_RE = re.compile(r"\r?\n?[ \t]*```$")

# Each entry names one required key; tuples list accepted aliases, first wins.
TURN_REPLY_KEYS: tuple[tuple[str, ...], ...] = (("narrative",), ("updatedGkn", "updatedGameState"))
STORY_REPLY_KEYS: tuple[tuple[str, ...], ...] = (("gkn", "gameState"), ("initialHook",))


def dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=True, separators=(",", ":"))


def parse_json_dict(text: str | None) -> dict[str, Any]:
    """Parse stored JSON that must be an object; raises ``ValueError`` otherwise."""
    try:
        data = json.loads(text or "")
    except (ValueError, RecursionError) as exc:
        logger.error("Stored JSON is corrupt: %s | head=%.200s", exc, text or "")
        raise ValueError(f"stored JSON is corrupt: {exc}") from exc
    if not isinstance(data, dict):
        logger.error("Stored JSON is a %s, expected an object", type(data).__name__)
        raise ValueError(f"stored JSON is a {type(data).__name__}, expected an object")
    return data


def encode_game_knowledge(gkn: GameKnowledge) -> str:
    return json.dumps(gkn.to_dict(), indent=2, ensure_ascii=False)


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    while cleaned.startswith("```"):
        stripped = _LEADING_FENCE_RE.sub("", cleaned, count=1).strip()
        if stripped == cleaned:
            break
        cleaned = stripped
    while cleaned.endswith("```"):
        stripped = _TRAILING_FENCE_RE.sub("", cleaned, count=1).strip()
        if stripped == cleaned:
            break
        cleaned = stripped
    return cleaned


def _extract_object_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start : end + 1]


def _pick(payload: dict[str, Any], aliases: Sequence[str]) -> Any:
    for key in aliases:
        value = payload.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, "", {}):
            return value
    return None


def decode_oracle_reply(raw_text: str | None, required_keys: Sequence[Sequence[str]]) -> dict[str, Any]:
    """Parse an Oracle reply into a JSON object holding ``required_keys``.

    The reply is first stripped of code fences. If it still does not parse,
    the outermost ``{...}`` span is tried, which drops chatter the model put
    around the object. Raises :class:`MalformedOracleResponse` when nothing
    parses to an object and :class:`IncompleteOracleResponse` when a required
    key (or all of its aliases) is missing or empty.

    The returned dict maps the first alias of every required key to its value.
    """
    cleaned = strip_code_fences(raw_text or "")
    if not cleaned:
        raise MalformedOracleResponse("empty oracle reply", raw_text=raw_text)

    try:
        payload = json.loads(cleaned)
    except RecursionError as exc:
        raise MalformedOracleResponse("oracle reply is nested too deeply", raw_text=raw_text) from exc
    except ValueError as exc:
        span = _extract_object_span(cleaned)
        if span is None or span == cleaned:
            raise MalformedOracleResponse(f"oracle reply is not JSON: {exc}", raw_text=raw_text) from exc
        try:
            payload = json.loads(span)
        except (ValueError, RecursionError) as inner:
            raise MalformedOracleResponse(f"oracle reply is not JSON: {inner}", raw_text=raw_text) from inner

    if not isinstance(payload, dict):
        raise MalformedOracleResponse(
            f"oracle reply is a JSON {type(payload).__name__}, expected an object",
            raw_text=raw_text,
        )

    out: dict[str, Any] = {}
    missing: list[str] = []
    for aliases in required_keys:
        value = _pick(payload, aliases)
        if value is None:
            missing.append("/".join(aliases))
        else:
            out[aliases[0]] = value
    if missing:
        raise IncompleteOracleResponse(
            f"oracle reply is missing {', '.join(missing)} (keys present: {sorted(payload)})",
            raw_text=raw_text,
        )
    return out


def decode_game_knowledge(raw: Any, raw_text: str | None = None) -> GameKnowledge:
    if not isinstance(raw, dict):
        raise IncompleteOracleResponse("world state is not a JSON object", raw_text=raw_text)
    missing = [key for key in ("player", "world") if not isinstance(raw.get(key), dict)]
    if missing:
        # Patch-style replies carry only the changed branch.
        raise IncompleteOracleResponse(
            f"world state is missing {', '.join(missing)}; a full state is required",
            raw_text=raw_text,
        )
    return GameKnowledge.from_dict(raw)


def check_player_location(gkn: GameKnowledge, raw_text: str | None = None) -> None:
    if gkn.player_location() is None:
        raise InvalidWorldState(
            f"player locationId {gkn.player.location_id!r} is not one of the world locations "
            f"{sorted(gkn.world.locations)}",
            raw_text=raw_text,
        )


def decode_turn_reply(raw_text: str | None) -> tuple[str, GameKnowledge]:
    payload = decode_oracle_reply(raw_text, TURN_REPLY_KEYS)
    narrative = payload["narrative"]
    if not isinstance(narrative, str):
        raise IncompleteOracleResponse("narrative is not a string", raw_text=raw_text)
    gkn = decode_game_knowledge(payload["updatedGkn"], raw_text)
    check_player_location(gkn, raw_text)
    return narrative, gkn


def decode_story_reply(raw_text: str | None) -> tuple[GameKnowledge, str]:
    payload = decode_oracle_reply(raw_text, STORY_REPLY_KEYS)
    hook = payload["initialHook"]
    if not isinstance(hook, str):
        raise IncompleteOracleResponse("initialHook is not a string", raw_text=raw_text)
    gkn = decode_game_knowledge(payload["gkn"], raw_text)
    return gkn, hook
