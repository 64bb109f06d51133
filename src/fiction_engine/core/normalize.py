from __future__ import annotations

from typing import Any, Mapping

from .errors import InvalidArgumentError, PermissionDeniedError
from .types import ANONYMOUS_USER_ID, STORY_GENRES, CallerIdentity


def require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"The call must include a non-empty '{field_name}'.")
    return value


def normalize_genre(value: Any) -> str:
    genre = require_text(value, "genre").strip()
    for known in STORY_GENRES:
        if genre.lower() == known.lower():
            return known
    raise InvalidArgumentError(
        f"Unknown genre {genre!r}. Expected one of: {', '.join(STORY_GENRES)}."
    )


def normalize_player_name(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def is_out_of_character(player_input: str) -> bool:
    text = (player_input or "").strip()
    return text.startswith("[") and text.endswith("]")


def coerce_caller(auth: CallerIdentity | Mapping[str, Any] | str | None) -> CallerIdentity | None:
    if auth is None or isinstance(auth, CallerIdentity):
        return auth
    if isinstance(auth, str):
        uid = auth
    elif isinstance(auth, Mapping):
        uid = auth.get("uid")
    else:
        uid = getattr(auth, "uid", None)
    uid = str(uid or "").strip()
    return CallerIdentity(uid=uid) if uid else None


def owner_for(caller: CallerIdentity | None) -> str:
    return caller.uid if caller is not None else ANONYMOUS_USER_ID


def check_session_access(owner_id: str, caller: CallerIdentity | None) -> None:
    if owner_id == ANONYMOUS_USER_ID:
        return
    if caller is None or caller.uid != owner_id:
        raise PermissionDeniedError("You do not have permission to access this game session.")
