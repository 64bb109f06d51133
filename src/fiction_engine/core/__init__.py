from .codec import (
    decode_oracle_reply,
    decode_story_reply,
    decode_turn_reply,
    encode_game_knowledge,
    strip_code_fences,
)
from .engine import FALLBACK_NARRATIVE, OOC_BANNER, GameEngine
from .errors import (
    ConcurrentTurnError,
    FictionEngineError,
    IncompleteOracleResponse,
    InternalError,
    InvalidArgumentError,
    InvalidWorldState,
    MalformedOracleResponse,
    NotFoundError,
    OracleResponseError,
    PermissionDeniedError,
)
from .ports import NarrativeOraclePort
from .types import (
    ANONYMOUS_USER_ID,
    STORY_GENRES,
    CallerIdentity,
    GameKnowledge,
    GameSession,
    StoryCreated,
    TurnResult,
)

__all__ = [
    "GameEngine",
    "FALLBACK_NARRATIVE",
    "OOC_BANNER",
    "NarrativeOraclePort",
    "decode_oracle_reply",
    "decode_story_reply",
    "decode_turn_reply",
    "encode_game_knowledge",
    "strip_code_fences",
    "FictionEngineError",
    "InvalidArgumentError",
    "NotFoundError",
    "PermissionDeniedError",
    "InternalError",
    "ConcurrentTurnError",
    "OracleResponseError",
    "MalformedOracleResponse",
    "IncompleteOracleResponse",
    "InvalidWorldState",
    "ANONYMOUS_USER_ID",
    "STORY_GENRES",
    "CallerIdentity",
    "GameKnowledge",
    "GameSession",
    "StoryCreated",
    "TurnResult",
]
