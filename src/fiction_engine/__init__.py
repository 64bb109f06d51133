from .config import EngineConfig
from .core.engine import FALLBACK_NARRATIVE, OOC_BANNER, GameEngine
from .core.errors import FictionEngineError
from .core.ports import NarrativeOraclePort
from .core.types import CallerIdentity, GameKnowledge, StoryCreated, TurnResult
from .handlers import create_new_story, process_player_turn

__all__ = [
    "GameEngine",
    "EngineConfig",
    "FALLBACK_NARRATIVE",
    "OOC_BANNER",
    "FictionEngineError",
    "NarrativeOraclePort",
    "CallerIdentity",
    "GameKnowledge",
    "StoryCreated",
    "TurnResult",
    "create_new_story",
    "process_player_turn",
]
