from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]

ANONYMOUS_USER_ID = "anonymous"
DEFAULT_PLAYER_NAME = "Kaelen"

STORY_GENRES = (
    "Adventure",
    "High Fantasy",
    "Horror",
    "Gritty Realism",
    "Survival",
    "Spy Thriller",
    "Teen Drama",
    "Cyberpunk",
    "Sci-Fi",
)
NPC_DISPOSITIONS = ("friendly", "allied", "neutral", "wary", "suspicious", "hostile", "deceived")
PLAN_STATUSES = ("active", "failed", "succeeded")


def _text(raw: Any, default: str = "") -> str:
    if raw is None:
        return default
    return str(raw)


def _text_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(value) for value in raw]


def _mapping(raw: Any) -> dict[str, Any]:
    return dict(raw) if isinstance(raw, dict) else {}


def _int(raw: Any, default: int = 0) -> int:
    if isinstance(raw, bool):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return default


@dataclass
class Item:
    id: str
    name: str
    description: str = ""

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> "Item":
        data = _mapping(raw)
        return cls(
            id=_text(data.get("id"), key),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass
class Exit:
    to_location_id: str
    description: str = ""
    is_locked: Optional[bool] = None
    key_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "Exit":
        data = _mapping(raw)
        is_locked = data.get("isLocked")
        key_id = data.get("keyId")
        return cls(
            to_location_id=_text(data.get("toLocationId")),
            description=_text(data.get("description")),
            is_locked=bool(is_locked) if is_locked is not None else None,
            key_id=str(key_id) if key_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"toLocationId": self.to_location_id, "description": self.description}
        if self.is_locked is not None:
            out["isLocked"] = self.is_locked
        if self.key_id is not None:
            out["keyId"] = self.key_id
        return out


@dataclass
class Location:
    id: str
    name: str
    description: str = ""
    exits: dict[str, Exit] = field(default_factory=dict)
    items: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> "Location":
        data = _mapping(raw)
        return cls(
            id=_text(data.get("id"), key),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            exits={str(k): Exit.from_dict(v) for k, v in _mapping(data.get("exits")).items()},
            items=_text_list(data.get("items")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "exits": {key: ex.to_dict() for key, ex in self.exits.items()},
            "items": list(self.items),
        }


@dataclass
class NpcPlan:
    description: str
    status: str = "active"

    @classmethod
    def from_dict(cls, raw: Any) -> "NpcPlan":
        data = _mapping(raw)
        return cls(description=_text(data.get("description")), status=_text(data.get("status"), "active"))

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "status": self.status}


@dataclass
class Npc:
    id: str
    name: str
    is_key_npc: bool = False
    location_id: str = ""
    motivations: list[str] = field(default_factory=list)
    personality_tags: list[str] = field(default_factory=list)
    speech_style_cues: str = ""
    agenda: str = ""
    disposition: str = "neutral"
    knowledge: dict[str, JSONValue] = field(default_factory=dict)
    current_plan: Optional[NpcPlan] = None

    @classmethod
    def from_dict(cls, key: str, raw: Any) -> "Npc":
        data = _mapping(raw)
        plan = data.get("currentPlan")
        return cls(
            id=_text(data.get("id"), key),
            name=_text(data.get("name")),
            is_key_npc=bool(data.get("isKeyNpc", False)),
            location_id=_text(data.get("locationId")),
            motivations=_text_list(data.get("motivations")),
            personality_tags=_text_list(data.get("personalityTags")),
            speech_style_cues=_text(data.get("speechStyleCues")),
            agenda=_text(data.get("agenda")),
            disposition=_text(data.get("disposition"), "neutral"),
            knowledge=_mapping(data.get("knowledge")),
            current_plan=NpcPlan.from_dict(plan) if isinstance(plan, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "isKeyNpc": self.is_key_npc,
            "locationId": self.location_id,
            "motivations": list(self.motivations),
            "personalityTags": list(self.personality_tags),
            "speechStyleCues": self.speech_style_cues,
            "agenda": self.agenda,
            "disposition": self.disposition,
            "knowledge": dict(self.knowledge),
        }
        if self.current_plan is not None:
            out["currentPlan"] = self.current_plan.to_dict()
        return out


@dataclass
class FluidCountdown:
    description: str = ""
    stages: list[str] = field(default_factory=list)
    current_stage: int = 0

    @classmethod
    def from_dict(cls, raw: Any) -> "FluidCountdown":
        data = _mapping(raw)
        return cls(
            description=_text(data.get("description")),
            stages=_text_list(data.get("stages")),
            current_stage=max(_int(data.get("currentStage")), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "stages": list(self.stages), "currentStage": self.current_stage}


@dataclass
class DiscoverableInfo:
    description: str
    is_discovered: bool = False

    @classmethod
    def from_dict(cls, raw: Any) -> "DiscoverableInfo":
        data = _mapping(raw)
        return cls(description=_text(data.get("description")), is_discovered=bool(data.get("isDiscovered", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "isDiscovered": self.is_discovered}


@dataclass
class PlayerState:
    name: str
    location_id: str
    inventory: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> "PlayerState":
        data = _mapping(raw)
        return cls(
            name=_text(data.get("name")),
            location_id=_text(data.get("locationId")),
            inventory=_text_list(data.get("inventory")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "locationId": self.location_id, "inventory": list(self.inventory)}


@dataclass
class WorldState:
    genre: str
    core_conflict: str = ""
    locations: dict[str, Location] = field(default_factory=dict)
    items: dict[str, Item] = field(default_factory=dict)
    npcs: dict[str, Npc] = field(default_factory=dict)
    fluid_countdown: FluidCountdown = field(default_factory=FluidCountdown)
    discoverable_info: dict[str, DiscoverableInfo] = field(default_factory=dict)
    story_flags: dict[str, JSONValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "WorldState":
        data = _mapping(raw)
        return cls(
            genre=_text(data.get("genre")),
            core_conflict=_text(data.get("coreConflict")),
            locations={str(k): Location.from_dict(str(k), v) for k, v in _mapping(data.get("locations")).items()},
            items={str(k): Item.from_dict(str(k), v) for k, v in _mapping(data.get("items")).items()},
            npcs={str(k): Npc.from_dict(str(k), v) for k, v in _mapping(data.get("npcs")).items()},
            fluid_countdown=FluidCountdown.from_dict(data.get("fluidCountdown")),
            discoverable_info={
                str(k): DiscoverableInfo.from_dict(v) for k, v in _mapping(data.get("discoverableInfo")).items()
            },
            story_flags=_mapping(data.get("storyFlags")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "genre": self.genre,
            "coreConflict": self.core_conflict,
            "locations": {key: loc.to_dict() for key, loc in self.locations.items()},
            "items": {key: item.to_dict() for key, item in self.items.items()},
            "npcs": {key: npc.to_dict() for key, npc in self.npcs.items()},
            "fluidCountdown": self.fluid_countdown.to_dict(),
            "discoverableInfo": {key: info.to_dict() for key, info in self.discoverable_info.items()},
            "storyFlags": dict(self.story_flags),
        }


@dataclass
class GameKnowledge:
    player: PlayerState
    world: WorldState
    turn_count: int = 0

    @classmethod
    def from_dict(cls, raw: Any) -> "GameKnowledge":
        data = _mapping(raw)
        return cls(
            player=PlayerState.from_dict(data.get("player")),
            world=WorldState.from_dict(data.get("world")),
            turn_count=max(_int(data.get("turnCount")), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"player": self.player.to_dict(), "world": self.world.to_dict(), "turnCount": self.turn_count}

    def player_location(self) -> Location | None:
        return self.world.locations.get(self.player.location_id)


@dataclass
class GameSession:
    session_id: str
    user_id: str
    initial_hook: str
    last_modified: datetime
    game_knowledge: GameKnowledge
    row_version: int = 1


@dataclass(frozen=True)
class CallerIdentity:
    uid: str


@dataclass
class TurnResult:
    narrative: str
    outcome: str = "applied"


@dataclass
class StoryCreated:
    session_id: str
    initial_hook: str
