from __future__ import annotations

from .types import NPC_DISPOSITIONS, STORY_GENRES

FORBIDDEN_NPC_NAMES = (
    "Silas",
    "Elias",
    "Marcus",
    "Alistair",
    "Jax",
    "Elara",
    "Chloe",
    "Zoe",
    "Thorne",
    "Blackthorne",
    "Blackwood",
    "Armitage",
    "Albright",
    "Finch",
    "Vance",
    "Voss",
    "Chen",
    "Patel",
)


def _quoted_union(values) -> str:
    return " | ".join(f"'{value}'" for value in values)


STORY_SCHEMA_DEFINITION = f"""
type NpcDisposition = {_quoted_union(NPC_DISPOSITIONS)};

type StoryGenre = {_quoted_union(STORY_GENRES)};

interface Npc {{
  id: string;
  name: string;
  isKeyNpc: boolean;
  locationId: string;
  motivations: string[];
  personalityTags: string[];
  speechStyleCues: string;
  agenda: string;
  disposition: NpcDisposition;
  knowledge: Record<string, any>;
  currentPlan?: {{
    description: string;
    status: 'active' | 'failed' | 'succeeded';
  }};
}}

interface Location {{
  id: string;
  name: string;
  description: string;
  exits: Record<string, {{ toLocationId: string, description: string, isLocked?: boolean, keyId?: string }}>;
  items: string[];
}}

interface Item {{
  id: string;
  name: string;
  description: string;
}}

interface Gkn {{
  player: {{
    name: string;
    locationId: string;
    inventory: [];
  }};
  world: {{
    genre: StoryGenre;
    coreConflict: string;
    locations: Record<string, Location>;
    items: Record<string, Item>;
    npcs: Record<string, Npc>;
    fluidCountdown: {{
      description: string;
      stages: string[];
      currentStage: 0;
    }};
    discoverableInfo: Record<string, {{ description: string, isDiscovered: false }}>;
    storyFlags: {{}};
  }};
  turnCount: 0;
}}
"""

STORY_GENERATOR_PREAMBLE = (
    "### ROLE AND GOAL ###\n"
    "You are a master world-builder and story-setup generator. Your sole purpose is to receive a "
    "story seed and a genre, and output a complete, valid JSON object that represents the initial "
    "state of an interactive fiction game together with its opening paragraph. You must adhere "
    "strictly to the provided TypeScript interfaces and constraints.\n"
)

GAME_MASTER_PREAMBLE = (
    "### ROLE AND GOAL ###\n"
    "You are the Game Master (GM), an advanced AI for an interactive fiction game. Your goal is to "
    "process a player's action within the context of the current game state. You must analyze the "
    "player's input, determine the consequences based on the game world's rules and narrative "
    "logic, update the game state accordingly, and generate a compelling narrative description of "
    "the outcome.\n"
)


def build_story_prompt(seed: str, genre: str, player_name: str) -> str:
    forbidden = ", ".join(FORBIDDEN_NPC_NAMES)
    return (
        f"{STORY_GENERATOR_PREAMBLE}\n"
        "### CONSTRAINTS ###\n"
        "1.  **JSON ONLY:** Your output MUST be a single, raw JSON object. Do not wrap it in markdown "
        "backticks or include any explanatory text before or after it.\n"
        "2.  **ENVELOPE:** The object has exactly two top-level keys: `gkn` (the initial world state) "
        "and `initialHook` (a compelling opening paragraph that sets the scene at the player's "
        "starting location and stops naturally, without asking \"What do you do?\").\n"
        "3.  **STRICT SCHEMA:** `gkn` must perfectly match the `Gkn` TypeScript interface below. Every "
        "field is required unless marked as optional (with a '?').\n"
        "4.  **CREATIVE & CONSISTENT:** The generated world, characters, and conflicts must be "
        "creative, internally consistent, and appropriate for the specified genre.\n"
        "5.  **FLAWED NPCS:** NPCs must be given common human flaws, annoying traits, or minor vices "
        "as specified in their `personalityTags`. Avoid perfect or one-dimensional characters.\n"
        f"6.  **FORBIDDEN NAMES:** Do not use any of the following names for NPCs: [{forbidden}].\n"
        "7.  **SCOPE:** Keep the initial setup contained. 1-2 key NPCs, 1-2 other NPCs, and 3-4 key "
        "locations is ideal. The conflict should be personal or local, not world-ending.\n"
        "8.  **PLAYER START:** `gkn.player.locationId` must be one of the keys in "
        "`gkn.world.locations`. The player's inventory must start empty.\n"
        "\n"
        "### TYPESCRIPT INTERFACE (SCHEMA) ###\n"
        "// Use this as your guide. Do not output this schema in your response.\n"
        f"{STORY_SCHEMA_DEFINITION}\n"
        "### USER REQUEST ###\n"
        f'-   **Genre:** "{genre}"\n'
        f'-   **Story Seed:** "{seed}"\n'
        f'-   **Player Name:** "{player_name}"\n'
        "\n"
        "### YOUR OUTPUT (A SINGLE, RAW JSON OBJECT ONLY) ###\n"
        '// Example format: { "gkn": { ...full initial state... }, "initialHook": "The rain has not '
        'stopped for three days..." }\n'
    )


def build_turn_prompt(encoded_state: str, player_input: str) -> str:
    return (
        f"{GAME_MASTER_PREAMBLE}\n"
        "### YOUR TASK ###\n"
        "1.  **Analyze the Current State:** Review the provided current game state JSON. This is the "
        "single source of truth for the entire game world.\n"
        "2.  **Analyze the Player's Input:** Understand the player's intent from the player input.\n"
        "3.  **Apply World Logic & Rules:**\n"
        "    *   Is the action possible? (Does the player have the item they're trying to use? Is the "
        "exit they're trying to take in their current location?)\n"
        "    *   What is the logical outcome? (If they unlock a door, the `isLocked` flag should "
        "become `false`.)\n"
        "    *   How do NPCs react? Based on their personality and agenda, what do they say or do in "
        "response?\n"
        "    *   Does the fluid countdown advance? Move `currentStage` forward when time or events "
        "push the core conflict closer to its next stage.\n"
        "4.  **Create an Updated Game State:** Generate a complete, new JSON object representing the "
        "world *after* the player's action. This new object MUST be a full state object with "
        "`player`, `world` and `turnCount`. **Do not just send the changed parts.**\n"
        "5.  **Write the Narrative:** Describe the outcome of the player's action in a rich, engaging, "
        "and descriptive paragraph. This is what the player will read.\n"
        "6.  **Respond in JSON:** Your final output MUST be a single, raw JSON object with two "
        "top-level keys: `narrative` and `updatedGkn`.\n"
        "\n"
        "### CURRENT GAME STATE ###\n"
        f"{encoded_state}\n"
        "\n"
        "### PLAYER INPUT ###\n"
        f'"{player_input}"\n'
        "\n"
        "### YOUR OUTPUT (A SINGLE, RAW JSON OBJECT ONLY) ###\n"
        '// Example format: { "narrative": "You successfully open the door...", "updatedGkn": '
        "{ ...full game state object... } }\n"
    )
