from typing import List, Dict, Optional, Any, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator
from .board import BodyTemperature, DEFAULT_WORLD_NAME
from .statistics_engine import PlayerStatistics

Terrain = Literal[
    "forest", "grassland", "desert", "swamp", "mountain", "cave", "jungle",
    "volcanic", "ocean", "tundra", "beach", "mesa", "mushroom_forest", "city",
    "space_station", "underwater", "wall", "floptropica",
]

Persona = Literal["none", "explorer", "warrior", "artisan"]
NarrativeLength = Literal["short", "medium", "long", "detailed"]

# --- WORLD ---

class Enemy(BaseModel):
    type: str
    hp: int = 10
    damage: int = 2
    behavior: Literal["aggressive", "passive", "defensive", "territorial"] = "aggressive"
    size: Literal["small", "medium", "large"] = "medium"

class ChunkItem(BaseModel):
    name: str
    description: str = ""
    quantity: int = 1
    tier: int = 1

class Chunk(BaseModel):
    x: int = 0
    y: int = 0
    terrain: Terrain = "grassland"
    description: str = ""
    items: List[ChunkItem] = Field(default_factory=list)
    npcs: List[str] = Field(default_factory=list)
    enemy: Optional[Enemy] = None
    explored: bool = False

    # Environmental scalars (0-100 unless noted)
    vegetation_density: float = 50
    moisture: float = 50
    elevation: float = 0
    light_level: float = 60  # -100 to 100
    danger_level: float = 0
    magic_affinity: float = 0
    human_presence: float = 0
    predator_presence: float = 0
    temperature: Optional[float] = None  # Celsius
    wind_level: Optional[float] = None
    soil_type: Optional[str] = None
    game_time: Optional[int] = None  # minutes since world start

class World(BaseModel):
    chunks: Dict[str, Chunk] = Field(default_factory=dict)

    @staticmethod
    def key(x: int, y: int) -> str:
        return f"{x},{y}"

    def get_chunk_at(self, x: int, y: int) -> Optional[Chunk]:
        return self.chunks.get(self.key(x, y))

    def put_chunk(self, chunk: Chunk):
        self.chunks[self.key(chunk.x, chunk.y)] = chunk

class Position(BaseModel):
    x: int = 0
    y: int = 0

# --- PLAYER ---

class PlayerItem(BaseModel):
    name: str
    quantity: int = 1
    tier: int = 1
    category: Optional[str] = None

class Equipment(BaseModel):
    weapon: Optional[PlayerItem] = None
    armor: Optional[PlayerItem] = None
    accessory: Optional[PlayerItem] = None

class PlayerLevel(BaseModel):
    level: int = 1
    experience: int = 0

class UnlockProgress(BaseModel):
    kills: int = 0
    damage_spells: int = 0
    moves: int = 0

class PlayerStatus(BaseModel):
    hp: float = 100
    stamina: float = 50
    max_stamina: float = 100
    hunger: float = 0
    mana: float = 0

    items: List[PlayerItem] = Field(default_factory=list)
    quests: List[str] = Field(default_factory=list)
    skills: List[Dict[str, Any]] = Field(default_factory=list)
    pets: List[Dict[str, Any]] = Field(default_factory=list)
    persona: Persona = "explorer"
    unlock_progress: UnlockProgress = Field(default_factory=UnlockProgress)
    player_level: PlayerLevel = Field(default_factory=PlayerLevel)
    quests_completed: int = 0
    equipment: Equipment = Field(default_factory=Equipment)
    attributes: Dict[str, float] = Field(default_factory=dict)
    daily_action_log: List[str] = Field(default_factory=list)
    quest_hints: Dict[str, str] = Field(default_factory=dict)
    artifact_collection: List[str] = Field(default_factory=list)
    journal: Dict[str, str] = Field(default_factory=dict)

    body_temperature: float = BodyTemperature.NORMAL
    statuses: List[str] = Field(default_factory=list)

    # Tick bookkeeping
    hunger_tick_counter: int = 0
    hp_regen_tick_counter: int = 0
    stamina_regen_tick_counter: int = 0
    mana_regen_tick_counter: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("player_level", mode="before")
    @classmethod
    def _legacy_level(cls, value):
        # Old saves stored the level as a bare number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return {"level": int(value), "experience": 0}
        return value

class CombatStats(BaseModel):
    health: float = 100
    max_health: float = 100
    attack: float = 10
    defense: float = 5
    speed: float = 1
    critical_chance: float = 0
    critical_damage: float = 1.5

class Message(BaseModel):
    text: str
    type: str = "system"

def normalize_player_status(data: Optional[Dict[str, Any]]) -> PlayerStatus:
    """Builds a complete PlayerStatus from a partial or legacy save blob."""
    if not data:
        return PlayerStatus()
    clean = {k: v for k, v in data.items() if v is not None}
    return PlayerStatus(**clean)

# --- SAVE STATE ---

class WildlandsState(BaseModel):
    version: str = "1.0"
    world_name: str = DEFAULT_WORLD_NAME
    language: str = "en"
    narrative_length: NarrativeLength = "medium"
    playback_mode: Literal["always", "occasional", "off"] = "occasional"

    turn: int = 0
    game_time: int = 0  # minutes since the adventure began
    weather: str = "CLEAR"
    weather_seed: int = 1
    world_seed: int = 1
    player: PlayerStatus = Field(default_factory=PlayerStatus)
    player_position: Position = Field(default_factory=Position)
    world: World = Field(default_factory=World)
    statistics: PlayerStatistics = Field(default_factory=PlayerStatistics)
    narrative_log: List[str] = Field(default_factory=list)
    known_recipes: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def current_chunk(self) -> Optional[Chunk]:
        return self.world.get_chunk_at(self.player_position.x, self.player_position.y)

    def recent_narrative(self, count: int = 5) -> List[str]:
        return self.narrative_log[-count:]
