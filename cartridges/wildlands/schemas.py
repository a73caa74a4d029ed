from typing import List, Dict, Optional, Literal
from pydantic import BaseModel, Field
from .models import Chunk, ChunkItem, Enemy, PlayerItem, PlayerStatus, Persona, NarrativeLength

ItemCategory = Literal[
    "Weapon", "Armor", "Accessory", "Tool",
    "Material", "Energy Source",
    "Food", "Consumable", "Potion",
    "Data", "Utility",
    "Magic", "Fusion", "Misc",
]

ElementalAffinity = Literal[
    "none", "fire", "water", "earth", "air", "electric", "ice", "nature", "dark", "light",
]

FuseOutcome = Literal["success", "degraded", "totalLoss"]

class GeneratedItem(BaseModel):
    name: str = Field(description="A unique and thematic name for the item.")
    description: str = Field(description="A flavorful, one-sentence description of the item.")
    emoji: str = ""
    category: ItemCategory = "Misc"
    sub_category: Optional[str] = None
    tier: int = Field(default=1, ge=1, le=6)

# --- NARRATIVE ---

class NarrativeInput(BaseModel):
    world_name: str
    player_action: str
    player_status: PlayerStatus
    current_chunk: Chunk
    recent_narrative: List[str] = Field(default_factory=list)
    mood_tags: List[str] = Field(default_factory=list)
    weather: str = "CLEAR"
    narrative_length: NarrativeLength = "medium"
    language: str = "en"

class ChunkUpdate(BaseModel):
    description: Optional[str] = None
    items: Optional[List[ChunkItem]] = None
    npcs: Optional[List[str]] = None
    enemy: Optional[Enemy] = None
    enemy_defeated: bool = False

class PlayerStatusUpdate(BaseModel):
    items: Optional[List[PlayerItem]] = None
    quests: Optional[List[str]] = None
    hp: Optional[float] = None

class NarrativeOutput(BaseModel):
    narrative: str = Field(description="2-4 sentences describing what happens next.")
    updated_chunk: Optional[ChunkUpdate] = None
    updated_player_status: Optional[PlayerStatusUpdate] = None
    system_message: Optional[str] = None

# --- RECIPES ---

class RecipeAlternative(BaseModel):
    name: str
    tier: int = Field(default=1, ge=1, le=3)

class RecipeIngredient(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    alternatives: List[RecipeAlternative] = Field(default_factory=list)

class RecipeResult(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    emoji: str = ""

class Recipe(BaseModel):
    result: RecipeResult
    ingredients: List[RecipeIngredient] = Field(min_length=1, max_length=5)
    description: str = ""
    required_tool: Optional[str] = None

class NewRecipeInput(BaseModel):
    custom_item_catalog: List[GeneratedItem]
    existing_recipes: List[str] = Field(default_factory=list)
    language: str = "en"

# --- QUESTS ---

class NewQuestInput(BaseModel):
    world_name: str
    player_status: PlayerStatus
    current_chunk: Chunk
    existing_quests: List[str] = Field(default_factory=list)
    language: str = "en"

class NewQuestOutput(BaseModel):
    new_quest: str

class QuestHintInput(BaseModel):
    quest_text: str
    language: str = "en"

class QuestHintOutput(BaseModel):
    hint: str

# --- JOURNAL ---

class JournalEntryInput(BaseModel):
    daily_action_log: List[str]
    player_persona: Persona = "none"
    world_name: str
    language: str = "en"

class JournalEntryOutput(BaseModel):
    journal_entry: str

# --- FUSION ---

class EnvironmentalContext(BaseModel):
    biome: str
    weather: str = "CLEAR"

class EnvironmentalModifiers(BaseModel):
    success_chance_bonus: float = 0
    elemental_affinity: ElementalAffinity = "none"
    chaos_factor: float = Field(default=0, ge=0, le=10)

class FuseItemsInput(BaseModel):
    items_to_fuse: List[PlayerItem] = Field(min_length=2, max_length=3)
    player_persona: Persona = "none"
    current_chunk: Chunk
    environmental_context: EnvironmentalContext
    environmental_modifiers: EnvironmentalModifiers = Field(default_factory=EnvironmentalModifiers)
    language: str = "en"
    custom_item_definitions: Dict[str, GeneratedItem] = Field(default_factory=dict)

class FuseItemsOutput(BaseModel):
    outcome: FuseOutcome
    narrative: str
    result_item: Optional[GeneratedItem] = None
