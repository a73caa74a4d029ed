"""
LLM-backed flows. Each renders its prompt, hands the ordered model list to
`ai.generate_structured` and returns the validated output model.

Game rules stay in code: fusion outcomes, emoji assignment and the quest
prefix are decided here, the model only writes the words.
"""
import random
import logging
from typing import Awaitable, Callable, Optional, Sequence
from . import prompts
from .board import FusionRules
from .schemas import (
    FuseItemsInput, FuseItemsOutput,
    JournalEntryInput, JournalEntryOutput,
    NarrativeInput, NarrativeOutput,
    NewQuestInput, NewQuestOutput,
    NewRecipeInput, Recipe,
    QuestHintInput, QuestHintOutput,
)

LEGENDARY_PREFIX = "[Legendary] "
NO_TOOL_NARRATIVE = "You need a tool to properly work and combine the materials. Your attempt fails."

# Keywords in the item name win over the category.
EMOJI_KEYWORDS = {
    "pickaxe": "⛏️", "axe": "🪓", "hammer": "🔨", "sword": "⚔️", "blade": "🔪", "knife": "🔪",
    "dagger": "🔪", "bow": "🏹", "arrow": "🏹", "shield": "🛡️",
    "potion": "🧪", "elixir": "🧪", "vial": "🧪", "flask": "🧪",
    "herb": "🌿", "leaf": "🍃", "flower": "🌸", "root": "🌱", "moss": "🌿",
    "wood": "🪵", "log": "🪵", "branch": "🌿", "plank": "🪵",
    "stone": "🪨", "rock": "🪨", "pebble": "🪨", "ore": "⛏️", "ingot": "🔩",
    "gem": "💎", "crystal": "💎", "ruby": "💎", "sapphire": "💎",
    "meat": "🍖", "fruit": "🍎", "berry": "🍓", "fish": "🐟", "bread": "🍞", "egg": "🥚",
    "hide": "🩹", "pelt": "🩹", "leather": "👜", "scale": "🐉",
    "scroll": "📜", "book": "📖", "tome": "📖", "map": "🗺️", "key": "🗝️",
    "fire": "🔥", "flame": "🔥", "torch": "🔥", "lava": "🌋", "magma": "🌋",
    "water": "💧", "ice": "❄️", "snow": "❄️", "frost": "❄️",
    "lightning": "⚡", "storm": "⛈️", "wind": "💨",
    "heart": "❤️", "soul": "👻", "spirit": "👻",
    "bone": "🦴", "skull": "💀", "fang": "🦷", "tooth": "🦷", "claw": "🐾",
    "cloth": "🧣", "silk": "🕸️", "thread": "🧵", "string": "🧵", "rope": "🪢",
    "seed": "🌱",
}

EMOJI_CATEGORIES = {
    "weapon": "⚔️",
    "material": "🧱",
    "energy source": "⚡",
    "food": "🍴",
    "data": "📜",
    "tool": "🛠️",
    "equipment": "🛡️",
    "support": "❤️‍🩹",
    "magic": "✨",
    "fusion": "🌀",
}

DEFAULT_EMOJI = "❓"

def get_emoji_for_item(name: str, category: str) -> str:
    lower_name = name.lower()
    for keyword, emoji in EMOJI_KEYWORDS.items():
        if keyword in lower_name:
            return emoji
    return EMOJI_CATEGORIES.get((category or "").lower(), DEFAULT_EMOJI)

# --- NARRATIVE ---

async def generate_narrative(ai, data: NarrativeInput, models: Sequence[str], game_id: str = None) -> NarrativeOutput:
    system_prompt, user_input = prompts.compose_narrative(data)
    return await ai.generate_structured(models, system_prompt, user_input, NarrativeOutput, game_id=game_id)

# --- RECIPES ---

async def generate_new_recipe(
    ai,
    data: NewRecipeInput,
    models: Sequence[str],
    game_id: str = None,
    on_saved: Optional[Callable[[Recipe], Awaitable[None]]] = None
) -> Recipe:
    """
    Invents a recipe, then assigns the result's emoji from its catalog
    category (Material when the result is a brand new item). `on_saved`
    persists it; a failing save does not cost the player the recipe.
    """
    system_prompt, user_input = prompts.compose_new_recipe(data)
    recipe = await ai.generate_structured(models, system_prompt, user_input, Recipe, game_id=game_id)

    known = next((item for item in data.custom_item_catalog if item.name == recipe.result.name), None)
    category = known.category if known else "Material"
    recipe = recipe.model_copy(update={
        "result": recipe.result.model_copy(update={"emoji": get_emoji_for_item(recipe.result.name, category)})
    })

    if on_saved is not None:
        try:
            await on_saved(recipe)
            logging.info(f"Flows: Saved new recipe '{recipe.result.name}'")
        except Exception as e:
            logging.error(f"Flows: Failed to save recipe '{recipe.result.name}': {e}")

    return recipe

# --- QUESTS ---

async def generate_legendary_quest(ai, data: NewQuestInput, models: Sequence[str], game_id: str = None) -> NewQuestOutput:
    system_prompt, user_input = prompts.compose_legendary_quest(data)
    output = await ai.generate_structured(models, system_prompt, user_input, NewQuestOutput, game_id=game_id)
    quest = output.new_quest.strip()
    if not quest.startswith(LEGENDARY_PREFIX):
        quest = LEGENDARY_PREFIX + quest
    return NewQuestOutput(new_quest=quest)

async def provide_quest_hint(ai, data: QuestHintInput, models: Sequence[str], game_id: str = None) -> QuestHintOutput:
    system_prompt, user_input = prompts.compose_quest_hint(data)
    return await ai.generate_structured(models, system_prompt, user_input, QuestHintOutput, game_id=game_id)

# --- JOURNAL ---

async def generate_journal_entry(ai, data: JournalEntryInput, models: Sequence[str], game_id: str = None) -> JournalEntryOutput:
    system_prompt, user_input = prompts.compose_journal_entry(data)
    return await ai.generate_structured(models, system_prompt, user_input, JournalEntryOutput, game_id=game_id)

# --- FUSION ---

def has_tool(data: FuseItemsInput) -> bool:
    for item in data.items_to_fuse:
        definition = data.custom_item_definitions.get(item.name)
        category = definition.category if definition else item.category
        if category == "Tool":
            return True
    return False

def decide_fusion_outcome(data: FuseItemsInput, roll: float = None):
    """
    Returns (outcome, degraded_tier). `roll` is in [0, 1); success when
    roll * 100 is under the clamped chance.
    """
    chance = max(
        FusionRules.MIN_SUCCESS_CHANCE,
        min(FusionRules.MAX_SUCCESS_CHANCE, FusionRules.BASE_SUCCESS_CHANCE + data.environmental_modifiers.success_chance_bonus),
    )
    if roll is None:
        roll = random.random()
    if roll * 100 < chance:
        return "success", None

    lowest_tier = min(item.tier for item in data.items_to_fuse)
    if lowest_tier <= 1:
        return "totalLoss", None
    return "degraded", lowest_tier - 1

async def fuse_items(
    ai,
    data: FuseItemsInput,
    models: Sequence[str],
    game_id: str = None,
    roll: float = None
) -> FuseItemsOutput:
    if not has_tool(data):
        return FuseItemsOutput(outcome="totalLoss", narrative=NO_TOOL_NARRATIVE)

    outcome, degraded_tier = decide_fusion_outcome(data, roll)
    logging.info(f"Flows: Fusion of {[i.name for i in data.items_to_fuse]} -> {outcome}")

    def needs_item(answer: FuseItemsOutput):
        if outcome != "totalLoss" and answer.result_item is None:
            raise ValueError(f"No result item for a {outcome} fusion")

    system_prompt, user_input = prompts.compose_fuse_items(data, outcome, degraded_tier)
    output = await ai.generate_structured(
        models, system_prompt, user_input, FuseItemsOutput, game_id=game_id, check=needs_item
    )

    # The model narrates; it does not get to change the verdict
    result_item = output.result_item
    if outcome == "totalLoss":
        result_item = None
    elif result_item is not None:
        update = {}
        if outcome == "degraded":
            update["tier"] = degraded_tier
        else:
            update["category"] = "Fusion"
        if not result_item.emoji:
            update["emoji"] = get_emoji_for_item(result_item.name, update.get("category", result_item.category))
        result_item = result_item.model_copy(update=update)

    return FuseItemsOutput(outcome=outcome, narrative=output.narrative, result_item=result_item)
