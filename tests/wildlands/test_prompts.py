import pytest
from pydantic import ValidationError
from cartridges.wildlands import prompts
from cartridges.wildlands.models import Chunk, PlayerItem, PlayerStatus
from cartridges.wildlands.schemas import (
    EnvironmentalContext, EnvironmentalModifiers, FuseItemsInput, GeneratedItem,
    JournalEntryInput, NarrativeInput, NewQuestInput, NewRecipeInput, QuestHintInput, Recipe,
)

def _fuse_input(**kwargs):
    return FuseItemsInput(
        items_to_fuse=[PlayerItem(name="Flint", tier=2), PlayerItem(name="Stone Hammer", category="Tool")],
        current_chunk=Chunk(terrain="volcanic"),
        environmental_context=EnvironmentalContext(biome="volcanic", weather="STORMY"),
        environmental_modifiers=EnvironmentalModifiers(chaos_factor=7, elemental_affinity="fire"),
        **kwargs,
    )

def test_system_prompt_names_the_language():
    system, user = prompts.compose_quest_hint(QuestHintInput(quest_text="Find the sunken bell", language="vi"))
    assert "'vi'" in system
    assert "wise guide" in system
    assert "Find the sunken bell" in user

def test_narrative_prompt():
    data = NarrativeInput(
        world_name="Ashfall",
        player_action="climb the ridge",
        player_status=PlayerStatus(hp=42),
        current_chunk=Chunk(terrain="mountain", description="A windswept ridge."),
        mood_tags=["Harsh", "Elevated"],
        weather="SNOWY",
        narrative_length="short",
    )
    system, user = prompts.compose_narrative(data)
    assert "Game Master" in system
    assert "# World: Ashfall" in user
    assert "climb the ridge" in user
    assert "A windswept ridge." in user
    assert "Harsh, Elevated" in user
    assert "SNOWY" in user
    assert "(The adventure has just begun.)" in user

def test_recipe_prompt_lists_catalog_and_existing():
    data = NewRecipeInput(
        custom_item_catalog=[GeneratedItem(name="Ember Moss", description="Warm to the touch.", category="Material")],
        existing_recipes=["Torch"],
    )
    system, user = prompts.compose_new_recipe(data)
    assert "artisan" in system
    assert "Ember Moss" in user
    assert '["Torch"]' in user

def test_legendary_quest_prompt():
    data = NewQuestInput(
        world_name="Ashfall",
        player_status=PlayerStatus(persona="warrior"),
        current_chunk=Chunk(terrain="desert"),
        existing_quests=["Find water"],
    )
    _, user = prompts.compose_legendary_quest(data)
    assert "persona 'warrior'" in user
    assert "desert area" in user
    assert "Find water" in user

def test_journal_prompt():
    data = JournalEntryInput(daily_action_log=["gathered berries", "fled a wolf"], world_name="Ashfall", player_persona="explorer")
    system, user = prompts.compose_journal_entry(data)
    assert "journal" in system
    assert "- gathered berries" in user
    assert "(explorer)" in user

def test_fuse_prompt_states_the_verdict():
    _, user = prompts.compose_fuse_items(_fuse_input(), "degraded", 1)
    assert "Outcome: 'degraded'" in user
    assert "tier 1" in user
    assert "fire" in user
    assert "7.0/10" in user

    _, user = prompts.compose_fuse_items(_fuse_input(), "totalLoss")
    assert "Do NOT create an item" in user

def test_fuse_input_needs_two_to_three_items():
    with pytest.raises(ValidationError):
        FuseItemsInput(
            items_to_fuse=[PlayerItem(name="Flint")],
            current_chunk=Chunk(),
            environmental_context=EnvironmentalContext(biome="forest"),
        )

def test_chaos_factor_is_bounded():
    with pytest.raises(ValidationError):
        EnvironmentalModifiers(chaos_factor=11)

def test_recipe_needs_ingredients():
    with pytest.raises(ValidationError):
        Recipe.model_validate({"result": {"name": "Rope"}, "ingredients": []})
