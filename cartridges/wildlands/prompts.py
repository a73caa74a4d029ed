import os
import json
from typing import Tuple
from jinja2 import Environment, FileSystemLoader
from . import schemas

# --- JINJA2 SETUP ---
# Templates live in the 'prompts/' subdirectory relative to this file.
_CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
_PROMPTS_DIR = os.path.join(_CURRENT_DIR, "prompts")

_ENV = Environment(
    loader=FileSystemLoader(_PROMPTS_DIR),
    trim_blocks=True,
    lstrip_blocks=True
)
_ENV.filters["json"] = lambda value: json.dumps(value, ensure_ascii=False)

def render(template_name: str, **kwargs) -> str:
    """Helper to render a template by name with given context."""
    template = _ENV.get_template(template_name)
    return template.render(**kwargs)

def _system(role: str, language: str) -> str:
    return render("system.md.j2", role=role, language=language)

# --- PROMPT ACCESSORS ---
# Each returns (system_prompt, user_input) for AIEngine.generate_structured.

def compose_narrative(data: schemas.NarrativeInput) -> Tuple[str, str]:
    return (
        _system("game_master", data.language),
        render(
            "narrative.md.j2",
            world_name=data.world_name,
            player_action=data.player_action,
            player_status=data.player_status.model_dump(mode="json"),
            chunk=data.current_chunk.model_dump(mode="json"),
            recent_narrative=data.recent_narrative,
            mood_tags=data.mood_tags,
            weather=data.weather,
            narrative_length=data.narrative_length,
        ),
    )

def compose_new_recipe(data: schemas.NewRecipeInput) -> Tuple[str, str]:
    return (
        _system("artisan", data.language),
        render(
            "new_recipe.md.j2",
            catalog=[item.model_dump(mode="json") for item in data.custom_item_catalog],
            existing_recipes=data.existing_recipes,
        ),
    )

def compose_legendary_quest(data: schemas.NewQuestInput) -> Tuple[str, str]:
    return (
        _system("quest_designer", data.language),
        render(
            "legendary_quest.md.j2",
            world_name=data.world_name,
            persona=data.player_status.persona,
            terrain=data.current_chunk.terrain,
            existing_quests=data.existing_quests,
        ),
    )

def compose_quest_hint(data: schemas.QuestHintInput) -> Tuple[str, str]:
    return _system("sage", data.language), render("quest_hint.md.j2", quest_text=data.quest_text)

def compose_journal_entry(data: schemas.JournalEntryInput) -> Tuple[str, str]:
    return (
        _system("chronicler", data.language),
        render(
            "journal_entry.md.j2",
            world_name=data.world_name,
            persona=data.player_persona,
            actions=data.daily_action_log,
        ),
    )

def compose_fuse_items(data: schemas.FuseItemsInput, outcome: str, degraded_tier: int = None) -> Tuple[str, str]:
    return (
        _system("forge_spirit", data.language),
        render(
            "fuse_items.md.j2",
            items=[item.model_dump(mode="json") for item in data.items_to_fuse],
            persona=data.player_persona,
            biome=data.environmental_context.biome,
            weather=data.environmental_context.weather,
            chaos_factor=data.environmental_modifiers.chaos_factor,
            affinity=data.environmental_modifiers.elemental_affinity,
            outcome=outcome,
            degraded_tier=degraded_tier,
        ),
    )
