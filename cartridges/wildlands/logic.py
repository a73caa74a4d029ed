from typing import Dict, Any, List, Tuple, get_args
import random
from collections import Counter
import logging
from .models import (
    Chunk, ChunkItem, CombatStats, Enemy, Message, PlayerItem, WildlandsState,
)
from .board import GameBalance, TurnRules
from . import rng
from . import combat
from . import flows
from . import loot
from . import templates
from .audio import (
    AmbienceContext, AudioActionType, AudioEventContext,
    emit_audio_event_batch, select_ambience_layers,
)
from .effects import EffectEngine, process_all_effects
from .events import (
    CreatureKilledEvent, DamageEvent, EventLocation, ExplorationEvent,
    ItemCraftedEvent, ItemGatheredEvent, LevelUpEvent, game_events, parse_event,
)
from .mood import get_mood_tags, mood_name
from .narrative import build_template, select_dynamic_narrative, validate_placeholders
from .criteria import (
    criteria_report, evaluate_all_criteria, evaluate_any_criteria, parse_criteria,
)
from .schemas import (
    EnvironmentalContext, EnvironmentalModifiers, FuseItemsInput, GeneratedItem, ItemCategory,
    JournalEntryInput, NarrativeInput, NewQuestInput, NewRecipeInput, QuestHintInput, Recipe,
)
from .statistics_engine import StatisticsEngine
from .statistics_query import sanitize_statistics
from .weather import WeatherEngine

DIRECTIONS = {
    "north": (0, 1),
    "south": (0, -1),
    "east": (1, 0),
    "west": (-1, 0),
}

# Terrain → (weight, base temperature °C)
TERRAIN_TABLE = {
    "forest": (5, 16),
    "grassland": (5, 20),
    "jungle": (2, 28),
    "swamp": (2, 22),
    "desert": (2, 34),
    "mountain": (2, 4),
    "cave": (1, 12),
    "tundra": (1, -8),
}

CREATURES = {
    "forest": ["Wolf", "Wild Boar"],
    "grassland": ["Hyena", "Wild Boar"],
    "jungle": ["Jaguar", "Giant Spider"],
    "swamp": ["Crocodile", "Bog Leech"],
    "desert": ["Scorpion", "Sand Viper"],
    "mountain": ["Snow Leopard", "Mountain Goat"],
    "cave": ["Cave Bat", "Giant Spider"],
    "tundra": ["Polar Bear", "Wolf"],
}

FORAGE = {
    "forest": ("Sturdy Branch", "A straight, dry branch."),
    "grassland": ("Wild Herb", "A fragrant green herb."),
    "jungle": ("Jungle Fruit", "A heavy, sweet-smelling fruit."),
    "swamp": ("Bog Moss", "Damp moss that clings to everything."),
    "desert": ("Sharp Rock", "A flint-like stone with a keen edge."),
    "mountain": ("Iron Ore", "A rust-streaked lump of ore."),
    "cave": ("Glow Crystal", "A crystal that hums with faint light."),
    "tundra": ("Frost Lichen", "Brittle lichen that survives the cold."),
}

def generate_chunk(x: int, y: int, seed: int) -> Tuple[Chunk, int]:
    """Seeded chunk generation. Returns the chunk and the advanced seed."""
    terrains = list(TERRAIN_TABLE)
    terrain, seed = rng.weighted_random(seed, terrains, [TERRAIN_TABLE[t][0] for t in terrains])

    values = {}
    for key, low, high in (
        ("vegetation_density", 0, 100),
        ("moisture", 0, 100),
        ("elevation", 0, 100),
        ("light_level", -20, 100),
        ("danger_level", 0, 100),
        ("magic_affinity", 0, 100),
        ("human_presence", 0, 60),
        ("predator_presence", 0, 100),
        ("wind_level", 0, 100),
    ):
        values[key], seed = rng.random_int(seed, low, high)
    if terrain == "cave":
        values["light_level"] = min(values["light_level"], -10)

    jitter, seed = rng.random_int(seed, -4, 4)
    chunk = Chunk(x=x, y=y, terrain=terrain, temperature=TERRAIN_TABLE[terrain][1] + jitter, **values)

    roll, seed = rng.random(seed)
    if roll * 100 < chunk.danger_level * 0.5:
        index, seed = rng.random_int(seed, 0, len(CREATURES[terrain]) - 1)
        hp, seed = rng.random_int(seed, 8, 30)
        chunk.enemy = Enemy(type=CREATURES[terrain][index], hp=hp, damage=max(1, hp // 6))

    roll, seed = rng.random(seed)
    if roll < 0.6:
        name, description = FORAGE[terrain]
        quantity, seed = rng.random_int(seed, 1, 3)
        chunk.items.append(ChunkItem(name=name, description=description, quantity=quantity))

    return chunk, seed

def _player_combat_stats(state: WildlandsState) -> CombatStats:
    attrs = state.player.attributes
    weapon = state.player.equipment.weapon
    return CombatStats(
        health=state.player.hp,
        max_health=100,
        attack=attrs.get("attack", 10) + (weapon.tier * 2 if weapon else 0),
        defense=attrs.get("defense", 5),
        critical_chance=attrs.get("critical_chance", 5),
    )

def _location(chunk: Chunk) -> EventLocation:
    return EventLocation(biome=chunk.terrain, x=chunk.x, y=chunk.y)

def _event_line(context: str, intensity: int, seed: int, **values) -> str:
    template = select_dynamic_narrative(context, intensity, seed)
    if not validate_placeholders(template, values):
        logging.warning(f"Wildlands: missing values for '{template}'")
    return build_template(template, values)

ITEM_CATEGORIES = set(get_args(ItemCategory))

WEATHER_AFFINITY = {"STORMY": "electric", "RAINY": "water", "SNOWY": "ice", "SUNNY": "fire"}
TERRAIN_AFFINITY = {"cave": "dark", "volcanic": "fire", "forest": "nature", "jungle": "nature", "mountain": "earth"}

def fusion_modifiers(chunk: Chunk, weather: str) -> EnvironmentalModifiers:
    """Magic-rich ground helps a fusion, storms make it unpredictable."""
    bonus = (chunk.magic_affinity - 50) / 5
    chaos = chunk.magic_affinity / 10
    if weather == "STORMY":
        bonus -= 5
        chaos += 3
    affinity = WEATHER_AFFINITY.get(weather) or TERRAIN_AFFINITY.get(chunk.terrain, "none")
    return EnvironmentalModifiers(
        success_chance_bonus=round(bonus, 1),
        elemental_affinity=affinity,
        chaos_factor=max(0, min(10, round(chaos, 1))),
    )

class WildlandsCartridge:
    def __init__(self):
        default_state = WildlandsState()
        self.meta = {
            "name": "The Wildlands",
            "version": "1.0",
            **default_state.model_dump(mode="json")
        }

    # --- LIFECYCLE ---

    async def on_game_start(self, generic_state: dict) -> Dict[str, Any]:
        state = WildlandsState(**generic_state.get('metadata', {}))
        if state.current_chunk is None:
            chunk, state.world_seed = generate_chunk(0, 0, state.world_seed)
            chunk.explored = True
            state.world.put_chunk(chunk)

        opening = templates.generate_offline_narrative(state.current_chunk, state.narrative_length, state.player)
        state.narrative_log.append(opening)
        logging.info(f"Wildlands: New adventure in {state.world_name} ({state.current_chunk.terrain})")
        return {"metadata": state.model_dump(mode="json"), "narrative": opening}

    # --- ACTIONS ---

    async def handle_action(self, generic_state: dict, action: str, ctx, tools) -> Dict[str, Any]:
        """
        One player action. Mechanics (movement, combat, gathering) resolve in
        code first; the story text comes from the narrative flow, or from the
        offline templates when no model answers.
        """
        state = WildlandsState(**generic_state.get('metadata', {}))
        action = (action or "").strip()
        verb, _, rest = action.lower().partition(" ")

        messages: List[Message] = []
        sounds = []
        events = []
        resolved = True

        if verb in ("move", "go") and rest in DIRECTIONS:
            self._move(state, rest, messages, sounds, events)
        elif verb in ("attack", "fight"):
            self._attack(state, messages, sounds, events)
        elif verb in ("gather", "take", "pick"):
            self._gather(state, rest.replace("up ", "", 1).strip(), messages, sounds, events)
        else:
            resolved = False

        state.game_time += TurnRules.MINUTES_PER_ACTION
        state.player.daily_action_log.append(action)

        for event in events:
            state.statistics = StatisticsEngine.process_event(state.statistics, event)
            game_events.emit(event)

        narrative, source = await self._narrate(state, action, resolved, ctx, tools)
        state.narrative_log.append(narrative)
        state.narrative_log = state.narrative_log[-TurnRules.NARRATIVE_LOG_LIMIT:]

        audio = emit_audio_event_batch(sounds, state.playback_mode)
        return {
            "metadata": state.model_dump(mode="json"),
            "narrative": narrative,
            "source": source,
            "messages": [m.model_dump() for m in messages],
            "audio": [
                {"action": p.action_type.value, "files": p.sfx_files, "priority": p.priority}
                for p in audio
            ],
        }

    def _move(self, state: WildlandsState, direction: str, messages, sounds, events):
        dx, dy = DIRECTIONS[direction]
        x, y = state.player_position.x + dx, state.player_position.y + dy
        chunk = state.world.get_chunk_at(x, y)
        known_biomes = {c.terrain for c in state.world.chunks.values() if c.explored}
        if chunk is None:
            chunk, state.world_seed = generate_chunk(x, y, state.world_seed)
        chunk.game_time = state.game_time
        state.world.put_chunk(chunk)
        state.player_position.x, state.player_position.y = x, y
        state.player.stamina = max(0, state.player.stamina - TurnRules.MOVE_STAMINA_COST)
        state.player.unlock_progress.moves += 1

        sounds.append((AudioActionType.PLAYER_MOVE, AudioEventContext(biome=chunk.terrain)))
        if not chunk.explored:
            chunk.explored = True
            if chunk.terrain not in known_biomes:
                events.append(ExplorationEvent(payload={
                    "discovery_type": "biome", "biome_name": chunk.terrain,
                }))
                messages.append(Message(text=f"You discovered a new biome: {chunk.terrain}.", type="success"))
                messages.append(Message(text=_event_line(
                    "EXPLORATION", 3, state.world_seed, location=f"the {chunk.terrain}",
                ), type="success"))

    def _attack(self, state: WildlandsState, messages, sounds, events):
        chunk = state.current_chunk
        if chunk is None or chunk.enemy is None:
            messages.append(Message(text="There is nothing here to attack."))
            return

        enemy = chunk.enemy
        attacker = _player_combat_stats(state)
        defender = CombatStats(health=enemy.hp, max_health=enemy.hp, attack=enemy.damage, defense=0)
        hit = combat.calculate_damage(attacker, defender, random.random())
        damage = combat.apply_environment_penalties(hit.final_damage, chunk.light_level, chunk.moisture)
        enemy.hp = combat.apply_damage(enemy.hp, damage)
        state.player.stamina = max(0, state.player.stamina - TurnRules.ATTACK_STAMINA_COST)

        sounds.append((AudioActionType.PLAYER_ATTACK, AudioEventContext(is_critical=hit.is_critical)))
        crit = " Critical hit!" if hit.is_critical else ""
        messages.append(Message(text=f"You hit the {enemy.type} for {damage}.{crit}", type="combat"))

        if combat.is_dead(enemy.hp):
            xp = combat.calculate_experience(attacker.max_health, defender.max_health)
            chunk.enemy = None
            state.player.unlock_progress.kills += 1
            level = state.player.player_level
            level.experience += xp
            sounds.append((AudioActionType.ENEMY_DEFEATED, AudioEventContext(creature_type=enemy.type)))
            messages.append(Message(text=f"The {enemy.type} is defeated. +{xp} XP", type="success"))
            messages.append(Message(text=_event_line(
                "CREATURE_DEATH", 5 if hit.is_critical else 3, state.world_seed + state.game_time,
                creatureName=enemy.type, location=f"the {chunk.terrain}",
            ), type="combat"))
            self._drop_loot(state, enemy, defender, messages)
            events.append(CreatureKilledEvent(payload={
                "creature_id": f"{enemy.type.lower().replace(' ', '_')}_{chunk.x}_{chunk.y}",
                "creature_type": enemy.type,
                "location": _location(chunk),
                "weapon": state.player.equipment.weapon.name if state.player.equipment.weapon else None,
            }))
            # 100 XP per level
            while level.experience >= level.level * 100:
                level.experience -= level.level * 100
                level.level += 1
                events.append(LevelUpEvent(payload={
                    "new_level": level.level, "total_experience": level.experience,
                }))
                messages.append(Message(text=f"You reached level {level.level}!", type="success"))
            return

        # Counter-attack
        taken = max(GameBalance.MIN_DAMAGE, enemy.damage - attacker.defense // 2)
        state.player.hp = combat.apply_damage(state.player.hp, taken)
        sounds.append((AudioActionType.ENEMY_HIT, AudioEventContext(creature_type=enemy.type)))
        messages.append(Message(text=f"The {enemy.type} strikes back for {taken}.", type="combat"))
        events.append(DamageEvent(payload={"source": "creature", "damage_amount": taken}))

    def _drop_loot(self, state: WildlandsState, enemy: Enemy, defender: CombatStats, messages):
        if not combat.should_loot_drop(random.random(), GameBalance.LOOT_DROP_CHANCE):
            return
        chunk = state.current_chunk
        difficulty = 1 + int(chunk.danger_level // 25)
        state.world_seed = rng.next_seed(state.world_seed)
        package = loot.generate_loot_package(
            difficulty, state.player.attributes.get("luck", 0), defender.max_health, state.world_seed
        )
        quantity = combat.get_loot_quantity(random.random(), 1, 2)
        name = f"{loot.RARITY_NAMES[package.rarity]} {enemy.type} Trophy"
        owned = next((i for i in state.player.items if i.name == name), None)
        if owned:
            owned.quantity += quantity
        else:
            state.player.items.append(PlayerItem(name=name, quantity=quantity, tier=package.rarity, category="Material"))
        affixes = ", ".join(a.name for a in package.affixes)
        suffix = f" ({affixes})" if affixes else ""
        messages.append(Message(text=f"The {enemy.type} dropped {quantity} x {name}{suffix}, worth {package.total_value}.", type="success"))

    def _gather(self, state: WildlandsState, wanted: str, messages, sounds, events):
        chunk = state.current_chunk
        items = chunk.items if chunk else []
        match = next((i for i in items if not wanted or i.name.lower() == wanted), None)
        if match is None:
            messages.append(Message(text="You find nothing like that here."))
            return

        items.remove(match)
        owned = next((i for i in state.player.items if i.name == match.name), None)
        if owned:
            owned.quantity += match.quantity
        else:
            state.player.items.append(PlayerItem(name=match.name, quantity=match.quantity, tier=match.tier))

        sounds.append((AudioActionType.ITEM_PICKUP, AudioEventContext(biome=chunk.terrain)))
        messages.append(Message(text=f"You gathered {match.quantity} {match.name}.", type="success"))
        events.append(ItemGatheredEvent(payload={
            "item_id": match.name.lower().replace(" ", "_"),
            "quantity": match.quantity,
            "location": _location(chunk),
        }))

    async def _narrate(self, state: WildlandsState, action: str, resolved: bool, ctx, tools) -> Tuple[str, str]:
        chunk = state.current_chunk
        models = getattr(tools, "models", None) or []
        if models:
            data = NarrativeInput(
                world_name=state.world_name,
                player_action=action,
                player_status=state.player,
                current_chunk=chunk,
                recent_narrative=state.recent_narrative(TurnRules.RECENT_NARRATIVE),
                mood_tags=[mood_name(m) for m in get_mood_tags(chunk)],
                weather=state.weather,
                narrative_length=state.narrative_length,
                language=state.language,
            )
            try:
                output = await flows.generate_narrative(tools.ai, data, models, game_id=ctx.game_id)
                if not resolved:
                    self._apply_narrative_updates(state, output)
                return output.narrative, "llm"
            except Exception as e:
                logging.warning(f"Wildlands: Narrative flow failed, using offline templates: {e}")

        return templates.generate_offline_narrative(chunk, state.narrative_length, state.player), "offline"

    def _apply_narrative_updates(self, state: WildlandsState, output):
        chunk = state.current_chunk
        if output.updated_chunk:
            update = output.updated_chunk
            if update.description:
                chunk.description = update.description
            if update.items is not None:
                chunk.items = update.items
            if update.npcs is not None:
                chunk.npcs = update.npcs
            if update.enemy_defeated:
                chunk.enemy = None
            elif update.enemy is not None:
                chunk.enemy = update.enemy
        if output.updated_player_status:
            update = output.updated_player_status
            if update.items is not None:
                state.player.items = update.items
            if update.quests is not None:
                state.player.quests = update.quests
            if update.hp is not None:
                state.player.hp = max(0, min(100, update.hp))

    # --- TICKS ---

    async def handle_tick(self, generic_state: dict, ctx, tools) -> Dict[str, Any]:
        """Advances the world clock: upkeep, weather, and periodic story hooks."""
        state = WildlandsState(**generic_state.get('metadata', {}))
        state.turn += 1
        previous_day = state.game_time // TurnRules.DAY_MINUTES
        state.game_time += TurnRules.MINUTES_PER_TICK
        if state.current_chunk is not None:
            state.current_chunk.game_time = state.game_time

        effect_engine = EffectEngine()
        weather_engine = WeatherEngine(effect_engine, state.weather, state.weather_seed)
        if state.turn % TurnRules.WEATHER_CHANGE_INTERVAL == 0:
            weather_engine.advance()
            state.weather = weather_engine.weather.value
            state.weather_seed = weather_engine.seed

        result = process_all_effects(
            state.player, state, state.turn,
            weather_engine=weather_engine, effect_engine=effect_engine,
        )
        state.player = effect_engine.check_temperature_status_effects(result.updated_stats)

        models = getattr(tools, "models", None) or []
        if models and state.current_chunk is not None:
            if state.game_time // TurnRules.DAY_MINUTES > previous_day and state.player.daily_action_log:
                ctx.spawn(self._write_journal(
                    state, list(state.player.daily_action_log), previous_day + 1, tools, ctx.game_id
                ))
                state.player.daily_action_log = []
            if (state.turn % TurnRules.LEGENDARY_QUEST_INTERVAL == 0
                    and len(state.player.quests) < TurnRules.MAX_OPEN_QUESTS):
                ctx.spawn(self._new_legendary_quest(state, tools, ctx.game_id))

        return {
            "metadata": state.model_dump(mode="json"),
            "messages": [m.model_dump() for m in result.tick_messages],
            "weather": state.weather,
        }

    async def _write_journal(self, state: WildlandsState, action_log: List[str], day: int, tools, game_id: str) -> Dict[str, Any]:
        data = JournalEntryInput(
            daily_action_log=action_log,
            player_persona=state.player.persona,
            world_name=state.world_name,
            language=state.language,
        )
        output = await flows.generate_journal_entry(tools.ai, data, tools.models, game_id=game_id)
        return {"journal": {str(day): output.journal_entry}}

    async def _new_legendary_quest(self, state: WildlandsState, tools, game_id: str) -> Dict[str, Any]:
        data = NewQuestInput(
            world_name=state.world_name,
            player_status=state.player,
            current_chunk=state.current_chunk,
            existing_quests=list(state.player.quests),
            language=state.language,
        )
        output = await flows.generate_legendary_quest(tools.ai, data, tools.models, game_id=game_id)
        return {"add_quest": output.new_quest}

    def apply_background_patch(self, metadata: dict, patch: Dict[str, Any]) -> dict:
        """Merges the result of a spawned flow into the latest saved state."""
        state = WildlandsState(**metadata)
        if patch.get("add_quest") and patch["add_quest"] not in state.player.quests:
            state.player.quests.append(patch["add_quest"])
        for day, entry in (patch.get("journal") or {}).items():
            state.player.journal[day] = entry
        return state.model_dump(mode="json")

    # --- FUSION & HINTS ---

    async def handle_fuse(self, generic_state: dict, item_names: List[str], ctx, tools) -> Dict[str, Any]:
        """
        Fuses 2-3 inventory items. Ingredients other than tools are used up
        whatever the outcome, unless the attempt is refused for lack of a tool.
        Flow failures propagate to the caller.
        """
        state = WildlandsState(**generic_state.get('metadata', {}))
        chunk = state.current_chunk
        ingredients = []
        wanted = Counter(item_names)
        for name in item_names:
            owned = next((i for i in state.player.items if i.name == name), None)
            if owned is None:
                raise ValueError(f"You don't have {name}.")
            if wanted[name] > owned.quantity:
                raise ValueError(f"You only have {owned.quantity} {name}.")
            ingredients.append(PlayerItem(name=owned.name, quantity=1, tier=owned.tier, category=owned.category))

        data = FuseItemsInput(
            items_to_fuse=ingredients,
            player_persona=state.player.persona,
            current_chunk=chunk,
            environmental_context=EnvironmentalContext(biome=chunk.terrain, weather=state.weather),
            environmental_modifiers=fusion_modifiers(chunk, state.weather),
            language=state.language,
        )
        output = await flows.fuse_items(tools.ai, data, tools.models, game_id=ctx.game_id)

        refused = not flows.has_tool(data)
        if not refused:
            for ingredient in ingredients:
                if ingredient.category == "Tool":
                    continue
                owned = next(i for i in state.player.items if i.name == ingredient.name)
                owned.quantity -= 1
                if owned.quantity <= 0:
                    state.player.items.remove(owned)

        messages: List[Message] = []
        sound = AudioActionType.CRAFT_FAIL
        if output.result_item is not None:
            item = output.result_item
            state.player.items.append(PlayerItem(name=item.name, quantity=1, tier=item.tier, category=item.category))
            event = ItemCraftedEvent(payload={
                "item_id": item.name.lower().replace(" ", "_"), "quantity": 1, "recipe_id": "fusion",
            })
            state.statistics = StatisticsEngine.process_event(state.statistics, event)
            game_events.emit(event)
            if output.outcome == "success":
                sound = AudioActionType.CRAFT_SUCCESS
            messages.append(Message(text=_event_line(
                "ITEM_CRAFT", 5 if output.outcome == "success" else 1, state.world_seed + state.game_time, itemName=item.name,
            ), type="success"))

        state.narrative_log.append(output.narrative)
        audio = emit_audio_event_batch([(sound, AudioEventContext(success=output.outcome == "success"))], state.playback_mode)
        return {
            "metadata": state.model_dump(mode="json"),
            "outcome": output.outcome,
            "narrative": output.narrative,
            "result_item": output.result_item.model_dump() if output.result_item else None,
            "messages": [m.model_dump() for m in messages],
            "audio": [{"action": p.action_type.value, "files": p.sfx_files, "priority": p.priority} for p in audio],
        }

    async def handle_quest_hint(self, generic_state: dict, quest: str, ctx, tools) -> Dict[str, Any]:
        state = WildlandsState(**generic_state.get('metadata', {}))
        if quest not in state.player.quests:
            raise ValueError(f"Unknown quest: {quest}")
        hint = state.player.quest_hints.get(quest)
        if hint is None:
            output = await flows.provide_quest_hint(
                tools.ai, QuestHintInput(quest_text=quest, language=state.language), tools.models, game_id=ctx.game_id
            )
            hint = output.hint
            state.player.quest_hints[quest] = hint
        return {"metadata": state.model_dump(mode="json"), "hint": hint}

    # --- RECIPES & PROGRESS ---

    async def handle_new_recipe(self, generic_state: dict, ctx, tools) -> Dict[str, Any]:
        """Invents a recipe from what the player carries and remembers its result."""
        state = WildlandsState(**generic_state.get('metadata', {}))
        if not state.player.items:
            raise ValueError("You have nothing to build a recipe from.")

        catalog = [
            GeneratedItem(
                name=item.name,
                description=item.name,
                category=item.category if item.category in ITEM_CATEGORIES else "Misc",
                tier=max(1, min(6, item.tier)),
            )
            for item in state.player.items
        ]

        async def remember(recipe: Recipe):
            if recipe.result.name not in state.known_recipes:
                state.known_recipes.append(recipe.result.name)

        data = NewRecipeInput(custom_item_catalog=catalog, existing_recipes=state.known_recipes, language=state.language)
        recipe = await flows.generate_new_recipe(tools.ai, data, tools.models, game_id=ctx.game_id, on_saved=remember)
        return {"metadata": state.model_dump(mode="json"), "recipe": recipe.model_dump(mode="json")}

    def handle_progress(self, generic_state: dict, raw_criteria: List[dict], mode: str = "all") -> Dict[str, Any]:
        """Checks quest or achievement criteria against the statistics record."""
        state = WildlandsState(**generic_state.get('metadata', {}))
        parsed = [parse_criteria(c) for c in raw_criteria]
        check = evaluate_any_criteria if mode == "any" else evaluate_all_criteria
        return {
            "complete": check(parsed, state.statistics),
            "criteria": criteria_report(parsed, state.statistics),
        }

    # --- EVENTS ---

    async def handle_event(self, generic_state: dict, raw_event: dict) -> Dict[str, Any]:
        """Folds one client-reported game event into the statistics record."""
        state = WildlandsState(**generic_state.get('metadata', {}))
        event = parse_event(raw_event)
        state.statistics = StatisticsEngine.process_event(state.statistics, event)
        game_events.emit(event)
        return {
            "metadata": state.model_dump(mode="json"),
            "statistics": sanitize_statistics(state.statistics).model_dump(mode="json", exclude_none=True),
        }

    # --- AMBIENCE ---

    def get_ambience(self, generic_state: dict, max_layers: int = 2) -> List[Dict[str, Any]]:
        state = WildlandsState(**generic_state.get('metadata', {}))
        chunk = state.current_chunk
        if chunk is None or state.playback_mode == "off":
            return []
        weather = WeatherEngine(weather=state.weather).weather_at(chunk)
        ctx = AmbienceContext(
            biome=chunk.terrain,
            moods=[mood_name(m) for m in get_mood_tags(chunk)],
            weather_type=weather.value,
            moisture=chunk.moisture,
            wind_level=chunk.wind_level,
            time_of_day="day" if templates.is_day(state.game_time) else "night",
        )
        return [
            {"file": layer.file, "path": layer.path, "volume": layer.volume,
             "fade_in_ms": layer.fade_in_ms, "fade_out_ms": layer.fade_out_ms}
            for layer in select_ambience_layers(ctx, max_layers)
        ]
