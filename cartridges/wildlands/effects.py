import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .board import BodyTemperature, RegenerationConfig
from .models import Message, PlayerStatus


class EffectType(str, Enum):
    BUFF = "buff"
    DEBUFF = "debuff"
    STATUS = "status"
    DAMAGE_OVER_TIME = "damage_over_time"
    HEALING_OVER_TIME = "healing_over_time"
    TEMPERATURE = "temperature"
    HYPOTHERMIA = "hypothermia"
    HEATSTROKE = "heatstroke"
    MODIFY_MOVEMENT = "modify_movement"
    MODIFY_VISION = "modify_vision"


class EffectCondition(BaseModel):
    type: Literal["stat", "skill", "status", "weather"]
    target: Optional[str] = None
    operator: Literal[">", "<", ">=", "<=", "==", "!="]
    value: Any


class Modifier(BaseModel):
    type: Literal["flat", "percentage", "multiply", "set"] = "flat"
    value: float = 0


class Effect(BaseModel):
    id: str
    type: EffectType
    target: str = "self"  # stat name for buffs/debuffs
    value: float = 0
    modifier: Modifier = Field(default_factory=Modifier)
    duration: Optional[int] = None  # turns; None lasts until removed
    stackable: bool = False
    max_stacks: Optional[int] = None
    conditions: List[EffectCondition] = Field(default_factory=list)
    tick_rate: int = 1


# Top-level numeric fields effects may touch, with their clamps
_STAT_LIMITS: Dict[str, Tuple[float, Optional[float]]] = {
    "hp": (0, RegenerationConfig.MAX_HP),
    "stamina": (0, None),  # capped by max_stamina
    "mana": (0, RegenerationConfig.MAX_MANA),
    "hunger": (0, RegenerationConfig.MAX_HUNGER),
    "max_stamina": (0, None),
    "body_temperature": (None, None),
}

_OPERATORS = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}

EffectHandler = Callable[[Effect, PlayerStatus], Dict[str, Any]]


def _modify(current: float, modifier: Modifier) -> float:
    if modifier.type == "flat":
        return current + modifier.value
    if modifier.type == "percentage":
        return current * (1 + modifier.value)
    if modifier.type == "multiply":
        return current * modifier.value
    return modifier.value


def _clamp(value: float, low: Optional[float], high: Optional[float]) -> float:
    if low is not None:
        value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


class EffectEngine:
    """
    Keeps the active effect list and turns effects into stat changes.

    A change set is a plain dict: numeric deltas keyed by PlayerStatus field,
    plus optional "attributes" (absolute values) and "statuses" (ids to add).
    Nothing here mutates a PlayerStatus; every operation returns a new one.
    """

    def __init__(self):
        # effect id → [(effect, expires_at_turn)]
        self.active_effects: Dict[str, List[Tuple[Effect, Optional[int]]]] = {}
        self.custom_handlers: Dict[str, EffectHandler] = {}
        self.current_turn = 0

    def register_effect_handler(self, effect_type, handler: EffectHandler):
        key = effect_type.value if isinstance(effect_type, EffectType) else effect_type
        self.custom_handlers[key] = handler

    # --- CONDITIONS ---

    def _condition_value(self, condition: EffectCondition, target: PlayerStatus):
        if condition.type == "stat":
            if condition.target in _STAT_LIMITS:
                return getattr(target, condition.target)
            return target.attributes.get(condition.target or "")
        if condition.type == "skill":
            for skill in target.skills:
                if skill.get("name") == condition.target:
                    return skill.get("level", 0)
            return None
        if condition.type == "status":
            return condition.target in target.statuses
        return None

    def can_apply_effect(self, effect: Effect, target: PlayerStatus) -> bool:
        for condition in effect.conditions:
            value = self._condition_value(condition, target)
            if value is None and condition.operator not in ("==", "!="):
                return False
            if not _OPERATORS[condition.operator](value, condition.value):
                return False
        return True

    # --- APPLICATION ---

    def apply_effect(self, effect: Effect, target: PlayerStatus) -> PlayerStatus:
        """Registers the effect and applies its immediate change. Returns the new stats."""
        if not self.can_apply_effect(effect, target):
            return target

        expires_at = self.current_turn + effect.duration if effect.duration else None
        existing = self.active_effects.get(effect.id, [])
        if effect.stackable:
            if not effect.max_stacks or len(existing) < effect.max_stacks:
                existing = existing + [(effect, expires_at)]
        else:
            existing = [(effect, expires_at)]
        self.active_effects[effect.id] = existing

        changes = self.process_effect(effect, target)
        return self.apply_effect_changes_to_player(target, changes)

    def process_effect(self, effect: Effect, stats: PlayerStatus) -> Dict[str, Any]:
        handler = self.custom_handlers.get(effect.type.value)
        if handler:
            return handler(effect, stats)

        if effect.type in (EffectType.BUFF, EffectType.DEBUFF):
            return self._stat_modification(effect, stats)
        if effect.type == EffectType.STATUS:
            return {"statuses": [effect.id]}
        if effect.type == EffectType.DAMAGE_OVER_TIME:
            return {"hp": -effect.value}
        if effect.type == EffectType.HEALING_OVER_TIME:
            return {"hp": effect.value}
        if effect.type == EffectType.TEMPERATURE:
            return {"body_temperature": effect.value}
        if effect.type == EffectType.HYPOTHERMIA:
            return self._exposure(effect, stats, "dexterity")
        if effect.type == EffectType.HEATSTROKE:
            return self._exposure(effect, stats, "vitality")
        # Movement and vision are read by the map layer, no stat change
        return {}

    def _stat_modification(self, effect: Effect, stats: PlayerStatus) -> Dict[str, Any]:
        stat = effect.target
        if stat in _STAT_LIMITS:
            current = getattr(stats, stat)
            return {stat: _modify(current, effect.modifier) - current}
        if stat in stats.attributes:
            return {"attributes": {stat: _modify(stats.attributes[stat], effect.modifier)}}
        return {}

    def _exposure(self, effect: Effect, stats: PlayerStatus, attribute: str) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"hp": -effect.value, "statuses": [effect.id]}
        if attribute in stats.attributes:
            changes["attributes"] = {attribute: max(1, stats.attributes[attribute] - 2)}
        return changes

    def apply_effect_changes_to_player(self, stats: PlayerStatus, changes: Dict[str, Any]) -> PlayerStatus:
        if not changes:
            return stats
        updated = stats.model_copy(deep=True)

        for key, (low, high) in _STAT_LIMITS.items():
            if key in changes:
                setattr(updated, key, _clamp(getattr(updated, key) + changes[key], low, high))
        updated.stamina = _clamp(updated.stamina, 0, updated.max_stamina)

        if changes.get("attributes"):
            updated.attributes.update(changes["attributes"])
        for status in changes.get("statuses", []):
            if status not in updated.statuses:
                updated.statuses.append(status)
        return updated

    # --- TIME ---

    def tick_over_time_effects(self, target: PlayerStatus) -> PlayerStatus:
        """One turn of every per-turn damage/heal effect that is active."""
        updated = target
        for effect in self.get_active_effects():
            if effect.type in (EffectType.DAMAGE_OVER_TIME, EffectType.HEALING_OVER_TIME) and effect.tick_rate == 1:
                updated = self.apply_effect_changes_to_player(updated, self.process_effect(effect, updated))
        return updated

    def update_effects(self, turn: int):
        """Advances the clock and expires effects whose duration has run out."""
        self.current_turn = turn
        for effect_id in list(self.active_effects):
            remaining = [(e, exp) for e, exp in self.active_effects[effect_id] if exp is None or turn < exp]
            if remaining:
                self.active_effects[effect_id] = remaining
            else:
                self.remove_effect(effect_id)

    def remove_effect(self, effect_id: str):
        self.active_effects.pop(effect_id, None)

    def get_active_effects(self, effect_id: Optional[str] = None) -> List[Effect]:
        if effect_id:
            return [e for e, _ in self.active_effects.get(effect_id, [])]
        return [e for stack in self.active_effects.values() for e, _ in stack]

    def check_temperature_status_effects(self, character: PlayerStatus) -> PlayerStatus:
        """Starts or clears hypothermia/heatstroke based on body temperature."""
        updated = character
        body = character.body_temperature

        if body < BodyTemperature.HYPOTHERMIA_BELOW:
            if "hypothermia" not in self.active_effects:
                updated = self.apply_effect(Effect(
                    id="hypothermia",
                    type=EffectType.HYPOTHERMIA,
                    value=BodyTemperature.HYPOTHERMIA_DAMAGE,
                    duration=BodyTemperature.STATUS_DURATION,
                ), updated)
        else:
            updated = self._clear_status(updated, "hypothermia")

        if body > BodyTemperature.HEATSTROKE_ABOVE:
            if "heatstroke" not in self.active_effects:
                updated = self.apply_effect(Effect(
                    id="heatstroke",
                    type=EffectType.HEATSTROKE,
                    value=BodyTemperature.HEATSTROKE_DAMAGE,
                    duration=BodyTemperature.STATUS_DURATION,
                ), updated)
        else:
            updated = self._clear_status(updated, "heatstroke")
        return updated

    def _clear_status(self, stats: PlayerStatus, status: str) -> PlayerStatus:
        self.remove_effect(status)
        if status not in stats.statuses:
            return stats
        return stats.model_copy(update={"statuses": [s for s in stats.statuses if s != status]})


# --- PER-TICK UPKEEP ---

@dataclass
class EffectProcessorResult:
    updated_stats: PlayerStatus
    tick_messages: List[Message] = field(default_factory=list)
    weather_messages: List[Message] = field(default_factory=list)


def _hunger_penalty(hunger: float, config: RegenerationConfig) -> float:
    if hunger >= config.HUNGER_THRESHOLD_SEVERE:
        return config.HUNGER_REGEN_PENALTY_SEVERE
    if hunger >= config.HUNGER_THRESHOLD_MILD:
        return config.HUNGER_REGEN_PENALTY_MILD
    return 1.0


def apply_tick_effects(stats: PlayerStatus, config: Optional[RegenerationConfig] = None) -> Tuple[PlayerStatus, List[Message]]:
    """
    One tick of hunger, regeneration and starvation.

    Each resource has its own counter so intervals survive save/load.
    Regeneration is scaled down by hunger and stops entirely while starving.
    """
    cfg = config or RegenerationConfig()
    s = stats.model_copy(deep=True)
    messages: List[Message] = []

    s.hunger_tick_counter += 1
    if s.hunger_tick_counter >= cfg.HUNGER_DECAY_INTERVAL:
        s.hunger_tick_counter = 0
        before = s.hunger
        s.hunger = min(cfg.MAX_HUNGER, s.hunger + cfg.HUNGER_DECAY_PER_TICK)
        if before < cfg.HUNGER_THRESHOLD_SEVERE <= s.hunger:
            messages.append(Message(text="You are getting very hungry!", type="warning"))

    starving = s.hunger >= cfg.MAX_HUNGER
    penalty = 0.0 if starving else _hunger_penalty(s.hunger, cfg)

    s.hp_regen_tick_counter += 1
    if s.hp_regen_tick_counter >= cfg.HP_REGEN_INTERVAL:
        s.hp_regen_tick_counter = 0
        if s.hp > 0:
            s.hp = min(cfg.MAX_HP, s.hp + cfg.HP_REGEN_PER_TICK * penalty)

    s.stamina_regen_tick_counter += 1
    if s.stamina_regen_tick_counter >= cfg.STAMINA_REGEN_INTERVAL:
        s.stamina_regen_tick_counter = 0
        s.stamina = min(s.max_stamina, s.stamina + cfg.STAMINA_REGEN_PER_TICK * penalty)

    s.mana_regen_tick_counter += 1
    if s.mana_regen_tick_counter >= cfg.MANA_REGEN_INTERVAL:
        s.mana_regen_tick_counter = 0
        s.mana = min(cfg.MAX_MANA, s.mana + cfg.MANA_REGEN_PER_TICK * penalty)

    if starving:
        s.hp = max(0, s.hp - cfg.STARVATION_DAMAGE_PER_TICK)
        messages.append(Message(text="You are starving! Losing health.", type="warning"))

    return s, messages


def process_tick_effects(
    stats: PlayerStatus,
    current_turn: int,
    config: Optional[RegenerationConfig] = None,
    effect_engine: Optional[EffectEngine] = None,
) -> EffectProcessorResult:
    updated, messages = apply_tick_effects(stats, config)
    if effect_engine is not None:
        effect_engine.update_effects(current_turn)
        updated = effect_engine.tick_over_time_effects(updated)
    return EffectProcessorResult(updated_stats=updated, tick_messages=messages)


_EXPOSURE_MESSAGES = {
    EffectType.HYPOTHERMIA: "The cold bites deep. You are freezing.",
    EffectType.HEATSTROKE: "The heat is overwhelming. Your head swims.",
}


def process_weather_effects(stats: PlayerStatus, game_state, weather_engine, effect_engine) -> EffectProcessorResult:
    """Applies the weather at the player's chunk. Any failure leaves stats unchanged."""
    if not (game_state is not None and getattr(game_state, "world", None) and
            getattr(game_state, "player_position", None) and weather_engine and effect_engine):
        return EffectProcessorResult(updated_stats=stats)

    try:
        pos = game_state.player_position
        chunk = game_state.world.get_chunk_at(pos.x, pos.y)
        if chunk is None:
            return EffectProcessorResult(updated_stats=stats)

        updated = stats
        messages: List[Message] = []
        for effect in weather_engine.effects_for(chunk, stats):
            if effect.type in _EXPOSURE_MESSAGES:
                # Registered, so the temperature status check won't hit twice
                updated = effect_engine.apply_effect(effect, updated)
                messages.append(Message(text=_EXPOSURE_MESSAGES[effect.type], type="warning"))
                continue
            changes = effect_engine.process_effect(effect, updated)
            updated = effect_engine.apply_effect_changes_to_player(updated, changes)
        return EffectProcessorResult(updated_stats=updated, weather_messages=messages)
    except Exception as e:
        logging.warning(f"Effects: weather step skipped: {e}")
        return EffectProcessorResult(updated_stats=stats)


def process_all_effects(
    stats: PlayerStatus,
    game_state,
    current_turn: int,
    config: Optional[RegenerationConfig] = None,
    weather_engine=None,
    effect_engine: Optional[EffectEngine] = None,
) -> EffectProcessorResult:
    """Tick upkeep first, then weather. All messages come back in tick_messages."""
    tick = process_tick_effects(stats, current_turn, config, effect_engine)
    weather = process_weather_effects(tick.updated_stats, game_state, weather_engine, effect_engine)
    return EffectProcessorResult(
        updated_stats=weather.updated_stats,
        tick_messages=tick.tick_messages + weather.weather_messages,
        weather_messages=[],
    )
