# STATIC CONFIGURATION - THE RULE BOOK

class GameBalance:
    # --- COMBAT ---
    CRIT_MULTIPLIER = 1.5
    BASE_XP = 50
    XP_SCALING_PER_HP = 0.002
    MIN_XP = 10
    MIN_XP_MULTIPLIER = 0.5
    MIN_DAMAGE = 1

    # --- ENVIRONMENT (combat penalties) ---
    DARKNESS_PENALTY = 0.8
    DARKNESS_THRESHOLD = -3  # light level
    WET_PENALTY = 0.9
    WET_THRESHOLD = 8  # moisture level

    # --- LOOT ---
    LOOT_DROP_CHANCE = 0.35
    GRADE_COMMON_THRESHOLD = 0.5    # Grade 0: 0.0 - 0.5
    GRADE_UNCOMMON_THRESHOLD = 0.8  # Grade 1: 0.5 - 0.8, Grade 2 above


class RegenerationConfig:
    """Per-tick player upkeep. Instances may override any class default."""
    HP_REGEN_PER_TICK = 1
    STAMINA_REGEN_PER_TICK = 2
    MANA_REGEN_PER_TICK = 1.5

    HUNGER_THRESHOLD_MILD = 15
    HUNGER_THRESHOLD_SEVERE = 35
    HUNGER_REGEN_PENALTY_MILD = 0.6
    HUNGER_REGEN_PENALTY_SEVERE = 0.2
    STARVATION_DAMAGE_PER_TICK = 1

    HUNGER_DECAY_PER_TICK = 1
    HUNGER_DECAY_INTERVAL = 2
    HP_REGEN_INTERVAL = 5
    STAMINA_REGEN_INTERVAL = 5
    MANA_REGEN_INTERVAL = 5

    MAX_HP = 100
    MAX_MANA = 100
    MAX_HUNGER = 100

    def __init__(self, **overrides):
        for key, value in overrides.items():
            attr = key.upper()
            if not hasattr(RegenerationConfig, attr):
                raise ValueError(f"Unknown regeneration setting: {key}")
            setattr(self, attr, value)


class BodyTemperature:
    NORMAL = 37.0
    HYPOTHERMIA_BELOW = 35
    HEATSTROKE_ABOVE = 40
    HYPOTHERMIA_DAMAGE = 2
    HEATSTROKE_DAMAGE = 3
    STATUS_DURATION = 30  # turns


class FusionRules:
    BASE_SUCCESS_CHANCE = 50
    MIN_SUCCESS_CHANCE = 5
    MAX_SUCCESS_CHANCE = 95


# Terrain → mood tags, applied at TERRAIN_MOOD_STRENGTH by the mood profiler
TERRAIN_MOOD_STRENGTH = 0.95

DEFAULT_WORLD_NAME = "The Wildlands"


class TurnRules:
    MINUTES_PER_TICK = 10
    MINUTES_PER_ACTION = 5
    DAY_MINUTES = 1440
    WEATHER_CHANGE_INTERVAL = 12  # ticks
    LEGENDARY_QUEST_INTERVAL = 50  # ticks
    MAX_OPEN_QUESTS = 3
    MOVE_STAMINA_COST = 2
    ATTACK_STAMINA_COST = 5
    RECENT_NARRATIVE = 5
    NARRATIVE_LOG_LIMIT = 200
