from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .events import (
    GameEvent,
    CreatureKilledPayload,
    ItemGatheredPayload,
    ItemCraftedPayload,
    DamagePayload,
    ExplorationPayload,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# --- RECORD SHAPE ---
# Every section is optional so an idle player's record stays tiny.

class KillStats(BaseModel):
    total: int = 0
    by_creature_type: Optional[Dict[str, int]] = None
    by_location: Optional[Dict[str, int]] = None
    by_weapon: Optional[Dict[str, int]] = None

class DamageDealtStats(BaseModel):
    total: int = 0
    by_source: Optional[Dict[str, int]] = None

class HealthLostStats(BaseModel):
    total: float = 0

class CombatRecord(BaseModel):
    kills: Optional[KillStats] = None
    damage_dealt: Optional[DamageDealtStats] = None
    health_lost: Optional[HealthLostStats] = None

class ItemCountStats(BaseModel):
    total: int = 0
    by_biome: Optional[Dict[str, int]] = None
    by_tool: Optional[Dict[str, int]] = None

class DistanceStats(BaseModel):
    total: float = 0
    by_biome: Optional[Dict[str, float]] = None

class GatheringRecord(BaseModel):
    items_collected: Dict[str, ItemCountStats] = Field(default_factory=dict)
    distance_traveled: Optional[DistanceStats] = None

class CraftCountStats(BaseModel):
    total: int = 0
    by_recipe: Optional[Dict[str, int]] = None

class CraftingRecord(BaseModel):
    items_crafted: Dict[str, CraftCountStats] = Field(default_factory=dict)

class TimeSpentStats(BaseModel):
    total: int = 0
    by_biome: Optional[Dict[str, int]] = None

class ExplorationRecord(BaseModel):
    biomes_discovered: int = 0
    locations_discovered: int = 0
    time_spent: Optional[TimeSpentStats] = None

class PlayerStatistics(BaseModel):
    combat: Optional[CombatRecord] = None
    gathering: Optional[GatheringRecord] = None
    crafting: Optional[CraftingRecord] = None
    exploration: Optional[ExplorationRecord] = None
    last_updated: datetime = Field(default_factory=_now)


def create_empty_statistics() -> PlayerStatistics:
    return PlayerStatistics()


def _bump(counts: Optional[Dict[str, int]], key: str, amount=1) -> Dict[str, int]:
    result = dict(counts or {})
    result[key] = result.get(key, 0) + amount
    return result


# --- ENGINE ---

class StatisticsEngine:
    """
    Folds game events into a PlayerStatistics record.

    process_event never touches the record it is given; it works on a deep
    copy and returns that. Events with no counters of their own only move
    last_updated.
    """

    @classmethod
    def process_event(cls, stats: Optional[PlayerStatistics], event: GameEvent) -> PlayerStatistics:
        base = stats.model_copy(deep=True) if stats is not None else create_empty_statistics()

        handler = {
            "CREATURE_KILLED": cls._handle_creature_killed,
            "ITEM_GATHERED": cls._handle_item_gathered,
            "ITEM_CRAFTED": cls._handle_item_crafted,
            "DAMAGE": cls._handle_damage,
            "EXPLORATION": cls._handle_exploration,
        }.get(event.type)

        if handler:
            handler(base, event.payload)
        base.last_updated = _now()
        return base

    @staticmethod
    def _handle_creature_killed(stats: PlayerStatistics, payload: CreatureKilledPayload):
        combat = stats.combat or CombatRecord()
        kills = combat.kills or KillStats()
        kills.total += 1
        kills.by_creature_type = _bump(kills.by_creature_type, payload.creature_type)
        kills.by_location = _bump(kills.by_location, payload.location.biome)
        if payload.weapon:
            kills.by_weapon = _bump(kills.by_weapon, payload.weapon)
        combat.kills = kills
        stats.combat = combat

    @staticmethod
    def _handle_item_gathered(stats: PlayerStatistics, payload: ItemGatheredPayload):
        gathering = stats.gathering or GatheringRecord()
        item = gathering.items_collected.get(payload.item_id) or ItemCountStats()
        item.total += payload.quantity
        item.by_biome = _bump(item.by_biome, payload.location.biome, payload.quantity)
        if payload.tool:
            item.by_tool = _bump(item.by_tool, payload.tool, payload.quantity)
        gathering.items_collected[payload.item_id] = item
        stats.gathering = gathering

    @staticmethod
    def _handle_item_crafted(stats: PlayerStatistics, payload: ItemCraftedPayload):
        crafting = stats.crafting or CraftingRecord()
        item = crafting.items_crafted.get(payload.item_id) or CraftCountStats()
        item.total += payload.quantity
        item.by_recipe = _bump(item.by_recipe, payload.recipe_id, payload.quantity)
        crafting.items_crafted[payload.item_id] = item
        stats.crafting = crafting

    @staticmethod
    def _handle_damage(stats: PlayerStatistics, payload: DamagePayload):
        combat = stats.combat or CombatRecord()
        lost = combat.health_lost or HealthLostStats()
        lost.total += payload.damage_amount
        combat.health_lost = lost
        stats.combat = combat

    @staticmethod
    def _handle_exploration(stats: PlayerStatistics, payload: ExplorationPayload):
        exploration = stats.exploration or ExplorationRecord()
        if payload.discovery_type == "biome":
            exploration.biomes_discovered += 1
        elif payload.discovery_type == "location":
            exploration.locations_discovered += 1
        stats.exploration = exploration
