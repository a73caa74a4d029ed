from typing import Dict, Optional

from .statistics_engine import (
    PlayerStatistics,
    CombatRecord,
    GatheringRecord,
    CraftingRecord,
    ExplorationRecord,
    KillStats,
    ItemCountStats,
    CraftCountStats,
)


def _positive(counts: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
    if not counts:
        return None
    kept = {k: v for k, v in counts.items() if v > 0}
    return kept or None


def sanitize_statistics(stats: PlayerStatistics) -> PlayerStatistics:
    """Drops zero counters, empty maps and empty sections before saving."""
    cleaned = PlayerStatistics(last_updated=stats.last_updated)

    if stats.combat:
        combat = CombatRecord()
        if stats.combat.kills:
            kills = stats.combat.kills
            combat.kills = KillStats(
                total=kills.total,
                by_creature_type=_positive(kills.by_creature_type),
                by_location=_positive(kills.by_location),
                by_weapon=_positive(kills.by_weapon),
            )
        if stats.combat.damage_dealt:
            combat.damage_dealt = stats.combat.damage_dealt.model_copy(deep=True)
        if stats.combat.health_lost:
            combat.health_lost = stats.combat.health_lost.model_copy(deep=True)
        if combat.kills or combat.damage_dealt or combat.health_lost:
            cleaned.combat = combat

    if stats.gathering:
        gathering = GatheringRecord()
        for item_id, item in stats.gathering.items_collected.items():
            if item and item.total > 0:
                gathering.items_collected[item_id] = ItemCountStats(
                    total=item.total,
                    by_biome=_positive(item.by_biome),
                    by_tool=_positive(item.by_tool),
                )
        if stats.gathering.distance_traveled:
            gathering.distance_traveled = stats.gathering.distance_traveled.model_copy(deep=True)
        if gathering.items_collected or gathering.distance_traveled:
            cleaned.gathering = gathering

    if stats.crafting:
        crafting = CraftingRecord()
        for item_id, item in stats.crafting.items_crafted.items():
            if item and item.total > 0:
                crafting.items_crafted[item_id] = CraftCountStats(
                    total=item.total,
                    by_recipe=_positive(item.by_recipe),
                )
        if crafting.items_crafted:
            cleaned.crafting = crafting

    if stats.exploration:
        exp = stats.exploration
        if exp.biomes_discovered > 0 or exp.locations_discovered > 0 or exp.time_spent:
            cleaned.exploration = ExplorationRecord(
                biomes_discovered=max(0, exp.biomes_discovered),
                locations_discovered=max(0, exp.locations_discovered),
                time_spent=exp.time_spent.model_copy(deep=True) if exp.time_spent else None,
            )

    return cleaned


def serialize_statistics(stats: PlayerStatistics) -> str:
    return sanitize_statistics(stats).model_dump_json(exclude_none=True)


def estimate_statistics_size(stats: PlayerStatistics) -> int:
    return len(serialize_statistics(stats))


class StatsQuery:
    """Read-only questions quests and achievements ask about a statistics record."""

    @staticmethod
    def get_kill_count(stats, creature_type=None, biome=None, weapon=None) -> int:
        kills = stats.combat.kills if stats.combat else None
        if not kills:
            return 0
        if creature_type:
            return (kills.by_creature_type or {}).get(creature_type, 0)
        if biome:
            return (kills.by_location or {}).get(biome, 0)
        if weapon:
            return (kills.by_weapon or {}).get(weapon, 0)
        return kills.total

    @staticmethod
    def get_item_count(stats, item_id: str, biome=None, tool=None) -> int:
        item = stats.gathering.items_collected.get(item_id) if stats.gathering else None
        if not item:
            return 0
        if biome:
            return (item.by_biome or {}).get(biome, 0)
        if tool:
            return (item.by_tool or {}).get(tool, 0)
        return item.total

    @classmethod
    def has_gathered_item(cls, stats, item_id: str, count: int, biome=None, tool=None) -> bool:
        return cls.get_item_count(stats, item_id, biome=biome, tool=tool) >= count

    @staticmethod
    def get_damage_dealt(stats, source=None) -> int:
        dealt = stats.combat.damage_dealt if stats.combat else None
        if not dealt:
            return 0
        if source:
            return (dealt.by_source or {}).get(source, 0)
        return dealt.total

    @staticmethod
    def get_damage_taken(stats) -> float:
        if stats.combat and stats.combat.health_lost:
            return stats.combat.health_lost.total
        return 0

    @staticmethod
    def get_crafted_item_count(stats, item_id=None) -> int:
        if not stats.crafting:
            return 0
        if item_id:
            item = stats.crafting.items_crafted.get(item_id)
            return item.total if item else 0
        return sum(item.total for item in stats.crafting.items_crafted.values() if item)

    @classmethod
    def has_crafted_item(cls, stats, item_id: str, count: int) -> bool:
        return cls.get_crafted_item_count(stats, item_id) >= count

    @staticmethod
    def get_distance_traveled(stats, biome=None) -> float:
        # Travel is measured in turns spent moving, kept under exploration.time_spent
        time_spent = stats.exploration.time_spent if stats.exploration else None
        if not time_spent:
            return 0
        if biome:
            return (time_spent.by_biome or {}).get(biome, 0)
        return time_spent.total

    @staticmethod
    def get_biomes_discovered(stats) -> int:
        return stats.exploration.biomes_discovered if stats.exploration else 0

    @staticmethod
    def get_locations_discovered(stats) -> int:
        return stats.exploration.locations_discovered if stats.exploration else 0

    @classmethod
    def has_killed_creatures(cls, stats, count: int, creature_type=None, biome=None, weapon=None) -> bool:
        return cls.get_kill_count(stats, creature_type=creature_type, biome=biome, weapon=weapon) >= count

    @classmethod
    def has_traveled_distance(cls, stats, distance: float, biome=None) -> bool:
        return cls.get_distance_traveled(stats, biome=biome) >= distance

    @classmethod
    def has_discovered_biomes(cls, stats, count: int) -> bool:
        return cls.get_biomes_discovered(stats) >= count

    @classmethod
    def has_discovered_locations(cls, stats, count: int) -> bool:
        return cls.get_locations_discovered(stats) >= count
