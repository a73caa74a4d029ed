import pytest
from cartridges.wildlands.events import parse_event
from cartridges.wildlands.statistics_engine import (
    StatisticsEngine, PlayerStatistics, ExplorationRecord, GatheringRecord, ItemCountStats,
    create_empty_statistics,
)
from cartridges.wildlands.statistics_query import (
    StatsQuery, sanitize_statistics, serialize_statistics, estimate_statistics_size,
)

def _kill(creature, biome="forest", weapon=None):
    payload = {"creatureId": "c", "creatureType": creature, "location": {"biome": biome}}
    if weapon:
        payload["weapon"] = weapon
    return parse_event({"type": "CREATURE_KILLED", "payload": payload})

def _gather(item, quantity, biome="forest", tool=None):
    payload = {"itemId": item, "quantity": quantity, "location": {"biome": biome}}
    if tool:
        payload["tool"] = tool
    return parse_event({"type": "ITEM_GATHERED", "payload": payload})

def _fold(*events):
    stats = None
    for event in events:
        stats = StatisticsEngine.process_event(stats, event)
    return stats

def test_kills_are_counted_three_ways():
    stats = _fold(_kill("wolf", weapon="axe"), _kill("wolf", "cave"), _kill("bat", "cave"))

    assert StatsQuery.get_kill_count(stats) == 3
    assert StatsQuery.get_kill_count(stats, creature_type="wolf") == 2
    assert StatsQuery.get_kill_count(stats, biome="cave") == 2
    assert StatsQuery.get_kill_count(stats, weapon="axe") == 1
    assert StatsQuery.has_killed_creatures(stats, 2, creature_type="wolf")
    assert not StatsQuery.has_killed_creatures(stats, 2, creature_type="bat")

def test_gathering_counts_quantities():
    stats = _fold(_gather("berry", 3), _gather("berry", 2, "swamp", tool="basket"))

    assert StatsQuery.get_item_count(stats, "berry") == 5
    assert StatsQuery.get_item_count(stats, "berry", biome="swamp") == 2
    assert StatsQuery.get_item_count(stats, "berry", tool="basket") == 2
    assert StatsQuery.has_gathered_item(stats, "berry", 5)
    assert StatsQuery.get_item_count(stats, "stone") == 0

def test_crafting_damage_and_exploration():
    stats = _fold(
        parse_event({"type": "ITEM_CRAFTED", "payload": {"itemId": "rope", "quantity": 2, "recipeId": "r1"}}),
        parse_event({"type": "DAMAGE", "payload": {"source": "trap", "damageAmount": 4.5}}),
        parse_event({"type": "EXPLORATION", "payload": {"discoveryType": "biome", "biomeName": "swamp"}}),
        parse_event({"type": "EXPLORATION", "payload": {"discoveryType": "location", "locationName": "Old Mill"}}),
    )
    assert StatsQuery.get_crafted_item_count(stats) == 2
    assert StatsQuery.has_crafted_item(stats, "rope", 2)
    assert StatsQuery.get_damage_taken(stats) == 4.5
    assert StatsQuery.has_discovered_biomes(stats, 1)
    assert StatsQuery.has_discovered_locations(stats, 1)

def test_process_event_never_mutates_input():
    original = _fold(_kill("wolf"))
    updated = StatisticsEngine.process_event(original, _kill("wolf"))

    assert StatsQuery.get_kill_count(original) == 1
    assert StatsQuery.get_kill_count(updated) == 2
    assert updated.last_updated >= original.last_updated

def test_events_without_counters_only_touch_timestamp():
    event = parse_event({"type": "ACHIEVEMENT_UNLOCKED", "payload": {"achievementId": "first_steps"}})
    stats = StatisticsEngine.process_event(None, event)
    assert stats.combat is None and stats.gathering is None

def test_queries_on_empty_record():
    stats = create_empty_statistics()
    assert StatsQuery.get_kill_count(stats) == 0
    assert StatsQuery.get_damage_dealt(stats) == 0
    assert StatsQuery.get_damage_taken(stats) == 0
    assert StatsQuery.get_distance_traveled(stats) == 0
    assert StatsQuery.get_crafted_item_count(stats, "rope") == 0
    assert not StatsQuery.has_traveled_distance(stats, 1)

def test_sanitize_drops_zero_counters_and_empty_sections():
    stats = PlayerStatistics(
        gathering=GatheringRecord(items_collected={
            "berry": ItemCountStats(total=2, by_biome={"forest": 2, "swamp": 0}),
            "stone": ItemCountStats(total=0),
        }),
        exploration=ExplorationRecord(),
    )
    cleaned = sanitize_statistics(stats)

    assert list(cleaned.gathering.items_collected) == ["berry"]
    assert cleaned.gathering.items_collected["berry"].by_biome == {"forest": 2}
    assert cleaned.exploration is None
    assert cleaned.combat is None

def test_serialized_record_omits_empty_sections():
    stats = _fold(_kill("wolf"))
    payload = serialize_statistics(stats)
    assert '"combat"' in payload
    assert '"gathering"' not in payload
    assert estimate_statistics_size(stats) == len(payload)
