import pytest
from pydantic import ValidationError
from cartridges.wildlands import criteria
from cartridges.wildlands.events import parse_event
from cartridges.wildlands.statistics_engine import (
    StatisticsEngine, PlayerStatistics, ExplorationRecord, TimeSpentStats,
)

def _fold(*raw_events):
    stats = PlayerStatistics()
    for raw in raw_events:
        stats = StatisticsEngine.process_event(stats, parse_event(raw))
    return stats

def _kill(creature, biome="forest"):
    return {"type": "CREATURE_KILLED", "payload": {"creatureId": "c", "creatureType": creature, "location": {"biome": biome}}}

def _craft(item):
    return {"type": "ITEM_CRAFTED", "payload": {"itemId": item, "quantity": 1, "recipeId": "fusion"}}

def _gather(item, quantity):
    return {"type": "ITEM_GATHERED", "payload": {"itemId": item, "quantity": quantity, "location": {"biome": "swamp"}}}

KILL_WOLVES = {"type": "KILL_CREATURE", "params": {"creatureType": "Wolf", "count": 2}}

def test_parse_accepts_camel_case_params():
    parsed = criteria.parse_criteria({"type": "GATHER_ITEM", "params": {"itemId": "moss", "count": 3, "biome": "swamp"}})
    assert isinstance(parsed, criteria.GatherItemCriteria)
    assert parsed.params.item_id == "moss"

@pytest.mark.parametrize("raw", [
    {"type": "KILL_CREATURE", "params": {"creatureType": "Wolf", "count": 0}},
    {"type": "TRAVEL_DISTANCE", "params": {"distance": -1}},
    {"type": "SING_SONG", "params": {}},
])
def test_parse_rejects_bad_criteria(raw):
    with pytest.raises(ValidationError):
        criteria.parse_criteria(raw)

def test_kill_criteria():
    rule = criteria.parse_criteria(KILL_WOLVES)
    assert not criteria.evaluate_criteria(rule, _fold(_kill("Wolf")))
    assert criteria.evaluate_criteria(rule, _fold(_kill("Wolf"), _kill("Wolf", "tundra")))
    assert criteria.get_criteria_progress(rule, _fold(_kill("Wolf"))) == 0.5

def test_gather_and_craft_criteria():
    stats = _fold(_gather("bog_moss", 4), _craft("spark_stone"))
    gather = criteria.parse_criteria({"type": "GATHER_ITEM", "params": {"itemId": "bog_moss", "count": 2}})
    craft = criteria.parse_criteria({"type": "CRAFT_ITEM", "params": {"itemId": "spark_stone", "count": 2}})

    assert criteria.evaluate_criteria(gather, stats)
    assert criteria.get_criteria_progress(gather, stats) == 2.0
    assert not criteria.evaluate_criteria(craft, stats)
    assert criteria.get_criteria_progress(craft, stats) == 0.5

def test_travel_criteria_by_biome():
    stats = PlayerStatistics(exploration=ExplorationRecord(time_spent=TimeSpentStats(total=10, by_biome={"forest": 4})))
    anywhere = criteria.parse_criteria({"type": "TRAVEL_DISTANCE", "params": {"distance": 8}})
    in_forest = criteria.parse_criteria({"type": "TRAVEL_DISTANCE", "params": {"distance": 8, "biome": "forest"}})

    assert criteria.evaluate_criteria(anywhere, stats)
    assert not criteria.evaluate_criteria(in_forest, stats)
    assert criteria.get_criteria_progress(in_forest, stats) == 0.5

def test_custom_criteria_never_pass_and_have_no_progress():
    rule = criteria.parse_criteria({"type": "CUSTOM", "params": {"reach": "ancient_ruins"}})
    assert not criteria.evaluate_criteria(rule, PlayerStatistics())
    with pytest.raises(ValueError):
        criteria.get_criteria_progress(rule, PlayerStatistics())

def test_all_and_any():
    stats = _fold(_kill("Wolf"), _kill("Wolf"))
    rules = [criteria.parse_criteria(KILL_WOLVES), criteria.parse_criteria({"type": "CUSTOM"})]

    assert not criteria.evaluate_all_criteria(rules, stats)
    assert criteria.evaluate_any_criteria(rules, stats)
    assert criteria.evaluate_all_criteria([], stats)
    assert not criteria.evaluate_any_criteria([], stats)

def test_report_skips_custom_progress():
    rules = [criteria.parse_criteria(KILL_WOLVES), criteria.parse_criteria({"type": "CUSTOM"})]
    report = criteria.criteria_report(rules, _fold(_kill("Wolf")))
    assert report == [
        {"type": "KILL_CREATURE", "satisfied": False, "progress": 0.5},
        {"type": "CUSTOM", "satisfied": False, "progress": None},
    ]
