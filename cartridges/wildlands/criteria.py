"""
Quest and achievement criteria. Both systems share one schema and one
evaluator, answered from the player's statistics record via StatsQuery.
"""
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, TypeAdapter
from pydantic.alias_generators import to_camel

from .statistics_engine import PlayerStatistics
from .statistics_query import StatsQuery


class _Params(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KillCreatureParams(_Params):
    creature_type: str
    count: PositiveInt
    biome: Optional[str] = None
    weapon: Optional[str] = None


class GatherItemParams(_Params):
    item_id: str
    count: PositiveInt
    biome: Optional[str] = None
    tool: Optional[str] = None


class CraftItemParams(_Params):
    item_id: str
    count: PositiveInt
    recipe_id: Optional[str] = None


class TravelDistanceParams(_Params):
    distance: PositiveFloat
    biome: Optional[str] = None


class KillCreatureCriteria(BaseModel):
    type: Literal["KILL_CREATURE"] = "KILL_CREATURE"
    params: KillCreatureParams


class GatherItemCriteria(BaseModel):
    type: Literal["GATHER_ITEM"] = "GATHER_ITEM"
    params: GatherItemParams


class CraftItemCriteria(BaseModel):
    type: Literal["CRAFT_ITEM"] = "CRAFT_ITEM"
    params: CraftItemParams


class TravelDistanceCriteria(BaseModel):
    type: Literal["TRAVEL_DISTANCE"] = "TRAVEL_DISTANCE"
    params: TravelDistanceParams


class CustomCriteria(BaseModel):
    type: Literal["CUSTOM"] = "CUSTOM"
    params: Dict[str, Any] = Field(default_factory=dict)


Criteria = Annotated[
    Union[
        KillCreatureCriteria,
        GatherItemCriteria,
        CraftItemCriteria,
        TravelDistanceCriteria,
        CustomCriteria,
    ],
    Field(discriminator="type"),
]

_criteria_adapter = TypeAdapter(Criteria)


def parse_criteria(data) -> Criteria:
    """Validates a raw dict into the matching criteria model. Raises pydantic.ValidationError."""
    return _criteria_adapter.validate_python(data)


def evaluate_criteria(criteria: Criteria, stats: PlayerStatistics) -> bool:
    """
    True when the statistics satisfy the criteria. CUSTOM criteria are
    settled by game events elsewhere and never pass here.
    """
    p = criteria.params
    if criteria.type == "KILL_CREATURE":
        return StatsQuery.has_killed_creatures(stats, p.count, creature_type=p.creature_type, biome=p.biome, weapon=p.weapon)
    if criteria.type == "GATHER_ITEM":
        return StatsQuery.has_gathered_item(stats, p.item_id, p.count, biome=p.biome, tool=p.tool)
    if criteria.type == "CRAFT_ITEM":
        return StatsQuery.has_crafted_item(stats, p.item_id, p.count)
    if criteria.type == "TRAVEL_DISTANCE":
        return StatsQuery.has_traveled_distance(stats, p.distance, biome=p.biome)
    return False


def evaluate_all_criteria(criteria_list: Iterable[Criteria], stats: PlayerStatistics) -> bool:
    return all(evaluate_criteria(c, stats) for c in criteria_list)


def evaluate_any_criteria(criteria_list: Iterable[Criteria], stats: PlayerStatistics) -> bool:
    return any(evaluate_criteria(c, stats) for c in criteria_list)


def get_criteria_progress(criteria: Criteria, stats: PlayerStatistics) -> float:
    """
    Progress as current / target. Not capped, so 1.5 means half again
    past the goal. Raises ValueError for CUSTOM criteria.
    """
    p = criteria.params
    if criteria.type == "KILL_CREATURE":
        current = StatsQuery.get_kill_count(stats, creature_type=p.creature_type, biome=p.biome, weapon=p.weapon)
        return current / p.count
    if criteria.type == "GATHER_ITEM":
        return StatsQuery.get_item_count(stats, p.item_id, biome=p.biome, tool=p.tool) / p.count
    if criteria.type == "CRAFT_ITEM":
        return StatsQuery.get_crafted_item_count(stats, p.item_id) / p.count
    if criteria.type == "TRAVEL_DISTANCE":
        return StatsQuery.get_distance_traveled(stats, biome=p.biome) / p.distance
    raise ValueError("Custom criteria cannot be evaluated automatically")


def criteria_report(criteria_list: List[Criteria], stats: PlayerStatistics) -> List[Dict[str, Any]]:
    report = []
    for c in criteria_list:
        progress = None if c.type == "CUSTOM" else get_criteria_progress(c, stats)
        report.append({"type": c.type, "satisfied": evaluate_criteria(c, stats), "progress": progress})
    return report
