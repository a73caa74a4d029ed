import logging
import time
from typing import Annotated, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    # Clients may send camelCase; we store snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: float = Field(default_factory=time.time)


class EventLocation(BaseModel):
    biome: str
    x: Optional[int] = None
    y: Optional[int] = None


class CreatureKilledPayload(_Payload):
    creature_id: str
    creature_type: str
    location: EventLocation
    weapon: Optional[str] = None


class ItemGatheredPayload(_Payload):
    item_id: str
    quantity: int
    location: EventLocation
    tool: Optional[str] = None


class ItemCraftedPayload(_Payload):
    item_id: str
    quantity: int
    recipe_id: str


class ItemEquippedPayload(_Payload):
    item_id: str
    slot: Literal["mainHand", "offHand", "head", "body", "feet"]
    equipped: bool


class QuestRewards(BaseModel):
    xp: int = 0
    items: List[str] = Field(default_factory=list)


class QuestCompletedPayload(_Payload):
    quest_id: str
    rewards: QuestRewards = Field(default_factory=QuestRewards)


class AchievementUnlockedPayload(_Payload):
    achievement_id: str


class DamagePayload(_Payload):
    source: Literal["creature", "environment", "trap"]
    damage_amount: float


class LevelUpPayload(_Payload):
    new_level: int
    total_experience: int


class ExplorationPayload(_Payload):
    discovery_type: Literal["biome", "location"]
    biome_name: Optional[str] = None
    location_name: Optional[str] = None


class CreatureKilledEvent(BaseModel):
    type: Literal["CREATURE_KILLED"] = "CREATURE_KILLED"
    payload: CreatureKilledPayload


class ItemGatheredEvent(BaseModel):
    type: Literal["ITEM_GATHERED"] = "ITEM_GATHERED"
    payload: ItemGatheredPayload


class ItemCraftedEvent(BaseModel):
    type: Literal["ITEM_CRAFTED"] = "ITEM_CRAFTED"
    payload: ItemCraftedPayload


class ItemEquippedEvent(BaseModel):
    type: Literal["ITEM_EQUIPPED"] = "ITEM_EQUIPPED"
    payload: ItemEquippedPayload


class QuestCompletedEvent(BaseModel):
    type: Literal["QUEST_COMPLETED"] = "QUEST_COMPLETED"
    payload: QuestCompletedPayload


class AchievementUnlockedEvent(BaseModel):
    type: Literal["ACHIEVEMENT_UNLOCKED"] = "ACHIEVEMENT_UNLOCKED"
    payload: AchievementUnlockedPayload


class DamageEvent(BaseModel):
    type: Literal["DAMAGE"] = "DAMAGE"
    payload: DamagePayload


class LevelUpEvent(BaseModel):
    type: Literal["LEVEL_UP"] = "LEVEL_UP"
    payload: LevelUpPayload


class ExplorationEvent(BaseModel):
    type: Literal["EXPLORATION"] = "EXPLORATION"
    payload: ExplorationPayload


GameEvent = Annotated[
    Union[
        CreatureKilledEvent,
        ItemGatheredEvent,
        ItemCraftedEvent,
        ItemEquippedEvent,
        QuestCompletedEvent,
        AchievementUnlockedEvent,
        DamageEvent,
        LevelUpEvent,
        ExplorationEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter = TypeAdapter(GameEvent)


def parse_event(data) -> GameEvent:
    """Validates a raw dict into the matching event model. Raises pydantic.ValidationError."""
    return _event_adapter.validate_python(data)


EventListener = Callable[[GameEvent], None]


class GameEvents:
    """Synchronous pub/sub for game events. One bad listener never stops the rest."""

    def __init__(self):
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: EventListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: GameEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logging.error(f"Events: listener failed on {event.type}: {e}")

    def get_subscriber_count(self) -> int:
        return len(self._listeners)

    def clear(self):
        self._listeners.clear()


game_events = GameEvents()
