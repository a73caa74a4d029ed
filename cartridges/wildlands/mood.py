from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Iterable

from .board import TERRAIN_MOOD_STRENGTH


class MoodTag(str, Enum):
    # Primary emotional states
    DARK = "Dark"
    GLOOMY = "Gloomy"
    PEACEFUL = "Peaceful"
    THREATENING = "Threatening"
    MYSTERIOUS = "Mysterious"
    # Intensity / danger
    DANGER = "Danger"
    FOREBODING = "Foreboding"
    WILD = "Wild"
    # Environmental qualities
    LUSH = "Lush"
    VIBRANT = "Vibrant"
    ARID = "Arid"
    DESOLATE = "Desolate"
    WET = "Wet"
    ETHEREAL = "Ethereal"
    HARSH = "Harsh"
    HOT = "Hot"
    COLD = "Cold"
    CONFINED = "Confined"
    ELEVATED = "Elevated"
    VAST = "Vast"
    # Civilization
    CIVILIZED = "Civilized"
    HISTORIC = "Historic"
    ABANDONED = "Abandoned"
    # Special qualities
    MAGIC = "Magic"
    RESOURCEFUL = "Resourceful"
    SERENE = "Serene"
    RUGGED = "Rugged"
    SMOLDERING = "Smoldering"
    STRUCTURED = "Structured"
    BARREN = "Barren"


@dataclass(frozen=True)
class MoodProfile:
    mood: MoodTag
    strength: float  # 0-1


@dataclass(frozen=True)
class MoodThresholds:
    danger_high: float = 70
    danger_medium: float = 40
    light_dark: float = 10
    light_dim: float = 50
    light_bright: float = 80
    moisture_high: float = 80
    moisture_low: float = 20
    temp_hot: float = 40
    temp_cold: float = 0
    temp_mild: float = 15  # mild band runs from here up to temp_mild_max
    temp_mild_max: float = 30
    predator_high: float = 60
    magic_high: float = 70
    magic_medium: float = 40
    human_high: float = 60


DEFAULT_THRESHOLDS = MoodThresholds()

T = MoodTag
TERRAIN_MOODS: Dict[str, List[MoodTag]] = {
    "swamp": [T.GLOOMY, T.WET, T.MYSTERIOUS],
    "desert": [T.ARID, T.DESOLATE, T.HARSH],
    "mountain": [T.HARSH, T.RUGGED, T.ELEVATED],
    "forest": [T.LUSH, T.PEACEFUL],
    "cave": [T.DARK, T.MYSTERIOUS, T.FOREBODING, T.CONFINED],
    "jungle": [T.LUSH, T.VIBRANT, T.MYSTERIOUS, T.WILD],
    "volcanic": [T.DANGER, T.HARSH, T.SMOLDERING],
    "ocean": [T.SERENE, T.MYSTERIOUS, T.VAST],
    "tundra": [T.COLD, T.DESOLATE, T.BARREN],
    "grassland": [T.PEACEFUL, T.VAST, T.RESOURCEFUL],
    "beach": [T.SERENE, T.PEACEFUL],
    "mesa": [T.ARID, T.ELEVATED, T.VAST],
    "mushroom_forest": [T.LUSH, T.MYSTERIOUS, T.ETHEREAL],
    "city": [T.CIVILIZED, T.STRUCTURED],
    "space_station": [T.CIVILIZED, T.STRUCTURED],
    "underwater": [T.SERENE, T.MYSTERIOUS, T.VAST, T.CONFINED],
    "wall": [T.HARSH, T.CONFINED],
    "floptropica": [T.VIBRANT, T.LUSH],
}


def _thresholds(config) -> MoodThresholds:
    if config is None:
        return DEFAULT_THRESHOLDS
    if isinstance(config, MoodThresholds):
        return config
    # Partial overrides as a plain dict
    return replace(DEFAULT_THRESHOLDS, **config)


def analyze_mood(chunk, config=None) -> List[MoodProfile]:
    """
    Derives weighted mood tags from a chunk's environmental scalars.

    Every factor contributes at most one branch of moods. When several
    factors produce the same mood, the strongest contribution wins.
    The result is sorted by strength, strongest first.
    """
    cfg = _thresholds(config)
    moods: Dict[MoodTag, float] = {}

    def add(mood: MoodTag, strength: float = 1.0):
        moods[mood] = max(moods.get(mood, 0), min(strength, 1.0))

    # 1. Danger
    if chunk.danger_level >= cfg.danger_high:
        add(T.DANGER, 1.0)
        add(T.FOREBODING, 0.95)
        add(T.THREATENING, 0.95)
    elif chunk.danger_level >= cfg.danger_medium:
        add(T.THREATENING, 0.8)

    # 2. Light
    if chunk.light_level <= cfg.light_dark:
        add(T.DARK, 1.0)
        add(T.GLOOMY, 0.95)
        add(T.MYSTERIOUS, 0.85)
    elif chunk.light_level < cfg.light_dim:
        add(T.MYSTERIOUS, 0.9)
        add(T.GLOOMY, 0.85)
    elif chunk.light_level >= cfg.light_bright:
        add(T.VIBRANT, 1.0)
        add(T.PEACEFUL, 0.9)

    # 3. Moisture
    if chunk.moisture >= cfg.moisture_high:
        add(T.LUSH, 1.0)
        add(T.WET, 0.85)
        add(T.VIBRANT, 0.8)
    elif chunk.moisture <= cfg.moisture_low:
        add(T.ARID, 1.0)
        add(T.DESOLATE, 0.9)

    # 4. Temperature (unknown reads as 0)
    temp = chunk.temperature if chunk.temperature is not None else 0
    if temp >= cfg.temp_hot:
        add(T.HOT, 1.0)
        add(T.HARSH, 0.85)
    elif temp <= cfg.temp_cold:
        add(T.COLD, 1.0)
        add(T.HARSH, 0.85)
    elif cfg.temp_mild <= temp <= cfg.temp_mild_max:
        add(T.PEACEFUL, 0.8)

    # 5. Predators
    if chunk.predator_presence >= cfg.predator_high:
        add(T.DANGER, 0.9)
        add(T.WILD, 1.0)

    # 6. Magic
    if chunk.magic_affinity >= cfg.magic_high:
        add(T.MAGIC, 1.0)
        add(T.ETHEREAL, 0.95)
    elif chunk.magic_affinity >= cfg.magic_medium:
        add(T.MYSTERIOUS, 0.8)

    # 7. Human presence
    if chunk.human_presence >= cfg.human_high:
        add(T.CIVILIZED, 1.0)
        add(T.HISTORIC, 0.85)
    elif chunk.human_presence > 0:
        add(T.ABANDONED, 0.8)

    # 8. Terrain
    for mood in TERRAIN_MOODS.get(chunk.terrain, []):
        add(mood, TERRAIN_MOOD_STRENGTH)

    profiles = [MoodProfile(mood, round(strength, 2)) for mood, strength in moods.items()]
    return sorted(profiles, key=lambda p: p.strength, reverse=True)


def get_mood_tags(chunk, config=None) -> List[MoodTag]:
    return [p.mood for p in analyze_mood(chunk, config)]


def get_mood_strength(chunk, mood: MoodTag, config=None) -> float:
    for profile in analyze_mood(chunk, config):
        if profile.mood == mood:
            return profile.strength
    return 0


def get_primary_mood(chunk, config=None) -> Optional[MoodProfile]:
    profiles = analyze_mood(chunk, config)
    return profiles[0] if profiles else None


def has_mood_overlap(template_moods: Iterable[str], current_moods: Iterable) -> bool:
    """True when a template shares at least one mood with the chunk."""
    current = {mood_name(m) for m in current_moods}
    return any(mood_name(m) in current for m in template_moods)


def mood_name(mood) -> str:
    if isinstance(mood, MoodProfile):
        mood = mood.mood
    return mood.value if isinstance(mood, MoodTag) else str(mood)
