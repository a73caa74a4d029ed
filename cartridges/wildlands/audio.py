import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .mood import mood_name

PlaybackMode = str  # "always" | "occasional" | "off"

# --- AMBIENCE ---

AMBIENCE_DIR = "/asset/sound/ambience"
FADE_MS = 2500

AMBIENCE_TRACKS: Dict[str, List[str]] = {
    "forest": ["forest_birds.mp3", "forest_breeze.mp3"],
    "nature": ["meadow_insects.mp3", "open_field.mp3"],
    "water": ["stream_flow.mp3", "lake_lapping.mp3"],
    "rain": ["rain_light.mp3", "rain_heavy.mp3"],
    "wind": ["wind_gusts.mp3", "wind_howl.mp3"],
    "cave": ["cave_drips.mp3", "cave_rumble.mp3"],
    "night": ["night_crickets.mp3", "night_owls.mp3"],
    "day": ["day_songbirds.mp3"],
    "desert": ["desert_wind.mp3"],
    "ocean": ["ocean_waves.mp3", "seagulls.mp3"],
    "city": ["city_crowd.mp3"],
    "dark": ["low_drone.mp3"],
    "bright": ["light_chimes.mp3"],
}

BIOME_AMBIENCE: Dict[str, List[str]] = {
    "forest": ["forest", "nature"],
    "jungle": ["forest", "nature"],
    "mushroom_forest": ["forest", "night"],
    "grassland": ["nature"],
    "swamp": ["water", "nature"],
    "desert": ["desert", "wind"],
    "mesa": ["desert", "wind"],
    "mountain": ["wind"],
    "tundra": ["wind"],
    "cave": ["cave"],
    "volcanic": ["cave", "wind"],
    "ocean": ["ocean", "water"],
    "beach": ["ocean", "water"],
    "underwater": ["water"],
    "city": ["city"],
    "space_station": ["city"],
}

# lower-case mood name → ambience categories
MOOD_AMBIENCE: Dict[str, List[str]] = {}
for _moods, _categories in (
    (("dark", "gloomy", "foreboding"), ["cave", "night"]),
    (("peaceful", "serene"), ["nature", "water", "day"]),
    (("wet", "lush"), ["water", "nature"]),
    (("harsh", "threatening", "danger"), ["cave", "wind"]),
    (("vibrant", "wild"), ["forest", "nature"]),
    (("mysterious", "ethereal"), ["night", "cave"]),
):
    for _mood in _moods:
        MOOD_AMBIENCE[_mood] = _categories


@dataclass
class AmbienceContext:
    biome: Optional[str] = None
    moods: List[str] = field(default_factory=list)
    weather_type: Optional[str] = None
    moisture: Optional[float] = None
    wind_level: Optional[float] = None
    time_of_day: str = "day"  # "day" | "night"


@dataclass
class AmbienceLayer:
    file: str
    path: str
    volume: float
    fade_in_ms: int = FADE_MS
    fade_out_ms: int = FADE_MS


def get_ambience_path(file: str) -> str:
    return f"{AMBIENCE_DIR}/{file}"


def _mood_categories(ctx: AmbienceContext) -> List[str]:
    result: List[str] = []
    for mood in ctx.moods:
        result += MOOD_AMBIENCE.get(mood_name(mood).lower(), [])
    return result


def _weather_categories(ctx: AmbienceContext) -> List[str]:
    result: List[str] = []
    if ctx.moisture is not None and ctx.moisture > 70:
        result += ["rain", "water"]
    if ctx.wind_level is not None and ctx.wind_level > 60:
        result.append("wind")
    kind = (ctx.weather_type or "").lower()
    if "rain" in kind:
        result.append("rain")
    if "storm" in kind:
        result += ["rain", "wind"]
    return result


def _time_categories(ctx: AmbienceContext) -> List[str]:
    return ["night", "dark"] if ctx.time_of_day == "night" else ["day", "bright"]


def _dedupe(categories: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(categories))


def select_ambience_track(ctx: AmbienceContext) -> Optional[str]:
    """One looping track. Mood outranks weather, weather outranks biome, biome outranks time."""
    ordered = _dedupe(
        _mood_categories(ctx)
        + _weather_categories(ctx)
        + BIOME_AMBIENCE.get(ctx.biome or "", [])
        + _time_categories(ctx)
    )
    for category in ordered:
        tracks = AMBIENCE_TRACKS.get(category)
        if tracks:
            return random.choice(tracks)
    return None


def select_ambience_layers(ctx: AmbienceContext, max_layers: int = 2) -> List[AmbienceLayer]:
    """
    Several tracks mixed together. Categories are ranked weather (3), then
    mood and time (2), then biome (1); the lead layer plays at full volume,
    the rest at 0.6.
    """
    scored: Dict[str, int] = {}
    for categories, score in (
        (_weather_categories(ctx), 3),
        (_mood_categories(ctx), 2),
        (_time_categories(ctx), 2),
        (BIOME_AMBIENCE.get(ctx.biome or "", []), 1),
    ):
        for category in categories:
            scored[category] = max(scored.get(category, 0), score)

    ranked = sorted(scored, key=lambda c: scored[c], reverse=True)
    layers: List[AmbienceLayer] = []
    for category in ranked:
        if len(layers) >= max_layers:
            break
        tracks = AMBIENCE_TRACKS.get(category)
        if not tracks:
            continue
        file = random.choice(tracks)
        layers.append(AmbienceLayer(
            file=file,
            path=get_ambience_path(file),
            volume=1.0 if not layers else 0.6,
        ))
    return layers


# --- ACTION SOUNDS ---

class AudioActionType(str, Enum):
    PLAYER_MOVE = "PLAYER_MOVE"
    PLAYER_ATTACK = "PLAYER_ATTACK"
    ENEMY_HIT = "ENEMY_HIT"
    ENEMY_DEFEATED = "ENEMY_DEFEATED"
    ITEM_PICKUP = "ITEM_PICKUP"
    ITEM_EQUIP_WEAPON = "ITEM_EQUIP_WEAPON"
    ITEM_EQUIP_ARMOR = "ITEM_EQUIP_ARMOR"
    ITEM_UNEQUIP = "ITEM_UNEQUIP"
    ITEM_USE = "ITEM_USE"
    ITEM_DROP = "ITEM_DROP"
    CRAFT_START = "CRAFT_START"
    CRAFT_SUCCESS = "CRAFT_SUCCESS"
    CRAFT_FAIL = "CRAFT_FAIL"
    FARM_TILL = "FARM_TILL"
    FARM_WATER = "FARM_WATER"
    FARM_FERTILIZE = "FARM_FERTILIZE"
    FARM_PLANT = "FARM_PLANT"
    HARVEST_START = "HARVEST_START"
    HARVEST_ITEM = "HARVEST_ITEM"
    HARVEST_COMPLETE = "HARVEST_COMPLETE"
    BUILD_CONSTRUCT = "BUILD_CONSTRUCT"
    BUILD_SUCCESS = "BUILD_SUCCESS"
    ENVIRONMENT_DOOR_OPEN = "ENVIRONMENT_DOOR_OPEN"
    ENVIRONMENT_DOOR_CLOSE = "ENVIRONMENT_DOOR_CLOSE"
    REST_ENTER = "REST_ENTER"
    REST_EXIT = "REST_EXIT"
    REST_COMPLETE = "REST_COMPLETE"
    UI_BUTTON_CLICK = "UI_BUTTON_CLICK"
    UI_CONFIRM = "UI_CONFIRM"
    UI_CANCEL = "UI_CANCEL"
    SKILL_CAST = "SKILL_CAST"
    SKILL_SUCCESS = "SKILL_SUCCESS"
    SKILL_FAIL = "SKILL_FAIL"
    NPC_TALK = "NPC_TALK"
    NPC_FAREWELL = "NPC_FAREWELL"
    ANALYZE = "ANALYZE"


A = AudioActionType

@dataclass
class AudioEventContext:
    biome: Optional[str] = None
    item_rarity: Optional[str] = None  # common | uncommon | rare | epic | legendary
    item_type: Optional[str] = None
    tool_type: Optional[str] = None
    success: Optional[bool] = None
    is_heavy_attack: Optional[bool] = None
    creature_type: Optional[str] = None
    is_critical: Optional[bool] = None


@dataclass
class AudioEventPayload:
    action_type: AudioActionType
    sfx_files: List[str]
    context: AudioEventContext
    priority: str  # low | medium | high


GENERIC_FOOTSTEPS = [f"steping_sounds/rustle{i:02d}.flac" for i in range(1, 21)]

FOOTSTEPS: Dict[str, List[str]] = {
    "grass": [f"footsteps/grass_{i:02d}.wav" for i in range(1, 6)],
    "snow": [f"footsteps/snow_{i:02d}.wav" for i in range(1, 6)],
    "gravel": [f"footsteps/gravel_{i:02d}.wav" for i in range(1, 6)],
    "wood": [f"footsteps/wood_{i:02d}.wav" for i in range(1, 6)],
}

FOOTSTEP_SURFACE: Dict[str, str] = {}
for _surface, _biomes in (
    ("grass", ("forest", "grassland", "jungle", "mushroom_forest", "swamp")),
    ("snow", ("tundra",)),
    ("gravel", ("cave", "mountain", "desert", "volcanic", "mesa", "beach",
                "ocean", "city", "space_station", "underwater")),
    ("wood", ("wall", "floptropica")),
):
    for _biome in _biomes:
        FOOTSTEP_SURFACE[_biome] = _surface


def get_footsteps_for_biome(biome: Optional[str], count: int = 3) -> List[str]:
    pool = FOOTSTEPS.get(FOOTSTEP_SURFACE.get(biome or ""), GENERIC_FOOTSTEPS)
    return random.sample(pool, min(count, len(pool)))


def _item_pickup(ctx: AudioEventContext):
    if ctx.item_rarity in ("rare", "epic", "legendary"):
        return "gem_collect.wav"
    return ["coin_jingle_small.wav", "coins_gather_quick.wav"]


def _fixed(sounds):
    return lambda ctx: sounds


SfxResolver = Callable[[AudioEventContext], Union[str, List[str], None]]

AUDIO_EVENTS_REGISTRY: Dict[AudioActionType, SfxResolver] = {
    A.PLAYER_MOVE: lambda ctx: get_footsteps_for_biome(ctx.biome),
    A.PLAYER_ATTACK: _fixed(["punch.wav", "punch_2.wav", "punch_3.wav", "kick.wav"]),
    A.ENEMY_HIT: _fixed(["slap.wav", "swipe.wav", "splat_quick.wav"]),
    A.ENEMY_DEFEATED: _fixed(["crunch_splat.wav", "squelching_2.wav", "squelching_3.wav"]),
    A.ITEM_PICKUP: _item_pickup,
    A.ITEM_EQUIP_WEAPON: _fixed(["weapon_equip.wav", "weapon_equip_short.wav"]),
    A.ITEM_EQUIP_ARMOR: _fixed(["clothing_1.wav", "clothing_2.wav", "item_equip.wav"]),
    A.ITEM_UNEQUIP: _fixed("weapon_unequip.wav"),
    A.ITEM_USE: _fixed(["drink_slurp.wav", "munching_food.wav"]),
    A.ITEM_DROP: _fixed(["wood_small_drop.wav", "cardboard_drop.wav"]),
    A.CRAFT_START: _fixed(["pencil_scribble.wav", "pencil_eraser.wav"]),
    A.CRAFT_SUCCESS: _fixed(["brass_chime_positive.wav", "8_bit_chime_positive.wav", "synth_confirmation.wav"]),
    A.CRAFT_FAIL: _fixed(["synth_error.wav", "UI/crafting_fail.wav"]),
    A.FARM_TILL: _fixed("shovel_dig.wav"),
    A.FARM_WATER: _fixed(["water_dripping.wav", "water_drop_medium.wav", "water_drop_synthetic.wav"]),
    A.FARM_FERTILIZE: _fixed(["paper_move.wav", "concrete_scrape.wav"]),
    A.FARM_PLANT: _fixed(["snap.wav", "subtle_knock.wav"]),
    A.HARVEST_START: _fixed("shovel_dig.wav"),
    A.HARVEST_ITEM: _fixed(["gem_collect.wav", "coins_gather_quick.wav", "wood_small_gather.wav"]),
    A.HARVEST_COMPLETE: _fixed(["brass_level_complete.wav", "8_bit_level_complete.wav"]),
    A.BUILD_CONSTRUCT: _fixed(["metal_clang.wav", "wood_small_gather.wav"]),
    A.BUILD_SUCCESS: _fixed(["brass_chime_positive.wav", "8_bit_chime_positive.wav"]),
    A.ENVIRONMENT_DOOR_OPEN: _fixed("door_open.wav"),
    A.ENVIRONMENT_DOOR_CLOSE: _fixed("door_close.wav"),
    A.REST_ENTER: _fixed(["door_open.wav", "creaky_door_short.wav"]),
    A.REST_EXIT: _fixed(["door_close.wav", "creaky_door_short.wav"]),
    A.REST_COMPLETE: _fixed(["brass_inn.wav", "8_bit_inn.wav"]),
    A.UI_BUTTON_CLICK: _fixed("UI/button_click.m4a"),
    A.UI_CONFIRM: _fixed("UI/craftting_success.wav"),
    A.UI_CANCEL: _fixed("UI/cancel.wav"),
    A.SKILL_CAST: _fixed("whoosh_1.wav"),
    A.SKILL_SUCCESS: _fixed(["brass_chime_quick.wav", "synth_confirmation.wav"]),
    A.SKILL_FAIL: _fixed(["synth_error.wav", "synth_warning.wav"]),
    A.NPC_TALK: _fixed([f"man_{i}.wav" for i in range(11)]),
    A.NPC_FAREWELL: _fixed("whistle.wav"),
    A.ANALYZE: _fixed(["whoosh_1.wav", "whoosh_2.wav"]),
}

CRITICAL_ACTIONS = {
    A.UI_CONFIRM, A.UI_CANCEL, A.CRAFT_SUCCESS, A.CRAFT_FAIL, A.BUILD_SUCCESS,
    A.HARVEST_COMPLETE, A.ENEMY_DEFEATED, A.REST_COMPLETE, A.SKILL_SUCCESS, A.SKILL_FAIL,
}

MEDIUM_PRIORITY_ACTIONS = {
    A.PLAYER_ATTACK, A.ENEMY_HIT, A.HARVEST_ITEM, A.ITEM_EQUIP_WEAPON,
    A.ITEM_EQUIP_ARMOR, A.BUILD_CONSTRUCT,
}

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def is_critical_audio_event(action: AudioActionType) -> bool:
    return action in CRITICAL_ACTIONS


def get_priority_for_action(action: AudioActionType) -> str:
    if is_critical_audio_event(action):
        return "high"
    if action in MEDIUM_PRIORITY_ACTIONS:
        return "medium"
    return "low"


def emit_audio_event(
    action: AudioActionType,
    context: Optional[AudioEventContext] = None,
    playback_mode: PlaybackMode = "always",
    roll: Optional[float] = None,
) -> Optional[AudioEventPayload]:
    """
    Resolves the sound files for an action, or None when nothing should play.
    In "occasional" mode non-critical sounds are dropped about half the time.
    """
    if playback_mode == "off":
        return None

    if playback_mode == "occasional" and not is_critical_audio_event(action):
        r = random.random() if roll is None else roll
        if r > 0.5:
            return None

    resolver = AUDIO_EVENTS_REGISTRY.get(action)
    if resolver is None:
        return None

    ctx = context or AudioEventContext()
    try:
        result = resolver(ctx)
    except Exception as e:
        logging.warning(f"Audio: resolver for {action} failed: {e}")
        return None

    if result is None:
        return None
    files = [result] if isinstance(result, str) else list(result)
    files = [f for f in files if isinstance(f, str) and f]
    if not files:
        return None

    return AudioEventPayload(
        action_type=action,
        sfx_files=files,
        context=ctx,
        priority=get_priority_for_action(action),
    )


def emit_audio_event_batch(
    events: Sequence[Tuple[AudioActionType, Optional[AudioEventContext]]],
    playback_mode: PlaybackMode = "always",
) -> List[AudioEventPayload]:
    payloads = [emit_audio_event(action, ctx, playback_mode) for action, ctx in events]
    return sorted((p for p in payloads if p is not None), key=lambda p: PRIORITY_ORDER[p.priority])


def will_audio_event_play(action: AudioActionType, playback_mode: PlaybackMode) -> bool:
    """Deterministic check: in "occasional" mode only critical sounds are guaranteed."""
    if playback_mode == "always":
        return True
    if playback_mode == "occasional":
        return is_critical_audio_event(action)
    return False
