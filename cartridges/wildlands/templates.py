"""
Offline narrative: builds a scene description from hand-written biome
templates when the LLM is unavailable or the player is playing offline.
"""
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import lexicon
from .mood import MoodProfile, analyze_mood, has_mood_overlap


@dataclass
class NarrativeTemplate:
    id: str
    template: str
    type: str  # Opening | EnvironmentDetail | SensoryDetail
    mood: List[str] = field(default_factory=list)
    weight: float = 0.5
    conditions: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BiomeTemplates:
    templates: List[NarrativeTemplate]
    adjectives: Dict[str, List[str]] = field(default_factory=dict)
    features: Dict[str, List[str]] = field(default_factory=dict)
    smells: Dict[str, List[str]] = field(default_factory=dict)
    sounds: Dict[str, List[str]] = field(default_factory=dict)
    sky: Dict[str, List[str]] = field(default_factory=dict)

    def words_for(self, key: str) -> Optional[List[str]]:
        for table in (self.adjectives, self.features, self.smells, self.sounds, self.sky):
            if table.get(key):
                return table[key]
        return None


# --- DATA ---

NT = NarrativeTemplate

BIOME_TEMPLATES: Dict[str, BiomeTemplates] = {
    "forest": BiomeTemplates(
        templates=[
            NT("forest_open_1", "You stand in a {{forest_adj}} forest where {{tree}} crowd close together.", "Opening", ["Lush", "Peaceful"], 0.7),
            NT("forest_open_2", "Shadows pool beneath {{tree}}; this part of the forest feels {{forest_adj}}.", "Opening", ["Dark", "Mysterious", "Gloomy"], 0.6),
            NT("forest_open_3", "A stretch of forest opens around you.", "Opening", [], 0.3),
            NT("forest_env_1", "Sunlight filters through the canopy onto {{ground}}.", "EnvironmentDetail", ["Peaceful", "Vibrant"], 0.5, {"time_of_day": "day"}),
            NT("forest_env_2", "Moonlight barely reaches {{ground}}.", "EnvironmentDetail", ["Dark", "Mysterious"], 0.5, {"time_of_day": "night"}),
            NT("forest_env_3", "You spot {item_found} among the roots.", "EnvironmentDetail", ["Lush", "Resourceful"], 0.4),
            NT("forest_sense_1", "The air smells of {{forest_smell}}.", "SensoryDetail", ["Lush", "Peaceful"], 0.5),
            NT("forest_sense_2", "Somewhere nearby, {{forest_sound}}.", "SensoryDetail", ["Mysterious", "Peaceful", "Wild"], 0.5),
            NT("forest_sense_3", "The light is {light_level_detail} and the air feels {temp_detail}.", "SensoryDetail", ["Dark", "Gloomy", "Lush"], 0.4),
            NT("forest_sense_4", "You feel {player_health_status}.", "SensoryDetail", ["Danger", "Threatening"], 0.4, {"player_health": {"max": 40}}),
        ],
        adjectives={"forest_adj": ["quiet", "ancient", "tangled", "green"]},
        features={"tree": ["old oaks", "pale birches", "mossy pines"], "ground": ["the leaf litter", "a carpet of moss", "twisted roots"]},
        smells={"forest_smell": ["damp earth", "pine resin", "rotting leaves"]},
        sounds={"forest_sound": ["a woodpecker knocks", "branches creak", "something rustles in the ferns"]},
    ),
    "cave": BiomeTemplates(
        templates=[
            NT("cave_open_1", "You are inside a {{cave_adj}} cave; {{rock}} close in on every side.", "Opening", ["Dark", "Confined"], 0.7),
            NT("cave_open_2", "The cave swallows the light behind you.", "Opening", ["Foreboding", "Mysterious"], 0.5),
            NT("cave_open_3", "You are underground.", "Opening", [], 0.3),
            NT("cave_env_1", "Water drips from {{rock}} into shallow pools.", "EnvironmentDetail", ["Dark", "Wet", "Mysterious"], 0.5),
            NT("cave_env_2", "A {enemy_name} shifts in the darkness ahead.", "EnvironmentDetail", ["Danger", "Threatening"], 0.6, {"danger_level": {"min": 40}}),
            NT("cave_env_3", "Something glints near your feet: {item_found}.", "EnvironmentDetail", ["Mysterious", "Confined"], 0.4),
            NT("cave_sense_1", "The air tastes of {{cave_smell}}.", "SensoryDetail", ["Confined", "Dark"], 0.5),
            NT("cave_sense_2", "Far off, {{cave_sound}}.", "SensoryDetail", ["Foreboding", "Mysterious"], 0.5),
            NT("cave_sense_3", "It is {light_level_detail} here and the stone feels {moisture_detail}.", "SensoryDetail", ["Dark", "Gloomy"], 0.4),
        ],
        adjectives={"cave_adj": ["narrow", "echoing", "cold", "winding"]},
        features={"rock": ["jagged walls", "dripping stalactites", "slick stone"]},
        smells={"cave_smell": ["wet stone", "mineral dust", "old bones"]},
        sounds={"cave_sound": ["water trickles", "pebbles skitter", "something breathes slowly"]},
    ),
    "desert": BiomeTemplates(
        templates=[
            NT("desert_open_1", "An {{desert_adj}} desert stretches to the horizon.", "Opening", ["Arid", "Vast", "Desolate"], 0.7),
            NT("desert_open_2", "Heat shimmers over the dunes ahead of you.", "Opening", ["Hot", "Harsh"], 0.6),
            NT("desert_open_3", "Sand shifts under your boots.", "Opening", [], 0.3),
            NT("desert_env_1", "{{dune}} rise and fall like frozen waves.", "EnvironmentDetail", ["Vast", "Arid"], 0.5),
            NT("desert_env_2", "Half buried in the sand you notice {item_found}.", "EnvironmentDetail", ["Desolate", "Abandoned"], 0.4),
            NT("desert_sense_1", "The sky is {{desert_sky}}.", "SensoryDetail", ["Arid", "Hot", "Vast"], 0.5),
            NT("desert_sense_2", "The wind carries {{desert_sound}}.", "SensoryDetail", ["Desolate", "Harsh"], 0.5),
            NT("desert_sense_3", "The air is {temp_detail} and {moisture_detail}.", "SensoryDetail", ["Hot", "Arid"], 0.4),
        ],
        adjectives={"desert_adj": ["endless", "sun-bleached", "silent", "burning"]},
        features={"dune": ["Golden dunes", "Wind-carved ridges", "Low sandy hills"]},
        sounds={"desert_sound": ["the hiss of drifting sand", "a distant hawk cry", "nothing at all"]},
        sky={"desert_sky": ["a hard, cloudless blue", "white with glare", "streaked with dust"]},
    ),
    "swamp": BiomeTemplates(
        templates=[
            NT("swamp_open_1", "You wade into a {{swamp_adj}} swamp thick with {{reed}}.", "Opening", ["Gloomy", "Wet", "Mysterious"], 0.7),
            NT("swamp_open_2", "Murky water laps around your ankles.", "Opening", [], 0.3),
            NT("swamp_env_1", "Mist curls over the black water.", "EnvironmentDetail", ["Mysterious", "Gloomy"], 0.5),
            NT("swamp_env_2", "A {enemy_name} watches you from the shallows.", "EnvironmentDetail", ["Danger", "Threatening"], 0.6, {"danger_level": {"min": 40}}),
            NT("swamp_env_3", "Caught in the reeds you find {item_found}.", "EnvironmentDetail", ["Wet", "Lush"], 0.4),
            NT("swamp_sense_1", "The stench of {{swamp_smell}} hangs in the air.", "SensoryDetail", ["Gloomy", "Wet"], 0.5),
            NT("swamp_sense_2", "Around you, {{swamp_sound}}.", "SensoryDetail", ["Mysterious", "Wild"], 0.5),
            NT("swamp_sense_3", "Everything feels {moisture_detail}.", "SensoryDetail", ["Wet", "Lush"], 0.4),
        ],
        adjectives={"swamp_adj": ["fetid", "drowned", "misty", "sluggish"]},
        features={"reed": ["tall reeds", "hanging moss", "rotting logs"]},
        smells={"swamp_smell": ["rot", "stagnant water", "sulfur"]},
        sounds={"swamp_sound": ["frogs croak", "bubbles rise and pop", "insects whine"]},
    ),
    "grassland": BiomeTemplates(
        templates=[
            NT("grass_open_1", "A {{grass_adj}} grassland rolls out around you.", "Opening", ["Peaceful", "Vast", "Resourceful"], 0.7),
            NT("grass_open_2", "Open plains surround you.", "Opening", [], 0.3),
            NT("grass_env_1", "{{flower}} dot the tall grass.", "EnvironmentDetail", ["Peaceful", "Vibrant", "Lush"], 0.5),
            NT("grass_env_2", "You notice {item_found} in the grass.", "EnvironmentDetail", ["Resourceful", "Peaceful"], 0.4),
            NT("grass_sense_1", "The breeze carries the scent of {{grass_smell}}.", "SensoryDetail", ["Peaceful", "Vast"], 0.5),
            NT("grass_sense_2", "Overhead, the sky is {{grass_sky}}.", "SensoryDetail", ["Vast", "Vibrant"], 0.5, {"time_of_day": "day"}),
            NT("grass_sense_3", "The air is {temp_detail}.", "SensoryDetail", ["Peaceful", "Hot", "Cold"], 0.4),
        ],
        adjectives={"grass_adj": ["windswept", "golden", "gentle", "wide"]},
        features={"flower": ["Wildflowers", "Clumps of clover", "Yellow blooms"]},
        smells={"grass_smell": ["cut hay", "wild thyme", "warm earth"]},
        sky={"grass_sky": ["wide and blue", "scattered with clouds", "pale and high"]},
    ),
    "mountain": BiomeTemplates(
        templates=[
            NT("mtn_open_1", "You climb a {{mountain_adj}} slope toward {{peak}}.", "Opening", ["Elevated", "Harsh", "Rugged"], 0.7),
            NT("mtn_open_2", "Rock and scree stretch above you.", "Opening", [], 0.3),
            NT("mtn_env_1", "Loose stones tumble down the path behind you.", "EnvironmentDetail", ["Rugged", "Danger"], 0.5),
            NT("mtn_env_2", "Wedged between boulders lies {item_found}.", "EnvironmentDetail", ["Harsh", "Elevated"], 0.4),
            NT("mtn_sense_1", "The wind {{mountain_sound}}.", "SensoryDetail", ["Elevated", "Cold", "Harsh"], 0.5),
            NT("mtn_sense_2", "Each breath feels {temp_detail} and thin.", "SensoryDetail", ["Cold", "Elevated"], 0.4),
        ],
        adjectives={"mountain_adj": ["steep", "windswept", "craggy", "treacherous"]},
        features={"peak": ["a snow-capped summit", "a jagged ridge", "a lonely crag"]},
        sounds={"mountain_sound": ["howls through the passes", "whistles over the rocks", "tugs at your clothes"]},
    ),
    "jungle": BiomeTemplates(
        templates=[
            NT("jungle_open_1", "A {{jungle_adj}} jungle closes around you, all {{vine}}.", "Opening", ["Lush", "Vibrant", "Wild"], 0.7),
            NT("jungle_open_2", "Green shadows swallow the path.", "Opening", [], 0.3),
            NT("jungle_env_1", "Giant leaves drip with warm water.", "EnvironmentDetail", ["Wet", "Lush"], 0.5),
            NT("jungle_env_2", "A {enemy_name} crashes through the undergrowth nearby.", "EnvironmentDetail", ["Danger", "Wild"], 0.6, {"predator_presence": {"min": 40}}),
            NT("jungle_env_3", "Among the vines you spot {item_found}.", "EnvironmentDetail", ["Lush", "Mysterious"], 0.4),
            NT("jungle_sense_1", "The jungle hums with {{jungle_sound}}.", "SensoryDetail", ["Vibrant", "Wild"], 0.5),
            NT("jungle_sense_2", "The air is {moisture_detail} and heavy.", "SensoryDetail", ["Wet", "Lush"], 0.4),
        ],
        adjectives={"jungle_adj": ["steaming", "dense", "tangled", "teeming"]},
        features={"vine": ["hanging vines", "broad leaves", "strangler figs"]},
        sounds={"jungle_sound": ["birdsong", "the chatter of monkeys", "buzzing insects"]},
    ),
    "tundra": BiomeTemplates(
        templates=[
            NT("tundra_open_1", "A {{tundra_adj}} plain of {{frost}} runs to the horizon.", "Opening", ["Cold", "Barren", "Harsh"], 0.7),
            NT("tundra_open_2", "Snow crunches under every step.", "Opening", [], 0.3),
            NT("tundra_env_1", "Lichen clings to a half-buried stone.", "EnvironmentDetail", ["Barren", "Peaceful"], 0.5),
            NT("tundra_env_2", "A {enemy_name} pads across the snow in the distance.", "EnvironmentDetail", ["Danger", "Harsh"], 0.6, {"predator_presence": {"min": 40}}),
            NT("tundra_env_3", "Frozen into the crust you spot {item_found}.", "EnvironmentDetail", ["Cold", "Mysterious"], 0.4),
            NT("tundra_sense_1", "The wind {{tundra_sound}}.", "SensoryDetail", ["Cold", "Harsh"], 0.5),
            NT("tundra_sense_2", "The sky above is {{tundra_sky}}.", "SensoryDetail", ["Barren", "Peaceful"], 0.4),
            NT("tundra_sense_3", "Your breath fogs and the air is {temp_detail}.", "SensoryDetail", ["Cold"], 0.4),
        ],
        adjectives={"tundra_adj": ["frozen", "bleak", "endless", "wind-scoured"]},
        features={"frost": ["packed snow", "frost-heaved earth", "brittle ice"]},
        sounds={"tundra_sound": ["moans across the flats", "hisses with blown snow", "bites at your face"]},
        sky={"tundra_sky": ["white and low", "a hard pale blue", "streaked with cold light"]},
    ),
}

# English word variations for synthesized detail sentences
KEYWORD_VARIATIONS: Dict[str, Dict[str, List[str]]] = {
    "temp_adj": {
        "hot": ["the heat is scorching", "the air is sweltering", "the warmth is oppressive"],
        "mild": ["the air is mild", "it is pleasantly warm"],
        "cold": ["the air is chilly", "the cold is freezing"],
    },
    "moisture_adj": {
        "high": ["the air is soupy", "the humidity is cloying", "everything is damp"],
        "medium": ["the air is fresh", "the breeze is pleasant"],
        "low": ["the air is bone dry"],
    },
    "light_adj": {
        "dark": ["the light is dim", "shadows flicker", "the gloom is eerie"],
        "medium": ["the light is dappled", "shade and light lie mottled"],
        "bright": ["the light is blazing", "colors look vivid"],
    },
}

SENSORY_PHRASES = {
    "light_level_dark": "pitch dark",
    "light_level_dim": "dim",
    "light_level_normal": "clear",
    "temp_cold": "bitterly cold",
    "temp_hot": "scorching",
    "temp_mild": "mild",
    "moisture_humid": "humid",
    "moisture_dry": "dry",
    "moisture_normal": "fresh",
    "no_enemy_found": "shape",
    "no_item_found": "nothing of note",
    "player_health_low": "badly hurt",
    "player_health_normal": "steady on your feet",
    "player_stamina_low": "exhausted",
    "player_stamina_normal": "rested",
}

SENTENCE_LIMITS = {
    "short": (1, 2),
    "medium": (2, 4),
    "long": (4, 7),
    "detailed": (4, 7),
}

CONNECTORS = {
    "short": [" and "],
    "medium": [" and ", ". Suddenly, ", ". Additionally, ", "."],
    "long": [", moreover, ", ". Furthermore, ", ". Not only that, ", ". Notably, ", ". Meanwhile, ", ". However, "],
}
CONNECTORS["detailed"] = CONNECTORS["long"]

_BIOME_PLACEHOLDER = re.compile(r"\{\{(.*?)\}\}")


# --- HELPERS ---

def select_random(options: List[str]) -> str:
    return random.choice(options) if options else ""


def select_by_range(value: float, ranges: List[tuple]) -> Optional[Any]:
    """ranges is [(upper_bound, result), ...] in ascending order; first bound >= value wins."""
    for upper, result in ranges:
        if value <= upper:
            return result
    return ranges[-1][1] if ranges else None


def get_sentence_limits(length: str) -> tuple:
    return SENTENCE_LIMITS.get(length, (1, 2))


def is_day(game_time: int, start_time: int = 360, day_duration: int = 1440) -> bool:
    """Daytime is the middle half of each day; game time starts at start_time (06:00)."""
    minute = (start_time + game_time) % day_duration
    return day_duration * 0.25 <= minute < day_duration * 0.75


def check_conditions(conditions: Optional[Dict[str, Any]], chunk, player=None) -> bool:
    if not conditions:
        return True

    for key, wanted in conditions.items():
        if key == "time_of_day":
            if chunk.game_time is None:
                continue
            day = is_day(chunk.game_time)
            if (wanted == "day" and not day) or (wanted == "night" and day):
                return False
            continue

        if key == "soil_type":
            if isinstance(wanted, list) and chunk.soil_type not in wanted:
                return False
            continue

        if key in ("player_health", "player_stamina"):
            if player is None:
                continue
            value = player.hp if key == "player_health" else player.stamina
            if value < wanted.get("min", 0) or value > wanted.get("max", 100):
                return False
            continue

        if key == "required_entities":
            enemy_type = wanted.get("enemy_type")
            item_type = wanted.get("item_type")
            found = bool(enemy_type and chunk.enemy and chunk.enemy.type == enemy_type)
            if item_type and not found:
                found = any(item.name == item_type for item in chunk.items)
            if not found and (enemy_type or item_type):
                return False
            continue

        value = getattr(chunk, key, None)
        if isinstance(value, (int, float)) and isinstance(wanted, dict):
            if value < wanted.get("min", float("-inf")) or value > wanted.get("max", float("inf")):
                return False

    return True


def select_template_by_weight(templates: List[NarrativeTemplate]) -> NarrativeTemplate:
    if not templates:
        raise ValueError("No templates provided for weighted selection.")
    total = sum(t.weight or 0.5 for t in templates)
    remaining = random.random() * total
    for tmpl in templates:
        remaining -= tmpl.weight or 0.5
        if remaining <= 0:
            return tmpl
    return templates[0]


def fill_template(template: str, chunk, player=None) -> str:
    biome = BIOME_TEMPLATES.get(chunk.terrain.lower())
    if biome is None:
        logging.warning(f"Templates: no placeholder data for {chunk.terrain}")
        return template

    def biome_word(match):
        words = biome.words_for(match.group(1).strip())
        if words:
            return random.choice(words)
        logging.warning(f"Templates: empty placeholder category {match.group(1)}")
        return ""

    text = _BIOME_PLACEHOLDER.sub(biome_word, template)

    if chunk.light_level <= 10:
        light = SENSORY_PHRASES["light_level_dark"]
    elif chunk.light_level < 50:
        light = SENSORY_PHRASES["light_level_dim"]
    else:
        light = SENSORY_PHRASES["light_level_normal"]
    text = text.replace("{light_level_detail}", light)

    temp = chunk.temperature
    if temp is not None and temp <= 0:
        temp_phrase = SENSORY_PHRASES["temp_cold"]
    elif temp is not None and temp >= 40:
        temp_phrase = SENSORY_PHRASES["temp_hot"]
    else:
        temp_phrase = SENSORY_PHRASES["temp_mild"]
    text = text.replace("{temp_detail}", temp_phrase)

    if chunk.moisture >= 80:
        moisture = SENSORY_PHRASES["moisture_humid"]
    elif chunk.moisture <= 20:
        moisture = SENSORY_PHRASES["moisture_dry"]
    else:
        moisture = SENSORY_PHRASES["moisture_normal"]
    text = text.replace("{moisture_detail}", moisture)

    enemy = chunk.enemy.type if chunk.enemy else SENSORY_PHRASES["no_enemy_found"]
    text = text.replace("{enemy_name}", enemy)
    item = random.choice(chunk.items).name if chunk.items else SENSORY_PHRASES["no_item_found"]
    text = text.replace("{item_found}", item)

    if player is not None:
        health = "player_health_low" if player.hp < 30 else "player_health_normal"
        stamina = "player_stamina_low" if player.stamina < 30 else "player_stamina_normal"
        text = text.replace("{player_health_status}", SENSORY_PHRASES[health])
        text = text.replace("{player_stamina_status}", SENSORY_PHRASES[stamina])

    return text


def synthesize_detail_sentence(chunk, biome: Optional[BiomeTemplates] = None) -> str:
    """Builds a sentence around whichever of heat, damp or light stands out most."""
    scores = []
    if chunk.temperature is not None:
        t = chunk.temperature
        scores.append(("temperature", abs(t - 50) + (20 if t >= 80 or t <= 10 else 0)))
    m = chunk.moisture
    scores.append(("moisture", abs(m - 50) + (15 if m >= 80 or m <= 20 else 0)))
    light = chunk.light_level
    scores.append(("light", abs(-light if light <= 0 else 100 - light) + (10 if light <= 10 else 0)))
    primary = max(scores, key=lambda s: s[1])[0]  # first wins on ties

    kv = KEYWORD_VARIATIONS
    if primary == "temperature":
        band = "hot" if chunk.temperature >= 80 else "cold" if chunk.temperature <= 10 else "mild"
        adj = select_random(kv["temp_adj"][band])
    elif primary == "moisture":
        band = "high" if m >= 80 else "low" if m <= 20 else "medium"
        adj = select_random(kv["moisture_adj"][band])
    else:
        band = "dark" if light <= 10 else "medium" if light <= 40 else "bright"
        adj = select_random(kv["light_adj"][band])

    feature = ""
    if biome is not None:
        for words in biome.features.values():
            if words:
                feature = select_random(words)
                break
    if not feature:
        if chunk.enemy:
            feature = chunk.enemy.type
        elif chunk.items:
            feature = chunk.items[0].name

    patterns = [
        f"You notice {feature or 'something'}. {adj.capitalize()}.",
        f"{adj.capitalize()}; you catch sight of {feature or 'something nearby'}.",
        f"As you move, {adj} and {f'you see {feature}' if feature else 'there is a change in the scene'}.",
        f"You step forward; {f'{feature} comes into view' if feature else 'the surroundings shift'}, {adj}.",
    ]
    return random.choice(patterns)


def smart_join_sentences(sentences: List[str], length: str) -> str:
    """Joins sentences with connectors suited to the narrative length, then tidies punctuation."""
    parts = [s.strip() for s in sentences if s and s.strip()]
    if not parts:
        return ""
    result = parts[0]
    connectors = CONNECTORS.get(length, [". "])

    for sentence in parts[1:]:
        if result[-1] in ".,!?":
            result = result[:-1]
        if sentence[0] in ".,!?":
            result += " " + sentence
            continue
        connector = random.choice(connectors)
        if connector.strip() == ".":
            result += ". " + sentence
        elif connector.rstrip().endswith((",", "and")):
            # continues the previous clause
            result += connector + sentence[0].lower() + sentence[1:]
        else:
            result += connector + sentence

    result = re.sub(r"\s{2,}", " ", result).strip()
    result = re.sub(r"\s+([.,!?;:])", r"\1", result)
    result = re.sub(r"([.,!?;:]){2,}", r"\1", result)
    result = re.sub(r"([.,])([A-Z])", r"\1 \2", result)
    if result[-1] not in ".!?":
        result += "."
    return result


# Recent lexicon picks across scenes
MOOD_MEMORY = lexicon.LexiconSelectionMemory()


def compose_mood_sentence(moods: List[MoodProfile], memory: Optional[lexicon.LexiconSelectionMemory] = None) -> Optional[str]:
    """A lexicon line for the strongest mood, e.g. "Before long, the air here feels gloomy"."""
    if not moods:
        return None
    exclude_recent = memory.get_memory() if memory is not None else []
    primary = moods[0]
    adjective = lexicon.select_adjective(
        mood=primary.mood,
        alternative_moods=[p.mood for p in moods[1:3]],
        exclude_recent=exclude_recent,
        mood_strength=primary.strength,
    )
    if not adjective:
        return None
    transition = lexicon.select_transition(exclude_recent)
    if memory is not None:
        memory.record(adjective)
        memory.record(transition)
    return f"{transition.rstrip('. ')}, the air here feels {adjective}."


def generate_offline_narrative(chunk, length: str = "medium", player=None) -> str:
    """
    Scene description without the LLM.

    Templates must share a mood with the chunk and pass their conditions;
    when none do, mood-less templates are used; when there are none of
    those either, the chunk's own description is returned.
    """
    fallback = chunk.description or "An unknown area."
    biome = BIOME_TEMPLATES.get(chunk.terrain)
    if biome is None:
        logging.warning(f"Templates: no biome templates for {chunk.terrain}")
        return fallback

    moods = analyze_mood(chunk)
    candidates = [
        t for t in biome.templates
        if has_mood_overlap(t.mood, moods) and check_conditions(t.conditions, chunk, player)
    ]
    if not candidates:
        candidates = [t for t in biome.templates if not t.mood]
    if not candidates:
        return fallback

    min_s, max_s = get_sentence_limits(length)
    target = random.randint(min_s, max_s)
    sentences: List[str] = []

    openings = [t for t in candidates if t.type == "Opening"]
    if openings:
        sentences.append(fill_template(select_template_by_weight(openings).template, chunk, player))

    if len(sentences) < target:
        mood_line = compose_mood_sentence(moods, MOOD_MEMORY)
        if mood_line:
            sentences.append(mood_line)

    details = [t for t in candidates if t.type in ("EnvironmentDetail", "SensoryDetail")]
    while len(sentences) < target and details:
        if len(details) < 3 or random.random() < 0.4:
            sentences.append(synthesize_detail_sentence(chunk, biome))
            continue
        chosen = select_template_by_weight(details)
        sentences.append(fill_template(chosen.template, chunk, player))
        details.remove(chosen)

    return smart_join_sentences(sentences, length)
