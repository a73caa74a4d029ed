import random
from typing import Dict, List, Optional, Sequence

Tier = str  # "standard" | "subtle" | "emphatic"
TIERS = ("standard", "subtle", "emphatic")

# --- WORD LISTS ---

ADJECTIVES: Dict[str, Dict[str, List[str]]] = {
    # Dark & shadow
    "Dark": {
        "standard": ["dark", "shadowed", "dim", "murky", "obscured", "gloomy", "dusky", "overcast"],
        "subtle": ["subdued", "muted", "softened", "veiled", "hushed", "darkening"],
        "emphatic": ["PITCH BLACK", "IMPENETRABLE DARKNESS", "PITCH-DARK", "VOID-LIKE", "STYGIAN", "LIGHTLESS"],
    },
    "Gloomy": {
        "standard": ["gloomy", "melancholic", "somber", "dismal", "dreary", "bleak", "foreboding", "sullen"],
        "subtle": ["wistful", "pensive", "resigned", "quiet", "mournful", "somber"],
        "emphatic": ["OVERWHELMINGLY GLOOMY", "SOUL-CRUSHING", "DEEPLY DISMAL", "PROFOUNDLY BLEAK", "OPPRESSIVELY DARK"],
    },
    # Light
    "Bright": {
        "standard": ["bright", "radiant", "luminous", "shining", "glowing", "brilliant", "dazzling", "sunny"],
        "subtle": ["softly lit", "gently glowing", "subtly bright", "warmly lit", "softly radiant"],
        "emphatic": ["BLAZINGLY BRIGHT", "BLINDING RADIANCE", "INCANDESCENT", "RADIANT BRILLIANCE", "DAZZLING LUMINESCENCE"],
    },
    "Ethereal": {
        "standard": ["ethereal", "ghostly", "transcendent", "otherworldly", "spectral", "dreamlike", "surreal", "unearthly"],
        "subtle": ["delicate", "wispy", "subtle", "fragile", "translucent", "ephemeral"],
        "emphatic": ["IMPOSSIBLY ETHEREAL", "OTHERWORLDLY TRANSCENDENCE", "SPECTRAL MAGNIFICENCE", "SURREAL BEAUTY"],
    },
    # Nature & life
    "Lush": {
        "standard": ["lush", "verdant", "fertile", "thriving", "abundant", "vibrant", "flourishing", "verdure"],
        "subtle": ["green", "growing", "alive", "fresh", "teeming with life", "brimming"],
        "emphatic": ["EXPLOSIVELY LUSH", "OVERWHELMINGLY GREEN", "VIBRANTLY ALIVE", "TEEMING WITH LIFE", "BURSTING WITH VITALITY"],
    },
    "Vibrant": {
        "standard": ["vibrant", "vivid", "colorful", "dynamic", "energetic", "lively", "pulsing", "radiant"],
        "subtle": ["alive", "animated", "active", "engaged", "spirited", "quickened"],
        "emphatic": ["INTENSELY VIBRANT", "WILDLY COLORFUL", "EXPLOSIVELY ENERGETIC", "BLINDINGLY VIVID"],
    },
    "Wild": {
        "standard": ["wild", "untamed", "feral", "primal", "uncontrolled", "fierce", "savage", "raw"],
        "subtle": ["untamed", "natural", "unreserved", "unrefined", "unpolished", "natural"],
        "emphatic": ["OVERWHELMINGLY WILD", "PRIMAL FURY", "UNTAMED CHAOS", "FERAL INTENSITY", "SAVAGE POWER"],
    },
    "Peaceful": {
        "standard": ["peaceful", "serene", "calm", "tranquil", "quiet", "restful", "undisturbed", "gentle"],
        "subtle": ["soft", "mild", "gentle", "tender", "muted", "hushed"],
        "emphatic": ["BLISSFULLY PEACEFUL", "PROFOUNDLY SERENE", "ABSOLUTE TRANQUILITY", "PERFECT STILLNESS"],
    },
    # Atmosphere
    "Mysterious": {
        "standard": ["mysterious", "enigmatic", "cryptic", "secretive", "unknown", "hidden", "arcane", "veiled"],
        "subtle": ["unclear", "ambiguous", "subtle", "understated", "quiet", "undisclosed"],
        "emphatic": ["DEEPLY MYSTERIOUS", "IMPOSSIBLY CRYPTIC", "PROFOUNDLY ENIGMATIC", "SHROUDED IN SECRECY"],
    },
    "Confined": {
        "standard": ["confined", "cramped", "enclosed", "tight", "narrow", "boxed-in", "restricted", "hemmed-in"],
        "subtle": ["close", "intimate", "snug", "cozy", "compact", "limited"],
        "emphatic": ["CLAUSTROPHOBICALLY CONFINED", "SUFFOCATINGLY TIGHT", "OPPRESSIVELY ENCLOSED", "CRUSHINGLY NARROW"],
    },
    "Vast": {
        "standard": ["vast", "expansive", "immense", "boundless", "endless", "infinite", "sprawling", "enormous"],
        "subtle": ["spacious", "open", "wide", "broad", "extended", "far-reaching"],
        "emphatic": ["IMPOSSIBLY VAST", "INFINITELY EXPANSIVE", "BOUNDLESSLY IMMENSE", "OVERWHELMINGLY ENDLESS"],
    },
    "Elevated": {
        "standard": ["elevated", "high", "soaring", "lofty", "towering", "pinnacle", "summit", "peak"],
        "subtle": ["raised", "higher", "uplifted", "ascending", "rising", "climbing"],
        "emphatic": ["DIZZILY ELEVATED", "IMPOSSIBLY HIGH", "SOARINGLY LOFTY", "VERTIGINOUSLY TOWERING"],
    },
    # Danger
    "Danger": {
        "standard": ["dangerous", "risky", "hazardous", "perilous", "threatening", "menacing", "treacherous", "deadly"],
        "subtle": ["uncertain", "cautious", "wary", "risky", "unsafe", "precarious"],
        "emphatic": ["DEATHLY DANGEROUS", "LETHAL PERIL", "IMMINENTLY DEADLY", "CATASTROPHICALLY HAZARDOUS"],
    },
    "Threatening": {
        "standard": ["threatening", "ominous", "sinister", "baleful", "hostile", "aggressive", "combative", "antagonistic"],
        "subtle": ["tense", "strained", "defensive", "guarded", "wary", "alert"],
        "emphatic": ["OVERWHELMINGLY THREATENING", "DREADFULLY SINISTER", "HOSTILELY AGGRESSIVE", "MURDEROUSLY ANTAGONISTIC"],
    },
    "Foreboding": {
        "standard": ["foreboding", "ominous", "portentous", "inauspicious", "ominously", "ill-fated", "cursed", "doomed"],
        "subtle": ["unsettling", "uneasy", "worried", "concerned", "anxious", "dreadful"],
        "emphatic": ["HORRIFYINGLY FOREBODING", "APOCALYPTICALLY OMINOUS", "DOOMFULLY CURSED", "INESCAPABLY DOOMED"],
    },
    # Terrain
    "Desolate": {
        "standard": ["desolate", "barren", "empty", "abandoned", "forsaken", "uninhabited", "lifeless", "stark"],
        "subtle": ["sparse", "quiet", "isolated", "lonely", "remote", "withdrawn"],
        "emphatic": ["UTTERLY DESOLATE", "SOUL-CRUSHING EMPTINESS", "COMPLETELY FORSAKEN", "HAUNTINGLY LIFELESS"],
    },
    "Harsh": {
        "standard": ["harsh", "severe", "unforgiving", "brutal", "rough", "rugged", "cruel", "austere"],
        "subtle": ["difficult", "challenging", "demanding", "rigorous", "tough", "stern"],
        "emphatic": ["BRUTALLY HARSH", "RELENTLESSLY SEVERE", "CRUELLY UNFORGIVING", "SAVAGELY BRUTAL"],
    },
    "Barren": {
        "standard": ["barren", "bare", "naked", "stripped", "denuded", "void", "empty", "sterile"],
        "subtle": ["sparse", "thin", "exposed", "open", "clear", "uncluttered"],
        "emphatic": ["COMPLETELY BARREN", "UTTERLY STRIPPED", "TOTALLY VOID", "UTTERLY STERILE"],
    },
    "Serene": {
        "standard": ["serene", "calm", "untroubled", "composed", "placid", "undisturbed", "tranquil", "harmonious"],
        "subtle": ["gentle", "soft", "quiet", "muted", "peaceful", "still"],
        "emphatic": ["PROFOUNDLY SERENE", "PERFECTLY HARMONIOUS", "ABSOLUTELY TRANQUIL", "BLISSFULLY COMPOSED"],
    },
    # State
    "Abandoned": {
        "standard": ["abandoned", "deserted", "vacated", "empty", "forlorn", "neglected", "derelict", "forsaken"],
        "subtle": ["unused", "quiet", "still", "dormant", "inactive", "silent"],
        "emphatic": ["COMPLETELY ABANDONED", "UTTERLY FORSAKEN", "DEVASTATINGLY FORLORN", "HAUNTINGLY DERELICT"],
    },
}

CONTINUATIONS: Dict[str, List[str]] = {
    "movement": [
        "Your footsteps echo with each step forward.",
        "The path ahead winds deeper into the unknown.",
        "You press onward, driven by curiosity.",
        "Each step brings new sensations to your awareness.",
        "Your journey continues, moment by moment.",
        "Time seems to shift with your movement.",
        "You notice details you missed before.",
        "The world shifts subtly around you.",
    ],
    "discovery": [
        "This is something you will remember.",
        "You commit this moment to memory.",
        "Your curiosity intensifies.",
        "You explore further, eager for more.",
        "Something about this place calls to you.",
        "You sense there is more to discover here.",
        "This discovery changes your perspective.",
        "You document this in your mind.",
    ],
    "danger": [
        "Your muscles tense with anticipation.",
        "Every sense sharpens to full alert.",
        "You prepare yourself for what may come.",
        "The threat feels very real now.",
        "Your survival instincts take over.",
        "Adrenaline courses through your veins.",
        "You grip your weapon tightly.",
        "Danger lurks around every corner.",
    ],
    "weather": [
        "The elements rage around you mercilessly.",
        "Nature displays its raw power.",
        "You huddle against the onslaught.",
        "The weather intensifies further.",
        "You seek shelter from the tempest.",
        "The storm shows no signs of abating.",
        "The elements buffet you relentlessly.",
        "You persevere through the harsh conditions.",
    ],
    "transition": [
        "As you move forward...",
        "Gradually, you notice...",
        "Before you realize it...",
        "In that moment...",
        "Suddenly, you become aware...",
        "Time seems to pause as...",
        "Your attention shifts to...",
        "Somewhere nearby...",
        "In the distance...",
        "Far below...",
        "High above...",
        "All around you...",
    ],
}

TRANSITION_PHRASES: List[str] = [
    "As the moment passes...",
    "Before long...",
    "In time...",
    "When you least expect it...",
    "Gradually...",
    "Inch by inch...",
    "Step by step...",
    "Little by little...",
    "With each passing moment...",
    "Slowly but surely...",
    "Ever so gently...",
    "Without warning...",
    "In a flash...",
    "In an instant...",
    "In a blink of an eye...",
]

DESCRIPTIVE_NOUNS: List[str] = [
    "jungle", "cave", "mountain", "forest", "desert", "ocean", "beach",
    "storm", "rain", "thunder", "lightning", "wind", "snow", "fog",
    "danger", "creature", "beast", "shadow", "light", "darkness",
    "treasure", "artifact", "portal", "ancient", "secret", "mystery",
    "path", "trail", "road", "clearing", "valley", "peak", "cliff",
    "water", "fire", "earth", "air", "life", "death", "magic",
]


# --- SELECTION ---

def determine_tier(mood_strength: float = 0.5, roll: Optional[float] = None) -> Tier:
    """
    Weak moods lean subtle, strong moods lean emphatic, the middle leans
    standard. Each band still lets the other tiers through occasionally.
    """
    r = random.random() if roll is None else roll
    if mood_strength < 0.4:
        if r < 0.6:
            return "subtle"
        return "standard" if r < 0.9 else "emphatic"
    if mood_strength >= 0.7:
        if r < 0.5:
            return "emphatic"
        return "standard" if r < 0.85 else "subtle"
    if r < 0.5:
        return "standard"
    return "subtle" if r < 0.85 else "emphatic"


def _mood_key(mood) -> Optional[str]:
    if mood is None:
        return None
    return getattr(mood, "value", mood)


def get_random_adjective(mood, tier: Tier) -> Optional[str]:
    words = ADJECTIVES.get(_mood_key(mood), {}).get(tier)
    if not words:
        return None
    return random.choice(words)


def select_adjective(
    mood=None,
    alternative_moods: Sequence = (),
    tier: Optional[Tier] = None,
    exclude_recent: Sequence[str] = (),
    mood_strength: float = 0.5,
) -> Optional[str]:
    """Primary mood first, then the alternatives, then any mood at all."""
    tier = tier or determine_tier(mood_strength)
    candidates = [mood] if mood else []
    candidates += list(alternative_moods)

    for candidate in candidates:
        word = get_random_adjective(candidate, tier)
        if word and word not in exclude_recent:
            return word

    everything = list(ADJECTIVES)
    random.shuffle(everything)
    for candidate in everything:
        word = get_random_adjective(candidate, tier)
        if word and word not in exclude_recent:
            return word
    return None


def select_continuation(action_type: str = "transition", exclude_recent: Sequence[str] = ()) -> Optional[str]:
    options = CONTINUATIONS.get(action_type)
    if not options:
        fresh = [c for c in CONTINUATIONS["transition"] if c not in exclude_recent]
        return random.choice(fresh) if fresh else None

    fresh = [c for c in options if c not in exclude_recent]
    return random.choice(fresh or options)


def select_transition(exclude_recent: Sequence[str] = ()) -> str:
    fresh = [p for p in TRANSITION_PHRASES if p not in exclude_recent]
    return random.choice(fresh or TRANSITION_PHRASES)


def select_descriptive_noun(exclude_recent: Sequence[str] = ()) -> str:
    fresh = [n for n in DESCRIPTIVE_NOUNS if n not in exclude_recent]
    return random.choice(fresh or DESCRIPTIVE_NOUNS)


def get_adjectives_for_mood(mood, tier: Optional[Tier] = None) -> List[str]:
    entry = ADJECTIVES.get(_mood_key(mood))
    if not entry:
        return []
    if tier:
        return list(entry.get(tier, []))
    return [word for t in TIERS for word in entry.get(t, [])]


def get_available_moods() -> List[str]:
    return list(ADJECTIVES)


def get_available_action_types() -> List[str]:
    return list(CONTINUATIONS)


class LexiconSelectionMemory:
    """Remembers the last few picks so prose doesn't repeat itself."""

    def __init__(self, max_memory: int = 10):
        self.max_memory = max_memory
        self._recent: List[str] = []

    def record(self, selection: str):
        self._recent.append(selection)
        if len(self._recent) > self.max_memory:
            self._recent.pop(0)

    def get_memory(self) -> List[str]:
        return list(self._recent)

    def clear(self):
        self._recent = []

    def is_recent(self, selection: str) -> bool:
        return selection in self._recent

    def get_frequency(self, selection: str) -> int:
        return self._recent.count(selection)
