import math
from dataclasses import dataclass, field
from typing import List

from .rng import MODULUS, MULTIPLIER, INCREMENT

# Index by rarity (1-5); index 0 unused
AFFIX_COUNTS = [0, 0, 1, 2, 3, 4]
AFFIX_MULTIPLIERS = [1.0, 1.1, 1.2, 1.35, 1.5]  # by affix count
RARITY_VALUE_MULTIPLIERS = [1, 1.0, 1.5, 2.5, 5.0, 10.0]
RARITY_WEIGHTS = [0, 1, 2, 4, 8, 16]
RARITY_NAMES = ["", "Common", "Uncommon", "Rare", "Epic", "Legendary"]


@dataclass(frozen=True)
class Affix:
    name: str
    power: int


AFFIX_POOL = [
    Affix("Health+", 10),
    Affix("Damage+", 8),
    Affix("Defense+", 6),
    Affix("CritChance+", 5),
    Affix("Lifesteal+", 7),
    Affix("Speed+", 4),
    Affix("Accuracy+", 5),
    Affix("Resistance+", 6),
]


@dataclass
class LootPackage:
    rarity: int
    affixes: List[Affix] = field(default_factory=list)
    total_value: int = 1
    weight: int = 1


def _clamp_tier(value: int) -> int:
    return max(1, min(5, value))


def calculate_rarity(difficulty: int, luck: float) -> int:
    d = _clamp_tier(difficulty)
    if d == 1:
        rarity = 1
    elif d <= 3:
        rarity = 2
    elif d == 4:
        rarity = 3
    else:
        rarity = 4

    if luck > 20:
        rarity += 2
    elif luck > 10:
        rarity += 1
    return _clamp_tier(rarity)


def _scale_power(power: int, rarity: int) -> int:
    if rarity == 2:
        return math.floor(power * 0.8)
    if rarity == 4:
        return math.floor(power * 1.5)
    if rarity == 5:
        return power * 2
    return power


def generate_affixes(rarity: int, seed: int) -> List[Affix]:
    """Picks distinct affixes for an item; higher rarity means more and stronger ones."""
    r = _clamp_tier(rarity)
    selected: List[Affix] = []
    current = seed
    for _ in range(AFFIX_COUNTS[r]):
        current = (current * MULTIPLIER + INCREMENT) % MODULUS
        taken = {a.name for a in selected}
        available = [a for a in AFFIX_POOL if a.name not in taken]
        if not available:
            break
        pick = available[current % len(available)]
        selected.append(Affix(pick.name, _scale_power(pick.power, r)))
    return selected


def apply_affixes(base_value: float, affix_count: int) -> float:
    count = max(0, min(4, affix_count))
    return base_value * AFFIX_MULTIPLIERS[count]


def calculate_item_value(base_value: float, rarity: int, affix_count: int) -> int:
    r = _clamp_tier(rarity)
    count = max(0, min(4, affix_count))
    value = math.floor(base_value * RARITY_VALUE_MULTIPLIERS[r] * (1.0 + count * 0.2))
    return max(1, value)


def generate_loot_package(difficulty: int, luck: float, base_value: float, seed: int) -> LootPackage:
    rarity = calculate_rarity(difficulty, luck)
    affixes = generate_affixes(rarity, seed)
    return LootPackage(
        rarity=rarity,
        affixes=affixes,
        total_value=calculate_item_value(base_value, rarity, len(affixes)),
        weight=RARITY_WEIGHTS[rarity],
    )
