"""
Seeded pseudo-random helpers.

Every function takes a seed and hands back the next one, so a whole turn can
be replayed from the seed stored with the save.
"""
import math
from typing import Sequence, Tuple, TypeVar
from dataclasses import dataclass

MODULUS = 2147483647
MULTIPLIER = 1103515245
INCREMENT = 12345

# Index by rarity / difficulty tier (1-5); index 0 unused
RARITY_BONUS = [0, 0, 10, 25, 40, 50]
DIFFICULTY_PENALTY = [0, 0, 5, 15, 25, 40]

ItemT = TypeVar("ItemT")


def next_seed(seed: int) -> int:
    return (abs(int(seed)) * MULTIPLIER + INCREMENT) % MODULUS


def random(seed: int) -> Tuple[float, int]:
    """Returns (value in [0, 1), next seed)."""
    nxt = next_seed(seed)
    return nxt / MODULUS, nxt


def random_int(seed: int, min_value: int, max_value: int) -> Tuple[int, int]:
    if min_value == max_value:
        return min_value, seed
    if min_value > max_value:
        min_value, max_value = max_value, min_value
    value, nxt = random(seed)
    return math.floor(value * (max_value - min_value)) + min_value, nxt


def weighted_random(seed: int, items: Sequence[ItemT], weights: Sequence[float]) -> Tuple[ItemT, int]:
    if not items:
        raise ValueError("weighted_random needs at least one item")
    if len(items) != len(weights):
        raise ValueError("items and weights must be the same length")
    if len(items) == 1:
        return items[0], seed

    total = sum(max(0, w) for w in weights)
    if total <= 0:
        return items[0], seed

    value, nxt = random(seed)
    threshold = value * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += max(0, weight)
        if threshold < cumulative:
            return item, nxt
    return items[-1], nxt


@dataclass
class LootRoll:
    success: bool
    roll: int
    final_chance: int
    next_seed: int


def roll_loot(seed: int, base_chance: float, rarity: int, difficulty: int) -> LootRoll:
    rarity = max(1, min(5, rarity))
    difficulty = max(1, min(5, difficulty))
    chance = base_chance + RARITY_BONUS[rarity] - DIFFICULTY_PENALTY[difficulty]
    chance = max(1, min(99, chance))

    roll, nxt = random_int(seed, 0, 100)
    return LootRoll(success=roll < chance, roll=roll, final_chance=chance, next_seed=nxt)

