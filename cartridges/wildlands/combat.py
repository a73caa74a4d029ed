import math
from dataclasses import dataclass

from .board import GameBalance


@dataclass
class DamageResult:
    base_damage: int
    is_critical: bool
    final_damage: int
    multiplier: float


def calculate_base_damage(attack: float, defense: float) -> float:
    """Attack minus defense, never below MIN_DAMAGE."""
    return max(GameBalance.MIN_DAMAGE, attack - defense)


def is_critical(roll: float, critical_chance: float) -> bool:
    # critical_chance is a percentage, roll is 0-1
    return roll < critical_chance / 100


def get_critical_multiplier(critical: bool, crit_multiplier: float = GameBalance.CRIT_MULTIPLIER) -> float:
    return crit_multiplier if critical else 1.0


def apply_multiplier(damage: float, multiplier: float) -> int:
    return math.floor(damage * multiplier)


def calculate_damage(attacker, defender, roll: float, crit_multiplier: float = GameBalance.CRIT_MULTIPLIER) -> DamageResult:
    base = calculate_base_damage(attacker.attack, defender.defense)
    crit = is_critical(roll, attacker.critical_chance)
    multiplier = get_critical_multiplier(crit, crit_multiplier)
    return DamageResult(
        base_damage=base,
        is_critical=crit,
        final_damage=apply_multiplier(base, multiplier),
        multiplier=multiplier,
    )


def calculate_experience(
    winner_health: float,
    loser_health: float,
    base_xp: float = GameBalance.BASE_XP,
    scaling: float = GameBalance.XP_SCALING_PER_HP,
) -> int:
    """
    XP for a fight. Beating something healthier than you pays more;
    the multiplier never drops below MIN_XP_MULTIPLIER and the reward
    never below MIN_XP.
    """
    multiplier = max(GameBalance.MIN_XP_MULTIPLIER, 1 + (loser_health - winner_health) * scaling)
    return max(GameBalance.MIN_XP, math.floor(base_xp * multiplier))


def should_loot_drop(roll: float, drop_chance: float) -> bool:
    return roll < drop_chance


def get_equipment_grade(roll: float) -> int:
    if roll <= GameBalance.GRADE_COMMON_THRESHOLD:
        return 0
    if roll <= GameBalance.GRADE_UNCOMMON_THRESHOLD:
        return 1
    return 2


def get_loot_quantity(roll: float, min_quantity: int, max_quantity: int) -> int:
    return math.floor(roll * (max_quantity - min_quantity + 1)) + min_quantity


def is_dead(health: float) -> bool:
    return health <= 0


def apply_damage(health: float, damage: float) -> float:
    return max(0, health - damage)


def apply_environment_penalties(damage: float, light_level: float, moisture: float) -> int:
    """Darkness and wet ground both sap the force of an attack."""
    multiplier = 1.0
    if light_level < GameBalance.DARKNESS_THRESHOLD:
        multiplier *= GameBalance.DARKNESS_PENALTY
    if moisture > GameBalance.WET_THRESHOLD:
        multiplier *= GameBalance.WET_PENALTY
    return max(GameBalance.MIN_DAMAGE, math.floor(damage * multiplier))
