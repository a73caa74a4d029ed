import pytest
from cartridges.wildlands import rng

def test_same_seed_same_sequence():
    assert rng.random(42) == rng.random(42)
    value, nxt = rng.random(1)
    assert 0 <= value < 1
    assert nxt == (1 * rng.MULTIPLIER + rng.INCREMENT) % rng.MODULUS
    assert value == pytest.approx(nxt / rng.MODULUS)

def test_random_int_bounds():
    seed = 7
    for _ in range(200):
        value, seed = rng.random_int(seed, 3, 9)
        assert 3 <= value < 9

def test_random_int_degenerate_range_keeps_seed():
    assert rng.random_int(99, 5, 5) == (5, 99)

def test_random_int_swaps_reversed_bounds():
    value, _ = rng.random_int(11, 10, 0)
    assert 0 <= value < 10

def test_weighted_random_skips_zero_weights():
    seed = 3
    for _ in range(50):
        item, seed = rng.weighted_random(seed, ["never", "always"], [0, 1])
        assert item == "always"

def test_weighted_random_edge_cases():
    assert rng.weighted_random(5, ["only"], [0]) == ("only", 5)
    assert rng.weighted_random(5, ["a", "b"], [0, 0]) == ("a", 5)
    with pytest.raises(ValueError):
        rng.weighted_random(5, [], [])
    with pytest.raises(ValueError):
        rng.weighted_random(5, ["a"], [1, 2])

def test_roll_loot_chance_is_clamped():
    roll = rng.roll_loot(123, base_chance=50, rarity=5, difficulty=1)
    assert roll.final_chance == 99
    assert roll.success == (roll.roll < 99)

    roll = rng.roll_loot(123, base_chance=10, rarity=1, difficulty=9)
    assert roll.final_chance == 1
