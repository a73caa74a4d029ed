from cartridges.wildlands import loot

def test_rarity_from_difficulty_and_luck():
    assert loot.calculate_rarity(1, 0) == 1
    assert loot.calculate_rarity(3, 0) == 2
    assert loot.calculate_rarity(4, 15) == 4
    assert loot.calculate_rarity(5, 30) == 5
    assert loot.calculate_rarity(0, 0) == 1

def test_affixes_are_distinct_and_scaled():
    affixes = loot.generate_affixes(5, seed=1234)
    assert len(affixes) == 4
    assert len({a.name for a in affixes}) == 4
    base = {a.name: a.power for a in loot.AFFIX_POOL}
    assert all(a.power == base[a.name] * 2 for a in affixes)

def test_common_items_have_no_affixes():
    assert loot.generate_affixes(1, seed=99) == []

def test_affixes_are_deterministic():
    assert loot.generate_affixes(3, 77) == loot.generate_affixes(3, 77)

def test_item_value():
    assert loot.calculate_item_value(10, 3, 0) == 25
    assert loot.calculate_item_value(10, 5, 0) == 100
    assert loot.calculate_item_value(0.01, 1, 0) == 1
    assert loot.apply_affixes(100, 9) == 150

def test_loot_package():
    package = loot.generate_loot_package(difficulty=5, luck=0, base_value=10, seed=5)
    assert package.rarity == 4
    assert len(package.affixes) == 3
    assert package.weight == 8
    assert package.total_value == loot.calculate_item_value(10, 4, 3)
