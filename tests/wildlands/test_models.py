import pytest
from cartridges.wildlands.board import RegenerationConfig
from cartridges.wildlands.models import (
    Chunk, PlayerStatus, WildlandsState, World, normalize_player_status,
)

def test_normalize_drops_missing_fields():
    status = normalize_player_status({"hp": 40, "stamina": None, "quests": None})
    assert status.hp == 40
    assert status.stamina == 50
    assert status.quests == []

def test_normalize_empty_blob():
    assert normalize_player_status(None) == PlayerStatus()
    assert normalize_player_status({}).hp == 100

def test_legacy_numeric_level():
    status = PlayerStatus(player_level=4)
    assert status.player_level.level == 4
    assert status.player_level.experience == 0

def test_world_keys_and_lookup():
    world = World()
    world.put_chunk(Chunk(x=-2, y=5, terrain="desert"))
    assert World.key(-2, 5) == "-2,5"
    assert world.get_chunk_at(-2, 5).terrain == "desert"
    assert world.get_chunk_at(0, 0) is None

def test_current_chunk_follows_position():
    state = WildlandsState()
    assert state.current_chunk is None
    state.world.put_chunk(Chunk(x=1, y=1, terrain="cave"))
    state.player_position.x, state.player_position.y = 1, 1
    assert state.current_chunk.terrain == "cave"

def test_state_round_trips_through_json_dump():
    state = WildlandsState(turn=7, narrative_log=["a", "b", "c"])
    restored = WildlandsState(**state.model_dump(mode="json"))
    assert restored.turn == 7
    assert restored.recent_narrative(2) == ["b", "c"]

def test_regeneration_overrides():
    config = RegenerationConfig(hp_regen_per_tick=3)
    assert config.HP_REGEN_PER_TICK == 3
    assert RegenerationConfig.HP_REGEN_PER_TICK == 1
    with pytest.raises(ValueError):
        RegenerationConfig(flying_speed=2)
