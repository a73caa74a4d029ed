import os
import pytest
from app.persistence import PersistenceLayer, SaveSlotsFullError
from app.models import AILogEntry, GameState

@pytest.fixture
def store(tmp_path):
    return PersistenceLayer(save_dir=str(tmp_path), max_slots=2)

@pytest.mark.asyncio
async def test_create_and_load_game(store, tmp_path):
    game = GameState(id="abc123", metadata={"turn": 4})
    await store.create_game_record(game)

    assert os.path.exists(tmp_path / "abc123.json")
    loaded = await store.get_game_by_id("abc123")
    assert loaded.id == "abc123"
    assert loaded.metadata == {"turn": 4}

@pytest.mark.asyncio
async def test_missing_game_returns_none(store):
    assert await store.get_game_by_id("nothere") is None

@pytest.mark.asyncio
async def test_invalid_game_id_is_rejected(store):
    with pytest.raises(ValueError):
        await store.get_game_by_id("../etc/passwd")

@pytest.mark.asyncio
async def test_save_bumps_version_and_timestamp(store):
    game = GameState(id="g1")
    await store.create_game_record(game)

    game.metadata = {"turn": 1}
    saved = await store.save_game(game)

    assert saved.version == 2
    assert saved.updated_at is not None
    reloaded = await store.get_game_by_id("g1")
    assert reloaded.version == 2
    assert reloaded.metadata == {"turn": 1}

@pytest.mark.asyncio
async def test_save_leaves_no_temp_files(store, tmp_path):
    game = GameState(id="g1")
    await store.create_game_record(game)
    await store.save_game(game)
    assert [p.name for p in tmp_path.iterdir() if p.is_file()] == ["g1.json"]

@pytest.mark.asyncio
async def test_slot_limit(store):
    await store.create_game_record(GameState(id="one"))
    await store.create_game_record(GameState(id="two"))
    with pytest.raises(SaveSlotsFullError):
        await store.create_game_record(GameState(id="three"))

    # Re-creating an existing slot is an overwrite, not a new slot
    await store.create_game_record(GameState(id="two"))

@pytest.mark.asyncio
async def test_delete_and_list(store):
    await store.create_game_record(GameState(id="one"))
    await store.create_game_record(GameState(id="two"))

    assert await store.delete_game("one") is True
    assert await store.delete_game("one") is False
    assert [g.id for g in await store.list_games()] == ["two"]

@pytest.mark.asyncio
async def test_log_ai_interaction_appends_jsonl(store):
    for i in range(3):
        await store.log_ai_interaction(AILogEntry(
            game_id="g1", model="gemini", system_prompt="sys", user_input=f"u{i}", raw_response="resp",
        ))

    logs = await store.get_game_logs("g1", limit=2)
    assert [entry.user_input for entry in logs] == ["u1", "u2"]

@pytest.mark.asyncio
async def test_token_usage_survives_later_saves(store):
    game = GameState(id="g1")
    await store.create_game_record(game)

    await store.increment_token_usage("g1", 100, 40)
    await store.increment_token_usage("g1", 10, 5)
    # `game` still holds the stale zero usage
    await store.save_game(game)

    reloaded = await store.get_game_by_id("g1")
    assert reloaded.usage.input_tokens == 110
    assert reloaded.usage.output_tokens == 45

@pytest.mark.asyncio
async def test_token_usage_for_unknown_game_is_ignored(store):
    await store.increment_token_usage("ghost", 1, 1)
    assert await store.get_game_by_id("ghost") is None
