from unittest.mock import patch
from cartridges.wildlands import audio
from cartridges.wildlands.audio import (
    AmbienceContext, AudioActionType as A, AudioEventContext, emit_audio_event,
)

def test_off_mode_is_silent():
    assert emit_audio_event(A.CRAFT_SUCCESS, playback_mode="off") is None

def test_occasional_mode_drops_non_critical_half_the_time():
    assert emit_audio_event(A.PLAYER_ATTACK, playback_mode="occasional", roll=0.9) is None
    assert emit_audio_event(A.PLAYER_ATTACK, playback_mode="occasional", roll=0.2) is not None
    # Critical sounds always play
    assert emit_audio_event(A.CRAFT_FAIL, playback_mode="occasional", roll=0.99) is not None

def test_footsteps_follow_the_biome():
    payload = emit_audio_event(A.PLAYER_MOVE, AudioEventContext(biome="tundra"))
    assert len(payload.sfx_files) == 3
    assert all(f.startswith("footsteps/snow_") for f in payload.sfx_files)
    assert payload.priority == "low"

def test_unknown_biome_uses_generic_footsteps():
    files = audio.get_footsteps_for_biome("nowhere", count=2)
    assert len(files) == 2
    assert all(f in audio.GENERIC_FOOTSTEPS for f in files)

def test_rare_pickups_sparkle():
    payload = emit_audio_event(A.ITEM_PICKUP, AudioEventContext(item_rarity="legendary"))
    assert payload.sfx_files == ["gem_collect.wav"]
    common = emit_audio_event(A.ITEM_PICKUP, AudioEventContext(item_rarity="common"))
    assert "coin_jingle_small.wav" in common.sfx_files

def test_single_file_resolvers_become_lists():
    payload = emit_audio_event(A.UI_CANCEL)
    assert payload.sfx_files == ["UI/cancel.wav"]
    assert payload.priority == "high"

def test_failing_resolver_is_silent(caplog):
    with patch.dict(audio.AUDIO_EVENTS_REGISTRY, {A.ANALYZE: lambda ctx: 1 / 0}):
        assert emit_audio_event(A.ANALYZE) is None
    assert "resolver for" in caplog.text

def test_batch_is_sorted_by_priority():
    payloads = audio.emit_audio_event_batch([(A.PLAYER_MOVE, None), (A.ENEMY_HIT, None), (A.ENEMY_DEFEATED, None)])
    assert [p.priority for p in payloads] == ["high", "medium", "low"]

def test_will_play():
    assert audio.will_audio_event_play(A.PLAYER_MOVE, "always")
    assert not audio.will_audio_event_play(A.PLAYER_MOVE, "occasional")
    assert audio.will_audio_event_play(A.SKILL_FAIL, "occasional")
    assert not audio.will_audio_event_play(A.SKILL_FAIL, "off")

def test_ambience_layers_rank_weather_first():
    ctx = AmbienceContext(biome="forest", weather_type="RAINY", time_of_day="night")
    layers = audio.select_ambience_layers(ctx)
    assert len(layers) == 2
    assert layers[0].file in audio.AMBIENCE_TRACKS["rain"]
    assert layers[0].volume == 1.0
    assert layers[1].file in audio.AMBIENCE_TRACKS["night"]
    assert layers[1].volume == 0.6
    assert layers[0].path == f"/asset/sound/ambience/{layers[0].file}"

def test_ambience_track_prefers_mood():
    ctx = AmbienceContext(biome="desert", moods=["Dark"], time_of_day="day")
    assert audio.select_ambience_track(ctx) in audio.AMBIENCE_TRACKS["cave"]

def test_ambience_track_falls_back_to_time_of_day():
    ctx = AmbienceContext(biome="wall", time_of_day="day")
    assert audio.select_ambience_track(ctx) in audio.AMBIENCE_TRACKS["day"]
