import pytest
from cartridges.wildlands.models import Chunk
from cartridges.wildlands.mood import (
    MoodTag, MoodThresholds, analyze_mood, get_mood_tags, get_mood_strength,
    get_primary_mood, has_mood_overlap,
)

def test_dangerous_dark_cave():
    chunk = Chunk(terrain="cave", danger_level=80, light_level=5, temperature=12)
    strengths = {p.mood: p.strength for p in analyze_mood(chunk)}

    assert strengths[MoodTag.DANGER] == 1.0
    assert strengths[MoodTag.DARK] == 1.0
    assert strengths[MoodTag.THREATENING] == 0.95
    # Terrain (0.95) beats the darkness branch (0.85)
    assert strengths[MoodTag.MYSTERIOUS] == 0.95
    assert strengths[MoodTag.CONFINED] == 0.95

def test_profiles_sorted_strongest_first():
    chunk = Chunk(terrain="forest", light_level=90, moisture=85, temperature=20)
    strengths = [p.strength for p in analyze_mood(chunk)]
    assert strengths == sorted(strengths, reverse=True)

def test_each_mood_appears_once():
    chunk = Chunk(terrain="jungle", light_level=90, moisture=90, temperature=20)
    tags = get_mood_tags(chunk)
    assert len(tags) == len(set(tags))

def test_unknown_temperature_reads_as_freezing():
    chunk = Chunk(terrain="grassland", temperature=None)
    assert get_mood_strength(chunk, MoodTag.COLD) == 1.0

def test_mild_temperature_is_peaceful():
    chunk = Chunk(terrain="wall", temperature=20)
    assert get_mood_strength(chunk, MoodTag.PEACEFUL) == 0.8
    assert get_mood_strength(chunk, MoodTag.CIVILIZED) == 0

def test_human_presence_branches():
    assert get_mood_strength(Chunk(terrain="wall", temperature=20, human_presence=70), MoodTag.CIVILIZED) == 1.0
    assert get_mood_strength(Chunk(terrain="wall", temperature=20, human_presence=5), MoodTag.ABANDONED) == 0.8

def test_custom_thresholds():
    chunk = Chunk(terrain="wall", temperature=20, danger_level=30)
    assert get_mood_strength(chunk, MoodTag.THREATENING) == 0
    assert get_mood_strength(chunk, MoodTag.THREATENING, {"danger_medium": 25}) == 0.8
    assert get_mood_strength(chunk, MoodTag.THREATENING, MoodThresholds(danger_medium=25)) == 0.8

def test_primary_mood():
    chunk = Chunk(terrain="volcanic", danger_level=90, temperature=60)
    assert get_primary_mood(chunk).strength == 1.0

def test_mood_overlap_accepts_strings_and_tags():
    current = get_mood_tags(Chunk(terrain="swamp", temperature=20))
    assert has_mood_overlap(["Gloomy"], current)
    assert not has_mood_overlap(["Civilized"], current)
    assert has_mood_overlap([MoodTag.WET], analyze_mood(Chunk(terrain="swamp", temperature=20)))
