from unittest.mock import patch
from cartridges.wildlands import lexicon
from cartridges.wildlands.mood import MoodTag

def test_tier_bands():
    assert lexicon.determine_tier(0.2, roll=0.5) == "subtle"
    assert lexicon.determine_tier(0.2, roll=0.7) == "standard"
    assert lexicon.determine_tier(0.2, roll=0.95) == "emphatic"
    assert lexicon.determine_tier(0.8, roll=0.1) == "emphatic"
    assert lexicon.determine_tier(0.8, roll=0.6) == "standard"
    assert lexicon.determine_tier(0.8, roll=0.9) == "subtle"
    assert lexicon.determine_tier(0.5, roll=0.3) == "standard"
    assert lexicon.determine_tier(0.5, roll=0.6) == "subtle"
    assert lexicon.determine_tier(0.5, roll=0.9) == "emphatic"

def test_tier_uses_random_without_roll():
    with patch("random.random", return_value=0.0):
        assert lexicon.determine_tier(0.9) == "emphatic"

def test_adjective_for_mood_tag():
    word = lexicon.get_random_adjective(MoodTag.DARK, "emphatic")
    assert word in lexicon.ADJECTIVES["Dark"]["emphatic"]
    assert lexicon.get_random_adjective("Nonexistent", "standard") is None

def test_select_adjective_skips_recent_words():
    recent = lexicon.ADJECTIVES["Dark"]["standard"]
    word = lexicon.select_adjective("Dark", alternative_moods=["Lush"], tier="standard", exclude_recent=recent)
    assert word in lexicon.ADJECTIVES["Lush"]["standard"]
    assert word not in recent

def test_select_adjective_without_mood_still_answers():
    assert lexicon.select_adjective(None, tier="subtle")

def test_continuations():
    assert lexicon.select_continuation("danger") in lexicon.CONTINUATIONS["danger"]
    assert lexicon.select_continuation("dancing") in lexicon.CONTINUATIONS["transition"]
    everything = lexicon.CONTINUATIONS["transition"]
    assert lexicon.select_continuation("dancing", exclude_recent=everything) is None

def test_transition_and_noun_fall_back_when_all_recent():
    assert lexicon.select_transition(exclude_recent=lexicon.TRANSITION_PHRASES) in lexicon.TRANSITION_PHRASES
    noun = lexicon.select_descriptive_noun(exclude_recent=lexicon.DESCRIPTIVE_NOUNS[1:])
    assert noun == lexicon.DESCRIPTIVE_NOUNS[0]

def test_adjective_listing():
    dark = lexicon.ADJECTIVES["Dark"]
    assert lexicon.get_adjectives_for_mood("Dark", "subtle") == dark["subtle"]
    assert len(lexicon.get_adjectives_for_mood("Dark")) == sum(len(words) for words in dark.values())
    assert lexicon.get_adjectives_for_mood("Nope") == []
    assert "Dark" in lexicon.get_available_moods()
    assert "transition" in lexicon.get_available_action_types()

def test_selection_memory():
    memory = lexicon.LexiconSelectionMemory(max_memory=2)
    for word in ["dim", "dark", "dim"]:
        memory.record(word)
    assert memory.get_memory() == ["dark", "dim"]
    assert memory.is_recent("dark")
    assert memory.get_frequency("dim") == 1
    memory.clear()
    assert memory.get_memory() == []
