from app import presentation

def test_player_summary_from_metadata():
    metadata = {
        "player": {"hp": 87.6, "stamina": 40.2, "hunger": 12, "player_level": {"level": 3, "experience": 20}},
        "player_position": {"x": 2, "y": -1},
        "weather": "RAINY",
        "turn": 14,
    }
    summary = presentation.format_player_summary(metadata)
    assert summary == {
        "hp": 88,
        "stamina": 40,
        "hunger": 12,
        "level": 3,
        "position": "(2, -1)",
        "weather": "RAINY",
        "turn": 14,
    }

def test_player_summary_defaults_for_empty_slot():
    summary = presentation.format_player_summary({})
    assert summary["hp"] == 0
    assert summary["level"] == 1
    assert summary["position"] == "(0, 0)"
    assert summary["weather"] == "CLEAR"

def test_clock_starts_at_six_on_day_one():
    assert presentation.format_clock(0) == "Day 1, 06:00"
    assert presentation.format_clock(95) == "Day 1, 07:35"

def test_clock_rolls_over_midnight():
    assert presentation.format_clock(18 * 60) == "Day 2, 00:00"
    assert presentation.format_clock(18 * 60 + 1440 + 30) == "Day 3, 00:30"

def test_error_templates():
    assert "xyz" in presentation.ERR_NO_GAME.format(game_id="xyz")
    assert "boom" in presentation.ERR_BAD_REQUEST.format(error="boom")
