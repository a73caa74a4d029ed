from app import config

def test_fallback_order_from_environment():
    # conftest.py sets MODEL_FALLBACK_ORDER
    assert config.get_model_fallback_order() == ["model-a", "model-b"]

def test_fallback_order_drops_blanks_and_repeats():
    raw = " gemini-2.5-flash, ,gemini-2.5-pro,gemini-2.5-flash,"
    assert config.get_model_fallback_order(raw) == ["gemini-2.5-flash", "gemini-2.5-pro"]

def test_empty_fallback_order():
    assert config.get_model_fallback_order("") == []

def test_project_id_from_environment():
    assert config.PROJECT_ID == "test-project"
