from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock
from app.main import app
from app.ai_engine import AllModelsFailedError
from app.game_engine import GameNotFoundError
from app.models import GameState
from app.persistence import SaveSlotsFullError

client = TestClient(app)

def test_health_check():
    """Verify the app boots and health endpoint works."""
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_game_routes_exist():
    routes = [route.path for route in app.routes]
    for path in ["/games", "/games/{game_id}", "/games/{game_id}/action", "/games/{game_id}/tick",
                 "/games/{game_id}/events", "/games/{game_id}/fuse", "/games/{game_id}/hint",
                 "/games/{game_id}/ambience", "/games/{game_id}/recipe", "/games/{game_id}/progress"]:
        assert path in routes

def test_action_payload_validation():
    """Empty actions are rejected by the Pydantic model."""
    response = client.post("/games/abc/action", json={"action": ""})
    assert response.status_code == 422

def test_fuse_needs_two_items():
    response = client.post("/games/abc/fuse", json={"items": ["stick"]})
    assert response.status_code == 422

def test_missing_game_is_404():
    with patch("app.game_engine.engine.get_game", new_callable=AsyncMock, side_effect=GameNotFoundError("abc")):
        response = client.get("/games/abc")
    assert response.status_code == 404
    assert "abc" in response.json()["detail"]

def test_get_game_includes_clock_and_summary():
    game = GameState(id="abc", status="active", metadata={"game_time": 30, "turn": 3})
    with patch("app.game_engine.engine.get_game", new_callable=AsyncMock, return_value=game):
        response = client.get("/games/abc")
    body = response.json()
    assert response.status_code == 200
    assert body["clock"] == "Day 1, 06:30"
    assert body["summary"]["turn"] == 3

def test_all_models_failed_maps_to_502():
    error = AllModelsFailedError(["model-a"], RuntimeError("down"))
    with patch("app.game_engine.engine.quest_hint", new_callable=AsyncMock, side_effect=error):
        response = client.post("/games/abc/hint", json={"quest": "Find the well"})
    assert response.status_code == 502

def test_bad_request_maps_to_400():
    with patch("app.game_engine.engine.fuse_items", new_callable=AsyncMock, side_effect=ValueError("No item named 'gem'")):
        response = client.post("/games/abc/fuse", json={"items": ["gem", "stick"]})
    assert response.status_code == 400
    assert "gem" in response.json()["detail"]

def test_action_returns_engine_result():
    result = {"narrative": "You walk north.", "source": "offline"}
    with patch("app.game_engine.engine.dispatch_action", new_callable=AsyncMock, return_value=result) as mock_dispatch:
        response = client.post("/games/abc/action", json={"action": "go north"})
    assert response.status_code == 200
    assert response.json() == result
    mock_dispatch.assert_called_once_with("abc", "go north")

def test_create_game_slots_full_is_409():
    with patch("app.game_engine.engine.start_new_game", new_callable=AsyncMock, side_effect=SaveSlotsFullError("full")):
        response = client.post("/games", json={"host_name": "Ash"})
    assert response.status_code == 409

def test_create_game_returns_opening():
    game = GameState(id="abc", status="active", metadata={"narrative_log": ["You wake up."], "turn": 0})
    with patch("app.game_engine.engine.start_new_game", new_callable=AsyncMock, return_value=game) as mock_start:
        response = client.post("/games", json={"host_name": "Ash", "language": "de"})
    assert response.status_code == 201
    assert response.json()["narrative"] == "You wake up."
    assert mock_start.call_args.kwargs["settings"]["language"] == "de"

def test_delete_missing_game_is_404():
    with patch("app.persistence.db.delete_game", new_callable=AsyncMock, return_value=False):
        response = client.delete("/games/abc")
    assert response.status_code == 404

def test_progress_passes_criteria_and_mode():
    result = {"complete": False, "criteria": []}
    criteria = [{"type": "CRAFT_ITEM", "params": {"itemId": "spark_stone", "count": 1}}]
    with patch("app.game_engine.engine.check_progress", new_callable=AsyncMock, return_value=result) as mock_check:
        response = client.post("/games/abc/progress", json={"criteria": criteria, "mode": "any"})
    assert response.status_code == 200
    assert response.json() == result
    mock_check.assert_called_once_with("abc", criteria, "any")

def test_progress_needs_criteria():
    response = client.post("/games/abc/progress", json={"criteria": []})
    assert response.status_code == 422

def test_recipe_without_items_is_400():
    with patch("app.game_engine.engine.new_recipe", new_callable=AsyncMock, side_effect=ValueError("You have nothing to build a recipe from.")):
        response = client.post("/games/abc/recipe")
    assert response.status_code == 400
