import json
import asyncio
import logging
import pytest
from typing import Optional
from unittest.mock import MagicMock, AsyncMock, patch
from pydantic import BaseModel
from app import ai_engine
from app.ai_engine import AIEngine, AllModelsFailedError, _sanitize_schema

# conftest.py stubs langchain_google_vertexai, so every test patches
# ChatVertexAI to control what ainvoke() returns.

class Answer(BaseModel):
    text: str
    score: Optional[int] = None

def _result(content, finish_reason="STOP"):
    result = MagicMock()
    result.content = content
    result.response_metadata = {
        "finish_reason": finish_reason,
        "usage_metadata": {"prompt_token_count": 10, "candidates_token_count": 5},
    }
    return result

def _model(result=None, error=None):
    model = MagicMock()
    invoke = AsyncMock(side_effect=error) if error else AsyncMock(return_value=result)
    model.ainvoke = invoke
    model.bind.return_value.ainvoke = invoke
    return model

@pytest.fixture(autouse=True)
def fresh_model_cache():
    ai_engine._SHARED_MODELS.clear()
    yield
    ai_engine._SHARED_MODELS.clear()

@pytest.mark.asyncio
async def test_ai_engine_initialization():
    engine = AIEngine()
    assert engine.project_id == "test-project"
    assert engine.default_model_name == "gemini-2.5-flash"
    assert engine.safety_settings is not None

@pytest.mark.asyncio
async def test_generate_response_success():
    engine = AIEngine()
    with patch("app.ai_engine.ChatVertexAI", return_value=_model(_result("This is a test response."))):
        response = await engine.generate_response("You are a test bot.", "Hello world")
    assert response == "This is a test response."

@pytest.mark.asyncio
async def test_generate_response_safety_block():
    engine = AIEngine()
    with patch("app.ai_engine.ChatVertexAI", return_value=_model(_result("", finish_reason="SAFETY"))):
        response = await engine.generate_response("Unsafe prompt", "Unsafe input")
    assert response == ""

@pytest.mark.asyncio
async def test_generate_response_error_is_reported_as_text():
    engine = AIEngine()
    with patch("app.ai_engine.ChatVertexAI", return_value=_model(error=RuntimeError("quota"))):
        response = await engine.generate_response("sys", "hi")
    assert response == "[SYSTEM ERROR]: quota"

@pytest.mark.asyncio
async def test_models_are_shared_per_name():
    engine = AIEngine()
    with patch("app.ai_engine.ChatVertexAI", side_effect=lambda **kw: _model(_result("ok"))) as MockChat:
        first = await engine._get_model("model-a")
        again = await engine._get_model("model-a")
        other = await engine._get_model("model-b")
    assert first is again
    assert other is not first
    assert MockChat.call_count == 2

@pytest.mark.asyncio
async def test_generate_structured_first_model_wins():
    engine = AIEngine()
    payload = json.dumps({"text": "hello", "score": 3})
    with patch("app.ai_engine.ChatVertexAI", return_value=_model(_result(payload))):
        answer = await engine.generate_structured(["model-a", "model-b"], "sys", "user", Answer)
    assert answer == Answer(text="hello", score=3)

@pytest.mark.asyncio
async def test_generate_structured_falls_back_in_order(caplog):
    engine = AIEngine()
    models = {
        "model-a": _model(error=RuntimeError("unavailable")),
        "model-b": _model(_result("```json\n{\"text\": \"from b\"}\n```")),
        "model-c": _model(_result(json.dumps({"text": "from c"}))),
    }
    with patch("app.ai_engine.ChatVertexAI", side_effect=lambda model_name, **kw: models[model_name]):
        with caplog.at_level(logging.WARNING):
            answer = await engine.generate_structured(["model-a", "model-b", "model-c"], "sys", "user", Answer)

    assert answer.text == "from b"
    assert "Model 'model-a' failed. Trying next..." in caplog.text
    models["model-c"].bind.return_value.ainvoke.assert_not_called()

@pytest.mark.asyncio
async def test_generate_structured_skips_invalid_and_empty_output():
    engine = AIEngine()
    models = {
        "model-a": _model(_result("not json at all")),
        "model-b": _model(_result("", finish_reason="SAFETY")),
        "model-c": _model(_result(json.dumps({"score": 1}))),  # missing required field
        "model-d": _model(_result(json.dumps({"text": "finally"}))),
    }
    with patch("app.ai_engine.ChatVertexAI", side_effect=lambda model_name, **kw: models[model_name]):
        answer = await engine.generate_structured(list(models), "sys", "user", Answer)
    assert answer.text == "finally"

@pytest.mark.asyncio
async def test_generate_structured_raises_when_all_fail():
    engine = AIEngine()
    models = {
        "model-a": _model(error=RuntimeError("first")),
        "model-b": _model(error=TimeoutError("last")),
    }
    with patch("app.ai_engine.ChatVertexAI", side_effect=lambda model_name, **kw: models[model_name]):
        with pytest.raises(AllModelsFailedError) as exc_info:
            await engine.generate_structured(["model-a", "model-b"], "sys", "user", Answer)

    assert exc_info.value.models == ["model-a", "model-b"]
    assert isinstance(exc_info.value.last_error, TimeoutError)

@pytest.mark.asyncio
async def test_generate_structured_needs_models():
    with pytest.raises(ValueError):
        await AIEngine().generate_structured([], "sys", "user", Answer)

@pytest.mark.asyncio
async def test_structured_call_binds_sanitized_schema():
    engine = AIEngine()
    model = _model(_result(json.dumps({"text": "x"})))
    with patch("app.ai_engine.ChatVertexAI", return_value=model):
        await engine.generate_structured(["model-a"], "sys", "user", Answer)

    kwargs = model.bind.call_args.kwargs
    assert kwargs["response_mime_type"] == "application/json"
    assert "title" not in kwargs["response_schema"]
    assert kwargs["response_schema"]["properties"]["score"]["type"] == "integer"

@pytest.mark.asyncio
async def test_game_requests_are_logged_and_metered():
    engine = AIEngine()
    with patch("app.ai_engine.ChatVertexAI", return_value=_model(_result("ok"))), \
         patch("app.persistence.db", new_callable=AsyncMock) as mock_db:
        await engine.generate_response("sys", "hi", game_id="game1")
        # Let the fire-and-forget tasks run
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    mock_db.log_ai_interaction.assert_called_once()
    mock_db.increment_token_usage.assert_called_once_with("game1", 10, 5)

def test_sanitize_schema_inlines_refs_and_collapses_optional():
    class Inner(BaseModel):
        name: str

    class Outer(BaseModel):
        inner: Inner
        maybe: Optional[Inner] = None
        mode: Optional[str] = None

    schema = _sanitize_schema(Outer.model_json_schema())

    assert "$defs" not in schema
    assert schema["properties"]["inner"]["properties"]["name"]["type"] == "string"
    assert schema["properties"]["maybe"]["nullable"] is True
    assert schema["properties"]["maybe"]["properties"]["name"]["type"] == "string"
    assert schema["properties"]["mode"]["type"] == "string"
    assert "title" not in schema["properties"]["inner"]

@pytest.mark.asyncio
async def test_generate_structured_check_moves_to_next_model():
    engine = AIEngine()
    models = {
        "model-a": _model(_result(json.dumps({"text": "lazy"}))),
        "model-b": _model(_result(json.dumps({"text": "scored", "score": 2}))),
    }

    def needs_score(answer):
        if answer.score is None:
            raise ValueError("no score")

    with patch("app.ai_engine.ChatVertexAI", side_effect=lambda model_name, **kw: models[model_name]):
        answer = await engine.generate_structured(["model-a", "model-b"], "sys", "user", Answer, check=needs_score)

    assert answer.score == 2
