from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError
from typing import Optional, Dict, Any, List, Literal
import logging

from .. import game_engine
from .. import persistence
from .. import presentation
from ..ai_engine import AllModelsFailedError

router = APIRouter(prefix="/games", tags=["games"])

class NewGamePayload(BaseModel):
    host_name: str = "Wanderer"
    world_name: Optional[str] = None
    language: str = "en"
    narrative_length: Literal["short", "medium", "long", "detailed"] = "medium"
    playback_mode: Literal["always", "occasional", "off"] = "occasional"

class ActionPayload(BaseModel):
    action: str = Field(min_length=1)

class FusePayload(BaseModel):
    items: List[str] = Field(min_length=2, max_length=3)

class HintPayload(BaseModel):
    quest: str

class ProgressPayload(BaseModel):
    criteria: List[Dict[str, Any]] = Field(min_length=1)
    mode: Literal["all", "any"] = "all"

def _not_found(game_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=presentation.ERR_NO_GAME.format(game_id=game_id))

async def _run(game_id: str, coro):
    """Maps engine failures onto HTTP errors."""
    try:
        return await coro
    except game_engine.GameNotFoundError:
        raise _not_found(game_id)
    except AllModelsFailedError as e:
        logging.error(f"API: {e}", extra={"game_id": game_id, "action": getattr(coro, "__name__", None)})
        raise HTTPException(status_code=502, detail=presentation.ERR_AI_UNAVAILABLE)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=presentation.ERR_BAD_REQUEST.format(error=e))

@router.post("", status_code=201)
async def create_game(payload: NewGamePayload):
    settings = payload.model_dump(exclude={"host_name"}, exclude_none=True)
    try:
        game = await game_engine.engine.start_new_game("wildlands", host_name=payload.host_name, settings=settings)
    except persistence.SaveSlotsFullError:
        raise HTTPException(status_code=409, detail=presentation.ERR_SLOTS_FULL)
    return {
        "id": game.id,
        "narrative": game.metadata.get("narrative_log", [""])[-1],
        "summary": presentation.format_player_summary(game.metadata),
    }

@router.get("")
async def list_games():
    games = await persistence.db.list_games()
    return [
        {"id": g.id, "status": g.status, "summary": presentation.format_player_summary(g.metadata)}
        for g in games
    ]

@router.get("/{game_id}")
async def get_game(game_id: str):
    game = await _run(game_id, game_engine.engine.get_game(game_id))
    return {
        **game.model_dump(mode="json"),
        "clock": presentation.format_clock(game.metadata.get("game_time", 0)),
        "summary": presentation.format_player_summary(game.metadata),
    }

@router.delete("/{game_id}", status_code=204)
async def delete_game(game_id: str):
    try:
        deleted = await persistence.db.delete_game(game_id)
    except ValueError:
        deleted = False
    if not deleted:
        raise _not_found(game_id)

@router.post("/{game_id}/action")
async def post_action(game_id: str, payload: ActionPayload) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.dispatch_action(game_id, payload.action))

@router.post("/{game_id}/tick")
async def post_tick(game_id: str) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.advance_tick(game_id))

@router.post("/{game_id}/events")
async def post_event(game_id: str, event: Dict[str, Any]) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.record_event(game_id, event))

@router.post("/{game_id}/fuse")
async def post_fuse(game_id: str, payload: FusePayload) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.fuse_items(game_id, payload.items))

@router.post("/{game_id}/hint")
async def post_hint(game_id: str, payload: HintPayload) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.quest_hint(game_id, payload.quest))

@router.post("/{game_id}/recipe")
async def post_recipe(game_id: str) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.new_recipe(game_id))

@router.post("/{game_id}/progress")
async def post_progress(game_id: str, payload: ProgressPayload) -> Dict[str, Any]:
    return await _run(game_id, game_engine.engine.check_progress(game_id, payload.criteria, payload.mode))

@router.get("/{game_id}/ambience")
async def get_ambience(game_id: str) -> List[Dict[str, Any]]:
    return await _run(game_id, game_engine.engine.get_ambience(game_id))
