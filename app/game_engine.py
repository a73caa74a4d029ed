import uuid
import logging
import asyncio
import datetime
import importlib
from typing import Dict, Any, List, Optional
from collections import defaultdict

from . import persistence
from . import config
from .models import GameState, Player
from .engine_context import EngineContext
from .ai_engine import AIEngine

CARTRIDGE_MAP = {
    "wildlands": "cartridges.wildlands.logic"
}

class GameNotFoundError(LookupError):
    pass

class GameEngine:
    def __init__(self, ai=None, models: Optional[List[str]] = None):
        self.ai = ai or AIEngine()
        self.models = config.get_model_fallback_order() if models is None else list(models)
        self.locks = defaultdict(asyncio.Lock)
        self.background_tasks = set()

    async def start_new_game(self, story_id: str = "wildlands", host_id: str = "local", host_name: str = "Wanderer", settings: Dict[str, Any] = None) -> GameState:
        game_id = str(uuid.uuid4())[:8]
        cartridge = self._load_cartridge(story_id)

        logging.info(f"Game Engine: Creating game {game_id} (Host: {host_name})", extra={"game_id": game_id, "story_id": story_id})

        metadata = {**cartridge.meta, **(settings or {})}
        metadata.setdefault("world_name", config.WORLD_NAME)
        now = datetime.datetime.now(datetime.timezone.utc)
        game = GameState(
            id=game_id,
            story_id=story_id,
            host_id=host_id,
            status="setup",
            created_at=now,
            metadata=metadata,
            players=[Player(id=host_id, name=host_name, joined_at=now.isoformat())],
        )
        await persistence.db.create_game_record(game)

        async with self.locks[game_id]:
            try:
                result = await cartridge.on_game_start(game.model_dump(mode="json"))
            except Exception as e:
                logging.error(f"Game Engine: Setup failed for {game_id}, freeing the slot: {e}", extra={"game_id": game_id})
                await persistence.db.delete_game(game_id)
                raise
            game.metadata = result.get("metadata", game.metadata)
            game.status = "active"
            game.started_at = datetime.datetime.now(datetime.timezone.utc)
            await persistence.db.save_game(game)
        return game

    async def get_game(self, game_id: str) -> GameState:
        game = await persistence.db.get_game_by_id(game_id)
        if not game:
            raise GameNotFoundError(game_id)
        return game

    async def dispatch_action(self, game_id: str, action: str) -> Dict[str, Any]:
        """Runs one player action under the game's lock and saves the result."""
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)
            ctx = self._context(game, {"action": action})

            result = await cartridge.handle_action(game.model_dump(mode="json"), action, ctx, Toolbox(self.ai, self.models))
            await self._save_metadata(game, result)
            return result

    async def advance_tick(self, game_id: str) -> Dict[str, Any]:
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)
            ctx = self._context(game, {"source": "tick"})

            result = await cartridge.handle_tick(game.model_dump(mode="json"), ctx, Toolbox(self.ai, self.models))
            await self._save_metadata(game, result)
            return result

    async def record_event(self, game_id: str, raw_event: Dict[str, Any]) -> Dict[str, Any]:
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)

            result = await cartridge.handle_event(game.model_dump(mode="json"), raw_event)
            await self._save_metadata(game, result)
            return result

    async def fuse_items(self, game_id: str, item_names: List[str]) -> Dict[str, Any]:
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)
            ctx = self._context(game, {"action": "fuse"})

            result = await cartridge.handle_fuse(game.model_dump(mode="json"), item_names, ctx, Toolbox(self.ai, self.models))
            await self._save_metadata(game, result)
            return result

    async def quest_hint(self, game_id: str, quest: str) -> Dict[str, Any]:
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)
            ctx = self._context(game, {"action": "hint"})

            result = await cartridge.handle_quest_hint(game.model_dump(mode="json"), quest, ctx, Toolbox(self.ai, self.models))
            await self._save_metadata(game, result)
            return result

    async def new_recipe(self, game_id: str) -> Dict[str, Any]:
        async with self.locks[game_id]:
            game = await self.get_game(game_id)
            cartridge = self._load_cartridge(game.story_id)
            ctx = self._context(game, {"action": "recipe"})

            result = await cartridge.handle_new_recipe(game.model_dump(mode="json"), ctx, Toolbox(self.ai, self.models))
            await self._save_metadata(game, result)
            return result

    async def check_progress(self, game_id: str, raw_criteria: List[Dict[str, Any]], mode: str = "all") -> Dict[str, Any]:
        game = await self.get_game(game_id)
        cartridge = self._load_cartridge(game.story_id)
        return cartridge.handle_progress(game.model_dump(mode="json"), raw_criteria, mode)

    async def get_ambience(self, game_id: str) -> List[Dict[str, Any]]:
        game = await self.get_game(game_id)
        cartridge = self._load_cartridge(game.story_id)
        return cartridge.get_ambience(game.model_dump(mode="json"))

    async def _save_metadata(self, game: GameState, result: Dict[str, Any]):
        if result and "metadata" in result:
            game.metadata = result.pop("metadata")
            await persistence.db.save_game(game)

    def _context(self, game: GameState, trigger_data: Dict[str, Any]) -> EngineContext:
        return EngineContext(
            game_id=game.id,
            _scheduler=self._schedule_background_task,
            trigger_data=trigger_data
        )

    def _schedule_background_task(self, game_id: str, coro: Any):
        task = asyncio.create_task(self._run_task_safely(game_id, coro))
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)

    async def _run_task_safely(self, game_id: str, coro: Any):
        try:
            patch = await coro
            if patch:
                async with self.locks[game_id]:
                    game = await self.get_game(game_id)
                    cartridge = self._load_cartridge(game.story_id)
                    game.metadata = cartridge.apply_background_patch(game.metadata, patch)
                    await persistence.db.save_game(game)
        except Exception as e:
            logging.error(f"Background Task Error (Game {game_id}): {e}", extra={"game_id": game_id})

    def _load_cartridge(self, story_id: str):
        module_path = CARTRIDGE_MAP.get(story_id)
        if module_path is None:
            raise ValueError(f"Unknown story: {story_id}")
        module = importlib.import_module(module_path)
        return module.WildlandsCartridge()

class Toolbox:
    def __init__(self, ai_tool, models: List[str]):
        self.ai = ai_tool
        self.models = models

engine = GameEngine()
