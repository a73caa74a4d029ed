import os
import re
import json
import logging
import asyncio
import tempfile
from datetime import datetime, timezone
from typing import List, Optional
from .models import GameState, AILogEntry
from . import config

_GAME_ID = re.compile(r"^[A-Za-z0-9_-]+$")

class SaveSlotsFullError(RuntimeError):
    pass

class PersistenceLayer:
    """
    Local JSON save slots. One `<game_id>.json` per game plus an append-only
    `logs/<game_id>.jsonl` of AI interactions. Disk IO runs off the event loop.
    """
    def __init__(self, save_dir: str = None, max_slots: int = None):
        self.save_dir = save_dir or config.SAVE_DIR
        self.logs_dir = os.path.join(self.save_dir, "logs")
        self.max_slots = config.SAVE_SLOTS if max_slots is None else max_slots
        self._lock = asyncio.Lock()

    # --- PATHS ---

    def _game_path(self, game_id: str) -> str:
        if not _GAME_ID.match(game_id or ""):
            raise ValueError(f"Invalid game id: {game_id!r}")
        return os.path.join(self.save_dir, f"{game_id}.json")

    def _log_path(self, game_id: str) -> str:
        self._game_path(game_id)
        return os.path.join(self.logs_dir, f"{game_id}.jsonl")

    # --- BLOCKING HELPERS (run in a worker thread) ---

    def _write_atomic(self, path: str, payload: str):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _read(self, path: str) -> Optional[str]:
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def _append(self, path: str, line: str):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _list_ids(self) -> List[str]:
        if not os.path.isdir(self.save_dir):
            return []
        return sorted(
            name[:-5] for name in os.listdir(self.save_dir)
            if name.endswith(".json")
        )

    # --- GAMES ---

    async def create_game_record(self, game: GameState):
        path = self._game_path(game.id)
        async with self._lock:
            existing = await asyncio.to_thread(self._list_ids)
            if game.id not in existing and len(existing) >= self.max_slots:
                raise SaveSlotsFullError(f"All {self.max_slots} save slots are in use")
            await asyncio.to_thread(self._write_atomic, path, game.model_dump_json())
        logging.info(f"System: Created save slot {game.id}", extra={"game_id": game.id})

    async def get_game_by_id(self, game_id: str) -> Optional[GameState]:
        raw = await asyncio.to_thread(self._read, self._game_path(game_id))
        if raw is None:
            return None
        return GameState.model_validate_json(raw)

    async def save_game(self, game: GameState) -> GameState:
        """Writes the slot, bumping `version` and `updated_at`."""
        async with self._lock:
            # Token usage is owned by increment_token_usage; never roll it back
            stored = await self.get_game_by_id(game.id)
            if stored:
                game.usage = stored.usage
            game.version += 1
            game.updated_at = datetime.now(timezone.utc)
            await asyncio.to_thread(self._write_atomic, self._game_path(game.id), game.model_dump_json())
        return game

    async def delete_game(self, game_id: str) -> bool:
        path = self._game_path(game_id)

        def _delete():
            if not os.path.exists(path):
                return False
            os.remove(path)
            return True

        return await asyncio.to_thread(_delete)

    async def list_games(self) -> List[GameState]:
        games = []
        for game_id in await asyncio.to_thread(self._list_ids):
            try:
                game = await self.get_game_by_id(game_id)
            except ValueError as e:
                logging.warning(f"System: Skipping unreadable save {game_id}: {e}")
                continue
            if game:
                games.append(game)
        return games

    # --- AI LOGS ---

    async def log_ai_interaction(self, entry: AILogEntry):
        try:
            await asyncio.to_thread(self._append, self._log_path(entry.game_id), entry.model_dump_json())
        except Exception as e:
            logging.error(f"Failed to log AI interaction for {entry.game_id}: {e}")

    async def get_game_logs(self, game_id: str, limit: int = 50) -> List[AILogEntry]:
        raw = await asyncio.to_thread(self._read, self._log_path(game_id))
        if not raw:
            return []
        lines = [line for line in raw.splitlines() if line.strip()]
        return [AILogEntry.model_validate(json.loads(line)) for line in lines[-limit:]]

    async def increment_token_usage(self, game_id: str, input_tokens: int, output_tokens: int):
        async with self._lock:
            game = await self.get_game_by_id(game_id)
            if not game:
                logging.warning(f"System: Token usage for unknown game {game_id}")
                return
            game.usage.input_tokens += input_tokens
            game.usage.output_tokens += output_tokens
            await asyncio.to_thread(self._write_atomic, self._game_path(game_id), game.model_dump_json())

db = PersistenceLayer()
