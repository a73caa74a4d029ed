from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Dict

@dataclass
class EngineContext:
    game_id: str
    _scheduler: Callable[[str, Coroutine], None]      # func(game_id, coro)
    trigger_data: Dict[str, Any] = field(default_factory=dict)  # action, source, etc.

    def spawn(self, task: Coroutine):
        """Schedule a background task (e.g. a follow-up quest) to run independently."""
        self._scheduler(self.game_id, task)
