from datetime import datetime, timezone
from typing import List, Dict, Optional, Any, Literal
from pydantic import BaseModel, Field, ConfigDict

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Player(BaseModel):
    id: str
    name: str
    joined_at: str

class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

class GameState(BaseModel):
    """One save slot. The cartridge owns everything under `metadata`."""
    id: str
    story_id: str = "wildlands"
    host_id: str = "local"
    status: Literal["setup", "active", "ended"] = "setup"
    created_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    players: List[Player] = Field(default_factory=list)
    usage: TokenUsage = Field(default_factory=TokenUsage)
    version: int = 1
    schema_version: int = 3

    model_config = ConfigDict(populate_by_name=True)

class AILogEntry(BaseModel):
    game_id: str
    model: str
    system_prompt: str
    user_input: str
    raw_response: Any = None
    usage: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
