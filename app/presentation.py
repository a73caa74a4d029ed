# --- CONSTANTS ---

# System Lifecycle & Logging
SYSTEM_ONLINE = "System: Wildlands engine online."
SYSTEM_OFFLINE = "System: Shutdown signal received. Draining background tasks."

# Errors & Status
ERR_NO_GAME = "No game with id '{game_id}'."
ERR_SLOTS_FULL = "All save slots are in use. Delete a game first."
ERR_AI_UNAVAILABLE = "The storyteller is unavailable: every model failed."
ERR_BAD_REQUEST = "Invalid request: {error}"


# --- LOGIC & FORMATTERS ---

def format_player_summary(metadata: dict) -> dict:
    """Compact HUD numbers for a save slot listing."""
    player = metadata.get("player", {})
    position = metadata.get("player_position", {})
    level = player.get("player_level", {})
    return {
        "hp": round(player.get("hp", 0)),
        "stamina": round(player.get("stamina", 0)),
        "hunger": round(player.get("hunger", 0)),
        "level": level.get("level", 1) if isinstance(level, dict) else level,
        "position": f"({position.get('x', 0)}, {position.get('y', 0)})",
        "weather": metadata.get("weather", "CLEAR"),
        "turn": metadata.get("turn", 0),
    }

def format_clock(game_time: int) -> str:
    """Game minutes as 'Day N, HH:MM'. The adventure starts at 06:00 on day 1."""
    minutes = 360 + (game_time or 0)
    day, minute_of_day = divmod(minutes, 1440)
    return f"Day {day + 1}, {minute_of_day // 60:02d}:{minute_of_day % 60:02d}"
