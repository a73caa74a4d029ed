import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import config
from . import game_engine
from .gcp_log import setup_logging
from . import presentation
from .routers.games import router as games_router

# 1. SETUP STRUCTURED LOGGING IMMEDIATELY
setup_logging(config.LOG_LEVEL, config.SERVICE_NAME)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info(presentation.SYSTEM_ONLINE)
    logging.info(f"System: Model fallback order {game_engine.engine.models}")

    yield

    # --- SHUTDOWN SIGNAL RECEIVED (SIGTERM) ---
    logging.info(presentation.SYSTEM_OFFLINE)
    pending = list(game_engine.engine.background_tasks)
    if pending:
        # Grace period for in-flight journal/quest flows
        await asyncio.wait(pending, timeout=5)

app = FastAPI(lifespan=lifespan)
app.include_router(games_router)

@app.get("/ping")
async def ping():
    return {"status": "ok"}
