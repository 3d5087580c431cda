"""
FastAPI application bootstrap with: \n
- Lifespan-managed initialization of the entities table \n
- CORS configured for the frontend \n
- WebSocket change feed per entity type \n

Environment contract (from `settings`): \n
- INIT_MODE: if 'runtime', create missing tables during app startup. \n
- FRONTEND_URL: allowed CORS origin. \n
- LOG_LEVEL: level of the application loggers. \n
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware

from workboard.api.fast_api import router
from workboard.database.config.config import settings
from workboard.database.config.connection_engine import create_tables
from workboard.database.core.change_relay import change_relay
from workboard.database.core.entity_store import EntityStore

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""

logging.getLogger("workboard").setLevel(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: if INIT_MODE == 'runtime', create the entities table(s).
    - On shutdown: release every open change-feed channel.
    """
    if settings.INIT_MODE == "runtime":
        await create_tables()
        logger.info("Entities table ready (%s).", settings.ENTITIES_TABLE)
    else:
        logger.info("Skipping table creation (INIT_MODE=%s).", settings.INIT_MODE)

    try:
        yield
    finally:
        open_channels = change_relay.channel_count()
        change_relay.close()
        logger.info("Closed %d change-feed channel(s).", open_channels)


app = FastAPI(title="workboard", lifespan=lifespan)
"""Instatiates a FastAPI application object with the lifespan handler above."""

# -----------------------
# CORS configuration
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# API routes
# -----------------------
app.include_router(router)


@app.websocket("/ws/entities/{entity_type}")
async def entity_changes(websocket: WebSocket, entity_type: str):
    """
    Change feed of one entity type.

    Protocol
    --------
    - Upon connect: opens a channel on the change relay for `entity_type`.
    - Every committed insert/update/delete of that type is sent as a JSON
      object `{"event_type", "data", "old_data"}`.
    - Incoming frames are ignored; on disconnect the channel is released.
    """
    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = EntityStore(entity_type).subscribe(queue.put_nowait)

    async def forward():
        while True:
            change = await queue.get()
            await websocket.send_json(jsonable_encoder(change))

    forwarder = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Change feed for %s disconnected", entity_type)
    finally:
        forwarder.cancel()
        unsubscribe()
