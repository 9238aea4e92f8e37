# app/core/lifespan.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from app.db import mongo, redis as r

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings

    # --- Startup ---
    # Mongo is mandatory
    client, db = await mongo.connect(settings)
    app.state.mongo_client = client
    app.state.db = db
    try:
        await mongo.ensure_indexes(db, settings.products_collection)
    except Exception as e:
        logger.warning("Index creation skipped: %s", e)

    # Redis is optional
    app.state.redis = await r.connect(settings)

    yield

    # --- Shutdown ---
    await r.disconnect(app.state.redis)
    app.state.redis = None
    mongo.disconnect(app.state.mongo_client)
    app.state.mongo_client = None
    app.state.db = None
    logger.info("Connections closed")
