# app/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import certifi

from app.core.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncIOMotorClient:
    """
    Build a Motor client from settings. Motor connects lazily, so this never
    touches the network; TLS uses the certifi CA bundle when enabled.
    """
    kwargs = dict(
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=6000,
        connectTimeoutMS=6000,
    )
    if settings.MONGO_TLS:
        kwargs.update(tls=True, tlsCAFile=certifi.where())
    return AsyncIOMotorClient(settings.MONGO_URI, **kwargs)


async def connect(settings: Settings) -> tuple[AsyncIOMotorClient, AsyncIOMotorDatabase]:
    """
    Create the client and database handle, then ping once.
    A failed ping is logged but not fatal: the lazy client retries on the
    first real query.
    """
    client = create_client(settings)
    db = client[settings.MONGO_DB]
    try:
        await client.admin.command("ping")
        logger.info("Mongo connected (ping ok) db=%s", settings.MONGO_DB)
    except Exception as e:
        logger.warning("Mongo ping at startup failed, will connect lazily: %s", e)
    return client, db


async def ensure_indexes(db: AsyncIOMotorDatabase, collection_name: str) -> None:
    col = db[collection_name]
    await col.create_index("product_id", unique=True)
    await col.create_index("status")
    await col.create_index("category")
    await col.create_index("type")
    await col.create_index("gender")


def disconnect(client: AsyncIOMotorClient | None) -> None:
    if client:
        client.close()
