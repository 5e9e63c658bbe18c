import logging

import redis.asyncio as aioredis

from .config import Settings
from .kv_store import InMemoryKVStore, KVStore
from .redis_store import RedisKVStore

logger = logging.getLogger(__name__)


def create_store(config: Settings) -> KVStore:
    """Build the key-value store selected by STORE_BACKEND"""
    if config.STORE_BACKEND == "memory":
        logger.warning("Using in-memory store, counters are lost on restart")
        return InMemoryKVStore()

    logger.info(f"Using Redis store at {config.REDIS_URL}")
    client = aioredis.from_url(config.REDIS_URL, **config.get_redis_connection_params())
    return RedisKVStore(client, index_key=config.REDIS_INDEX_KEY)
