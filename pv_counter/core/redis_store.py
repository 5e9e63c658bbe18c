import logging
from typing import Any, Dict, Optional

import redis
import redis.asyncio as aioredis

from .config import settings
from .exceptions import StoreError
from .kv_store import KVStore, KeyInfo, ListResult, decode_cursor, encode_cursor

logger = logging.getLogger(__name__)

# Upper bound of a ZRANGEBYLEX prefix range; 0xFF never occurs in UTF-8
_LEX_MAX = b"\xff"


class RedisKVStore(KVStore):
    def __init__(self, client: Optional[aioredis.Redis] = None, index_key: Optional[str] = None):
        """
        Key-value store on a single Redis instance

        Values are plain strings. Every key written through ``put`` is also
        added to a sorted set so ``list`` can page in lexicographic order
        with exact page sizes.

        Args:
            client: Existing asyncio Redis client, created from settings if omitted
            index_key: Sorted set used as the key index
        """
        self.client = client or aioredis.from_url(
            settings.REDIS_URL,
            **settings.get_redis_connection_params()
        )
        self.index_key = index_key or settings.REDIS_INDEX_KEY
        self.healthy = True

    def _fail(self, operation: str, key: str, e: Exception) -> StoreError:
        self.healthy = False
        logger.error(f"Redis {operation} failed for {key!r}: {str(e)}")
        return StoreError(operation, str(e))

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(key)
        except redis.RedisError as e:
            raise self._fail("get", key, e) from e

        self.healthy = True
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def put(self, key: str, value: str) -> None:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.set(key, value)
                pipe.zadd(self.index_key, {key: 0})
                await pipe.execute()
        except redis.RedisError as e:
            raise self._fail("put", key, e) from e
        self.healthy = True

    async def delete(self, key: str) -> None:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.zrem(self.index_key, key)
                await pipe.execute()
        except redis.RedisError as e:
            raise self._fail("delete", key, e) from e
        self.healthy = True

    async def list(
        self,
        limit: int,
        cursor: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListResult:
        after = decode_cursor(cursor) if cursor else None

        # bounds are bytes so they compare the way Redis orders members
        if after is not None and (not prefix or after >= prefix):
            lower = b"(" + after.encode("utf-8")
        elif prefix:
            lower = b"[" + prefix.encode("utf-8")
        else:
            lower = b"-"
        upper = b"[" + prefix.encode("utf-8") + _LEX_MAX if prefix else b"+"

        try:
            names = await self.client.zrangebylex(self.index_key, lower, upper, start=0, num=limit + 1)
        except redis.RedisError as e:
            raise self._fail("list", prefix or "*", e) from e
        self.healthy = True

        names = [n.decode("utf-8") if isinstance(n, bytes) else n for n in names]
        page = names[:limit]
        complete = len(names) <= limit
        return ListResult(
            keys=[KeyInfo(name=name) for name in page],
            cursor=None if complete or not page else encode_cursor(page[-1]),
            complete=complete,
        )

    async def ping(self) -> bool:
        try:
            await self.client.ping()
            if not self.healthy:
                logger.info("Redis is back online")
            self.healthy = True
        except redis.RedisError:
            if self.healthy:
                logger.error("Redis is down")
            self.healthy = False
        return self.healthy

    async def get_status(self) -> Dict[str, Any]:
        """Get Redis status"""
        healthy = await self.ping()
        status: Dict[str, Any] = {"backend": "redis", "healthy": healthy}
        if healthy:
            try:
                status["keys"] = await self.client.zcard(self.index_key)
            except redis.RedisError as e:
                logger.error(f"Failed to read key index size: {str(e)}")
        return status

    async def close(self) -> None:
        await self.client.aclose()
