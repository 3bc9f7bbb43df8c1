"""
Redis cache of tags seen in recent searches

Each cache scope owns one hash ``search:tags:{scope}`` mapping a profile's
external id to the JSON list of tags the provider returned for it. A search
replaces its scope's hash in a single MULTI/EXEC, so a concurrent reader sees
either the previous set or the new one. Within a scope the last search to
complete wins; scopes never see each other's entries.
"""
import redis.asyncio as redis
from typing import Optional, List, Sequence
import json
import logging

from .config import settings
from .domain.models import ProfileRecord

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"


class SearchCache:
    """Redis cache manager for search result tags"""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis: Optional[redis.Redis] = client

    async def connect(self):
        """Connect to Redis"""
        if not settings.REDIS_ENABLED:
            logger.info("Redis caching is disabled")
            return

        try:
            self.redis = await redis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                encoding="utf-8",
                decode_responses=True,
            )
            # Test connection
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Continuing without cache.")
            self.redis = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.close()
            logger.info("Disconnected from Redis")

    def _tags_key(self, scope: str) -> str:
        """Get Redis key for a scope's tag map"""
        return f"search:tags:{scope}"

    async def remember(self, scope: str, records: Sequence[ProfileRecord]) -> bool:
        """Replace the scope's cached tags with those of ``records``"""
        if not self.redis:
            return False

        mapping = {}
        for record in records:
            if len(mapping) >= settings.SEARCH_CACHE_MAX_ENTRIES:
                break
            mapping.setdefault(record.external_id, json.dumps(list(record.tags)))

        key = self._tags_key(scope)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if mapping:
                    pipe.hset(key, mapping=mapping)
                    pipe.expire(key, settings.SEARCH_CACHE_TTL)
                await pipe.execute()
            return True
        except Exception as e:
            logger.error(f"Failed to cache search results for scope {scope}: {e}")
            return False

    async def lookup_tags(self, scope: str, external_id: str) -> Optional[List[str]]:
        """Get cached tags for a profile, None on a miss or malformed entry"""
        if not self.redis:
            return None

        try:
            raw = await self.redis.hget(self._tags_key(scope), external_id)
        except Exception as e:
            logger.error(f"Failed to read search cache for scope {scope}: {e}")
            return None

        if raw is None:
            return None

        try:
            tags = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Malformed cached tags for {external_id}")
            return None

        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            logger.warning(f"Malformed cached tags for {external_id}")
            return None
        return tags


# Global cache instance
cache = SearchCache()


async def get_cache() -> SearchCache:
    """Dependency for getting cache instance"""
    return cache
