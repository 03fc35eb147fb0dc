"""Redis cache for scraped listings.

Repeated analyses of the same listing skip scraping entirely. Only complete
listings are cached (24 hour TTL); degraded listings are always scraped again.
The cache silently disables itself when Redis is not configured or not
reachable.
"""

import hashlib
import json
import logging
from datetime import datetime
from typing import Any, cast

import redis.asyncio as redis
from pydantic import ValidationError

from ..config import CacheConfig
from ..models import Listing

logger = logging.getLogger(__name__)

KEY_PREFIX = "berburu"


class CacheService:
    """Listing cache backed by Redis.

    Turns repeated requests for the same listing into near-instant responses.
    """

    def __init__(self, config: CacheConfig):
        """Initialize the cache service.

        Args:
            config: Redis connection settings.
        """
        self.config = config
        self._redis: redis.Redis | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def _get_client(self) -> redis.Redis | None:
        """Return active Redis client if connected."""
        if not self._connected or self._redis is None:
            return None
        return self._redis

    async def connect(self) -> bool:
        """Connect to the Redis server.

        Returns:
            True if the connection succeeded, False otherwise.
        """
        if not self.config.enabled or not self.config.redis_url:
            logger.info("Listing cache disabled")
            return False

        try:
            client = redis.from_url(
                self.config.redis_url,
                decode_responses=True,
                retry_on_timeout=True,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            await client.ping()
            self._redis = client
            self._connected = True
            logger.info("Connected to Redis")
            return True

        except Exception as e:
            logger.warning(f"Could not connect to Redis, cache disabled: {e}")
            self._connected = False
            return False

    def _generate_key(self, prefix: str, identifier: str) -> str:
        """Generate a hashed cache key.

        Args:
            prefix: Key namespace.
            identifier: Unique identifier such as a listing URL.

        Returns:
            Cache key.
        """
        normalized = identifier.lower().strip()
        hash_obj = hashlib.sha256(normalized.encode("utf-8"))
        return f"{KEY_PREFIX}:{prefix}:{hash_obj.hexdigest()}"

    async def get_listing(self, url: str) -> Listing | None:
        """Get a cached listing.

        Args:
            url: Listing URL.

        Returns:
            Cached Listing or None on miss, invalid entry or Redis error.
        """
        client = self._get_client()
        if client is None:
            return None

        try:
            cached = await client.get(self._generate_key("listing", url))
            if not cached:
                logger.debug(f"Cache miss for listing: {url}")
                return None

            payload = cast(dict[str, Any], json.loads(cached))
            listing = self._deserialize_listing(payload)
            if listing is None:
                logger.debug(f"Discarding invalid cached listing: {url}")
                return None

            logger.debug(f"Cache hit for listing: {url}")
            return listing

        except Exception as e:
            logger.warning(f"Error reading listing cache: {e}")
            return None

    async def set_listing(self, url: str, listing: Listing) -> bool:
        """Cache a listing for the configured TTL.

        Args:
            url: Listing URL.
            listing: Listing to cache; degraded listings are refused.

        Returns:
            True if the listing was cached.
        """
        client = self._get_client()
        if client is None or listing.degraded:
            return False

        try:
            cache_data = listing.model_dump(mode="json")
            cache_data["_cached_at"] = datetime.now().isoformat()
            cache_data["_cache_ttl"] = self.config.listing_ttl

            await client.setex(
                self._generate_key("listing", url),
                self.config.listing_ttl,
                json.dumps(cache_data, default=str, ensure_ascii=False),
            )
            logger.debug(f"Listing cached: {url}")
            return True

        except Exception as e:
            logger.warning(f"Error caching listing: {e}")
            return False

    async def close(self) -> None:
        """Close the Redis connection."""
        client = self._get_client()
        if client:
            try:
                await client.aclose()
                logger.info("Redis connection closed")
            except Exception as e:
                logger.warning(f"Error closing Redis: {e}")
            finally:
                self._connected = False
                self._redis = None

    @staticmethod
    def _deserialize_listing(payload: dict[str, Any]) -> Listing | None:
        """Restore a Listing from cached JSON, None if it is unusable."""
        data = {key: value for key, value in payload.items() if not key.startswith("_")}
        try:
            listing = Listing(**data)
        except ValidationError:
            return None
        if not _is_cached_listing_valid(listing):
            return None
        return listing


def _is_cached_listing_valid(listing: Listing) -> bool:
    """A cached listing is only served when it is complete."""
    return not listing.degraded and bool(listing.title) and bool(listing.price)
