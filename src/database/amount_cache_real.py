"""
Redis-backed transaction amount cache, used when REDIS_URL is set.
Implements the same interface as src.database.amount_cache (in-memory).
"""

from __future__ import annotations

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)


class RedisAmountCache:
    """
    Keys are ``escrow:amount:<authority>``. Entries expire after ``ttl``
    seconds so abandoned payments do not accumulate.
    """

    def __init__(self, url: Optional[str] = None, ttl: int = 86400, client: Optional[redis.Redis] = None) -> None:
        if client is None:
            if not url:
                raise ValueError("RedisAmountCache needs either a url or a client.")
            client = redis.from_url(url, decode_responses=True)
        self._client = client
        self._ttl = ttl

    @staticmethod
    def _key(authority: str) -> str:
        return f"escrow:amount:{authority}"

    def put(self, authority: str, amount: int) -> None:
        self._client.setex(self._key(authority), self._ttl, int(amount))

    def take_and_remove(self, authority: str) -> Optional[int]:
        raw = self._client.getdel(self._key(authority))
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.error("Corrupt cached amount for authority %s: %r", authority, raw)
            return None

    def peek(self, authority: str) -> Optional[int]:
        raw = self._client.get(self._key(authority))
        return int(raw) if raw is not None else None

    def __len__(self) -> int:
        return sum(1 for _ in self._client.scan_iter(match=self._key("*")))

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        self._client.close()
