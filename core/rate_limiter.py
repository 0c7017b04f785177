"""
Rate Limiter

Fixed-window request counter keyed by client IP plus a truncated hash of the
User-Agent, with progressive blocking: each window that overflows adds a
violation and the block lasts ``block_duration_ms * min(violations, 5)``.

State lives in a RateLimitStore. The in-memory store suits a single process;
RedisRateLimitStore shares counters between instances.

Usage:
    from core.rate_limiter import rate_limit

    @router.get("/items", dependencies=[Depends(rate_limit(100, 15 * 60 * 1000))])
    async def list_items(): ...
"""
import asyncio
import hashlib
import json
import logging
import math
import time
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis
from fastapi import Request

from core.config import RateLimitConfig, get_settings
from core.errors import RateLimitError

logger = logging.getLogger(__name__)

MAX_PENALTY_MULTIPLIER = 5

ONE_MINUTE_MS = 60 * 1000
FIFTEEN_MINUTES_MS = 15 * ONE_MINUTE_MS
ONE_HOUR_MS = 60 * ONE_MINUTE_MS

_IP_HEADERS = ("x-real-ip", "cf-connecting-ip", "x-client-ip")


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then the single-address proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in _IP_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.strip()
    return "unknown"


def hash_user_agent(user_agent: str) -> str:
    return hashlib.sha256(user_agent.encode("utf-8")).hexdigest()[:16]


def client_key(request: Request) -> str:
    user_agent = request.headers.get("user-agent", "")
    return f"{get_client_ip(request)}:{hash_user_agent(user_agent)}"


@dataclass
class RateLimitEntry:
    count: int
    reset_time: int
    blocked: bool = False
    block_until: int = 0
    violations: int = 0


@dataclass
class RateLimitResult:
    allowed: bool
    error: Optional[str] = None
    retry_after: Optional[int] = None


# ====================
# Stores
# ====================

@runtime_checkable
class RateLimitStore(Protocol):
    """Key/value storage for rate limit entries"""

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        ...

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class InMemoryRateLimitStore:
    """Process-local store. Entries are never evicted."""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        self._entries[key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisRateLimitStore:
    """Shared store; entries expire once their window and block have passed."""

    def __init__(self, redis: aioredis.Redis, key_prefix: str = "storefront:ratelimit:"):
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "storefront:ratelimit:") -> "RedisRateLimitStore":
        return cls(aioredis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    async def get(self, key: str) -> Optional[RateLimitEntry]:
        raw = await self.redis.get(self.key_prefix + key)
        if not raw:
            return None
        return RateLimitEntry(**json.loads(raw))

    async def set(self, key: str, entry: RateLimitEntry, ttl_ms: int) -> None:
        await self.redis.set(self.key_prefix + key, json.dumps(asdict(entry)), px=max(ttl_ms, 1))

    async def delete(self, key: str) -> None:
        await self.redis.delete(self.key_prefix + key)

    async def close(self) -> None:
        await self.redis.aclose()


_store: RateLimitStore = InMemoryRateLimitStore()


def get_rate_limit_store() -> RateLimitStore:
    return _store


def set_rate_limit_store(store: RateLimitStore) -> None:
    global _store
    _store = store


def create_rate_limit_store(config: RateLimitConfig, redis_url: Optional[str] = None) -> RateLimitStore:
    if config.backend == "redis":
        if not redis_url:
            raise ValueError("RATE_LIMIT_BACKEND=redis requires a Redis URL")
        logger.info("Using Redis rate limit store")
        return RedisRateLimitStore.from_url(redis_url, key_prefix=config.key_prefix)
    logger.info("Using in-memory rate limit store")
    return InMemoryRateLimitStore()


# ====================
# Limiters
# ====================

class RateLimiter:
    """Fixed-window limiter with progressive blocking"""

    blocked_message = "IP temporarily blocked due to excessive requests"
    exceeded_message = "Rate limit exceeded. IP temporarily blocked."

    def __init__(
        self,
        max_requests: int = 100,
        window_ms: int = 15 * 60 * 1000,
        block_duration_ms: int = 60 * 60 * 1000,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.block_duration_ms = block_duration_ms
        self._store = store
        self.clock = clock
        self._lock = asyncio.Lock()

    @property
    def store(self) -> RateLimitStore:
        # Resolved lazily so the app can swap the shared store at startup
        return self._store if self._store is not None else get_rate_limit_store()

    def key_for(self, request: Request) -> str:
        return client_key(request)

    async def check(self, request: Request) -> RateLimitResult:
        return await self.hit(self.key_for(request))

    async def hit(self, key: str) -> RateLimitResult:
        """Count one request against key and decide whether it may proceed."""
        async with self._lock:
            now = self.clock()
            entry = await self.store.get(key)

            if entry and entry.blocked and now < entry.block_until:
                return RateLimitResult(
                    allowed=False,
                    error=self.blocked_message,
                    retry_after=math.ceil((entry.block_until - now) / 1000),
                )

            if entry is None or now >= entry.reset_time or entry.blocked:
                violations = entry.violations if entry else 0
                entry = RateLimitEntry(count=1, reset_time=now + self.window_ms, violations=violations)
                await self.store.set(key, entry, self._ttl(entry, now))
                return RateLimitResult(allowed=True)

            entry.count += 1
            if entry.count > self.max_requests:
                entry.violations += 1
                block_time = self.block_duration_ms * min(entry.violations, MAX_PENALTY_MULTIPLIER)
                entry.blocked = True
                entry.block_until = now + block_time
                await self.store.set(key, entry, self._ttl(entry, now))
                logger.warning(
                    f"Rate limit exceeded for {key}: violation {entry.violations}, "
                    f"blocked for {block_time}ms"
                )
                return RateLimitResult(
                    allowed=False,
                    error=self.exceeded_message,
                    retry_after=math.ceil(block_time / 1000),
                )

            await self.store.set(key, entry, self._ttl(entry, now))
            return RateLimitResult(allowed=True)

    def _ttl(self, entry: RateLimitEntry, now: int) -> int:
        # Keep violations around long enough for a repeat offence to escalate
        horizon = max(entry.reset_time, entry.block_until)
        return horizon - now + self.block_duration_ms * MAX_PENALTY_MULTIPLIER


class AuthRateLimiter(RateLimiter):
    """Brute-force guard for login attempts, keyed by identifier or IP"""

    blocked_message = "Too many failed authentication attempts. Please try again later."
    exceeded_message = "Too many failed authentication attempts. Account temporarily locked."

    def __init__(
        self,
        max_attempts: int = 5,
        window_ms: int = 15 * 60 * 1000,
        block_duration_ms: int = 30 * 60 * 1000,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        super().__init__(max_attempts, window_ms, block_duration_ms, store=store, clock=clock)

    @staticmethod
    def auth_key(identifier: Optional[str] = None, client_ip: Optional[str] = None) -> str:
        if identifier:
            return f"auth:{identifier.lower()}"
        return f"auth:ip:{client_ip or 'unknown'}"

    async def check(self, request: Request, identifier: Optional[str] = None) -> RateLimitResult:
        return await self.hit(self.auth_key(identifier, get_client_ip(request)))

    async def reset_auth_attempts(self, identifier: Optional[str], client_ip: Optional[str]) -> None:
        """Clear both keys after a successful login."""
        if identifier:
            await self.store.delete(self.auth_key(identifier=identifier))
        if client_ip:
            await self.store.delete(self.auth_key(client_ip=client_ip))


# ====================
# FastAPI integration
# ====================

def rate_limit(
    max_requests: int,
    window_ms: int,
    block_duration_ms: Optional[int] = None,
) -> Callable:
    """
    Build a FastAPI dependency enforcing an endpoint-specific limit.

    Counters are namespaced by the limit parameters so endpoints with
    different ceilings do not share a window.
    """
    settings = get_settings().rate_limit
    limiter = RateLimiter(
        max_requests=max_requests,
        window_ms=window_ms,
        block_duration_ms=block_duration_ms or settings.block_duration_ms,
    )
    namespace = f"{max_requests}/{window_ms}"

    async def dependency(request: Request) -> None:
        if not get_settings().rate_limit.enabled:
            return
        result = await limiter.hit(f"{namespace}:{client_key(request)}")
        if not result.allowed:
            raise RateLimitError(result.error, retry_after=result.retry_after)

    dependency.limiter = limiter
    return dependency
