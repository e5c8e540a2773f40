"""
Request rate limiting backed by the Django cache.

Counters use fixed windows keyed by limiter name, client id and window
index, so every worker process sharing the cache sees the same counts.
Expired counters are removed by the ``sweep_rate_limits`` Celery task.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.db import DatabaseCache
from django.db import connections, router
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)

API_PREFIX = '/api/v1/'
STRICT_SUFFIXES = ('/import', '/clear')


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class RateLimiter:
    """
    Allow at most ``limit`` hits per client within each ``interval`` seconds.

    Counting relies on the cache's ``incr``. Redis increments atomically;
    the database cache reads then writes, so concurrent hits on it can be
    undercounted. Production can set ``RATE_LIMIT_REDIS_URL`` to move the
    counters to Redis.
    """

    def __init__(self, name: str, limit: int, interval: int = 60, cache_alias: str = 'default'):
        self.name = name
        self.limit = limit
        self.interval = interval
        self.cache_alias = cache_alias

    @property
    def cache(self):
        return caches[self.cache_alias]

    def _key(self, identifier: str, window: int) -> str:
        return f"ratelimit:{self.name}:{identifier}:{window}"

    def hit(self, identifier: str, now: Optional[float] = None) -> RateLimitResult:
        now = time.time() if now is None else now
        window = int(now // self.interval)
        retry_after = max(1, math.ceil((window + 1) * self.interval - now))
        key = self._key(identifier, window)

        # add() is a no-op when the window counter already exists
        self.cache.add(key, 0, timeout=self.interval)
        try:
            count = self.cache.incr(key)
        except ValueError:
            # Counter expired between add() and incr()
            self.cache.set(key, 1, timeout=self.interval)
            count = 1

        remaining = max(0, self.limit - count)
        return RateLimitResult(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=remaining,
            retry_after=retry_after,
        )


def build_limiters() -> Dict[str, RateLimiter]:
    alias = getattr(settings, 'RATE_LIMIT_CACHE_ALIAS', 'default')
    return {
        name: RateLimiter(name, tier['limit'], tier.get('interval', 60), alias)
        for name, tier in settings.RATE_LIMITS.items()
    }


def client_identifier(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or 'unknown'


def tier_for_path(path: str) -> Optional[str]:
    if not path.startswith(API_PREFIX):
        return None
    if path.rstrip('/').endswith(STRICT_SUFFIXES):
        return 'strict'
    return 'standard'


class RateLimitMiddleware:
    """
    Apply the configured limiter tiers to API requests.
    Import and clear endpoints use the ``strict`` tier, other API paths
    use ``standard``.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.enabled = getattr(settings, 'RATE_LIMIT_ENABLED', True)
        self.limiters = build_limiters() if self.enabled else {}

    def __call__(self, request):
        tier = tier_for_path(request.path) if self.enabled else None
        limiter = self.limiters.get(tier) if tier else None
        if limiter is None:
            return self.get_response(request)

        identifier = client_identifier(request)
        result = limiter.hit(identifier)
        if not result.allowed:
            logger.warning(f"Rate limit '{limiter.name}' exceeded for {identifier} on {request.path}")
            response = JsonResponse(
                {
                    'error': 'Too many requests. Please try again later.',
                    'retry_after': result.retry_after,
                },
                status=429,
            )
            response['Retry-After'] = str(result.retry_after)
        else:
            response = self.get_response(request)

        response['X-RateLimit-Limit'] = str(result.limit)
        response['X-RateLimit-Remaining'] = str(result.remaining)
        return response


def sweep_expired_entries(cache_alias: Optional[str] = None) -> int:
    """
    Delete expired rows from the database cache table and return how many
    were removed. Other cache backends evict on their own, so nothing is
    done for them.
    """
    cache_alias = cache_alias or getattr(settings, 'RATE_LIMIT_CACHE_ALIAS', 'default')
    cache = caches[cache_alias]
    if not isinstance(cache, DatabaseCache):
        logger.info(f"Cache '{cache_alias}' is not a database cache; nothing to sweep")
        return 0

    db = router.db_for_write(cache.cache_model_class)
    connection = connections[db]
    table = connection.ops.quote_name(cache._table)
    now = timezone.now().replace(microsecond=0)
    with connection.cursor() as cursor:
        cursor.execute(
            f"DELETE FROM {table} WHERE expires < %s",
            [connection.ops.adapt_datetimefield_value(now)],
        )
        return cursor.rowcount
