"""Rate limiting middleware"""
import logging
import time
from typing import Callable, Dict, Optional, Tuple
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed one-minute windows per client IP.

    `route_limits` maps a path prefix to its own, usually stricter, budget
    (slide generation calls a paid model). Counts live in Redis when it is
    connected and in a bounded in-process dict otherwise.
    """

    def __init__(
        self,
        app,
        requests_per_minute: int = 120,
        route_limits: Optional[Dict[str, int]] = None,
        redis_client=None,
        max_fallback_keys: int = 10000,
    ):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.route_limits = dict(route_limits or {})
        self._redis = redis_client
        self._fallback: Dict[str, Tuple[int, float]] = {}
        self._max_fallback_keys = max_fallback_keys

    def _get_redis(self):
        if self._redis is not None:
            return self._redis
        from datewrapped.core.database import get_redis_client
        return get_redis_client()

    def _limit_for(self, path: str) -> Tuple[str, int]:
        for prefix, limit in self.route_limits.items():
            if path.startswith(prefix):
                return prefix, limit
        return "*", self.requests_per_minute

    def _fallback_incr(self, key: str, now: float) -> int:
        count, expires_at = self._fallback.get(key, (0, 0.0))
        if expires_at and now >= expires_at:
            count = 0
            expires_at = 0.0
        if not expires_at:
            expires_at = (int(now // 60) + 1) * 60 + 1
        count += 1
        self._fallback[key] = (count, expires_at)
        if len(self._fallback) > self._max_fallback_keys:
            for k, (_, exp) in list(self._fallback.items()):
                if exp < now:
                    self._fallback.pop(k, None)
        return count

    async def _incr(self, key: str, now: float) -> int:
        redis = self._get_redis()
        if redis:
            try:
                count = await redis.incr(key)
                if count == 1:
                    await redis.expire(key, 61)
                return int(count)
            except Exception as e:
                logger.warning(f"Redis rate limit failed, using fallback: {e}")
        return self._fallback_incr(key, now)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        scope, limit = self._limit_for(path)
        key = f"ratelimit:{scope}:{client_ip}:{int(now // 60)}"
        count = await self._incr(key, now)

        if count > limit:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limited",
                    "message": f"Too many requests. Limit: {limit}/minute",
                    "retry_after": 60,
                },
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        return response
