"""Rate limiting middleware — Redis-based per-minute window on write endpoints.

Learn: Only votes (POST/PUT /rate/*) and snapshot uploads
(POST /snapshot/*) are limited; reads are memoized anyway. Each IP gets
a counter key like "tapboard:rl:{ip}:{minute}" that expires after two
minutes.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tapboard.store.kv import get_redis

WRITE_PREFIXES = ("/rate/", "/snapshot/")


def is_limited(method: str, path: str) -> bool:
    return method in ("POST", "PUT") and path.startswith(WRITE_PREFIXES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, rpm: int = 30):
        super().__init__(app)
        self.rpm = rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        if not is_limited(request.method, request.url.path):
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time() // 60)
        key = f"tapboard:rl:{client_ip}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except RedisError:
            # Redis error — don't block the vote
            return await call_next(request)

        if count > self.rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.rpm - count))
        return response
