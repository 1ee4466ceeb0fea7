"""Request context middleware: request id, timing, access log and throttling.

Throttling uses one token bucket per client, refilled continuously at
``rate_limit_per_minute`` tokens per minute. ``RateLimiter.hit`` takes the
clock as an argument so the bucket arithmetic can be tested without HTTP.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core import response as envelope
from ..core.config import settings
from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests."

# Probes and API docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/healthcheck/status.json", "/docs", "/redoc", "/openapi.json"})


@dataclass
class RateDecision:
    allowed: bool
    retry_after: float = 0.0


class RateLimiter:
    """In-memory token buckets keyed by client."""

    def __init__(self, sweep_every: int = 100, max_idle: float = 120.0):
        # key -> (tokens left, time of last refill)
        self.buckets: Dict[str, tuple] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._sweep_every = sweep_every
        self._max_idle = max_idle

    def hit(self, key: str, per_minute: int, now: Optional[float] = None) -> RateDecision:
        """Take one token from *key*'s bucket.

        A limit of zero or less disables throttling.
        """
        if per_minute <= 0:
            return RateDecision(True)
        if now is None:
            now = time.monotonic()

        with self._lock:
            self._hits += 1
            if self._hits % self._sweep_every == 0:
                self._sweep(now)

            per_second = per_minute / 60.0
            tokens, last = self.buckets.get(key, (float(per_minute), now))
            tokens = min(float(per_minute), tokens + (now - last) * per_second)
            if tokens < 1.0:
                self.buckets[key] = (tokens, now)
                return RateDecision(False, (1.0 - tokens) / per_second)
            self.buckets[key] = (tokens - 1.0, now)
            return RateDecision(True)

    def _sweep(self, now: float) -> None:
        for key in [k for k, (_, last) in self.buckets.items() if now - last > self._max_idle]:
            del self.buckets[key]

    def reset(self) -> None:
        with self._lock:
            self.buckets.clear()
            self._hits = 0


rate_limiter = RateLimiter()


def client_key(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        if request.url.path not in _EXEMPT_PATHS:
            key = client_key(request)
            decision = rate_limiter.hit(key, settings.rate_limit_per_minute)
            if not decision.allowed:
                retry_after = round(decision.retry_after, 1)
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": retry_after},
                )
                return JSONResponse(
                    status_code=429,
                    content=envelope.error(request, RATE_LIMIT_MESSAGE, 429, {"retry_after": retry_after}),
                    headers={"Retry-After": str(int(decision.retry_after) + 1), "X-Request-ID": rid},
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
