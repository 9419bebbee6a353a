import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import get_logger

logger = get_logger(__name__)

# Clerk hosts the sign-in widgets the dashboard embeds
CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "script-src 'self' https://*.clerk.accounts.dev; "
    "connect-src 'self' https://*.clerk.accounts.dev; "
    "img-src 'self' https://img.clerk.com;"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window rate limit per client IP, kept in process memory.

    Counts are lost on restart and not shared between workers.
    """

    def __init__(self, app, calls: int = 60, period: int = 60, exempt_paths: Iterable[str] = ()):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.exempt_paths = frozenset(exempt_paths)
        self.clients: Dict[str, Deque[float]] = defaultdict(deque)

    def _hits(self, client_ip: str, now: float) -> Deque[float]:
        hits = self.clients[client_ip]
        while hits and now - hits[0] >= self.period:
            hits.popleft()
        return hits

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        hits = self._hits(client_ip, now)

        if len(hits) >= self.calls:
            logger.warning("Rate limit exceeded", extra={"client": client_ip, "path": request.url.path})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": f"Rate limit exceeded. Maximum {self.calls} requests per {self.period} seconds.",
                    "error_code": "RATE_LIMIT_EXCEEDED"
                },
                headers={"Retry-After": str(self.period)},
            )

        hits.append(now)
        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.calls)
        response.headers["X-RateLimit-Remaining"] = str(self.calls - len(hits))
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request"""

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.perf_counter()
        client_host = request.client.host if request.client else "unknown"

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={"client": client_host, "duration_ms": round(process_time * 1000, 1)},
        )
        return response
