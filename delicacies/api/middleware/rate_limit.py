"""
Rate limiting middleware for API protection.

Implements two in-memory strategies:
- Fixed window: N requests per client per minute (default)
- Token bucket for burst handling

Limits are per process; a multi-instance deployment gets one budget per
instance.
"""

import time
import asyncio
from typing import Dict, Optional, Tuple, Callable
from dataclasses import dataclass, field
from enum import Enum
import logging

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ...exceptions import RateLimitError
from .error_handler import create_error_response

logger = logging.getLogger(__name__)


class RateLimitStrategy(Enum):
    """Rate limiting algorithm strategies."""
    FIXED_WINDOW = "fixed_window"
    TOKEN_BUCKET = "token_bucket"


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests_per_minute: int = 60

    # Burst allowance (token bucket only)
    burst_size: int = 10

    strategy: RateLimitStrategy = RateLimitStrategy.FIXED_WINDOW

    enabled: bool = True

    excluded_paths: list = field(default_factory=lambda: [
        "/api/health",
        "/docs",
        "/openapi.json",
        "/redoc",
    ])

    # Headers carrying the real client IP. Only set these behind a proxy
    # that overwrites them; otherwise clients can pick their own bucket.
    trusted_proxy_headers: list = field(default_factory=list)


@dataclass
class RateLimitState:
    """State for a single rate limit bucket."""
    tokens: float
    last_update: float
    request_count: int = 0
    window_start: float = 0.0


class InMemoryRateLimiter:
    """
    In-memory rate limiter implementation.

    Suitable for single-instance deployments.
    """

    window_size: float = 60.0

    def __init__(self, config: RateLimitConfig, clock: Callable[[], float] = time.time):
        self.config = config
        self._clock = clock
        self._buckets: Dict[str, RateLimitState] = {}
        self._lock = asyncio.Lock()
        self._cleanup_interval = 300
        self._last_cleanup = clock()

    async def _cleanup_old_buckets(self) -> None:
        """Remove bucket entries idle for over an hour."""
        now = self._clock()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        async with self._lock:
            expired_keys = [
                key for key, state in self._buckets.items()
                if now - state.last_update > 3600
            ]
            for key in expired_keys:
                del self._buckets[key]

            self._last_cleanup = now
            if expired_keys:
                logger.debug(f"Cleaned up {len(expired_keys)} expired rate limit buckets")

    async def check_fixed_window(self, identifier: str) -> Tuple[bool, int, float]:
        """
        Count requests in the current one-minute window.

        Returns:
            Tuple of (allowed, remaining_requests, reset_time).
        """
        await self._cleanup_old_buckets()
        limit = self.config.requests_per_minute

        async with self._lock:
            now = self._clock()
            state = self._buckets.get(identifier)
            if state is None or now - state.window_start >= self.window_size:
                state = RateLimitState(tokens=0, last_update=now, window_start=now)
                self._buckets[identifier] = state

            reset_time = self.window_size - (now - state.window_start)
            state.last_update = now

            if state.request_count < limit:
                state.request_count += 1
                return True, limit - state.request_count, reset_time
            return False, 0, reset_time

    async def check_token_bucket(self, identifier: str) -> Tuple[bool, int, float]:
        """
        Check rate limit using token bucket algorithm.

        Returns:
            Tuple of (allowed, remaining_tokens, reset_time).
        """
        await self._cleanup_old_buckets()

        limit = self.config.requests_per_minute
        refill_rate = limit / 60.0
        max_tokens = min(self.config.burst_size, limit)

        async with self._lock:
            now = self._clock()

            if identifier not in self._buckets:
                self._buckets[identifier] = RateLimitState(tokens=max_tokens, last_update=now)

            state = self._buckets[identifier]

            elapsed = now - state.last_update
            state.tokens = min(max_tokens, state.tokens + elapsed * refill_rate)
            state.last_update = now

            if state.tokens >= 1:
                state.tokens -= 1
                reset_time = (1 - (state.tokens % 1)) / refill_rate if state.tokens < max_tokens else 0
                return True, int(state.tokens), reset_time
            return False, 0, (1 - state.tokens) / refill_rate

    async def check_rate_limit(self, identifier: str) -> Tuple[bool, int, float]:
        """Check rate limit using configured strategy."""
        if self.config.strategy == RateLimitStrategy.TOKEN_BUCKET:
            return await self.check_token_bucket(identifier)
        return await self.check_fixed_window(identifier)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for rate limiting requests.
    """

    def __init__(
        self,
        app: FastAPI,
        config: Optional[RateLimitConfig] = None,
        limiter: Optional[InMemoryRateLimiter] = None,
    ):
        super().__init__(app)
        self.config = config or RateLimitConfig()
        self.limiter = limiter or InMemoryRateLimiter(self.config)

    def _get_client_identifier(self, request: Request) -> str:
        for header in self.config.trusted_proxy_headers:
            forwarded = request.headers.get(header)
            if forwarded:
                return f"ip:{forwarded.split(',')[0].strip()}"

        client = request.client
        if client:
            return f"ip:{client.host}"

        return "unknown"

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.config.excluded_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.config.enabled or self._is_excluded(request.url.path):
            return await call_next(request)

        identifier = self._get_client_identifier(request)
        allowed, remaining, reset_time = await self.limiter.check_rate_limit(identifier)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {identifier} on {request.url.path}")
            error = RateLimitError(self.config.requests_per_minute, "minute")
            return create_error_response(
                error=error.message,
                status_code=error.status_code,
                headers={
                    "Retry-After": str(int(reset_time) + 1),
                    "X-Rate-Limit-Remaining": "0",
                    "X-Rate-Limit-Reset": str(int(time.time() + reset_time)),
                },
            )

        response = await call_next(request)

        response.headers["X-Rate-Limit-Remaining"] = str(remaining)
        response.headers["X-Rate-Limit-Reset"] = str(int(time.time() + reset_time))

        return response


def setup_rate_limiting(
    app: FastAPI,
    config: Optional[RateLimitConfig] = None,
) -> InMemoryRateLimiter:
    """
    Configure rate limiting middleware for the FastAPI application.

    Returns:
        The rate limiter instance for potential external use.
    """
    if config is None:
        config = RateLimitConfig()

    limiter = InMemoryRateLimiter(config)
    app.add_middleware(RateLimitMiddleware, config=config, limiter=limiter)

    return limiter
