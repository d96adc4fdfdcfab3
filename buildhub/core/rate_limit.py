"""Simple in-memory fixed-window rate limiting utilities."""
from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request, Response

from buildhub.core.errors import RateLimited

security_logger = logging.getLogger("buildhub.security")

RATE_LIMIT_HEADERS_STATE = "rate_limit_headers"


@dataclass
class RateLimitEntry:
    count: int
    reset_at_ms: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_seconds),
        }


class RateLimiter:
    """Count requests per identifier in fixed windows, guarded by an asyncio lock."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        prune_probability: float = 0.01,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._prune_probability = prune_probability
        self._rng = rng

    def __len__(self) -> int:
        return len(self._entries)

    async def allow(self, identifier: str, max_requests: int, window_ms: int) -> RateLimitResult:
        """Record one request for ``identifier`` and report whether it fits the window."""
        async with self._lock:
            now_ms = self._clock() * 1000

            if self._rng() < self._prune_probability:
                self._prune(now_ms)

            entry = self._entries.get(identifier)
            if entry is None:
                entry = RateLimitEntry(count=0, reset_at_ms=now_ms + window_ms)
                self._entries[identifier] = entry
            elif now_ms > entry.reset_at_ms:
                entry.count = 0
                entry.reset_at_ms = now_ms + window_ms

            entry.count += 1

            return RateLimitResult(
                allowed=entry.count <= max_requests,
                limit=max_requests,
                remaining=max(0, max_requests - entry.count),
                reset_seconds=math.ceil((entry.reset_at_ms - now_ms) / 1000),
            )

    def _prune(self, now_ms: float) -> None:
        expired = [key for key, entry in self._entries.items() if now_ms > entry.reset_at_ms]
        for key in expired:
            del self._entries[key]


def client_ip(request: Request) -> str:
    """Default identifier: the client's network address."""
    return request.client.host if request.client else "anonymous"


def route_scope(request: Request) -> str:
    """Default scope: method plus the matched route template, e.g. ``POST /api/builds/{build_id}/comments``."""
    route = request.scope.get("route")
    return f"{request.method} {getattr(route, 'path', request.url.path)}"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def pending_rate_limit_headers(request: Request) -> dict[str, str]:
    """Rate-limit headers recorded for this request, for responses built outside the endpoint."""
    return dict(getattr(request.state, RATE_LIMIT_HEADERS_STATE, None) or {})


def rate_limit(
    max_requests: int,
    window_ms: int,
    identifier: Callable[[Request], str] = client_ip,
    scope: str | None = None,
) -> Callable[[Request, Response], Awaitable[RateLimitResult]]:
    """Build a dependency enforcing ``max_requests`` per ``window_ms`` for each identifier.

    Each limited route counts separately: the limiter key is the scope (the
    route by default) joined with the identifier. Rate-limit headers go on the
    endpoint's response and are also kept on ``request.state`` so error
    responses raised by later dependencies carry them too. A denied request
    raises :class:`RateLimited` with the same headers plus ``Retry-After``.
    """

    async def dependency(request: Request, response: Response) -> RateLimitResult:
        ident = identifier(request)
        key = f"{scope or route_scope(request)}:{ident}"
        result = await get_rate_limiter(request).allow(key, max_requests, window_ms)
        headers = result.headers()

        if not result.allowed:
            anonymised_ident = hashlib.sha256(ident.encode()).hexdigest()[:12]
            security_logger.warning(
                "Rate limit exceeded on %s for identifier %s",
                request.url.path,
                anonymised_ident,
            )
            headers["Retry-After"] = str(result.reset_seconds)
            raise RateLimited(headers=headers)

        setattr(request.state, RATE_LIMIT_HEADERS_STATE, headers)
        response.headers.update(headers)
        return result

    return dependency


__all__ = [
    "RateLimitResult",
    "RateLimiter",
    "client_ip",
    "get_rate_limiter",
    "pending_rate_limit_headers",
    "rate_limit",
    "route_scope",
]
