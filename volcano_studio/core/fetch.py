"""
Cached upstream fetch.

Reads through a TTLCache and only invokes the upstream call on a miss. No
retry or backoff happens here: one failed call fails the fetch.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode

from .cache import TTLCache
from .errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class UpstreamRequest:
    """Address of one upstream JSON call."""
    url: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def full_url(self) -> str:
        """URL with the query string applied."""
        if not self.params:
            return self.url
        return f"{self.url}?{urlencode(self.params)}"


@dataclass(frozen=True)
class UpstreamResponse:
    """Status-coded response with a raw body."""
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


Executor = Callable[[UpstreamRequest], Awaitable[UpstreamResponse]]


async def fetch_cached(
    cache: TTLCache,
    request: UpstreamRequest,
    execute: Executor,
    cache_key: Optional[str] = None,
    ttl_ms: int = DEFAULT_TTL_MS,
    timeout_seconds: Optional[float] = None,
) -> Any:
    """Return the JSON body for ``request``, from cache when fresh.

    Args:
        cache: Shared TTL cache
        request: Upstream address, only used on a miss
        execute: Capability that performs one upstream call
        cache_key: Caller-built key; defaults to ``url:<full url>``
        ttl_ms: Maximum age of a cached value
        timeout_seconds: Bound on the upstream call, if any

    Returns:
        Parsed JSON value

    Raises:
        UpstreamError: Non-success status, timeout or unparseable body
    """
    key = cache_key or f"url:{request.full_url}"
    # store I/O may hit SQLite, keep it off the event loop
    cached = await asyncio.to_thread(cache.get, key, ttl_ms)
    if cached is not None:
        logger.debug("cache hit %s", key)
        return json.loads(cached)

    logger.debug("cache miss %s, calling %s", key, request.url)
    call = execute(request)
    if timeout_seconds is not None:
        try:
            response = await asyncio.wait_for(call, timeout=timeout_seconds)
        except asyncio.TimeoutError:
            raise UpstreamError(f"Upstream request timed out after {timeout_seconds}s")
    else:
        response = await call

    if not response.ok:
        raise UpstreamError(f"Upstream request failed ({response.status})", status=response.status)

    try:
        data = json.loads(response.body)
    except ValueError as e:
        raise UpstreamError(f"Upstream returned invalid JSON: {e}", status=response.status)

    await asyncio.to_thread(cache.set, key, json.dumps(data))
    return data
