"""Conditional-request response cache for the transport layer."""
from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from cachetools import TTLCache
from cachetools.keys import hashkey

from .http import Request, Response
from .rate_limit import find_header

# Seconds before a cached response is evicted and fetched in full again
DEFAULT_CACHE_TTL = 3600
DEFAULT_CACHE_SIZE = 1000


class CachingHttpClient:
    """Wrap a transport and revalidate cached GET responses with ETags.

    A cached response is never returned without asking the server first: the
    request carries ``If-None-Match`` and the cached copy is only used when the
    answer is ``304 Not Modified``. Conditional requests that GitHub answers
    with 304 do not count against the rate limit.

    Args:
        inner: Transport that actually sends requests
        cache_ttl: Cache TTL in seconds
        cache_size: Maximum number of responses to keep
    """

    def __init__(
        self,
        inner: Any,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self._inner = inner
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def _make_cache_key(request: Request) -> Any:
        return hashkey(
            request.method,
            request.url,
            request.headers.get('Accept'),
            request.headers.get('Authorization'),
        )

    def send(self, request: Request, cancel_event: Optional[threading.Event] = None) -> Response[Any]:
        if request.method != 'GET':
            return self._inner.send(request, cancel_event)

        cache_key = self._make_cache_key(request)
        with self._lock:
            cached: Optional[Response[Any]] = self._cache.get(cache_key)

        etag = find_header(cached.headers, 'ETag') if cached is not None else None
        if etag and 'If-None-Match' not in request.headers:
            headers = request.headers.copy()
            headers['If-None-Match'] = etag
            request = request.copy(headers=headers)

        response = self._inner.send(request, cancel_event)

        if response.status_code == 304 and cached is not None:
            self.logger.debug(f"Cache hit for {request.method} {request.url}")
            return cached

        self.logger.debug(f"Cache miss for {request.method} {request.url}")
        if response.status_code == 200:
            with self._lock:
                self._cache[cache_key] = response
        return response

    def clear(self) -> None:
        """Drop every cached response."""
        with self._lock:
            self._cache.clear()

    def set_request_timeout(self, timeout: float) -> None:
        self._inner.set_request_timeout(timeout)

    def close(self) -> None:
        close = getattr(self._inner, 'close', None)
        if close is not None:
            close()
