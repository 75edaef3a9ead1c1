"""
Transport adapter: sends Requests with ``requests`` and follows redirects.

Redirects are followed here rather than by ``requests`` so that each hop can
apply GitHub's rules: 303 turns into a body-less GET, other redirects keep
method and body, and credentials never leave the original host.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib.parse import urljoin, urlsplit
from urllib3.util.retry import Retry

from .api_info import RECEIVED_TIME_HEADER
from .exceptions import RedirectLoopError, RequestCancelledError, TransportError
from .http import FormUrlEncodedContent, Request, Response
from .utils import is_binary_content_type, media_type

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 3
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# Retrying is left to callers; the pool only manages connections
NO_RETRIES = Retry(total=0, redirect=False, raise_on_status=False)


def make_session(pool_connections: int = 10, pool_maxsize: int = 10) -> requests.Session:
    """Create a requests Session for the adapter.

    Args:
        pool_connections: Number of connection pools to cache
        pool_maxsize: Maximum connections kept per pool

    Returns:
        Configured requests.Session instance
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=NO_RETRIES,
    )
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    return session


def build_redirect_request(request: Request, status_code: int, location: str) -> Request:
    """Create the request for the next hop of a redirect.

    Args:
        request: The request that received the redirect
        status_code: Redirect status (301, 302, 303, 307 or 308)
        location: ``Location`` header value, possibly relative

    Returns:
        A new Request; ``request`` is left untouched
    """
    target = urljoin(request.url, location)
    headers = request.headers.copy()

    if urlsplit(target).hostname != urlsplit(request.url).hostname:
        headers.pop('Authorization', None)

    if status_code == 303:
        headers.pop('Content-Type', None)
        return request.copy(endpoint=target, headers=headers, method='GET', body=None, content_type=None)

    body = request.body
    if hasattr(body, 'seek') and callable(body.seek):
        body.seek(0)
    return request.copy(endpoint=target, headers=headers)


def build_response(raw: requests.Response) -> Response[Any]:
    """Convert a ``requests`` response into a Response value."""
    content_type = raw.headers.get('Content-Type')
    content = raw.content or b''
    body: Any
    if is_binary_content_type(content_type):
        body = content
    else:
        body = content.decode('utf-8', errors='replace')

    headers = CaseInsensitiveDict(raw.headers)
    headers[RECEIVED_TIME_HEADER] = format_datetime(datetime.now(timezone.utc), usegmt=True)

    return Response(
        status_code=raw.status_code,
        headers=headers,
        body=body,
        content_type=media_type(content_type),
    )


class HttpClientAdapter:
    """Send requests over HTTP, following up to ``MAX_REDIRECTS`` redirects.

    The adapter keeps no per-call state, so one instance may serve concurrent
    calls.
    """

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._session = session or make_session()
        self._timeout: Optional[float] = None

    def set_request_timeout(self, timeout: float) -> None:
        """Override the timeout of every subsequent request, in seconds."""
        if timeout <= 0:
            raise ValueError("timeout must be greater than zero")
        self._timeout = timeout

    def send(self, request: Request, cancel_event: Optional[threading.Event] = None) -> Response[Any]:
        """Send a request and return the final response of any redirect chain.

        Raises:
            RedirectLoopError: if a chain reaches ``MAX_REDIRECTS`` redirects
            TransportError: if the request could not be sent
            RequestCancelledError: if ``cancel_event`` is set between hops
        """
        current = request
        redirects = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelledError(f"{current.method} {current.url} was cancelled")

            response = self._send_once(current)
            location = response.headers.get('Location')
            if response.status_code not in REDIRECT_STATUS_CODES or not location:
                return response

            redirects += 1
            if redirects >= MAX_REDIRECTS:
                logger.warning("Redirect loop detected for %s %s", request.method, request.url)
                raise RedirectLoopError(
                    f"The redirect count has exceeded the maximum of {MAX_REDIRECTS} redirects "
                    f"for {request.method} {request.url}"
                )

            current = build_redirect_request(current, response.status_code, location)
            logger.debug("Following %d redirect to %s %s", response.status_code, current.method, current.url)

    def _send_once(self, request: Request) -> Response[Any]:
        headers = dict(request.headers.items())
        data = request.body
        if isinstance(data, str):
            data = data.encode('utf-8')
        elif isinstance(data, FormUrlEncodedContent):
            data = dict(data.fields)
        if data is not None and request.content_type and 'content-type' not in {k.lower() for k in headers}:
            headers['Content-Type'] = request.content_type

        timeout = self._timeout or request.timeout
        try:
            raw = self._session.request(
                request.method,
                request.url,
                headers=headers,
                data=data,
                timeout=timeout,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        logger.debug("%s %s -> %d", request.method, request.url, raw.status_code)
        return build_response(raw)

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> 'HttpClientAdapter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
