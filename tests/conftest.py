"""Shared fixtures: stub transports and a fake paginated resource."""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

import pytest

from ghrest.config import ClientConfig
from ghrest.connection import Connection
from ghrest.http import Request, Response


def make_response(
    status_code: int = 200,
    data: Any = None,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    content_type: Optional[str] = "application/json",
) -> Response[Any]:
    """Build a Response as the transport adapter would."""
    if data is not None:
        body = json.dumps(data)
    all_headers = dict(headers or {})
    if content_type:
        all_headers.setdefault("Content-Type", content_type)
    return Response(
        status_code=status_code,
        headers=all_headers,
        body=body,
        content_type=content_type.split(";")[0].strip() if content_type else None,
    )


class FakeHttpClient:
    """Transport stub that records requests and replays canned responses."""

    def __init__(self, *responses: Response[Any], handler: Optional[Callable[[Request], Response[Any]]] = None):
        self.responses = list(responses)
        self.handler = handler
        self.requests: List[Request] = []
        self.timeout: Optional[float] = None
        self.closed = False

    def send(self, request: Request, cancel_event: Any = None) -> Response[Any]:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        return self.responses.pop(0)

    def set_request_timeout(self, timeout: float) -> None:
        self.timeout = timeout

    def close(self) -> None:
        self.closed = True


class PagedResource:
    """Serve ``items`` page by page with GitHub style ``Link`` headers.

    ``page_first`` controls whether ``page`` comes before ``per_page`` in the
    generated links.
    """

    def __init__(self, items: List[Dict[str, Any]], url: str, default_page_size: int = 30, page_first: bool = False):
        self.items = items
        self.url = url
        self.default_page_size = default_page_size
        self.page_first = page_first
        self.requested: List[str] = []

    def _link(self, page: int, per_page: int, extra: Dict[str, str]) -> str:
        params = [("page", str(page)), ("per_page", str(per_page))]
        if not self.page_first:
            params.reverse()
        params.extend(extra.items())
        return f"{self.url}?{urlencode(params)}"

    def __call__(self, request: Request) -> Response[Any]:
        self.requested.append(request.url)
        query = dict(parse_qsl(urlsplit(request.url).query))
        per_page = int(query.pop("per_page", self.default_page_size))
        page = int(query.pop("page", 1))
        start = (page - 1) * per_page
        chunk = self.items[start:start + per_page]
        last_page = max(1, -(-len(self.items) // per_page))

        links = []
        if page < last_page:
            links.append(f'<{self._link(page + 1, per_page, query)}>; rel="next"')
            links.append(f'<{self._link(last_page, per_page, query)}>; rel="last"')
        if page > 1:
            links.append(f'<{self._link(1, per_page, query)}>; rel="first"')
            links.append(f'<{self._link(page - 1, per_page, query)}>; rel="prev"')

        headers = {"Link": ", ".join(links)} if links else {}
        return make_response(200, data=chunk, headers=headers)


@pytest.fixture
def repo_items() -> List[Dict[str, Any]]:
    return [{"id": i, "name": f"repo-{i}", "full_name": f"octo/repo-{i}"} for i in range(1, 13)]


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(product_name="ghrest-tests")


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def connection(config: ClientConfig, fake_http: FakeHttpClient) -> Connection:
    return Connection(config, http_client=fake_http)
