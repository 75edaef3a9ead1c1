"""Tests for the ETag revalidating response cache."""
from __future__ import annotations

import time

import pytest

from ghrest.caching import CachingHttpClient
from ghrest.config import ClientConfig
from ghrest.connection import Connection
from ghrest.http import Request

from conftest import FakeHttpClient, make_response


def _get(endpoint: str = "repos/o/r", **headers: str) -> Request:
    return Request(endpoint=endpoint, headers={"Accept": "application/json", **headers})


class TestCachingHttpClient:
    def test_revalidates_with_etag(self) -> None:
        first = make_response(data={"v": 1}, headers={"ETag": '"abc"'})
        inner = FakeHttpClient(first, make_response(304, body="", content_type=None))
        cache = CachingHttpClient(inner)

        assert cache.send(_get()) is first
        assert "If-None-Match" not in inner.requests[0].headers

        assert cache.send(_get()) is first
        assert inner.requests[1].headers["If-None-Match"] == '"abc"'

    def test_changed_resource_replaces_entry(self) -> None:
        first = make_response(data={"v": 1}, headers={"ETag": '"abc"'})
        second = make_response(data={"v": 2}, headers={"ETag": '"def"'})
        inner = FakeHttpClient(first, second, make_response(304, body="", content_type=None))
        cache = CachingHttpClient(inner)

        cache.send(_get())
        assert cache.send(_get()) is second
        assert cache.send(_get()) is second
        assert inner.requests[2].headers["If-None-Match"] == '"def"'

    def test_without_etag_no_conditional_request(self) -> None:
        inner = FakeHttpClient(make_response(data={}), make_response(data={}))
        cache = CachingHttpClient(inner)
        cache.send(_get())
        cache.send(_get())
        assert "If-None-Match" not in inner.requests[1].headers

    def test_key_includes_authorization_and_accept(self) -> None:
        inner = FakeHttpClient(
            make_response(data={}, headers={"ETag": '"a"'}),
            make_response(data={}, headers={"ETag": '"b"'}),
            make_response(data={}, headers={"ETag": '"c"'}),
        )
        cache = CachingHttpClient(inner)
        cache.send(_get(Authorization="token one"))
        cache.send(_get(Authorization="token two"))
        cache.send(Request(endpoint="repos/o/r", headers={"Authorization": "token one", "Accept": "text/html"}))
        assert all("If-None-Match" not in request.headers for request in inner.requests)

    @pytest.mark.parametrize("method", ["POST", "PATCH", "PUT", "DELETE"])
    def test_only_get_is_cached(self, method: str) -> None:
        response = make_response(data={}, headers={"ETag": '"a"'})
        inner = FakeHttpClient(response, response)
        cache = CachingHttpClient(inner)
        cache.send(Request(method=method, endpoint="x"))
        cache.send(Request(method=method, endpoint="x"))
        assert "If-None-Match" not in inner.requests[1].headers

    def test_errors_are_not_cached(self) -> None:
        inner = FakeHttpClient(
            make_response(404, data={"message": "Not Found"}, headers={"ETag": '"a"'}),
            make_response(data={}),
        )
        cache = CachingHttpClient(inner)
        cache.send(_get())
        cache.send(_get())
        assert "If-None-Match" not in inner.requests[1].headers

    def test_entries_expire(self) -> None:
        inner = FakeHttpClient(
            make_response(data={}, headers={"ETag": '"a"'}),
            make_response(data={}, headers={"ETag": '"a"'}),
        )
        cache = CachingHttpClient(inner, cache_ttl=0.05)
        cache.send(_get())
        time.sleep(0.1)
        cache.send(_get())
        assert "If-None-Match" not in inner.requests[1].headers

    def test_clear(self) -> None:
        inner = FakeHttpClient(
            make_response(data={}, headers={"ETag": '"a"'}),
            make_response(data={}),
        )
        cache = CachingHttpClient(inner)
        cache.send(_get())
        cache.clear()
        cache.send(_get())
        assert "If-None-Match" not in inner.requests[1].headers

    def test_delegates_timeout_and_close(self) -> None:
        inner = FakeHttpClient()
        cache = CachingHttpClient(inner)
        cache.set_request_timeout(7)
        cache.close()
        assert inner.timeout == 7
        assert inner.closed


class TestConnectionWithCache:
    def test_cached_data_returned_through_connection(self) -> None:
        inner = FakeHttpClient(
            make_response(data={"name": "r"}, headers={"ETag": '"abc"'}),
            make_response(304, body="", content_type=None),
        )
        connection = Connection(ClientConfig(), http_client=CachingHttpClient(inner))

        assert connection.get("repos/o/r").data == {"name": "r"}
        assert connection.get("repos/o/r").data == {"name": "r"}
        assert inner.requests[1].headers["If-None-Match"] == '"abc"'

    def test_config_enables_cache(self) -> None:
        connection = Connection(ClientConfig(use_response_cache=True))
        assert isinstance(connection._http_client, CachingHttpClient)
        connection.close()
