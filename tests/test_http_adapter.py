"""Tests for the transport adapter, against a real local HTTP server."""
from __future__ import annotations

import io
import threading

import pytest
from pytest_httpserver import HTTPServer

from ghrest.exceptions import RedirectLoopError, RequestCancelledError, TransportError
from ghrest.http import Request
from ghrest.http_adapter import MAX_REDIRECTS, HttpClientAdapter, build_redirect_request


@pytest.fixture
def adapter() -> HttpClientAdapter:
    with HttpClientAdapter() as client:
        yield client


def _request(httpserver: HTTPServer, endpoint: str, **kwargs) -> Request:
    return Request(base_address=httpserver.url_for("/"), endpoint=endpoint, **kwargs)


# =====================================================================
# build_redirect_request
# =====================================================================


class TestBuildRedirectRequest:
    def _post(self) -> Request:
        return Request(
            method="POST",
            base_address="https://api.github.com/",
            endpoint="repos/octo/r/issues",
            headers={"Authorization": "token abc", "Accept": "application/json"},
            body='{"title": "bug"}',
            content_type="application/json",
        )

    def test_303_becomes_bodyless_get(self) -> None:
        original = self._post()
        redirected = build_redirect_request(original, 303, "/repos/octo/r/issues/1")

        assert redirected.method == "GET"
        assert redirected.body is None
        assert redirected.content_type is None
        assert redirected.url == "https://api.github.com/repos/octo/r/issues/1"
        # original untouched
        assert original.method == "POST"
        assert original.body == '{"title": "bug"}'

    @pytest.mark.parametrize("status", [301, 302, 307, 308])
    def test_other_redirects_keep_method_and_body(self, status: int) -> None:
        redirected = build_redirect_request(self._post(), status, "https://api.github.com/moved")
        assert redirected.method == "POST"
        assert redirected.body == '{"title": "bug"}'
        assert redirected.content_type == "application/json"
        assert redirected.url == "https://api.github.com/moved"

    def test_authorization_kept_on_same_host(self) -> None:
        redirected = build_redirect_request(self._post(), 302, "https://api.github.com/elsewhere")
        assert redirected.headers["authorization"] == "token abc"

    def test_authorization_dropped_on_host_change(self) -> None:
        original = self._post()
        redirected = build_redirect_request(original, 302, "https://codeload.github.com/archive.zip")
        assert "Authorization" not in redirected.headers
        assert redirected.headers["Accept"] == "application/json"
        assert original.headers["Authorization"] == "token abc"

    def test_stream_body_is_rewound(self) -> None:
        stream = io.BytesIO(b"payload")
        stream.read()
        request = Request(method="PUT", endpoint="upload", body=stream)
        redirected = build_redirect_request(request, 307, "/upload2")
        assert redirected.body is stream
        assert stream.tell() == 0


# =====================================================================
# HttpClientAdapter - real HTTP via pytest-httpserver
# =====================================================================


class TestHttpClientAdapter:
    def test_json_response(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/repos/octo/r").respond_with_json(
            {"name": "r"}, headers={"ETag": '"abc"'}
        )
        response = adapter.send(_request(httpserver, "repos/octo/r"))

        assert response.status_code == 200
        assert response.content_type == "application/json"
        assert isinstance(response.body, str)
        assert '"name"' in response.body
        assert response.headers["etag"] == '"abc"'
        assert "X-Ghrest-ReceivedDate" in response.headers
        assert response.data is None

    def test_binary_response(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        png = b"\x89PNG\r\n\x1a\n\x00\xff"
        httpserver.expect_request("/avatar").respond_with_data(png, content_type="image/png")
        response = adapter.send(_request(httpserver, "avatar"))
        assert response.body == png
        assert response.content_type == "image/png"

    def test_error_status_is_returned_not_raised(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/missing").respond_with_data("Not Found", status=404)
        response = adapter.send(_request(httpserver, "missing"))
        assert response.status_code == 404
        assert response.body == "Not Found"

    def test_sends_headers_and_body(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request(
            "/items",
            method="POST",
            headers={"Accept": "application/vnd.github.v3+json", "Content-Type": "application/json"},
            data='{"title": "é"}'.encode("utf-8"),
        ).respond_with_json({"id": 1}, status=201)

        request = _request(
            httpserver, "items",
            method="POST",
            headers={"Accept": "application/vnd.github.v3+json"},
            body='{"title": "é"}',
            content_type="application/json",
        )
        assert adapter.send(request).status_code == 201

    def test_two_redirects_then_success(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/a").respond_with_data("", status=302, headers={"Location": "/b"})
        httpserver.expect_request("/b").respond_with_data(
            "", status=301, headers={"Location": httpserver.url_for("/c")}
        )
        httpserver.expect_request("/c").respond_with_json({"ok": True})

        response = adapter.send(_request(httpserver, "a"))
        assert response.status_code == 200
        assert [entry[0].path for entry in httpserver.log] == ["/a", "/b", "/c"]

    def test_third_redirect_raises(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/a").respond_with_data("", status=302, headers={"Location": "/b"})
        httpserver.expect_request("/b").respond_with_data("", status=302, headers={"Location": "/c"})
        httpserver.expect_request("/c").respond_with_data("", status=302, headers={"Location": "/d"})
        httpserver.expect_request("/d").respond_with_json({"ok": True})

        with pytest.raises(RedirectLoopError):
            adapter.send(_request(httpserver, "a"))
        assert len(httpserver.log) == MAX_REDIRECTS

    def test_redirect_loop_raises(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/loop").respond_with_data("", status=307, headers={"Location": "/loop"})
        with pytest.raises(RedirectLoopError):
            adapter.send(_request(httpserver, "loop"))

    def test_redirect_loop_is_a_transport_error(self) -> None:
        assert issubclass(RedirectLoopError, TransportError)

    def test_303_after_post_follows_with_get(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/submit", method="POST").respond_with_data(
            "", status=303, headers={"Location": "/result"}
        )
        httpserver.expect_request("/result", method="GET").respond_with_json({"done": True})

        request = _request(
            httpserver, "submit", method="POST", body='{"a": 1}', content_type="application/json"
        )
        response = adapter.send(request)

        assert response.status_code == 200
        follow_up = httpserver.log[1][0]
        assert follow_up.method == "GET"
        assert follow_up.get_data() == b""
        assert "Content-Type" not in follow_up.headers
        assert request.method == "POST"

    def test_307_after_post_keeps_body(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        httpserver.expect_request("/submit", method="POST").respond_with_data(
            "", status=307, headers={"Location": "/elsewhere"}
        )
        httpserver.expect_request("/elsewhere", method="POST").respond_with_json({"id": 7}, status=201)

        request = _request(
            httpserver, "submit", method="POST", body='{"a": 1}', content_type="application/json"
        )
        response = adapter.send(request)

        assert response.status_code == 201
        assert httpserver.log[1][0].get_data() == b'{"a": 1}'

    def test_network_failure_is_wrapped(self, adapter: HttpClientAdapter) -> None:
        request = Request(base_address="http://127.0.0.1:1/", endpoint="nothing", timeout=2)
        with pytest.raises(TransportError) as excinfo:
            adapter.send(request)
        assert excinfo.value.__cause__ is not None

    def test_cancelled_before_sending(self, httpserver: HTTPServer, adapter: HttpClientAdapter) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RequestCancelledError):
            adapter.send(_request(httpserver, "anything"), cancel_event=cancel)
        assert httpserver.log == []

    def test_request_timeout_must_be_positive(self, adapter: HttpClientAdapter) -> None:
        with pytest.raises(ValueError):
            adapter.set_request_timeout(0)
        adapter.set_request_timeout(5)
