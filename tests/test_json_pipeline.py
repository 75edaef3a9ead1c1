"""Tests for request serialization and response deserialization."""
from __future__ import annotations

import io
from typing import List

import pytest

from ghrest.exceptions import DeserializationError
from ghrest.http import FormUrlEncodedContent, Request
from ghrest.json_pipeline import V3_ACCEPT_HEADER, JsonHttpPipeline
from ghrest.models import Repository

from conftest import make_response


@pytest.fixture
def pipeline() -> JsonHttpPipeline:
    return JsonHttpPipeline()


class TestSerializeRequest:
    def test_sets_default_accept(self, pipeline: JsonHttpPipeline) -> None:
        request = Request(endpoint="user")
        serialized = pipeline.serialize_request(request)
        assert serialized.headers["Accept"] == V3_ACCEPT_HEADER
        assert "Accept" not in request.headers

    def test_keeps_caller_accept(self, pipeline: JsonHttpPipeline) -> None:
        request = Request(endpoint="user", headers={"accept": "application/vnd.github.mercy-preview+json"})
        serialized = pipeline.serialize_request(request)
        assert serialized.headers["Accept"] == "application/vnd.github.mercy-preview+json"
        assert len(serialized.headers) == 1

    def test_object_body_becomes_json(self, pipeline: JsonHttpPipeline) -> None:
        request = Request(method="POST", endpoint="user/repos", body={"name": "r", "private": True})
        serialized = pipeline.serialize_request(request)
        assert serialized.body == '{"name": "r", "private": true}'
        assert request.body == {"name": "r", "private": True}

    def test_dataclass_body_uses_json_aliases(self, pipeline: JsonHttpPipeline) -> None:
        body = Repository(name="r", is_private=True, description=None)
        serialized = pipeline.serialize_request(Request(method="POST", body=body))
        assert '"private": true' in serialized.body
        assert '"is_private"' not in serialized.body
        assert '"description"' not in serialized.body

    @pytest.mark.parametrize("body", [
        "already json",
        b"raw bytes",
        FormUrlEncodedContent({"a": "1"}),
    ])
    def test_passthrough_bodies(self, pipeline: JsonHttpPipeline, body) -> None:
        serialized = pipeline.serialize_request(Request(method="POST", body=body))
        assert serialized.body is body

    def test_stream_body_passes_through(self, pipeline: JsonHttpPipeline) -> None:
        stream = io.BytesIO(b"data")
        serialized = pipeline.serialize_request(Request(method="PUT", body=stream))
        assert serialized.body is stream

    def test_no_body(self, pipeline: JsonHttpPipeline) -> None:
        assert pipeline.serialize_request(Request()).body is None


class TestDeserializeResponse:
    def test_json_body_parsed(self, pipeline: JsonHttpPipeline) -> None:
        response = make_response(data=[{"name": "a", "fork": True}, {"name": "b"}])
        parsed = pipeline.deserialize_response(response, List[Repository])
        assert [repo.name for repo in parsed.data] == ["a", "b"]
        assert parsed.data[0].is_fork is True
        assert response.data is None

    def test_vendor_json_media_type(self, pipeline: JsonHttpPipeline) -> None:
        response = make_response(body='{"a": 1}', content_type="application/vnd.github.v3+json; charset=utf-8")
        assert pipeline.deserialize_response(response).data == {"a": 1}

    def test_non_json_content_type_is_not_parsed(self, pipeline: JsonHttpPipeline) -> None:
        response = make_response(body='{"looks": "like json"}', content_type="text/html")
        parsed = pipeline.deserialize_response(response)
        assert parsed.data is None
        assert parsed.body == '{"looks": "like json"}'

    def test_empty_body(self, pipeline: JsonHttpPipeline) -> None:
        assert pipeline.deserialize_response(make_response(204, body="")).data is None

    def test_malformed_json_raises(self, pipeline: JsonHttpPipeline) -> None:
        response = make_response(body="{not json")
        with pytest.raises(DeserializationError) as excinfo:
            pipeline.deserialize_response(response)
        assert excinfo.value.response is response

    def test_shape_mismatch_raises(self, pipeline: JsonHttpPipeline) -> None:
        with pytest.raises(DeserializationError):
            pipeline.deserialize_response(make_response(data=["a"]), Repository)
