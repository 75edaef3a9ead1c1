"""Serialize outgoing request bodies and parse incoming JSON responses."""
from __future__ import annotations

import logging
from typing import Any, Optional

from .exceptions import DeserializationError
from .http import FormUrlEncodedContent, Request, Response
from .serializer import SimpleJsonSerializer
from .utils import is_json_content_type

logger = logging.getLogger(__name__)

V3_ACCEPT_HEADER = "application/vnd.github.v3+json; charset=utf-8"


def _is_stream(body: Any) -> bool:
    return hasattr(body, 'read') and callable(body.read)


class JsonHttpPipeline:
    """The JSON stage every API call passes through.

    Args:
        serializer: Serializer used for bodies and responses
    """

    def __init__(self, serializer: Optional[SimpleJsonSerializer] = None) -> None:
        self.serializer = serializer or SimpleJsonSerializer()

    def serialize_request(self, request: Request) -> Request:
        """Prepare a request for the wire.

        A default JSON ``Accept`` header is added when the caller did not set
        one. Strings, bytes, streams and form content are sent untouched; any
        other body is serialized to JSON.

        Returns:
            A new request; ``request`` itself is not modified
        """
        headers = request.headers.copy()
        if 'Accept' not in headers:
            headers['Accept'] = V3_ACCEPT_HEADER

        body = request.body
        if body is not None and not (
            isinstance(body, (str, bytes, bytearray, FormUrlEncodedContent)) or _is_stream(body)
        ):
            body = self.serializer.serialize(body)

        return request.copy(headers=headers, body=body)

    def deserialize_response(self, response: Response[Any], response_type: Any = None) -> Response[Any]:
        """Parse a JSON body into ``response.data``.

        Only responses whose content type is JSON are parsed; any other
        response keeps ``data`` as ``None`` whatever its body looks like.

        Raises:
            DeserializationError: if a JSON-typed body cannot be parsed
        """
        if not is_json_content_type(response.content_type):
            return response.with_changes(data=None)

        text = response.text
        if not text.strip():
            return response.with_changes(data=None)

        try:
            data = self.serializer.deserialize(text, response_type)
        except (ValueError, TypeError) as e:
            logger.debug("Failed to parse %s response body: %s", response.content_type, e)
            raise DeserializationError(f"Could not parse JSON response: {e}", response) from e

        return response.with_changes(data=data)
