"""Request and response values passed through the HTTP pipeline."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Optional, TypeVar, Union
from urllib.parse import urljoin, urlsplit

from requests.structures import CaseInsensitiveDict

from .api_info import ApiInfo

T = TypeVar('T')

# Requests default to 100 seconds, as the GitHub API may be slow to answer
DEFAULT_TIMEOUT = 100.0


def is_absolute_uri(uri: str) -> bool:
    parts = urlsplit(uri)
    return bool(parts.scheme and parts.netloc)


@dataclass(frozen=True)
class FormUrlEncodedContent:
    """A request body that is already form encoded and must not become JSON."""
    fields: Mapping[str, str]


@dataclass
class Request:
    """An outbound HTTP request.

    ``endpoint`` is resolved against ``base_address`` unless it is already an
    absolute URI. Headers are case-insensitive; setting a header twice with
    different casing keeps a single entry.
    """
    method: str = 'GET'
    base_address: str = 'https://api.github.com/'
    endpoint: str = ''
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Any = None
    content_type: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})
        self.method = self.method.upper()

    @property
    def url(self) -> str:
        """The absolute URL this request targets."""
        if is_absolute_uri(self.endpoint):
            return self.endpoint
        base = self.base_address if self.base_address.endswith('/') else f"{self.base_address}/"
        return urljoin(base, self.endpoint.lstrip('/'))

    def copy(self, **changes: Any) -> 'Request':
        """Return a new request, leaving this one untouched.

        Headers are copied so the two requests never share a header map.
        """
        headers = changes.pop('headers', None)
        if headers is None:
            headers = self.headers.copy()
        return dataclasses.replace(self, headers=CaseInsensitiveDict(headers), **changes)


@dataclass
class Response(Generic[T]):
    """An inbound HTTP response.

    ``body`` holds the raw payload (``str`` for text, ``bytes`` for binary
    content). ``data`` is only populated when the content type is JSON.
    """
    status_code: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Union[str, bytes, None] = None
    content_type: Optional[str] = None
    data: Optional[T] = None
    api_info: ApiInfo = field(default_factory=ApiInfo)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @property
    def text(self) -> str:
        """The raw body as text ('' when absent)."""
        if self.body is None:
            return ''
        if isinstance(self.body, bytes):
            return self.body.decode('utf-8', errors='replace')
        return self.body

    def with_changes(self, **changes: Any) -> 'Response[Any]':
        return dataclasses.replace(self, **changes)
