"""Parse GitHub response headers into an ApiInfo snapshot.

Every response carries navigation links (``Link``), OAuth scope lists,
rate limit counters and an ETag. These are parsed once per response into an
:class:`ApiInfo`. Parsing never raises: headers are external input, so bad
values are skipped or replaced with defaults.
"""
from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Mapping, Optional

from .rate_limit import RateLimit, find_header

ACCEPTED_SCOPES_HEADER = "X-Accepted-OAuth-Scopes"
SCOPES_HEADER = "X-OAuth-Scopes"
LINK_HEADER = "Link"
ETAG_HEADER = "ETag"
DATE_HEADER = "Date"
# Set by the transport adapter when a response arrives
RECEIVED_TIME_HEADER = "X-Ghrest-ReceivedDate"

_LINK_ENTRY = re.compile(r'<(?P<url>[^<>\s]+)>\s*;\s*rel="(?P<rel>[^"]+)"')


@dataclass(frozen=True)
class ApiInfo:
    """Metadata GitHub attaches to every API response."""
    links: Dict[str, str] = field(default_factory=dict)
    oauth_scopes: List[str] = field(default_factory=list)
    accepted_oauth_scopes: List[str] = field(default_factory=list)
    etag: Optional[str] = None
    rate_limit: RateLimit = field(default_factory=RateLimit)
    server_time_difference: timedelta = field(default=timedelta(0))

    @property
    def first_page_url(self) -> Optional[str]:
        return self.links.get("first")

    @property
    def previous_page_url(self) -> Optional[str]:
        return self.links.get("prev")

    @property
    def next_page_url(self) -> Optional[str]:
        return self.links.get("next")

    @property
    def last_page_url(self) -> Optional[str]:
        return self.links.get("last")

    def clone(self) -> 'ApiInfo':
        """Deep copy: no collection is shared with the original."""
        return copy.deepcopy(self)


def parse_scopes(value: Optional[str]) -> List[str]:
    """Split a comma separated scope header, dropping blanks."""
    if not value:
        return []
    return [scope.strip() for scope in value.split(",") if scope.strip()]


def parse_link_header(value: Optional[str]) -> Dict[str, str]:
    """Parse an RFC 5988 ``Link`` header into ``{rel: url}``.

    Entries are matched one by one, so one malformed entry does not prevent
    the others from being read. URLs may contain raw commas.
    """
    links: Dict[str, str] = {}
    if not value:
        return links
    for match in _LINK_ENTRY.finditer(value):
        links[match.group("rel")] = match.group("url")
    return links


def _parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_server_time_difference(headers: Mapping[str, str]) -> timedelta:
    """Offset between the server clock and the time the response arrived."""
    server_date = _parse_http_date(find_header(headers, DATE_HEADER))
    received_date = _parse_http_date(find_header(headers, RECEIVED_TIME_HEADER))
    if server_date is None or received_date is None:
        return timedelta(0)
    return server_date - received_date


def parse_api_info(headers: Mapping[str, str]) -> ApiInfo:
    """Build an ApiInfo from response headers (any key casing).

    Args:
        headers: Response headers

    Returns:
        Fresh ApiInfo; absent headers yield empty lists/maps and defaults
    """
    return ApiInfo(
        links=parse_link_header(find_header(headers, LINK_HEADER)),
        oauth_scopes=parse_scopes(find_header(headers, SCOPES_HEADER)),
        accepted_oauth_scopes=parse_scopes(find_header(headers, ACCEPTED_SCOPES_HEADER)),
        etag=find_header(headers, ETAG_HEADER),
        rate_limit=RateLimit.from_headers(headers),
        server_time_difference=parse_server_time_difference(headers),
    )
