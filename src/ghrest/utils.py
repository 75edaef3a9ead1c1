"""Utility functions for building GitHub API requests."""
from __future__ import annotations

import platform
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .__version__ import __version__

# application/json, application/vnd.github.v3+json, application/problem+json ...
_JSON_MEDIA_TYPE = re.compile(r"^application/([\w.\-]+\+)?json$", re.IGNORECASE)

BINARY_MEDIA_TYPES = frozenset({
    'application/zip',
    'application/x-gzip',
    'application/octet-stream',
})


def apply_parameters(uri: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
    """Merge query parameters into a URI.

    Parameters already present in the URI are kept unless ``parameters``
    supplies a new value for the same key.

    Args:
        uri: Relative or absolute URI, possibly with a query string
        parameters: Query parameters to apply. ``None`` values are skipped.

    Returns:
        The URI with the merged query string
    """
    if not parameters:
        return uri

    parts = urlsplit(uri)
    updates: Dict[str, str] = {}
    for key, value in parameters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        updates[key] = str(value)

    # Repeated keys (labels=a&labels=b) survive unless overridden
    pairs: List[Tuple[str, str]] = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in updates
    ]
    pairs.extend(updates.items())

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))


def get_query_parameter(uri: str, name: str) -> Optional[str]:
    """Return the value of a query parameter wherever it appears in the URI."""
    for key, value in parse_qsl(urlsplit(uri).query, keep_blank_values=True):
        if key == name:
            return value
    return None


def media_type(content_type: Optional[str]) -> Optional[str]:
    """Strip parameters (charset etc.) from a Content-Type value."""
    if not content_type:
        return None
    return content_type.split(';', 1)[0].strip().lower() or None


def is_json_content_type(content_type: Optional[str]) -> bool:
    """Check whether a content type denotes a JSON document."""
    mt = media_type(content_type)
    return bool(mt and _JSON_MEDIA_TYPE.match(mt))


def is_binary_content_type(content_type: Optional[str]) -> bool:
    """Check whether a response body should be kept as raw bytes."""
    mt = media_type(content_type)
    if not mt:
        return False
    return mt.startswith('image/') or mt in BINARY_MEDIA_TYPES


def format_user_agent(product: str) -> str:
    """Build the User-Agent sent with every request.

    GitHub requires a User-Agent identifying the calling product; platform
    details are appended for diagnostics.
    """
    try:
        platform_info = f"{platform.system()} {platform.release()}; {platform.machine() or 'unknown'}"
    except OSError:
        platform_info = "Unknown Platform"
    return f"{product} ({platform_info}; ghrest {__version__})"
