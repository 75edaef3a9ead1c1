"""
Rate limit snapshot parsed from GitHub response headers.

Headers are untrusted input: anything missing or malformed degrades to zero
counters and a reset time of the Unix epoch instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

EPOCH = datetime.fromtimestamp(0, timezone.utc)

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"


def find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is not None:
        return value
    # Plain dicts are not case-insensitive
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def _parse_int(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _parse_epoch(value: Any) -> datetime:
    try:
        return datetime.fromtimestamp(int(str(value).strip()), timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return EPOCH


@dataclass(frozen=True)
class RateLimit:
    """GitHub API rate limit information."""
    limit: int = 0
    remaining: int = 0
    reset: datetime = field(default=EPOCH)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> 'RateLimit':
        """Build a RateLimit from the ``X-RateLimit-*`` response headers.

        Args:
            headers: Response headers (any key casing)

        Returns:
            RateLimit with zero values / epoch for anything unparseable
        """
        return cls(
            limit=_parse_int(find_header(headers, LIMIT_HEADER)),
            remaining=_parse_int(find_header(headers, REMAINING_HEADER)),
            reset=_parse_epoch(find_header(headers, RESET_HEADER)),
        )

    @property
    def reset_as_utc_epoch_seconds(self) -> int:
        """The reset time as Unix epoch seconds."""
        return int(self.reset.timestamp())

    @property
    def is_exhausted(self) -> bool:
        """True when a limit is known and no requests remain."""
        return self.limit > 0 and self.remaining <= 0

    def seconds_until_reset(self, now: Optional[datetime] = None) -> float:
        """Seconds until the limit resets, never negative."""
        now = now or datetime.now(timezone.utc)
        return max(0.0, (self.reset - now).total_seconds())

