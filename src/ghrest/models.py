"""
Data models for GitHub API requests and responses.

Field names follow the API's snake_case keys. Where a key cannot (or should
not) be used as an attribute name the field carries a ``json`` alias in its
metadata, which the serializer honours in both directions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


def json_key(name: str, **kwargs):
    """Declare a dataclass field stored under a different JSON key."""
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata['json'] = name
    return field(metadata=metadata, **kwargs)


class TwoFactorType(str, Enum):
    """Second factor requested by an ``X-GitHub-OTP`` challenge."""
    NONE = 'none'
    UNKNOWN = 'unknown'
    SMS = 'sms'
    AUTHENTICATOR_APP = 'app'


class TaggedType(str, Enum):
    """Kind of git object a tag points at."""
    COMMIT = 'commit'
    BLOB = 'blob'
    TREE = 'tree'
    TAG = 'tag'
    UNKNOWN = 'unknown'


@dataclass
class ApiErrorDetail:
    """A single field-level error from a 422 response."""
    message: Optional[str] = None
    code: Optional[str] = None
    field: Optional[str] = None
    resource: Optional[str] = None


@dataclass
class ApiError:
    """Error payload returned by the GitHub API."""
    message: Optional[str] = None
    documentation_url: Optional[str] = None
    errors: List[ApiErrorDetail] = field(default_factory=list)


@dataclass
class RepositoryOwner:
    login: str = ''
    id: Optional[int] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    type: str = 'User'


@dataclass
class Repository:
    """Repository information from GitHub API."""
    # Core fields
    name: str = ''
    full_name: str = ''
    html_url: Optional[str] = None
    description: Optional[str] = None
    homepage: Optional[str] = None
    language: Optional[str] = None
    owner: Optional[RepositoryOwner] = None

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None

    # Counts
    size: int = 0
    stargazers_count: int = 0
    watchers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0

    # Flags
    is_private: bool = json_key('private', default=False)
    is_fork: bool = json_key('fork', default=False)
    is_archived: bool = json_key('archived', default=False)
    has_issues: bool = True
    has_wiki: bool = True

    # References
    default_branch: str = "main"
    topics: List[str] = field(default_factory=list)
    id: Optional[int] = None
    node_id: Optional[str] = None
    url: Optional[str] = None

    @property
    def last_updated(self) -> Optional[datetime]:
        """The last push time, falling back to the last update."""
        return self.pushed_at or self.updated_at


@dataclass
class Signature:
    """Author or committer of a git object."""
    name: Optional[str] = None
    email: Optional[str] = None
    date: Optional[datetime] = None


@dataclass
class GitReference:
    """Pointer to another git object (a tree or a parent commit)."""
    sha: Optional[str] = None
    url: Optional[str] = None
    html_url: Optional[str] = None


@dataclass
class Commit:
    """A git commit as returned by the git data API."""
    sha: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None
    author: Optional[Signature] = None
    committer: Optional[Signature] = None
    tree: Optional[GitReference] = None
    parents: List[GitReference] = field(default_factory=list)


@dataclass
class TagObject:
    """The object an annotated tag points at."""
    type: TaggedType = TaggedType.UNKNOWN
    sha: Optional[str] = None
    url: Optional[str] = None


@dataclass
class GitTag:
    """An annotated git tag.

    The API nests the tagged object under ``object``; it is exposed as
    ``tagged_object``.
    """
    tag: Optional[str] = None
    sha: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None
    tagger: Optional[Signature] = None
    tagged_object: Optional[TagObject] = json_key('object', default=None)
